# Ensure `import pixeldiff` works from a fresh clone:
# put repo/python on sys.path so the package is importable without prior install.
import sys
from pathlib import Path

import numpy as np
import pytest

from _images import solid


def _repo_root() -> Path:
    return Path(__file__).resolve().parents[1]


def _ensure_python_path():
    pkg_dir = _repo_root() / "python"
    if str(pkg_dir) not in sys.path:
        sys.path.insert(0, str(pkg_dir))


_ensure_python_path()


def pytest_configure(config):
    config.addinivalue_line("markers", "slow: slow tests (large buffers, thread pools)")


@pytest.fixture
def black_2x2() -> np.ndarray:
    return solid(2, 2, (0, 0, 0, 255))


@pytest.fixture
def white_2x2() -> np.ndarray:
    return solid(2, 2, (255, 255, 255, 255))


@pytest.fixture
def noisy_pair():
    """Two random 37x23 RGBA buffers with a fixed seed."""
    rng = np.random.default_rng(1234)
    a = rng.integers(0, 256, size=(23, 37, 4), dtype=np.uint8)
    b = rng.integers(0, 256, size=(23, 37, 4), dtype=np.uint8)
    return a, b


@pytest.fixture
def write_png(tmp_path):
    """Write an RGBA buffer as PNG under tmp_path and return the path."""
    from PIL import Image

    def _write(name: str, rgba: np.ndarray, **save_kwargs) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        Image.fromarray(np.ascontiguousarray(rgba)).save(path, format="PNG", **save_kwargs)
        return path

    return _write
