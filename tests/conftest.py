"""
Shared fixtures for photoedit tests.
"""

import threading

import numpy as np
import pytest
from PIL import Image

from photoedit.config import BatchSettings, configure
from photoedit.core.events import EventBus
from photoedit.imaging.pipeline import AdjustmentPipeline


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path):
    """Point global settings at a temporary data directory."""
    settings = configure(data_dir=tmp_path / "photoedit-data")
    yield settings
    configure()


@pytest.fixture(autouse=True)
def reset_event_bus():
    """Give every test a fresh event bus."""
    EventBus.reset()
    yield
    EventBus.reset()


@pytest.fixture
def gradient_array():
    """200x100 RGB gradient with distinct channels."""
    height, width = 100, 200
    x = np.linspace(0, 255, width, dtype=np.float32)
    y = np.linspace(0, 255, height, dtype=np.float32)
    arr = np.zeros((height, width, 3), dtype=np.uint8)
    arr[:, :, 0] = x[None, :].astype(np.uint8)
    arr[:, :, 1] = y[:, None].astype(np.uint8)
    arr[:, :, 2] = 128
    return arr


@pytest.fixture
def rgb_image(gradient_array):
    return Image.fromarray(gradient_array, mode="RGB")


@pytest.fixture
def rgba_image(gradient_array):
    img = Image.fromarray(gradient_array, mode="RGB")
    alpha = Image.new("L", img.size, 0)
    alpha.paste(255, (0, 0, img.width // 2, img.height))
    img.putalpha(alpha)
    return img


@pytest.fixture
def gray_image():
    arr = np.tile(np.linspace(0, 255, 64, dtype=np.uint8), (32, 1))
    return Image.fromarray(arr, mode="L")


@pytest.fixture
def uniform_image():
    """Single-color 40x20 image (10, 20, 30)."""
    return Image.new("RGB", (40, 20), (10, 20, 30))


@pytest.fixture
def image_file(tmp_path, rgb_image):
    """Lossless PNG photo on disk."""
    path = tmp_path / "photo.png"
    rgb_image.save(path)
    return path


@pytest.fixture
def jpeg_file(tmp_path, rgb_image):
    path = tmp_path / "photo.jpg"
    rgb_image.save(path, quality=95)
    return path


@pytest.fixture
def input_dir(tmp_path, rgb_image):
    """Directory with three small PNG photos a, b and c."""
    directory = tmp_path / "inputs"
    directory.mkdir()
    for name in ("a", "b", "c"):
        rgb_image.resize((40, 20)).save(directory / f"{name}.png")
    return directory


@pytest.fixture
def corrupt_file(tmp_path):
    path = tmp_path / "corrupt.jpg"
    path.write_bytes(b"this is not a jpeg")
    return path


@pytest.fixture
def batch_settings():
    return BatchSettings(max_concurrent_jobs=3, file_workers=1)


class BlockingPipeline(AdjustmentPipeline):
    """Pipeline that holds every apply() call until released."""

    def __init__(self):
        super().__init__()
        self.release = threading.Event()

    def apply(self, image, adjustments):
        if not self.release.wait(timeout=10):
            raise TimeoutError("pipeline was never released")
        return super().apply(image, adjustments)


@pytest.fixture
def blocking_pipeline():
    pipeline = BlockingPipeline()
    yield pipeline
    pipeline.release.set()
