"""Shared fixtures: small PNG folders, a temporary catalog and a service."""

from pathlib import Path

import cv2
import numpy as np
import pytest

from imarchive.catalog.repository import ExperimentCatalog
from imarchive.services.experiment_service import ExperimentService


@pytest.fixture
def make_image():
    """Write a random PNG and return the pixels as stored on disk."""
    rng = np.random.default_rng(1234)

    def _make(path: Path, channels: int = 3, height: int = 6, width: int = 7) -> np.ndarray:
        shape = (height, width) if channels == 1 else (height, width, channels)
        pixels = rng.integers(0, 256, size=shape, dtype=np.uint8)
        assert cv2.imwrite(str(path), pixels)
        return pixels

    return _make


@pytest.fixture
def image_dir(tmp_path, make_image):
    """A source folder with a colour a.png, a gray b.png and no metadata.txt."""
    source = tmp_path / "raw"
    source.mkdir()
    make_image(source / "a.png", channels=3)
    make_image(source / "b.png", channels=1)
    return source


@pytest.fixture
def catalog(tmp_path):
    catalog = ExperimentCatalog(f"sqlite:///{tmp_path / 'data.db'}")
    catalog.open()
    yield catalog
    catalog.close()


@pytest.fixture
def service(catalog, tmp_path):
    return ExperimentService(catalog, tmp_path / "archives", tmp_path / "output")
