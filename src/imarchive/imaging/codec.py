"""
Raster image codec used by the archive writer and reader.

Decoding goes through OpenCV and always yields an 8-bit ``(height, width,
channels)`` array in OpenCV channel order (BGR for colour images). The same
``promote_to_three_channels`` is applied on both sides of the archive.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple, Union

import cv2
import numpy as np

from imarchive.core.errors import ImageDecodeFailed, ImageEncodeFailed
from imarchive.core.settings import TARGET_CHANNELS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageDescriptor:
    """Dimensions of one decoded image."""
    height: int
    width: int
    channels: int

    @property
    def shape(self) -> Tuple[int, int, int]:
        return (self.height, self.width, self.channels)

    @property
    def nbytes(self) -> int:
        return self.height * self.width * self.channels

    @classmethod
    def of(cls, pixels: np.ndarray) -> "ImageDescriptor":
        if pixels.ndim == 2:
            height, width = pixels.shape
            return cls(height, width, 1)
        height, width, channels = pixels.shape
        return cls(height, width, channels)


def _as_hwc(pixels: np.ndarray) -> np.ndarray:
    if pixels.ndim == 2:
        return pixels[:, :, np.newaxis]
    if pixels.ndim != 3:
        raise ValueError(f"Expected a 2-D or 3-D pixel array, got shape {pixels.shape}")
    return pixels


def promote_to_three_channels(pixels: np.ndarray) -> np.ndarray:
    """
    Bring an image with fewer than three channels up to three.

    A single channel is replicated (gray to BGR). Two channels keep their
    values and get an all-zero third channel. Three or more channels are
    returned unchanged.
    """
    pixels = _as_hwc(pixels)
    channels = pixels.shape[2]
    if channels >= TARGET_CHANNELS:
        return pixels
    if channels == 1:
        return np.ascontiguousarray(np.repeat(pixels, TARGET_CHANNELS, axis=2))
    padded = np.zeros(pixels.shape[:2] + (TARGET_CHANNELS,), dtype=pixels.dtype)
    padded[:, :, :channels] = pixels
    return padded


def decode_image(path: Union[str, Path]) -> Tuple[np.ndarray, ImageDescriptor]:
    """
    Read an image file into an ``(height, width, channels)`` uint8 array.

    Gray images come back with one channel, everything else with three.

    Raises:
        ImageDecodeFailed: if the file is not a readable image.
    """
    path = Path(path)
    pixels = cv2.imread(str(path), cv2.IMREAD_ANYCOLOR)
    if pixels is None or pixels.size == 0:
        raise ImageDecodeFailed(path)
    pixels = _as_hwc(pixels)
    if pixels.dtype != np.uint8:
        raise ImageDecodeFailed(path)
    return np.ascontiguousarray(pixels), ImageDescriptor.of(pixels)


def can_encode(path: Union[str, Path]) -> bool:
    """Whether OpenCV has a writer for the suffix of ``path``."""
    return bool(cv2.haveImageWriter(str(path)))


def encode_image(path: Union[str, Path], pixels: np.ndarray) -> Path:
    """
    Write a pixel buffer to ``path``; the suffix selects the file format.

    Raises:
        ImageEncodeFailed: if OpenCV can't write the file.
    """
    path = Path(path)
    pixels = _as_hwc(pixels)
    if pixels.shape[2] == 1:
        pixels = pixels[:, :, 0]
    try:
        ok = cv2.imwrite(str(path), pixels)
    except cv2.error as e:
        logger.error("OpenCV refused to write %s: %s", path, e)
        raise ImageEncodeFailed(path) from e
    if not ok:
        raise ImageEncodeFailed(path)
    return path
