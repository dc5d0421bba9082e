"""Self-describing image container.

A container is one HDF5 file holding any number of named ``uint8`` arrays
(variables) of shape ``(height, width, channels)`` plus string attributes on
the file root. Every variable records where one writer's block sits inside
the global array (``partition_offset`` / ``partition_extent``), so several
writers could share a variable. imarchive always writes with a single
partition: offset ``(0, 0, 0)`` and extent equal to the shape.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

import h5py
import numpy as np

from imarchive.core.errors import ArchiveUnavailable
from imarchive.core.utils import decode_text, encode_text

logger = logging.getLogger(__name__)

FORMAT_NAME = "imarchive-images"
FORMAT_VERSION = 1

Triple = Tuple[int, int, int]


@dataclass(frozen=True)
class ImageVariable:
    """One named image inside a container."""
    name: str
    shape: Triple
    partition_offset: Triple = (0, 0, 0)
    partition_extent: Optional[Triple] = None

    def __post_init__(self):
        if self.partition_extent is None:
            object.__setattr__(self, "partition_extent", tuple(self.shape))

    @property
    def channels(self) -> int:
        return self.shape[2]

    @property
    def nbytes(self) -> int:
        height, width, channels = self.shape
        return height * width * channels


def _selection(offset: Triple, extent: Triple) -> Tuple[slice, slice, slice]:
    return tuple(slice(start, start + count) for start, count in zip(offset, extent))


def _triple(value) -> Triple:
    return tuple(int(v) for v in value)


class ImageContainer:
    """Read or write access to one container file.

    Use the ``create`` and ``open`` constructors rather than ``__init__``;
    both return an object usable as a context manager.
    """

    def __init__(self, path: Union[str, Path], handle: h5py.File):
        self.path = Path(path)
        self._handle = handle

    @classmethod
    def create(cls, path: Union[str, Path], partition_count: int = 1) -> "ImageContainer":
        """Create a new container, replacing any file already at ``path``."""
        path = Path(path)
        try:
            handle = h5py.File(path, "w")
        except OSError as e:
            raise ArchiveUnavailable(path, str(e)) from e
        handle.attrs["format"] = FORMAT_NAME
        handle.attrs["format_version"] = FORMAT_VERSION
        handle.attrs["partition_count"] = partition_count
        logger.debug("Created container %s", path)
        return cls(path, handle)

    @classmethod
    def open(cls, path: Union[str, Path]) -> "ImageContainer":
        """Open an existing container read-only."""
        path = Path(path)
        if not path.is_file():
            raise ArchiveUnavailable(path, "no such file")
        try:
            handle = h5py.File(path, "r")
        except OSError as e:
            raise ArchiveUnavailable(path, str(e)) from e
        return cls(path, handle)

    def __enter__(self) -> "ImageContainer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        if self._handle.id.valid:
            self._handle.close()

    # -- writing -------------------------------------------------------------

    def define_variable(
        self,
        name: str,
        shape: Triple,
        offset: Triple = (0, 0, 0),
        extent: Optional[Triple] = None,
    ) -> ImageVariable:
        """Declare a variable with global ``shape`` and this writer's block."""
        variable = ImageVariable(name, _triple(shape), _triple(offset), _triple(extent or shape))
        for start, count, size in zip(variable.partition_offset, variable.partition_extent, variable.shape):
            if start < 0 or count < 0 or start + count > size:
                raise ValueError(f"Partition of {name!r} falls outside its shape {variable.shape}")
        if name in self._handle:
            raise ValueError(f"Variable {name!r} is already defined in {self.path}")
        dataset = self._handle.create_dataset(name, shape=variable.shape, dtype=np.uint8)
        dataset.attrs["partition_offset"] = np.asarray(variable.partition_offset, dtype=np.int64)
        dataset.attrs["partition_extent"] = np.asarray(variable.partition_extent, dtype=np.int64)
        return variable

    def put(self, variable: ImageVariable, pixels: np.ndarray) -> None:
        """Write this writer's block of ``variable``. Returns once the data is stored."""
        pixels = np.asarray(pixels, dtype=np.uint8)
        if pixels.shape != variable.partition_extent:
            raise ValueError(
                f"Buffer shape {pixels.shape} doesn't match extent {variable.partition_extent} of {variable.name!r}"
            )
        dataset = self._handle[variable.name]
        dataset[_selection(variable.partition_offset, variable.partition_extent)] = pixels
        self._handle.flush()

    def define_attribute(self, name: str, value: str) -> None:
        """
        Store ``value`` as a UTF-8 string attribute.

        Text that HDF5 strings can't hold (embedded NULs, undecodable bytes)
        is stored as its raw bytes in a uint8 array instead.
        """
        if "\x00" not in value:
            try:
                value.encode("utf-8")
            except UnicodeEncodeError:
                pass
            else:
                self._handle.attrs.create(name, data=value, dtype=h5py.string_dtype(encoding="utf-8"))
                return
        raw = np.frombuffer(encode_text(value), dtype=np.uint8)
        self._handle.attrs.create(name, data=raw)
        logger.debug("Stored attribute %s as %d raw bytes", name, raw.size)

    # -- reading -------------------------------------------------------------

    def available_variables(self) -> Dict[str, ImageVariable]:
        """All variables in the container, keyed and ordered by name."""
        variables = {}
        for name in sorted(self._handle.keys()):
            dataset = self._handle[name]
            if not isinstance(dataset, h5py.Dataset) or dataset.ndim != 3:
                logger.debug("Skipping non-image entry %s in %s", name, self.path)
                continue
            shape = _triple(dataset.shape)
            offset = _triple(dataset.attrs.get("partition_offset", (0, 0, 0)))
            extent = _triple(dataset.attrs.get("partition_extent", shape))
            variables[name] = ImageVariable(name, shape, offset, extent)
        return variables

    def inquire_variable(self, name: str) -> Optional[ImageVariable]:
        return self.available_variables().get(name)

    def get(
        self,
        variable: ImageVariable,
        offset: Triple = (0, 0, 0),
        extent: Optional[Triple] = None,
    ) -> np.ndarray:
        """Read the selection ``offset``/``extent`` (default: whole shape) of ``variable``."""
        extent = _triple(extent or variable.shape)
        dataset = self._handle[variable.name]
        return np.ascontiguousarray(dataset[_selection(_triple(offset), extent)])

    def inquire_attribute(self, name: str) -> Optional[str]:
        if name not in self._handle.attrs:
            return None
        value = self._handle.attrs[name]
        if isinstance(value, np.ndarray) and value.dtype == np.uint8:
            return decode_text(value.tobytes())
        if isinstance(value, bytes):
            return decode_text(value)
        return str(value)
