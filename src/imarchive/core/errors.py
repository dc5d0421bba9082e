# src/imarchive/core/errors.py
"""
Exceptions raised by the archive engine, the catalog and the metadata resolver.

The CLI catches ``ArchiveError`` subclasses at its boundary and turns them
into a message plus a non-zero exit; everything else propagates.
"""

from pathlib import Path
from typing import Union


class ArchiveError(Exception):
    """Base class for every imarchive failure."""


class PathNotFound(ArchiveError):
    """The source directory is missing or is not a directory."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        super().__init__(f"The specified path does not exist or is not a directory: {self.path}")


class ImageDecodeFailed(ArchiveError):
    """A file in the source directory could not be decoded as an image."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        super().__init__(f"Couldn't open or read the image at {self.path}")


class ImageEncodeFailed(ArchiveError):
    """A pixel buffer could not be written as an image file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        super().__init__(f"Couldn't write the image to {self.path}")


class InvalidMetadataChoice(ArchiveError):
    """A metadata selection outside of the offered options."""

    def __init__(self, value):
        self.value = value
        super().__init__(f"Invalid metadata choice: {value!r}. Please enter a valid choice.")


class LabelingFailed(ArchiveError):
    """The AI labeler could not produce a label for an image."""

    def __init__(self, path: Union[str, Path], reason: str):
        self.path = Path(path)
        super().__init__(f"Labeling failed for {self.path.name}: {reason}")


class DuplicateExperiment(ArchiveError):
    """An experiment with this name is already in the catalog."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Experiment '{name}' already exists in the database!")


class ExperimentNotFound(ArchiveError):
    """No catalog record for this experiment name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Experiment '{name}' not found in the database.")


class MetadataAttributeMissing(ArchiveError):
    """A container carries no metadata attribute. Reported, never fatal."""

    def __init__(self, archive_path: Union[str, Path]):
        self.archive_path = Path(archive_path)
        super().__init__(f"Attribute 'metadata' not found in {self.archive_path}")


class CatalogUnavailable(ArchiveError):
    """The catalog backing store cannot be opened or used."""


class ArchiveUnavailable(ArchiveError):
    """A container file is missing or is not a readable container."""

    def __init__(self, archive_path: Union[str, Path], reason: str = ""):
        self.archive_path = Path(archive_path)
        message = f"Can't open archive {self.archive_path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class InvalidExperimentName(ArchiveError):
    """An experiment name that can't be used as a single directory name."""

    def __init__(self, name: str, reason: str = "must be a single path component"):
        self.name = name
        super().__init__(f"Invalid experiment name {name!r}: {reason}")


class UnsupportedImageFormat(ArchiveError):
    """A source file whose name has no image writer, so it could not be extracted again."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        super().__init__(f"No image writer for {self.path.name!r}; the file name needs a known image extension")


class ArchiveExists(ArchiveError):
    """A container is already present where a new one would be written."""

    def __init__(self, archive_path: Union[str, Path]):
        self.archive_path = Path(archive_path)
        super().__init__(f"An archive already exists at {self.archive_path}")
