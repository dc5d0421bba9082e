"""
Pack a directory of images and its metadata into one container.

The container is assembled under a temporary name and only moved to
``<archive_root>/<experiment>/images.h5`` once every image and the metadata
attribute are written, so a failed pack never leaves a container behind.
"""

import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from imarchive.archive.container import ImageContainer, ImageVariable
from imarchive.core.errors import ArchiveExists, PathNotFound, UnsupportedImageFormat
from imarchive.core.settings import CONTAINER_FILENAME, METADATA_ATTRIBUTE, METADATA_FILENAME
from imarchive.core.utils import check_experiment_name, decode_text
from imarchive.imaging.codec import ImageDescriptor, can_encode, decode_image, promote_to_three_channels
from imarchive.metadata.resolver import ImageLabeler, MetadataSelector, resolve_metadata

logger = logging.getLogger(__name__)


@dataclass
class PackResult:
    archive_path: Path
    metadata_text: str
    variables: List[ImageVariable] = field(default_factory=list)


def list_image_files(source_dir: Path) -> List[Path]:
    """Regular files of ``source_dir`` by name, without the metadata sidecar."""
    return sorted(
        (p for p in source_dir.iterdir() if p.is_file() and p.name != METADATA_FILENAME),
        key=lambda p: p.name,
    )


def archive_path_for(archive_root: Union[str, Path], experiment_name: str) -> Path:
    return Path(archive_root) / check_experiment_name(experiment_name) / CONTAINER_FILENAME


class ArchiveWriter:
    """Writes one container per experiment under ``archive_root``."""

    def __init__(self, archive_root: Union[str, Path], labeler: Optional[ImageLabeler] = None):
        self.archive_root = Path(archive_root)
        self.labeler = labeler

    def pack(
        self,
        experiment_name: str,
        source_dir: Union[str, Path],
        selector: Optional[MetadataSelector] = None,
        overwrite: bool = False,
    ) -> PackResult:
        """
        Pack every image of ``source_dir`` into the experiment's container.

        Args:
            experiment_name: Catalog name; also names the archive directory.
            source_dir: Folder holding the images and maybe ``metadata.txt``.
            selector: Called only when ``metadata.txt`` is missing, to decide
                how the metadata is produced.
            overwrite: Replace a container already present at the target
                path. Without it such a container is left alone.

        Returns:
            PackResult with the container path and the embedded metadata text.

        Raises:
            InvalidExperimentName: if the name isn't a single path component.
            PathNotFound: if ``source_dir`` isn't a directory.
            UnsupportedImageFormat: if a file name has no writable image
                extension; checked before anything is written.
            ArchiveExists: if a container is present and ``overwrite`` is off.
            ImageDecodeFailed: if any file can't be decoded; nothing is kept.
        """
        archive_path = archive_path_for(self.archive_root, experiment_name)
        source_dir = Path(source_dir)
        if not source_dir.is_dir():
            raise PathNotFound(source_dir)

        image_paths = list_image_files(source_dir)
        for image_path in image_paths:
            # extraction re-encodes by file name
            if not can_encode(image_path):
                raise UnsupportedImageFormat(image_path)

        experiment_dir = archive_path.parent
        created_dir = not experiment_dir.exists()
        if archive_path.exists():
            if not overwrite:
                raise ArchiveExists(archive_path)
            logger.warning("Overwriting existing container %s", archive_path)
        experiment_dir.mkdir(parents=True, exist_ok=True)
        tmp_path = archive_path.with_name(archive_path.name + ".tmp")

        try:
            with ImageContainer.create(tmp_path) as container:
                variables = self._write_images(container, image_paths)
                metadata_text = self._embed_metadata(container, source_dir, image_paths, selector)
            os.replace(tmp_path, archive_path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            if created_dir:
                shutil.rmtree(experiment_dir, ignore_errors=True)
            raise

        logger.info("Packed %d images from %s into %s", len(variables), source_dir, archive_path)
        return PackResult(archive_path, metadata_text, variables)

    def _write_images(self, container: ImageContainer, image_paths: List[Path]) -> List[ImageVariable]:
        variables = []
        for image_path in image_paths:
            pixels, _ = decode_image(image_path)
            pixels = promote_to_three_channels(pixels)
            descriptor = ImageDescriptor.of(pixels)
            # single writer: the block is the whole image
            variable = container.define_variable(
                image_path.name,
                descriptor.shape,
                offset=(0, 0, 0),
                extent=descriptor.shape,
            )
            logger.info("Writing %s", image_path.name)
            container.put(variable, pixels)
            variables.append(variable)
        return variables

    def _embed_metadata(
        self,
        container: ImageContainer,
        source_dir: Path,
        image_paths: List[Path],
        selector: Optional[MetadataSelector],
    ) -> str:
        sidecar = source_dir / METADATA_FILENAME
        if not sidecar.is_file():
            if selector is None:
                raise ValueError(f"{sidecar} is missing and no metadata selection was given")
            logger.info("Metadata file not found in %s", source_dir)
            resolve_metadata(sidecar, selector(), image_paths, labeler=self.labeler)

        # re-scan: the sidecar is the single source of the embedded text
        metadata_text = decode_text(sidecar.read_bytes())
        container.define_attribute(METADATA_ATTRIBUTE, metadata_text)
        logger.debug("Embedded %d characters of metadata", len(metadata_text))
        return metadata_text
