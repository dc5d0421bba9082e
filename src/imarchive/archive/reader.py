"""
Unpack a container back into image files and a ``metadata.txt``.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from imarchive.archive.container import ImageContainer, ImageVariable
from imarchive.core.errors import MetadataAttributeMissing
from imarchive.core.settings import METADATA_ATTRIBUTE, METADATA_FILENAME
from imarchive.core.utils import encode_text
from imarchive.imaging.codec import encode_image, promote_to_three_channels

logger = logging.getLogger(__name__)


@dataclass
class ContainerSummary:
    """What ``describe`` reports about a container without extracting it."""
    archive_path: Path
    variables: List[ImageVariable] = field(default_factory=list)
    metadata: Optional[str] = None


class ArchiveReader:
    """Reads containers written by ``ArchiveWriter``.

    Non-fatal problems met during the last ``unpack`` (currently only a
    missing metadata attribute) are collected in ``warnings``.
    """

    def __init__(self):
        self.warnings: List[MetadataAttributeMissing] = []

    def unpack(self, archive_path: Union[str, Path], output_dir: Union[str, Path]) -> List[Path]:
        """
        Recreate every image of the container in ``output_dir``.

        Args:
            archive_path: Container to read.
            output_dir: Created if needed; receives one file per variable
                plus ``metadata.txt``.

        Returns:
            Paths of all files written.

        Raises:
            ArchiveUnavailable: if the container can't be opened.
            ImageEncodeFailed: if an image can't be written.
        """
        self.warnings = []
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        written: List[Path] = []

        with ImageContainer.open(archive_path) as container:
            for name, variable in container.available_variables().items():
                logger.info("Reading %s", name)
                pixels = container.get(variable, offset=(0, 0, 0), extent=variable.shape)
                pixels = promote_to_three_channels(pixels)
                written.append(encode_image(output_dir / name, pixels))

            metadata = container.inquire_attribute(METADATA_ATTRIBUTE)

        if metadata is None:
            missing = MetadataAttributeMissing(archive_path)
            logger.warning(str(missing))
            self.warnings.append(missing)
        else:
            metadata_path = output_dir / METADATA_FILENAME
            metadata_path.write_bytes(encode_text(metadata))
            logger.info("Metadata extracted at %s", metadata_path)
            written.append(metadata_path)

        logger.info("Images recreated at %s", output_dir)
        return written

    def describe(self, archive_path: Union[str, Path]) -> ContainerSummary:
        """List the variables and the metadata attribute of a container."""
        with ImageContainer.open(archive_path) as container:
            return ContainerSummary(
                archive_path=Path(archive_path),
                variables=list(container.available_variables().values()),
                metadata=container.inquire_attribute(METADATA_ATTRIBUTE),
            )
