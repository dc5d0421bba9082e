"""
Experiment service: wires the catalog to the archive writer and reader.

Each public method is one user-facing operation (insert, query, extract,
delete, inspect). The catalog is only written after a container has been
packed completely.
"""

import logging
import shutil
from pathlib import Path
from typing import List, Optional, Union

from imarchive.archive.reader import ArchiveReader, ContainerSummary
from imarchive.archive.writer import ArchiveWriter
from imarchive.catalog.repository import ExperimentCatalog
from imarchive.core.config import Settings
from imarchive.core.errors import DuplicateExperiment, InvalidExperimentName
from imarchive.core.utils import check_experiment_name, display_text
from imarchive.metadata.resolver import ImageLabeler, MetadataSelector
from imarchive.schemas.db_objects import ExperimentCreate, ExperimentRead

logger = logging.getLogger(__name__)


class ExperimentService:
    def __init__(
        self,
        catalog: ExperimentCatalog,
        archive_root: Union[str, Path],
        output_root: Union[str, Path],
        labeler: Optional[ImageLabeler] = None,
    ):
        self.catalog = catalog
        self.archive_root = Path(archive_root)
        self.output_root = Path(output_root)
        self.writer = ArchiveWriter(self.archive_root, labeler=labeler)
        self.reader = ArchiveReader()

    @classmethod
    def from_settings(cls, settings: Settings, labeler: Optional[ImageLabeler] = None) -> "ExperimentService":
        """Build a service (with an unopened catalog) from settings."""
        catalog = ExperimentCatalog(settings.build_database_url())
        return cls(catalog, settings.archive_root, settings.output_root, labeler=labeler)

    def exists(self, name: str) -> bool:
        return self.catalog.exists(name)

    def insert(
        self,
        name: str,
        author: str,
        source_dir: Union[str, Path],
        selector: Optional[MetadataSelector] = None,
    ) -> ExperimentRead:
        """
        Pack ``source_dir`` and catalog it under ``name``.

        The container keeps the sidecar bytes verbatim; the catalog keeps a
        printable copy in which undecodable bytes read as U+FFFD.

        Raises:
            InvalidExperimentName: if ``name`` can't name a directory.
            DuplicateExperiment: if ``name`` is already catalogued.
            PathNotFound, ImageDecodeFailed: from packing; nothing is catalogued.
        """
        check_experiment_name(name)
        if self.catalog.exists(name):
            raise DuplicateExperiment(name)

        result = self.writer.pack(name, source_dir, selector)
        record = ExperimentCreate(
            name=name,
            author=author,
            archive_path=str(result.archive_path),
            metadata=display_text(result.metadata_text),
        )
        return self.catalog.insert(record)

    def query(self) -> List[ExperimentRead]:
        return self.catalog.select_all()

    def extract(self, name: str, output_root: Optional[Union[str, Path]] = None) -> List[Path]:
        """Unpack the experiment into ``<output_root>/<name>/``."""
        archive_path = self.catalog.select_path(name)
        output_dir = Path(output_root or self.output_root) / check_experiment_name(name)
        logger.info("Extracting %s from %s", name, archive_path)
        return self.reader.unpack(archive_path, output_dir)

    def inspect(self, name: str) -> ContainerSummary:
        return self.reader.describe(self.catalog.select_path(name))

    def delete(self, name: str) -> Path:
        """
        Remove the catalog record, then the experiment's archive directory.

        The two removals are not atomic: if the directory removal fails the
        record is already gone.

        Raises:
            ExperimentNotFound: if ``name`` isn't catalogued.
            InvalidExperimentName: if the record's directory isn't strictly
                inside ``archive_root``; nothing is removed.
        """
        archive_dir = Path(self.catalog.select_path(name)).parent
        root = self.archive_root.resolve()
        if root not in archive_dir.resolve().parents:
            raise InvalidExperimentName(name, f"archive directory {archive_dir} is not inside {self.archive_root}")
        self.catalog.delete(name)
        if archive_dir.exists():
            shutil.rmtree(archive_dir)
        else:
            logger.warning("Archive directory %s was already missing", archive_dir)
        logger.info("Experiment '%s' deleted", name)
        return archive_dir
