"""
Catalog of archived experiments.

``ExperimentCatalog`` wraps the ``experiment_data`` table behind a small
repository with an explicit open/close lifecycle. The database URL is
injected so tests can point it at a temporary SQLite file or at memory.
"""

import contextlib
import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session, sessionmaker

from imarchive.core.errors import CatalogUnavailable, DuplicateExperiment, ExperimentNotFound
from imarchive.database.engine import create_catalog_engine
from imarchive.database.models import Base, ExperimentData
from imarchive.database.session import get_session, make_session_factory
from imarchive.schemas.db_objects import ExperimentCreate, ExperimentRead

logger = logging.getLogger(__name__)


class ExperimentCatalog:
    """Unique-keyed store of experiment records."""

    def __init__(self, database_url: str):
        self.database_url = database_url
        self._engine: Optional[Engine] = None
        self._factory: Optional[sessionmaker] = None

    # -- lifecycle -----------------------------------------------------------

    def open(self) -> "ExperimentCatalog":
        """Connect to the backing store and make sure the table exists."""
        if self._engine is not None:
            return self
        engine = create_catalog_engine(self.database_url)
        self._engine = engine
        self._factory = make_session_factory(engine)
        try:
            self.ensure_schema()
        except CatalogUnavailable:
            self.close()
            raise
        logger.debug("Opened catalog at %s", self.database_url)
        return self

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            logger.debug("Closed catalog at %s", self.database_url)
        self._engine = None
        self._factory = None

    def __enter__(self) -> "ExperimentCatalog":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @contextlib.contextmanager
    def session(self):
        if self._factory is None:
            raise CatalogUnavailable("Catalog is not open")
        with get_session(self._factory) as session:
            yield session

    # -- operations ----------------------------------------------------------

    def ensure_schema(self) -> None:
        """Create the experiment table if it doesn't already exist."""
        if self._engine is None:
            raise CatalogUnavailable("Catalog is not open")
        try:
            Base.metadata.create_all(self._engine)
        except OperationalError as e:
            raise CatalogUnavailable(f"Can't open database {self.database_url}: {e.orig}") from e

    def exists(self, name: str) -> bool:
        with self.session() as session:
            return self._find(session, name) is not None

    def insert(self, record: ExperimentCreate) -> ExperimentRead:
        """Store a new record; the experiment name must not be taken."""
        row = ExperimentData(
            author_name=record.author,
            experiment_name=record.name,
            archive_path=record.archive_path,
            metadata_content=record.metadata,
        )
        with self.session() as session:
            session.add(row)
            try:
                session.commit()
            except IntegrityError as e:
                session.rollback()
                raise DuplicateExperiment(record.name) from e
            except OperationalError as e:
                session.rollback()
                raise CatalogUnavailable(f"Failed to execute query: {e.orig}") from e
            session.refresh(row)
            logger.info("Catalogued experiment %s at %s", row.experiment_name, row.archive_path)
            return ExperimentRead.from_record(row)

    def select_all(self) -> List[ExperimentRead]:
        """All records in insertion order."""
        with self.session() as session:
            rows = session.execute(select(ExperimentData).order_by(ExperimentData.id)).scalars().all()
            return [ExperimentRead.from_record(row) for row in rows]

    def select(self, name: str) -> ExperimentRead:
        with self.session() as session:
            row = self._find(session, name)
            if row is None:
                raise ExperimentNotFound(name)
            return ExperimentRead.from_record(row)

    def select_path(self, name: str) -> str:
        return self.select(name).archive_path

    def delete(self, name: str) -> None:
        """
        Remove the record for ``name``.

        The archive storage at the record's path is the caller's to remove.
        """
        with self.session() as session:
            row = self._find(session, name)
            if row is None:
                raise ExperimentNotFound(name)
            session.delete(row)
            session.commit()
            logger.info("Removed catalog record for %s", name)

    @staticmethod
    def _find(session: Session, name: str) -> Optional[ExperimentData]:
        stmt = select(ExperimentData).where(ExperimentData.experiment_name == name)
        return session.execute(stmt).scalars().first()
