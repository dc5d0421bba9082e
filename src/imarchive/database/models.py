# src/imarchive/database/models.py

from sqlalchemy import Column, Integer, Text
from sqlalchemy.orm import declarative_base

# Create the base class for SQLAlchemy models
Base = declarative_base()


class ExperimentData(Base):
    """Catalog record pointing an experiment name at its image container."""
    __tablename__ = "experiment_data"

    id = Column(Integer, primary_key=True, autoincrement=True)
    author_name = Column(Text, nullable=True)
    experiment_name = Column(Text, unique=True, nullable=False)
    archive_path = Column(Text, nullable=False)
    metadata_content = Column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<ExperimentData {self.experiment_name!r} -> {self.archive_path!r}>"
