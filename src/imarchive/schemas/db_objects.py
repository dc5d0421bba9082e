"""
Pydantic schemas for catalog records.

``ExperimentRead`` is what the service hands back to callers: a detached,
read-only view of one ``experiment_data`` row.
"""

from pydantic import BaseModel, ConfigDict, Field


class ExperimentCreate(BaseModel):
    """Schema for a record about to be inserted."""
    name: str = Field(min_length=1)
    author: str = ""
    archive_path: str
    metadata: str = ""


class ExperimentRead(BaseModel):
    """Schema for reading experiments back out of the catalog."""
    model_config = ConfigDict(from_attributes=True, frozen=True)

    name: str
    author: str = ""
    archive_path: str
    metadata: str = ""

    @classmethod
    def from_record(cls, record) -> "ExperimentRead":
        return cls(
            name=record.experiment_name,
            author=record.author_name or "",
            archive_path=record.archive_path,
            metadata=record.metadata_content or "",
        )
