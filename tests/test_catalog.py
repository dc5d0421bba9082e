"""
Tests for the experiment catalog repository.
"""

import pytest
from pydantic import ValidationError

from imarchive.catalog.repository import ExperimentCatalog
from imarchive.core.errors import CatalogUnavailable, DuplicateExperiment, ExperimentNotFound
from imarchive.schemas.db_objects import ExperimentCreate


def _record(name="exp1", author="ana", path="ImageArchives/exp1/images.h5", metadata=""):
    return ExperimentCreate(name=name, author=author, archive_path=path, metadata=metadata)


def test_insert_and_select(catalog):
    stored = catalog.insert(_record(metadata="a.png: cells\n"))

    assert stored.name == "exp1"
    assert stored.author == "ana"
    assert catalog.exists("exp1")
    assert catalog.select("exp1") == stored
    assert catalog.select_path("exp1") == "ImageArchives/exp1/images.h5"


def test_select_all_in_insertion_order(catalog):
    catalog.insert(_record("zeta"))
    catalog.insert(_record("alpha"))
    assert [r.name for r in catalog.select_all()] == ["zeta", "alpha"]


def test_empty_catalog(catalog):
    assert catalog.select_all() == []
    assert not catalog.exists("exp1")


def test_duplicate_name_is_rejected(catalog):
    catalog.insert(_record(author="first"))
    with pytest.raises(DuplicateExperiment) as exc_info:
        catalog.insert(_record(author="second"))
    assert exc_info.value.name == "exp1"
    records = catalog.select_all()
    assert len(records) == 1
    assert records[0].author == "first"


def test_missing_experiment(catalog):
    with pytest.raises(ExperimentNotFound):
        catalog.select("ghost")
    with pytest.raises(ExperimentNotFound):
        catalog.select_path("ghost")
    with pytest.raises(ExperimentNotFound):
        catalog.delete("ghost")


def test_delete_removes_only_that_record(catalog):
    catalog.insert(_record("keep"))
    catalog.insert(_record("drop"))
    catalog.delete("drop")
    assert [r.name for r in catalog.select_all()] == ["keep"]


def test_records_survive_reopen(tmp_path):
    url = f"sqlite:///{tmp_path / 'data.db'}"
    with ExperimentCatalog(url) as catalog:
        catalog.insert(_record())
    with ExperimentCatalog(url) as catalog:
        assert catalog.exists("exp1")


def test_in_memory_catalog():
    with ExperimentCatalog("sqlite://") as catalog:
        catalog.insert(_record())
        assert catalog.exists("exp1")


def test_unopened_catalog_is_unavailable():
    catalog = ExperimentCatalog("sqlite://")
    with pytest.raises(CatalogUnavailable):
        catalog.select_all()


def test_unreachable_database(tmp_path):
    catalog = ExperimentCatalog(f"sqlite:///{tmp_path / 'missing' / 'dir' / 'data.db'}")
    with pytest.raises(CatalogUnavailable):
        catalog.open()
    with pytest.raises(CatalogUnavailable):
        catalog.exists("exp1")


def test_empty_name_is_invalid():
    with pytest.raises(ValidationError):
        ExperimentCreate(name="", archive_path="x")
