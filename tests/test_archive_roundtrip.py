"""
Tests for packing image folders into containers and unpacking them again.
"""

import cv2
import numpy as np
import pytest

from imarchive.archive.container import ImageContainer
from imarchive.archive.reader import ArchiveReader
from imarchive.archive.writer import ArchiveWriter, archive_path_for, list_image_files
from imarchive.core.errors import (
    ArchiveExists,
    ImageDecodeFailed,
    InvalidExperimentName,
    MetadataAttributeMissing,
    PathNotFound,
    UnsupportedImageFormat,
)
from imarchive.metadata.resolver import fixed_selection


def _read_color(path):
    return cv2.imread(str(path), cv2.IMREAD_COLOR)


def test_list_image_files_skips_sidecar_and_dirs(tmp_path):
    (tmp_path / "b.png").write_bytes(b"")
    (tmp_path / "a.png").write_bytes(b"")
    (tmp_path / "metadata.txt").write_text("x")
    (tmp_path / "nested").mkdir()
    assert [p.name for p in list_image_files(tmp_path)] == ["a.png", "b.png"]


def test_pack_and_unpack_round_trip(tmp_path, image_dir):
    (image_dir / "metadata.txt").write_text("first line\nsecond line\n")
    writer = ArchiveWriter(tmp_path / "archives")

    result = writer.pack("exp1", image_dir)

    assert result.archive_path == archive_path_for(tmp_path / "archives", "exp1")
    assert result.archive_path.is_file()
    assert not result.archive_path.with_name("images.h5.tmp").exists()
    assert result.metadata_text == "first line\nsecond line\n"
    assert [v.name for v in result.variables] == ["a.png", "b.png"]
    assert all(v.channels == 3 for v in result.variables)

    reader = ArchiveReader()
    out = tmp_path / "out"
    written = reader.unpack(result.archive_path, out)

    assert sorted(p.name for p in written) == ["a.png", "b.png", "metadata.txt"]
    assert reader.warnings == []
    assert (out / "metadata.txt").read_bytes() == b"first line\nsecond line\n"
    assert np.array_equal(_read_color(out / "a.png"), _read_color(image_dir / "a.png"))
    # gray input comes back as three identical channels
    gray = cv2.imread(str(image_dir / "b.png"), cv2.IMREAD_GRAYSCALE)
    restored = _read_color(out / "b.png")
    assert restored.shape == gray.shape + (3,)
    for channel in range(3):
        assert np.array_equal(restored[:, :, channel], gray)


def test_existing_sidecar_is_used_without_asking(tmp_path, image_dir):
    (image_dir / "metadata.txt").write_text("given")

    def selector():
        raise AssertionError("selector must not be called")

    result = ArchiveWriter(tmp_path / "archives").pack("exp", image_dir, selector)
    assert result.metadata_text == "given"


def test_missing_sidecar_is_resolved_and_written(tmp_path, image_dir):
    result = ArchiveWriter(tmp_path / "archives").pack(
        "exp", image_dir, fixed_selection("custom", "stained nuclei")
    )
    assert result.metadata_text == "stained nuclei"
    assert (image_dir / "metadata.txt").read_text() == "stained nuclei"

    with ImageContainer.open(result.archive_path) as container:
        assert container.inquire_attribute("metadata") == "stained nuclei"


def test_ai_metadata_uses_labeler(tmp_path, image_dir):
    writer = ArchiveWriter(tmp_path / "archives", labeler=lambda path: f"label of {path.stem}")
    result = writer.pack("exp", image_dir, fixed_selection("ai"))
    assert result.metadata_text == "a.png: label of a\nb.png: label of b\n"


def test_missing_sidecar_without_selector(tmp_path, image_dir):
    with pytest.raises(ValueError):
        ArchiveWriter(tmp_path / "archives").pack("exp", image_dir)
    assert not (tmp_path / "archives" / "exp").exists()


def test_missing_source_directory(tmp_path):
    with pytest.raises(PathNotFound) as exc_info:
        ArchiveWriter(tmp_path / "archives").pack("exp", tmp_path / "nope")
    assert exc_info.value.path == tmp_path / "nope"
    assert not (tmp_path / "archives").exists()


def test_decode_failure_leaves_nothing_behind(tmp_path, image_dir):
    (image_dir / "notes.png").write_text("not really a png")

    with pytest.raises(ImageDecodeFailed):
        ArchiveWriter(tmp_path / "archives").pack("exp", image_dir, fixed_selection("empty"))

    assert not (tmp_path / "archives" / "exp").exists()
    assert not (image_dir / "metadata.txt").exists()


def test_empty_folder_packs_an_empty_container(tmp_path):
    source = tmp_path / "raw"
    source.mkdir()
    result = ArchiveWriter(tmp_path / "archives").pack("exp", source, fixed_selection(1))
    assert result.variables == []
    assert result.metadata_text == ""

    written = ArchiveReader().unpack(result.archive_path, tmp_path / "out")
    assert [p.name for p in written] == ["metadata.txt"]


def test_unpack_pads_two_channel_variables(tmp_path):
    path = tmp_path / "images.h5"
    pixels = np.full((3, 4, 2), 7, dtype=np.uint8)
    with ImageContainer.create(path) as container:
        container.put(container.define_variable("two.png", pixels.shape), pixels)
        container.define_attribute("metadata", "")

    ArchiveReader().unpack(path, tmp_path / "out")

    restored = _read_color(tmp_path / "out" / "two.png")
    assert restored.shape == (3, 4, 3)
    assert np.all(restored[:, :, :2] == 7)
    assert np.all(restored[:, :, 2] == 0)


def test_unpack_without_metadata_attribute_warns(tmp_path):
    path = tmp_path / "images.h5"
    pixels = np.zeros((2, 2, 3), dtype=np.uint8)
    with ImageContainer.create(path) as container:
        container.put(container.define_variable("a.png", pixels.shape), pixels)

    reader = ArchiveReader()
    written = reader.unpack(path, tmp_path / "out")

    assert [p.name for p in written] == ["a.png"]
    assert not (tmp_path / "out" / "metadata.txt").exists()
    assert len(reader.warnings) == 1
    assert isinstance(reader.warnings[0], MetadataAttributeMissing)


def test_describe_lists_variables_and_metadata(tmp_path, image_dir):
    (image_dir / "metadata.txt").write_text("hello")
    result = ArchiveWriter(tmp_path / "archives").pack("exp", image_dir)

    summary = ArchiveReader().describe(result.archive_path)

    assert summary.archive_path == result.archive_path
    assert [v.name for v in summary.variables] == ["a.png", "b.png"]
    assert summary.variables[0].shape == (6, 7, 3)
    assert summary.metadata == "hello"


def test_file_without_image_extension_is_refused_up_front(tmp_path, image_dir):
    png = (image_dir / "a.png").read_bytes()
    (image_dir / "scan").write_bytes(png)

    with pytest.raises(UnsupportedImageFormat) as exc_info:
        ArchiveWriter(tmp_path / "archives").pack("exp", image_dir, fixed_selection("empty"))

    assert exc_info.value.path == image_dir / "scan"
    assert not (tmp_path / "archives" / "exp").exists()
    assert not (image_dir / "metadata.txt").exists()


@pytest.mark.parametrize("name", [".", "..", "../escaped", "a/b", ""])
def test_pack_rejects_names_that_are_not_one_directory(tmp_path, image_dir, name):
    (image_dir / "metadata.txt").write_text("")
    with pytest.raises(InvalidExperimentName):
        ArchiveWriter(tmp_path / "archives").pack(name, image_dir)
    assert not (tmp_path / "escaped").exists()
    assert not (tmp_path / "archives").exists()


def test_existing_container_is_not_replaced(tmp_path, image_dir):
    (image_dir / "metadata.txt").write_text("first")
    writer = ArchiveWriter(tmp_path / "archives")
    archive_path = writer.pack("exp", image_dir).archive_path
    before = archive_path.read_bytes()

    (image_dir / "metadata.txt").write_text("second")
    with pytest.raises(ArchiveExists):
        writer.pack("exp", image_dir)
    assert archive_path.read_bytes() == before

    assert writer.pack("exp", image_dir, overwrite=True).metadata_text == "second"
    assert ArchiveReader().describe(archive_path).metadata == "second"


@pytest.mark.parametrize(
    "raw",
    [b"caf\xe9 notes\n", b"a\x00b", "Zellkultur über Nacht\n".encode("utf-8")],
    ids=["latin-1", "nul", "utf-8"],
)
def test_sidecar_bytes_round_trip_verbatim(tmp_path, image_dir, raw):
    (image_dir / "metadata.txt").write_bytes(raw)
    result = ArchiveWriter(tmp_path / "archives").pack("exp", image_dir)

    ArchiveReader().unpack(result.archive_path, tmp_path / "out")

    assert (tmp_path / "out" / "metadata.txt").read_bytes() == raw
