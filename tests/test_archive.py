import zipfile
from pathlib import Path

import pytest

from orvium_tools.errors import PackagingError
from orvium_tools.services.archive import ArchiveEntry, build_archive, remove_loose_files


def _sources(tmp_path: Path) -> tuple[Path, Path]:
    meta = tmp_path / "meta.json"
    meta.write_text('{"title": "Demo"}', encoding="utf-8")
    manuscript = tmp_path / "stored-name.docx"
    manuscript.write_bytes(b"docx payload " * 100)
    return meta, manuscript


def test_build_archive_then_remove_sources(tmp_path: Path) -> None:
    meta, manuscript = _sources(tmp_path)
    target = tmp_path / "deposit_demo.zip"

    build_archive(
        [ArchiveEntry(source=meta, name="meta.json"), ArchiveEntry(source=manuscript, name="Display.docx")],
        target,
    )
    remove_loose_files([meta, manuscript])

    with zipfile.ZipFile(target) as zf:
        assert zf.testzip() is None
        assert sorted(zf.namelist()) == ["Display.docx", "meta.json"]
        info = zf.getinfo("Display.docx")
        assert info.compress_size < info.file_size
    assert not meta.exists()
    assert not manuscript.exists()


def test_build_archive_missing_source_keeps_loose_files(tmp_path: Path) -> None:
    meta, _ = _sources(tmp_path)
    target = tmp_path / "deposit_demo.zip"

    with pytest.raises(PackagingError):
        build_archive(
            [
                ArchiveEntry(source=meta, name="meta.json"),
                ArchiveEntry(source=tmp_path / "missing.docx", name="Display.docx"),
            ],
            target,
        )

    assert meta.exists()
    assert not target.exists()


def test_build_archive_unwritable_target(tmp_path: Path) -> None:
    meta, manuscript = _sources(tmp_path)
    target = tmp_path / "no-such-dir" / "deposit_demo.zip"

    with pytest.raises(PackagingError):
        build_archive([ArchiveEntry(source=meta, name="meta.json")], target)

    assert meta.exists()
    assert manuscript.exists()


def test_remove_loose_files_wraps_unlink_failure(tmp_path: Path) -> None:
    occupied = tmp_path / "occupied"
    occupied.mkdir()
    (occupied / "inner.txt").write_text("x", encoding="utf-8")

    with pytest.raises(PackagingError, match="could not be removed"):
        remove_loose_files([occupied])

    assert occupied.exists()
