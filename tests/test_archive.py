import re
import zipfile
from datetime import datetime

import pytest

from fnclean.archiver import README_NAME, ZipArchiver, generate_readme
from fnclean.errors import ArchiveError
from fnclean.history import ArchiveHistory
from fnclean.models import ArchiveRecord


def test_zip_contains_cleaned_names_and_readme(registry, make_file, tmp_path):
    registry.add_file("x☺.txt", 5, make_file("one.txt", b"first"))
    registry.add_file("plain.txt", 6, make_file("two.txt", b"second"))
    registry.clean_all()

    record = ZipArchiver().create(registry.cleaned_entries(), tmp_path / "archives")

    assert re.fullmatch(r"cleaned_files_\d+\.zip", record.name)
    assert record.files_count == 2
    assert record.size == record.path.stat().st_size

    with zipfile.ZipFile(record.path) as zf:
        assert sorted(zf.namelist()) == sorted(["x.txt", "plain.txt", README_NAME])
        assert zf.read("x.txt") == b"first"
        assert all(info.compress_type == zipfile.ZIP_STORED for info in zf.infolist())
        readme = zf.read(README_NAME).decode("utf-8")

    assert "1. x.txt" in readme
    assert "原名: x☺.txt" in readme
    assert "原名: plain.txt" not in readme


def test_zip_skips_duplicate_names(registry, make_file, tmp_path):
    registry.add_file("a:b.txt", 1, make_file("one.txt", b"1"))
    registry.add_file("a?b.txt", 2, make_file("two.txt", b"22"))
    registry.clean_all()

    record = ZipArchiver().create(
        registry.cleaned_entries(), tmp_path, name="bundle", include_readme=False
    )
    assert record.name == "bundle.zip"
    assert record.files_count == 1
    with zipfile.ZipFile(record.path) as zf:
        assert zf.namelist() == ["a b.txt"]


def test_zip_without_entries_fails(tmp_path):
    with pytest.raises(ArchiveError):
        ZipArchiver().create([], tmp_path)


def test_zip_missing_content_removes_partial_archive(registry, tmp_path):
    registry.add_file("nosource.txt", 1)
    registry.clean_all()

    with pytest.raises(ArchiveError):
        ZipArchiver().create(registry.cleaned_entries(), tmp_path, name="broken")
    assert not (tmp_path / "broken.zip").exists()


def test_generate_readme_header(registry):
    registry.add_file("a.txt", 2048)
    registry.clean_all()
    text = generate_readme(registry.cleaned_entries(), datetime(2024, 1, 2, 3, 4, 5))
    assert "日期: 2024-01-02 03:04:05" in text
    assert "文件: 1" in text
    assert "大小: 2.00 KB" in text


def _record(i: int) -> ArchiveRecord:
    return ArchiveRecord(
        name=f"archive_{i}.zip",
        size=i * 10,
        files_count=i,
        created=datetime(2024, 1, 1, 0, 0, i),
        options={"format": "zip"},
    )


def test_history_is_capped_and_newest_first(tmp_path):
    with ArchiveHistory(tmp_path / "h.db") as history:
        for i in range(12):
            history.record(_record(i))
        records = history.get_history()

    assert len(records) == 10
    assert records[0].name == "archive_11.zip"
    assert records[-1].name == "archive_2.zip"
    assert records[0].options == {"format": "zip"}
    assert records[0].created == datetime(2024, 1, 1, 0, 0, 11)


def test_history_clear(tmp_path):
    with ArchiveHistory(tmp_path / "h.db") as history:
        history.record(_record(1))
        history.record(_record(2))
        assert history.get_history(limit=1)[0].name == "archive_2.zip"
        assert history.clear() == 2
        assert history.get_history() == []


def test_history_unavailable_database(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")

    with ArchiveHistory(blocker / "sub" / "h.db") as history:
        assert history.available is False
        assert history.record(_record(1)) is False
        assert history.get_history() == []
        assert history.clear() == 0
