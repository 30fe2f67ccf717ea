from pathlib import Path

import pytest

from fnclean.config import Config
from fnclean.errors import is_missing_archiver_message
from fnclean.models import FileEntry, format_size


def test_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("FNCLEAN_DB_PATH", str(tmp_path / "x.db"))
    monkeypatch.setenv("FNCLEAN_MAX_FILES", "7")
    monkeypatch.setenv("FNCLEAN_PORT", "8080")
    monkeypatch.delenv("FNCLEAN_SERVER_URL", raising=False)
    monkeypatch.delenv("FNCLEAN_HOST", raising=False)

    config = Config.from_env(tmp_path / "missing.env")
    assert config.db_path == tmp_path / "x.db"
    assert config.max_files == 7
    assert config.server_url == "http://127.0.0.1:8080"
    assert config.download_concurrency == 5


def test_from_env_rejects_bad_numbers(monkeypatch, tmp_path):
    monkeypatch.setenv("FNCLEAN_MAX_FILES", "many")
    with pytest.raises(ValueError):
        Config.from_env(tmp_path / "missing.env")


def test_env_file_is_loaded(monkeypatch, tmp_path):
    monkeypatch.delenv("FNCLEAN_SEVENZIP", raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text("FNCLEAN_SEVENZIP=/opt/7zz\n", encoding="utf-8")
    assert Config.from_env(env_file).sevenzip_bin == "/opt/7zz"


@pytest.mark.parametrize(
    "size,expected",
    [(0, "0 B"), (512, "512 B"), (1536, "1.50 KB"), (5 * 1024 ** 3, "5.00 GB")],
)
def test_format_size(size, expected):
    assert format_size(size) == expected


def test_missing_archiver_message():
    assert is_missing_archiver_message("未找到 7z。请安装 7-Zip")
    assert is_missing_archiver_message("7z non trouvé")
    assert not is_missing_archiver_message("7z exited with code 2")


def test_file_entry_target_name():
    entry = FileEntry(id="1", original_name="a:b.txt", size=1, source=Path("x"))
    assert entry.target_name == "a:b.txt"
    assert not entry.changed
    entry.cleaned_name = "a b.txt"
    entry.cleaned = True
    assert entry.target_name == "a b.txt"
    assert entry.changed
