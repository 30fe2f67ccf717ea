import pytest

from fnclean.charset import CharacterSetStore
from fnclean.config import Config
from fnclean.registry import FileRegistry


@pytest.fixture
def store():
    return CharacterSetStore()


@pytest.fixture
def registry(store):
    return FileRegistry(store, Config())


@pytest.fixture
def make_file(tmp_path):
    """在临时目录中创建文件"""

    def _make(relpath: str, content: bytes = b"data"):
        path = tmp_path / "src" / relpath
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path

    return _make
