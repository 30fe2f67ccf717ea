import json

from fnclean.charset import DEFAULT_INVALID_CHARS, CharacterSetStore
from fnclean.models import FormattingOptions
from fnclean.storage import CHARS_KEY, OPTIONS_KEY, SettingsStorage, load_store


def test_save_and_restore(tmp_path):
    db = tmp_path / "settings.db"
    store = CharacterSetStore(chars="ab\t")
    store.update_options(use_underscores=True, prefix="p_")

    with SettingsStorage(db) as storage:
        assert storage.save(store)

    restored = CharacterSetStore()
    with SettingsStorage(db) as storage:
        assert storage.restore(restored)

    assert restored.snapshot() == {"a", "b", "\t"}
    assert restored.options == FormattingOptions(use_underscores=True, prefix="p_")


def test_persisted_format(tmp_path):
    with SettingsStorage(tmp_path / "s.db") as storage:
        storage.save(CharacterSetStore(chars="☺:"))
        assert json.loads(storage.get(OPTIONS_KEY)) == {
            "useUnderscores": False,
            "toLowercase": False,
            "usePrefix": False,
            "prefix": "clean_",
        }
        assert sorted(json.loads(storage.get(CHARS_KEY))) == [":", "☺"]


def test_restore_without_saved_data_keeps_defaults(tmp_path):
    store = CharacterSetStore()
    with SettingsStorage(tmp_path / "empty.db") as storage:
        assert storage.restore(store) is False
    assert store.snapshot() == frozenset(DEFAULT_INVALID_CHARS)


def test_partial_options_merge_over_current(tmp_path):
    store = CharacterSetStore()
    with SettingsStorage(tmp_path / "s.db") as storage:
        storage.set(OPTIONS_KEY, '{"useUnderscores": true}')
        assert storage.restore(store)
    assert store.options.use_underscores is True
    assert store.options.prefix == "clean_"


def test_corrupt_data_is_swallowed(tmp_path):
    store = CharacterSetStore()
    with SettingsStorage(tmp_path / "s.db") as storage:
        storage.set(CHARS_KEY, "not json")
        assert storage.restore(store) is False

        storage.set(CHARS_KEY, '{"a": 1}')
        assert storage.restore(store) is False
    assert store.snapshot() == frozenset(DEFAULT_INVALID_CHARS)


def test_load_store_helper(tmp_path):
    db = tmp_path / "s.db"
    with SettingsStorage(db) as storage:
        storage.save(CharacterSetStore(chars="xyz"))
    with SettingsStorage(db) as storage:
        store = load_store(storage)
    assert store.snapshot() == {"x", "y", "z"}


def test_unavailable_database_keeps_in_memory_state(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")

    store = CharacterSetStore(chars="xy")
    with SettingsStorage(blocker / "sub" / "settings.db") as storage:
        assert storage.available is False
        assert storage.get(CHARS_KEY) is None
        assert storage.save(store) is False
        assert storage.restore(store) is False
        restored = load_store(storage)

    assert store.snapshot() == {"x", "y"}
    assert restored.snapshot() == frozenset(DEFAULT_INVALID_CHARS)
