import pytest

from fnclean.charset import (
    DEFAULT_INVALID_CHARS,
    PRESETS,
    CharacterSetStore,
    count_unique,
    display_char,
)
from fnclean.models import FormattingOptions


def test_default_set_contents(store):
    assert store.snapshot() == frozenset(DEFAULT_INVALID_CHARS)
    for char in ["☺", "❄", "❆", "❖", "\\", "/", ":", "\t", "\n", "\r", "€", "´"]:
        assert char in store
    assert "." not in store
    assert " " not in store


def test_reset_restores_defaults(store):
    store.add("xyz")
    store.remove("☺")
    store.reset()
    assert store.snapshot() == frozenset(DEFAULT_INVALID_CHARS)
    assert len(store) == len(set(DEFAULT_INVALID_CHARS))


def test_add_counts_unique_new_chars():
    store = CharacterSetStore(chars=[])
    assert store.add("aabbc") == 3
    assert store.snapshot() == {"a", "b", "c"}
    assert store.add("abc") == 0


def test_add_keeps_existing_members():
    store = CharacterSetStore(chars={"x"})
    assert store.add("aabbc") == 3
    assert store.snapshot() == {"x", "a", "b", "c"}
    assert store.add("xa") == 0


def test_apply_preset_behaves_like_add():
    store = CharacterSetStore(chars={":"})
    assert store.apply_preset("::;") == 1
    assert store.apply_named_preset("windows") == len(set(PRESETS["windows"])) - 1
    with pytest.raises(KeyError):
        store.apply_named_preset("nope")


def test_remove_is_noop_when_absent(store):
    store.remove("Z")
    assert store.snapshot() == frozenset(DEFAULT_INVALID_CHARS)
    store.remove("☺")
    assert "☺" not in store


def test_snapshot_is_independent(store):
    snap = store.snapshot()
    store.add("Q")
    assert "Q" not in snap


def test_load_replaces_set_and_ignores_bad_entries(store):
    store.load(["a", "bc", "", "d", 5])
    assert store.snapshot() == {"a", "d"}


def test_sorted_chars_by_code_point():
    store = CharacterSetStore(chars="☺a\tZ")
    assert store.sorted_chars() == ["\t", "Z", "a", "☺"]


def test_instances_are_independent():
    first = CharacterSetStore()
    second = CharacterSetStore()
    first.add("é")
    assert "é" in first
    assert "é" not in second


def test_listeners_notified_only_on_change():
    store = CharacterSetStore(chars="a")
    calls = []
    store.subscribe(lambda: calls.append(1))

    store.add("a")
    store.remove("b")
    assert calls == []

    store.add("b")
    store.remove("a")
    store.reset()
    store.load(["x"])
    assert len(calls) == 4

    store.update_options(use_underscores=True)
    store.update_options(use_underscores=True)
    assert len(calls) == 5


def test_unsubscribe():
    store = CharacterSetStore(chars="")
    calls = []

    def listener():
        calls.append(1)

    store.subscribe(listener)
    store.unsubscribe(listener)
    store.add("a")
    assert calls == []


def test_options_ownership():
    store = CharacterSetStore()
    assert store.options == FormattingOptions()
    updated = store.update_options(use_prefix=True, prefix="x_")
    assert updated.use_prefix and updated.prefix == "x_"
    assert store.options.to_lowercase is False

    store.set_options(FormattingOptions(to_lowercase=True))
    assert store.options.to_lowercase is True
    assert store.options.use_prefix is False


def test_display_char_labels():
    assert display_char(" ") == "[espace]"
    assert display_char("\t") == "[tab]"
    assert display_char("\n") == "[nl]"
    assert display_char("\r") == "[cr]"
    assert display_char("☺") == "☺"


def test_count_unique():
    assert count_unique("") == 0
    assert count_unique("aabbc") == 3
