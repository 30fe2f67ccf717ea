import pytest

from fnclean.charset import DEFAULT_INVALID_CHARS
from fnclean.cleaner import (
    EMPTY_FALLBACK,
    UNNAMED_FALLBACK,
    clean_batch,
    clean_name,
    clean_text,
    split_extension,
)
from fnclean.models import FormattingOptions

DEFAULT = FormattingOptions()


@pytest.mark.parametrize("value", ["", None, 42, ["a.txt"]])
def test_invalid_input_returns_unnamed_fallback(value):
    assert clean_name(value, DEFAULT_INVALID_CHARS, DEFAULT) == UNNAMED_FALLBACK
    assert clean_name(value, set(), FormattingOptions(use_prefix=True)) == "fichier_sans_nom"


def test_split_extension():
    assert split_extension("report.final.pdf") == ("report.final", ".pdf")
    assert split_extension("noext") == ("noext", "")
    assert split_extension(".bashrc") == (".bashrc", "")
    assert split_extension("trailing.") == ("trailing", ".")


def test_invalid_char_replaced_and_extension_kept():
    # 末尾空格在折叠后被去掉
    assert clean_name("Mon Fichier☺.txt", {"☺"}, DEFAULT) == "Mon Fichier.txt"
    assert clean_name("Mon☺Fichier.txt", {"☺"}, DEFAULT) == "Mon Fichier.txt"


def test_reserved_characters():
    assert clean_name("Report:final/v2.pdf", {":", "/"}, DEFAULT) == "Report final v2.pdf"


def test_regex_metacharacters_are_literal():
    chars = {"*", "(", "[", "^", "$", "\\", "|"}
    assert clean_name("a*b(c[d^e$f\\g|h.txt", chars, DEFAULT) == "a b c d e f g h.txt"
    assert clean_name("abc.txt", {"."}, DEFAULT) == "abc.txt"


def test_extension_is_never_transformed():
    options = FormattingOptions(use_underscores=True, to_lowercase=True)
    assert clean_name("My File.T:XT", {":"}, options) == "my_file.T:XT"


def test_no_extension_and_dotfile_are_whole_base():
    assert clean_name("no:ext", {":"}, DEFAULT) == "no ext"
    assert clean_name(".bash:rc", {":"}, DEFAULT) == ".bash rc"


def test_whitespace_collapsed_and_trimmed():
    assert clean_name("  a   b  .txt", set(), DEFAULT) == "a b.txt"
    assert clean_name("a\tb\nc\rd.txt", DEFAULT_INVALID_CHARS, DEFAULT) == "a b c d.txt"


def test_underscores_after_collapse():
    options = FormattingOptions(use_underscores=True)
    assert clean_name("a   b.txt", set(), options) == "a_b.txt"
    assert clean_name("a: :b.txt", {":"}, options) == "a_b.txt"


def test_lowercase_does_not_touch_prefix():
    options = FormattingOptions(to_lowercase=True, use_prefix=True, prefix="Pre_")
    assert clean_name("Hello ÉTÉ.TXT", set(), options) == "Pre_hello été.TXT"


def test_prefix_only_when_enabled():
    assert clean_name("a.txt", set(), FormattingOptions(prefix="x_")) == "a.txt"
    assert clean_name("a.txt", set(), FormattingOptions(use_prefix=True)) == "clean_a.txt"


def test_blank_prefix_is_ignored():
    options = FormattingOptions(use_prefix=True, prefix="   ")
    assert clean_name("abc.txt", set(), options) == "abc.txt"
    assert clean_name("☺.txt", {"☺"}, options) == "fichier.txt"


def test_empty_result_falls_back():
    assert clean_name("☺☻.jpg", {"☺", "☻"}, DEFAULT) == f"{EMPTY_FALLBACK}.jpg"
    assert clean_name("   ", set(), DEFAULT) == "fichier"
    assert clean_name("***", {"*"}, DEFAULT) == "fichier"


def test_prefix_suppresses_empty_fallback():
    options = FormattingOptions(use_prefix=True, prefix="clean_")
    assert clean_name("☺☻.jpg", {"☺", "☻"}, options) == "clean_.jpg"


def test_multi_character_members_are_ignored():
    assert clean_name("ab.txt", {"ab"}, DEFAULT) == "ab.txt"


def test_inputs_are_not_mutated():
    chars = {"☺"}
    options = FormattingOptions(use_underscores=True)
    clean_name("a☺b.txt", chars, options)
    assert chars == {"☺"}
    assert options.use_underscores is True


@pytest.mark.parametrize(
    "name",
    [
        "Photo@vacances#1.jpg",
        "Document² (copie).pdf",
        "Carte\\d'accès<confidentielle>.png",
        "C.V._Marie&Jean.docx",
        "Fichier avec  espaces   multiples.txt",
        "☺.hidden.txt",
        ".☺",
        "☺☻",
        "Musique♪de♪fond.mp3",
    ],
)
@pytest.mark.parametrize(
    "options",
    [
        FormattingOptions(),
        FormattingOptions(use_underscores=True),
        FormattingOptions(use_underscores=True, to_lowercase=True),
    ],
)
def test_idempotent_on_own_output(name, options):
    once = clean_name(name, DEFAULT_INVALID_CHARS, options)
    assert clean_name(once, DEFAULT_INVALID_CHARS, options) == once


def test_clean_batch_skips_blank_lines():
    pairs = clean_batch(["  a:b.txt ", "", "   ", "ok.txt"], {":"}, DEFAULT)
    assert [(p.original, p.cleaned) for p in pairs] == [
        ("a:b.txt", "a b.txt"),
        ("ok.txt", "ok.txt"),
    ]
    assert pairs[0].changed
    assert not pairs[1].changed


def test_clean_text_splits_lines():
    pairs = clean_text("x?.txt\n\ny|z.txt\n", DEFAULT_INVALID_CHARS)
    assert [p.cleaned for p in pairs] == ["x.txt", "y z.txt"]


@pytest.mark.parametrize(
    "name,expected",
    [
        ("a\ufeffb.txt", "a b.txt"),
        ("\u3000x\u00a0 y.txt", "x y.txt"),
        ("\ufeff.txt", "fichier.txt"),
        ("a\x85b.txt", "a\x85b.txt"),
        ("a\x1fb.txt", "a\x1fb.txt"),
    ],
)
def test_whitespace_set(name, expected):
    assert clean_name(name, set()) == expected
