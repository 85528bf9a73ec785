import pytest

from jobboard.moderation.domain.normalizer import normalize, normalize_term, tokenize


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("MERDE", "merde"),
        ("mèrde", "merde"),
        ("Bâtard!", "batard "),
        ("œuvre", "oeuvre"),
        ("ça", "ca"),
        ("a-b", "a b"),
        ("a--b", "a  b"),
    ],
)
def test_normalize_folds_case_accents_and_punctuation(raw: str, expected: str) -> None:
    assert normalize(raw) == expected


@pytest.mark.parametrize("raw", ["Ça va? Très BIEN!!", "déjà-vu", "C'EST L'ÉTÉ", "plain text 123"])
def test_normalize_is_idempotent(raw: str) -> None:
    once = normalize(raw)
    assert normalize(once) == once


@pytest.mark.parametrize("raw", [None, 42, b"merde", ""])
def test_normalize_non_string_is_empty(raw) -> None:
    assert normalize(raw) == ""
    assert tokenize(raw) == []


def test_tokenize_drops_empty_tokens() -> None:
    assert tokenize("  espèce   de... CONNARD!! ") == ["espece", "de", "connard"]


def test_normalize_term_collapses_whitespace() -> None:
    assert normalize_term("  Va   te-PENDRE ") == "va te pendre"
