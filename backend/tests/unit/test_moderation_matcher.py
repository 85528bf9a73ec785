from jobboard.moderation.domain.matcher import TermMatcher, detect


def test_detect_is_case_and_accent_insensitive() -> None:
    terms = ["merde"]
    assert detect("MERDE", terms) == ["merde"]
    assert detect("mèrde", terms) == ["merde"]
    assert detect("merde", terms) == ["merde"]


def test_detect_matches_in_both_directions() -> None:
    # the token contains the term
    assert detect("connard123", ["con"]) == ["con"]
    # the term contains the token
    assert detect("con", ["connard123"]) == ["connard123"]


def test_detect_reports_each_term_once_in_discovery_order() -> None:
    terms = ["salaud", "merde", "putain"]
    found = detect("merde merde putain de merde", terms)
    assert found == ["merde", "putain"]


def test_detect_ignores_duplicate_terms() -> None:
    assert detect("merde", ["merde", "merde"]) == ["merde"]


def test_detect_empty_inputs() -> None:
    assert detect("", ["merde"]) == []
    assert detect("   ", ["merde"]) == []
    assert detect(None, ["merde"]) == []
    assert detect("merde", []) == []


def test_short_tokens_do_not_match_inside_longer_terms() -> None:
    terms = ["connard"]
    assert detect("a b c", terms, min_reverse_token_length=3) == []
    assert detect("con", terms, min_reverse_token_length=3) == ["connard"]


def test_single_character_token_still_matches_equal_term() -> None:
    assert detect("x", ["x"], min_reverse_token_length=2) == ["x"]


def test_does_not_mutate_term_list() -> None:
    terms = ["merde", "putain"]
    detect("putain", terms)
    assert terms == ["merde", "putain"]


def test_term_matcher_binds_configuration() -> None:
    matcher = TermMatcher(("bitch",), min_reverse_token_length=3)
    assert matcher.detect("BITCHES everywhere") == ["bitch"]
    assert matcher.detect("bi") == []
