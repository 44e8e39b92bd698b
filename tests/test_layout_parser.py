"""Unit tests for the row-layout notation parser."""

from itertools import permutations

from tilescore.layout_parser import (
    Component,
    extract_duration_letters,
    is_only_rest_letters,
    parse_component,
    parse_score,
    split_score,
)
from tilescore.score_models import RowKind


def test_duration_letters_are_order_independent() -> None:
    totals = {extract_duration_letters("".join(p)) for p in permutations("HJNP")}
    assert totals == {256 + 64 + 4 + 1}


def test_duration_letters_ignore_other_characters() -> None:
    assert extract_duration_letters("(c.e)[KL]") == 48


def test_is_only_rest_letters() -> None:
    assert is_only_rest_letters("") is False
    assert is_only_rest_letters("QQ") is True
    assert is_only_rest_letters("QN") is False
    assert is_only_rest_letters("Q Q") is False


def test_double_group_counts_only_duration_letters() -> None:
    assert parse_component("5<c.N>") == Component(duration=4, kind=RowKind.DOUBLE)


def test_other_group_digits_are_single() -> None:
    assert parse_component("3<(c)[L]>") == Component(duration=16, kind=RowKind.SINGLE)


def test_rest_component_is_empty() -> None:
    assert parse_component(" UV ") == Component(duration=24, kind=RowKind.EMPTY)


def test_bare_note_component_is_single() -> None:
    assert parse_component("(c)[N]") == Component(duration=4, kind=RowKind.SINGLE)


def test_split_on_both_separators() -> None:
    assert split_score("(c)[N],(d)[N];UU") == ["(c)[N]", "(d)[N]", "UU"]


def test_split_keeps_group_whole() -> None:
    assert split_score("5<(c),(e)[L]>,(d)[N]") == ["5<(c),(e)[L]>", "(d)[N]"]


def test_split_tracks_nested_brackets() -> None:
    assert split_score("2<a<b>c>;K") == ["2<a<b>c>", "K"]


def test_split_flushes_text_before_group_digit() -> None:
    assert split_score("K1<N>") == ["K", "1<N>"]


def test_split_drops_empty_components() -> None:
    assert split_score(" , ;(c)[N],, ") == ["(c)[N]"]


def test_empty_score_yields_nothing() -> None:
    assert parse_score("") == []
