from __future__ import annotations

import pytest

from tutor.services.cache_key import (
    NO_COURSE_SENTINEL,
    derive_cache_key,
    polynomial_hash32,
    to_base36,
)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("", 0),
        ("a", 97),
        ("ab", 3105),
        ("hello", 99162322),
        ("polygenelubricants", -2147483648),
    ],
)
def test_polynomial_hash_matches_reference_values(text: str, expected: int) -> None:
    assert polynomial_hash32(text) == expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [(0, "0"), (97, "2p"), (99162322, "1n1e4y"), (2147483647, "zik0zj"), (-2147483648, "-zik0zk")],
)
def test_base36_encoding(value: int, expected: str) -> None:
    assert to_base36(value) == expected


def test_hash_stays_in_signed_32_bit_range_for_long_text() -> None:
    value = polynomial_hash32("binary search trees " * 500)
    assert -(2**31) <= value < 2**31


def test_key_is_case_insensitive() -> None:
    assert derive_cache_key("What is recursion?", "C1") == derive_cache_key("what is recursion?", "C1")


def test_key_is_deterministic() -> None:
    assert derive_cache_key("Explain Big-O", "CS201") == derive_cache_key("Explain Big-O", "CS201")


def test_key_isolated_by_course() -> None:
    assert derive_cache_key("X", "C1") != derive_cache_key("X", "C2")


def test_key_format_and_missing_course_sentinel() -> None:
    assert derive_cache_key("hello", "CS201") == "answer:CS201:1n1e4y"
    assert derive_cache_key("hello") == f"answer:{NO_COURSE_SENTINEL}:1n1e4y"
    assert derive_cache_key("hello") == "answer::1n1e4y"
    assert derive_cache_key("hello", "") == derive_cache_key("hello", None)


@pytest.mark.parametrize("course_id", ["none", "null", "None", "-"])
def test_unscoped_key_differs_from_every_real_course(course_id: str) -> None:
    assert derive_cache_key("X", course_id) != derive_cache_key("X", None)


@pytest.mark.parametrize("text", ["", "   ", "naïve café", "emoji \U0001F333 tree", "\ud800 lone surrogate"])
def test_key_never_raises(text: str) -> None:
    assert derive_cache_key(text, "C1").startswith("answer:C1:")


def test_astral_characters_hash_as_utf16_code_units() -> None:
    # U+1F333 is the surrogate pair D83C DF33.
    expected = (0xD83C * 31 + 0xDF33) & 0xFFFFFFFF
    assert polynomial_hash32("\U0001F333") == expected
