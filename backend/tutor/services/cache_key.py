"""Deterministic cache keys for answered questions."""

from __future__ import annotations

import string

NO_COURSE_SENTINEL = ""
_BASE36_DIGITS = string.digits + string.ascii_lowercase
_UINT32_MASK = 0xFFFFFFFF


def _to_int32(value: int) -> int:
    """Wrap an arbitrary integer into the signed 32-bit range."""
    value &= _UINT32_MASK
    return value - 0x100000000 if value & 0x80000000 else value


def polynomial_hash32(text: str) -> int:
    """Rolling ``hash * 31 + code`` over UTF-16 code units, wrapped to signed 32 bits.

    Iterating UTF-16 code units keeps the result identical for text outside the
    Basic Multilingual Plane regardless of how the host stores strings.
    """
    encoded = text.encode("utf-16-le", errors="surrogatepass")
    value = 0
    for offset in range(0, len(encoded), 2):
        code_unit = encoded[offset] | (encoded[offset + 1] << 8)
        value = _to_int32(value * 31 + code_unit)
    return value


def to_base36(value: int) -> str:
    """Encode a signed integer in lowercase base 36 with a leading minus sign."""
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    value = abs(value)
    digits: list[str] = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return sign + "".join(reversed(digits))


def normalize_question(question: str) -> str:
    return question.lower()


def derive_cache_key(question: str, course_id: str | None = None) -> str:
    """Return ``answer:{course}:{hash}``; unscoped questions leave the course segment empty."""
    course_part = course_id if course_id else NO_COURSE_SENTINEL
    digest = to_base36(polynomial_hash32(normalize_question(question)))
    return f"answer:{course_part}:{digest}"
