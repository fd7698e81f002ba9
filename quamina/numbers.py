"""Canonical, lexically ordered string forms of numbers."""

from __future__ import annotations

import math

from .errors import NumberError

NINE_DIGITS = 1_000_000_000.0
DIGITS_OF_PRECISION = 18


def canonicalize(s: bytes | str) -> str:
    """Return a 19-digit string whose lexical order matches numeric order.

    Accepts numbers in the open range (-1e9, 1e9) written in at most 18
    characters; raises NumberError otherwise.
    """
    text = s.decode("utf-8", errors="replace") if isinstance(s, (bytes, bytearray)) else s
    if len(text) > DIGITS_OF_PRECISION:
        raise NumberError(
            f"number has {len(text)} digits, exceeds max of {DIGITS_OF_PRECISION}"
        )
    if "_" in text or text != text.strip():
        raise NumberError(f"invalid number syntax: {text!r}")
    try:
        f = float(text)
    except ValueError as exc:
        raise NumberError(f"invalid number syntax: {text!r}") from exc
    if math.isnan(f):
        raise NumberError(f"invalid number syntax: {text!r}")
    if f >= NINE_DIGITS or f <= -NINE_DIGITS:
        raise NumberError(
            f"number is outside of range [{-NINE_DIGITS:f}, {NINE_DIGITS:f}]"
        )
    return f"{(f + NINE_DIGITS) * NINE_DIGITS:019.0f}"