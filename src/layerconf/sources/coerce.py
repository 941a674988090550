"""Scalar type inference shared by the text-based sources."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

_INT_PATTERN = re.compile(r"[+-]?\d+")


def infer_scalar(text: str, booleans: Mapping[str, bool]) -> Any:
    """
    Convert ``text`` to the first matching type.

    Order is boolean literal (from ``booleans``), integer, float, string.
    ``nan`` stays a string so repeated loads compare equal.
    """
    if text in booleans:
        return booleans[text]
    if _INT_PATTERN.fullmatch(text):
        return int(text)
    if text and text == text.strip() and "_" not in text:
        try:
            number = float(text)
        except ValueError:
            return text
        if number == number:
            return number
    return text


__all__ = ["infer_scalar"]
