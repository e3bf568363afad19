"""Shared utilities for strategies."""

from __future__ import annotations

import re

CURRENCY_SYMBOLS = ("us$", "usd", "$", "€", "eur", "£", "gbp", "cad")


def clean_text(value: str | None) -> str:
    """Collapse whitespace runs into single spaces."""
    if not value:
        return ""
    return " ".join(value.split())


def parse_price(price_text: str | None) -> float | None:
    """Parse price text into a float amount.

    Handles formats like:
    - "$12.99"
    - "$1,299.00"
    - "Now $4.50"
    - "1.299,00 €"

    Returns None when no numeric value can be extracted.
    """
    if not price_text:
        return None

    text = price_text.strip().lower()
    for symbol in CURRENCY_SYMBOLS:
        text = text.replace(symbol, "")

    # Extract numeric chunk and normalize thousands/decimal separators.
    if not (match := re.search(r"\d[\d\s.,]*", text)):
        return None

    num = match.group(0).replace(" ", "").replace("\xa0", "").rstrip(".,")

    last_comma = num.rfind(",")
    last_dot = num.rfind(".")

    if last_comma != -1 and last_dot != -1:
        # Assume last separator is decimal; the other is thousands.
        if last_comma > last_dot:
            num = num.replace(".", "").replace(",", ".")
        else:
            num = num.replace(",", "")
    elif last_comma != -1:
        digits_after = len(num) - last_comma - 1
        if 1 <= digits_after <= 2:
            num = num.replace(",", ".")
        else:
            num = num.replace(",", "")
    elif last_dot != -1:
        digits_after = len(num) - last_dot - 1
        if digits_after > 2 and num.count(".") > 1:
            num = num.replace(".", "")

    try:
        return float(num)
    except ValueError:
        return None
