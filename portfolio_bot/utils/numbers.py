"""
Number parsing and display helpers for user-typed amounts and prices.

Users type numbers with Persian or Arabic-Indic digits, thousands separators
and stray spaces; everything is normalised to ASCII before parsing.
"""

import re
from typing import Optional, Union

PERSIAN_DIGITS = "۰۱۲۳۴۵۶۷۸۹"
ARABIC_DIGITS = "٠١٢٣٤٥٦٧٨٩"

_TO_ASCII = str.maketrans(PERSIAN_DIGITS + ARABIC_DIGITS, "0123456789" * 2)
_TO_PERSIAN = str.maketrans("0123456789", PERSIAN_DIGITS)
_NOT_NUMERIC = re.compile(r"[^\d.]")


def clean_and_validate_number(text: str) -> Optional[float]:
    """
    Parses a user-typed number. Returns None when no number can be read.

    Commas and spaces are treated as thousands separators ("1,250,000" and
    "1 250 000" both parse); "٫" (Arabic decimal separator) and "." are
    decimal points. More than one decimal point is rejected.
    """
    if text is None:
        return None

    cleaned = text.translate(_TO_ASCII).replace("٫", ".")
    cleaned = cleaned.replace(",", "").replace("،", "").replace(" ", "")
    cleaned = _NOT_NUMERIC.sub("", cleaned)

    integer, _, fraction = cleaned.partition(".")
    if "." in fraction:
        return None
    candidate = f"{integer}.{fraction}" if fraction else integer

    if not candidate or not any(ch.isdigit() for ch in candidate):
        return None
    try:
        return float(candidate)
    except ValueError:
        return None


def beautiful_number(
    value: Union[int, float, str],
    delimiter: str = ",",
    localized_digits: bool = False,
    max_decimals: int = 8,
) -> Optional[str]:
    """
    Formats a number with thousands delimiters, trimming trailing zeros.
    Returns None if value is not a number.
    """
    number = value if isinstance(value, (int, float)) else clean_and_validate_number(str(value))
    if number is None:
        return None

    formatted = f"{number:,.{max_decimals}f}".rstrip("0").rstrip(".")
    if delimiter != ",":
        formatted = formatted.replace(",", delimiter)

    if localized_digits:
        return formatted.translate(_TO_PERSIAN)
    return formatted
