"""Helper functions and compiled regex patterns for normalization.

Pure, locale-independent text and number handling shared by the field
normalizers.
"""

import math
import re
import unicodedata
from collections.abc import Iterable, Mapping
from typing import Any

# Pre-compiled regex patterns
PUNCT_RE = re.compile(r"[^\w\s]+", re.UNICODE)
UNDERSCORE_RE = re.compile(r"_+")
DECIMAL_COMMA_RE = re.compile(r"^([+-]?\d+),(\d+)$")

# Strings providers use to mean "no value"
NULL_TOKENS = frozenset({"", "null", "none", "nan", "n/a", "na", "-"})


# ---------------------------------------------------------------------------
# Text normalization functions
# ---------------------------------------------------------------------------


def strip_accents(text: str) -> str:
    """Remove diacritical marks for cross-locale matching.

    Parameters
    ----------
    text : str
        Input text with potential diacritics.

    Returns
    -------
    str
        Text with diacritical marks removed.
    """
    nfd = unicodedata.normalize("NFD", text)
    stripped = "".join(c for c in nfd if unicodedata.category(c) != "Mn")
    return unicodedata.normalize("NFC", stripped)


def normalize_text_for_matching(text: str) -> str:
    """Full text normalization for name matching.

    Applies NFKC, casefold, accent stripping, punctuation removal,
    and whitespace collapsing.

    Parameters
    ----------
    text : str
        Raw text to normalize.

    Returns
    -------
    str
        Normalized text ready for matching.
    """
    if not text:
        return ""
    text = unicodedata.normalize("NFKC", text)
    text = text.casefold()
    text = strip_accents(text)
    text = PUNCT_RE.sub(" ", text)
    text = UNDERSCORE_RE.sub(" ", text)
    return " ".join(text.split())


def clean_display_text(value: Any) -> str:
    """Trim and collapse whitespace, keeping the original casing."""
    if value is None:
        return ""
    text = unicodedata.normalize("NFC", str(value))
    return " ".join(text.split())


def is_null(value: Any) -> bool:
    """Whether *value* is a provider-style empty marker."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and value.strip().casefold() in NULL_TOKENS:
        return True
    return False


# ---------------------------------------------------------------------------
# Numbers
# ---------------------------------------------------------------------------


def parse_float(value: Any) -> float | None:
    """Parse numeric text into a finite float.

    Accepts ints, floats and strings, including a single decimal comma
    (``"46,070"``). Returns ``None`` for anything unparseable or non-finite.
    """
    if is_null(value) or isinstance(value, bool):
        return None

    if isinstance(value, int | float):
        number = float(value)
    else:
        text = str(value).strip()
        match = DECIMAL_COMMA_RE.match(text)
        if match:
            text = f"{match.group(1)}.{match.group(2)}"
        try:
            number = float(text)
        except ValueError:
            return None

    if not math.isfinite(number):
        return None
    return number


# ---------------------------------------------------------------------------
# Field lookup
# ---------------------------------------------------------------------------


def first_present(fields: Mapping[str, Any], aliases: Iterable[str]) -> Any:
    """Return the first non-null value among *aliases* in *fields*.

    Lookup is case-insensitive on field names.

    Parameters
    ----------
    fields : Mapping[str, Any]
        Provider fields.
    aliases : Iterable[str]
        Candidate field names in priority order.

    Returns
    -------
    Any
        The value, or None if no alias holds a usable value.
    """
    lowered = {str(k).casefold(): v for k, v in fields.items()}
    for alias in aliases:
        value = lowered.get(alias.casefold())
        if not is_null(value):
            return value
    return None
