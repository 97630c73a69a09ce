"""
Locale-tolerant number parsing for campaign report fields.

Ads platform exports mix Brazilian (1.234,56) and international (1,234.56)
number formats, currency prefixes, percentage suffixes, and categorical
columns ("Diário", "Maximizar conversões", "--") that must never be read as
numbers. This module turns a raw cell into a float or None.

Parsing is a two-step tagged grammar:
    1. Normalize: strip outer quotes, currency markers, whitespace, and a
       trailing '%' (reported as a flag, never folded into the value).
    2. classify(): match the token against an ordered list of grammars and
       return the first NumberFormat tag that matches; the tag selects the
       decimal-separator rule used to convert the token.

Grammar order (first match wins):
    THOUSANDS_BR    2.000        -> 2000
    THOUSANDS_INTL  2,000        -> 2000
    BRAZILIAN       1.234,56     -> 1234.56
    INTERNATIONAL   1,234.56     -> 1234.56
    PLAIN           -45          -> -45

Nothing here raises: a token that is denylisted, contains letters, or matches
no grammar parses to None, which callers treat as "field intentionally
absent" rather than an error.

Usage:
    from pulse.services.number_parser import parse, is_numeric

    parse("R$ 1.234,56")   # 1234.56
    parse("Diário")        # None
    parse_value("12,5%")   # ParsedNumber(value=12.5, is_percentage=True, ...)
"""

import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from pulse.models.enums import NumberFormat


# =============================================================================
# Constants
# =============================================================================

# Categorical values seen in campaign exports (budget period, bidding
# strategy, status) plus common placeholders for "no value"
NON_NUMERIC_VALUES = frozenset([
    'diário', 'daily', 'diario',
    '--', '-', '—', '–',
    'n/a', 'na', 'null', 'undefined',
    'automático', 'automatic', 'automatico',
    'manual', 'maximize', 'maximizar',
    'target', 'alvo', 'objetivo',
    'enhanced', 'melhorado', 'aprimorado',
    'smart', 'inteligente',
    'portfolio', 'portfólio',
    'pausada', 'ativa', 'ativo', 'paused', 'active', 'enabled', 'disabled',
])

# Multi-character markers first so "R$" is removed as a unit
CURRENCY_PATTERN = re.compile(r'R\$|US\$|[$€£¥¢₹₽₩₪]')

WHITESPACE_PATTERN = re.compile(r'\s+')

# Any Unicode letter (accented Portuguese letters included)
LETTER_PATTERN = re.compile(r'[^\W\d_]')

DIGIT_PATTERN = re.compile(r'\d')

# Ordered grammars: first match wins
GRAMMARS: List[Tuple[NumberFormat, re.Pattern]] = [
    (NumberFormat.THOUSANDS_BR, re.compile(r'^-?\d{1,3}(\.\d{3})+$')),
    (NumberFormat.THOUSANDS_INTL, re.compile(r'^-?\d{1,3}(,\d{3})+$')),
    (NumberFormat.BRAZILIAN, re.compile(r'^-?[\d.]*,\d{1,4}$')),
    (NumberFormat.INTERNATIONAL, re.compile(r'^-?[\d,]*\.\d{1,4}$')),
    (NumberFormat.PLAIN, re.compile(r'^-?\d+$')),
]


# =============================================================================
# Parsed Value
# =============================================================================


@dataclass(frozen=True)
class ParsedNumber:
    """
    Result of parsing one raw cell.

    Attributes:
        value: Parsed number, or None when the cell is not numeric.
        is_percentage: True when the cell carried a trailing '%'. The value
            is not divided by 100.
        original_value: The raw input, untouched.
        number_format: Grammar tag that matched (UNRECOGNIZED when none did).
    """
    value: Optional[float]
    is_percentage: bool
    original_value: str
    number_format: NumberFormat = NumberFormat.UNRECOGNIZED


# =============================================================================
# Decimal-Separator Rules
# =============================================================================


def _drop_dots(token: str) -> str:
    return token.replace('.', '')


def _drop_commas(token: str) -> str:
    return token.replace(',', '')


def _brazilian_to_float_text(token: str) -> str:
    # Dots are thousands separators, the single comma is the decimal point
    return token.replace('.', '').replace(',', '.')


_CONVERTERS: Dict[NumberFormat, Callable[[str], str]] = {
    NumberFormat.THOUSANDS_BR: _drop_dots,
    NumberFormat.THOUSANDS_INTL: _drop_commas,
    NumberFormat.BRAZILIAN: _brazilian_to_float_text,
    NumberFormat.INTERNATIONAL: _drop_commas,
    NumberFormat.PLAIN: lambda token: token,
}


# =============================================================================
# Normalization and Classification
# =============================================================================


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
        return value[1:-1].strip()
    return value


def _is_denylisted(value: str) -> bool:
    return value.strip().lower() in NON_NUMERIC_VALUES


def _normalize(raw: str) -> Tuple[Optional[str], bool]:
    """
    Reduce a raw cell to a bare numeric token.

    Returns:
        (token, is_percentage). token is None when the cell is empty or
        denylisted before or after stripping symbols.
    """
    value = _strip_quotes(raw.strip())

    if not value or _is_denylisted(value):
        return None, False

    is_percentage = value.endswith('%')
    if is_percentage:
        value = value[:-1]

    token = CURRENCY_PATTERN.sub('', value)
    token = WHITESPACE_PATTERN.sub('', token)

    if not token or _is_denylisted(token):
        return None, False

    return token, is_percentage


def classify(token: str) -> NumberFormat:
    """
    Assign a grammar tag to a normalized token.

    Tokens containing letters or no digits at all are UNRECOGNIZED before
    any grammar is tried.

    Args:
        token: Token without quotes, currency markers, whitespace, or '%'.

    Returns:
        The first matching NumberFormat, or NumberFormat.UNRECOGNIZED.
    """
    if not DIGIT_PATTERN.search(token) or LETTER_PATTERN.search(token):
        return NumberFormat.UNRECOGNIZED

    for number_format, pattern in GRAMMARS:
        if pattern.match(token):
            return number_format

    return NumberFormat.UNRECOGNIZED


# =============================================================================
# Public API
# =============================================================================


def parse_value(raw: Optional[str]) -> ParsedNumber:
    """
    Parse a raw cell into a ParsedNumber.

    Args:
        raw: Cell text as read from the export. None and non-string inputs
            are treated as empty.

    Returns:
        ParsedNumber with value None when the cell is not numeric.

    Example:
        >>> parse_value("12,5%")
        ParsedNumber(value=12.5, is_percentage=True, original_value='12,5%', ...)
    """
    if not isinstance(raw, str):
        return ParsedNumber(value=None, is_percentage=False, original_value='' if raw is None else str(raw))

    token, is_percentage = _normalize(raw)
    if token is None:
        return ParsedNumber(value=None, is_percentage=False, original_value=raw)

    number_format = classify(token)
    if number_format == NumberFormat.UNRECOGNIZED:
        return ParsedNumber(value=None, is_percentage=is_percentage, original_value=raw)

    try:
        value = float(_CONVERTERS[number_format](token))
    except ValueError:
        # The grammars only admit float-convertible tokens; kept so parse never raises
        return ParsedNumber(value=None, is_percentage=is_percentage, original_value=raw)

    return ParsedNumber(
        value=value,
        is_percentage=is_percentage,
        original_value=raw,
        number_format=number_format,
    )


def parse(raw: Optional[str]) -> Optional[float]:
    """
    Parse a raw cell into a float, or None when it is not numeric.

    Example:
        >>> parse("1.234,56")
        1234.56
        >>> parse("1,234.56")
        1234.56
        >>> parse("--") is None
        True
    """
    return parse_value(raw).value


def is_numeric(raw: Optional[str]) -> bool:
    """Return True when parse() would produce a number for this cell."""
    return parse(raw) is not None
