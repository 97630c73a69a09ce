"""
Test Module for Locale-Tolerant Number Parsing.

Validates:
- Brazilian (1.234,56) and international (1,234.56) decimals agree
- Thousands-only tokens in both conventions (2.000 / 2,000)
- Currency markers, quotes, and whitespace are stripped
- Percentages are flagged but not divided by 100
- Categorical values and placeholders are never numbers
- Grammar classification order
"""

import pytest

from pulse.models import NumberFormat
from pulse.services.number_parser import (
    NON_NUMERIC_VALUES,
    classify,
    is_numeric,
    parse,
    parse_value,
)


class TestDecimalConventions:
    """Both decimal conventions resolve to the same value."""

    def test_brazilian_and_international_agree(self) -> None:
        assert parse("1.234,56") == parse("1,234.56") == 1234.56

    @pytest.mark.parametrize("raw,expected", [
        ("2.000", 2000.0),
        ("2,000", 2000.0),
        ("1.234.567", 1234567.0),
        ("1,234,567", 1234567.0),
    ])
    def test_thousands_only(self, raw: str, expected: float) -> None:
        assert parse(raw) == expected

    @pytest.mark.parametrize("raw,expected", [
        ("12,5", 12.5),
        ("0,75", 0.75),
        ("3.14", 3.14),
        ("-45", -45.0),
        ("-1.234,56", -1234.56),
        ("42", 42.0),
    ])
    def test_plain_and_short_decimals(self, raw: str, expected: float) -> None:
        assert parse(raw) == pytest.approx(expected)


class TestNormalization:
    """Symbols around the number are removed before classification."""

    @pytest.mark.parametrize("raw", [
        "R$ 1.234,56",
        "R$1.234,56",
        "US$ 1,234.56",
        "$1,234.56",
        '"1.234,56"',
        "  1.234,56  ",
        "€ 1.234,56",
    ])
    def test_currency_quotes_and_whitespace(self, raw: str) -> None:
        assert parse(raw) == pytest.approx(1234.56)

    def test_percentage_is_flagged_not_scaled(self) -> None:
        result = parse_value("12,5%")

        assert result.value == 12.5
        assert result.is_percentage is True
        assert result.original_value == "12,5%"
        assert result.number_format == NumberFormat.BRAZILIAN

    def test_non_string_input(self) -> None:
        assert parse(None) is None
        assert parse_value(None).original_value == ''


class TestNonNumericValues:
    """Categorical values and placeholders are absent, not zero."""

    @pytest.mark.parametrize("raw", [
        "Diário", "diario", "DAILY", "--", "-", "—", "N/A", "null",
        "Maximizar", "Automático", "Ativa", "paused",
    ])
    def test_denylisted(self, raw: str) -> None:
        assert parse(raw) is None

    @pytest.mark.parametrize("raw", [
        "", "   ", "abc", "12abc", "Maximizar conversões", "R$", "%", "1.2.3,4,5",
    ])
    def test_unrecognized(self, raw: str) -> None:
        assert parse(raw) is None
        assert is_numeric(raw) is False

    def test_denylist_is_lowercase(self) -> None:
        assert all(value == value.lower() for value in NON_NUMERIC_VALUES)


class TestClassify:
    """Grammar order: thousands forms are tried before decimal forms."""

    @pytest.mark.parametrize("token,expected", [
        ("2.000", NumberFormat.THOUSANDS_BR),
        ("2,000", NumberFormat.THOUSANDS_INTL),
        ("1.234,56", NumberFormat.BRAZILIAN),
        ("1,234.56", NumberFormat.INTERNATIONAL),
        ("123", NumberFormat.PLAIN),
        ("12a", NumberFormat.UNRECOGNIZED),
        (".", NumberFormat.UNRECOGNIZED),
    ])
    def test_classify(self, token: str, expected: NumberFormat) -> None:
        assert classify(token) == expected

    def test_three_decimal_digits_read_as_thousands(self) -> None:
        # "1,234" is ambiguous; the thousands grammar wins
        assert parse("1,234") == 1234.0
        assert parse("1.234") == 1234.0
