"""Unit tests for localized price parsing and formatting."""

import pytest

from pricebot.prices import (
    coerce_amount,
    find_text_prices,
    format_price,
    is_installment_context,
    minor_units_to_amount,
    parse_localized_price,
)


class TestParseLocalizedPrice:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("139,90", 139.90),
            ("1.299,90", 1299.90),
            ("12.345.678,00", 12345678.00),
            ("R$ 80,00", 80.0),
            ("R$1.000,50", 1000.50),
            ("0,99", 0.99),
        ],
    )
    def test_valid_tokens(self, text, expected):
        assert parse_localized_price(text) == expected

    @pytest.mark.parametrize("text", ["139.90", "139", "abc", "", None, "1.29,90", "10,5"])
    def test_invalid_tokens_return_none(self, text):
        assert parse_localized_price(text) is None


class TestFormatPrice:
    def test_two_fraction_digits_and_prefix(self):
        assert format_price(80) == "R$ 80,00"
        assert format_price(139.9) == "R$ 139,90"

    def test_groups_thousands_with_dots(self):
        assert format_price(1234567.5) == "R$ 1.234.567,50"

    @pytest.mark.parametrize("value", [0.0, 0.01, 0.99, 15.99, 80.0, 139.9, 999.99, 1000.0, 1299.9, 25499.05])
    def test_round_trip(self, value):
        assert parse_localized_price(format_price(value)) == value


class TestInstallmentExclusion:
    def test_installment_fragment_is_not_a_price(self):
        assert find_text_prices("10x R$ 15,99") == []

    def test_standalone_price_is_kept(self):
        assert find_text_prices("R$ 15,99") == [15.99]

    def test_installment_without_space_and_uppercase(self):
        assert find_text_prices("ou 3X R$ 46,63 sem juros") == []
        assert find_text_prices("ou 3 x R$ 46,63") == []

    def test_mixed_text(self):
        text = "De R$ 199,90 por R$ 139,90 ou 10x R$ 13,99 sem juros"
        assert find_text_prices(text) == [199.90, 139.90]

    def test_context_window_is_short(self):
        text = "10x sem juros no cartão R$ 50,00"
        assert not is_installment_context(text, text.index("R$"))


class TestStructuredAmounts:
    @pytest.mark.parametrize(
        "value, expected",
        [(139.9, 139.9), ("139.90", 139.9), ("139,90", 139.9), (" 1.299,90 ", 1299.9), (0, 0.0)],
    )
    def test_coerce_amount(self, value, expected):
        assert coerce_amount(value) == expected

    @pytest.mark.parametrize("value", [None, "", "grátis", -5, "nan", "inf", True, {"price": 1}])
    def test_coerce_amount_rejects(self, value):
        assert coerce_amount(value) is None

    def test_minor_units(self):
        assert minor_units_to_amount(13990) == 139.9
        assert minor_units_to_amount("139.90") == 139.9
        assert minor_units_to_amount(None) is None
        assert minor_units_to_amount(-100) is None
