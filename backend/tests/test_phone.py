"""Tests for best-effort phone normalization."""

import pytest

from barqueue.core.phone import normalize_phone


class TestNormalizePhone:
    def test_local_number_gets_country_code(self):
        assert normalize_phone("11999998888", "55") == "+5511999998888"

    def test_leading_plus_is_kept(self):
        assert normalize_phone("+1 555 1234", "55") == "+15551234"

    def test_country_code_already_present(self):
        assert normalize_phone("5511999998888", "55") == "+5511999998888"

    def test_trunk_zero_replaced(self):
        assert normalize_phone("011 99999-8888", "55") == "+5511999998888"

    @pytest.mark.parametrize("raw", ["(11) 99999-8888", "11 99999 8888", "11.99999.8888"])
    def test_punctuation_stripped(self, raw):
        assert normalize_phone(raw, "55") == "+5511999998888"

    @pytest.mark.parametrize("raw", ["", None, "   ", "abc"])
    def test_no_digits_gives_empty_string(self, raw):
        assert normalize_phone(raw, "55") == ""

    def test_malformed_numbers_pass_through(self):
        """Not validation: short garbage is still rewritten, not rejected."""
        assert normalize_phone("123", "55") == "+55123"

    def test_uses_configured_country_code_by_default(self):
        assert normalize_phone("11999998888") == "+5511999998888"
