"""
Tests for phone number extraction from customer messages.
"""

import pytest

from phone_extractor import (
    extract_phone_number,
    get_phone_from_message,
    is_valid_indian_mobile,
    format_phone_for_display,
    match_bounded_number,
    NO_TEXT_ERROR,
    NO_NUMBER_ERROR,
)


class TestExtractPhoneNumber:

    @pytest.mark.parametrize("text", [
        "9811552920",
        "98115 52920",
        "981-155-2920",
        "(981) 155 2920",
    ])
    def test_whole_message_is_the_number(self, text):
        result = extract_phone_number(text)
        assert result.success
        assert result.phone == "9811552920"
        assert result.error is None

    @pytest.mark.parametrize("text", [
        "+91 9811552920",
        "+91-98115-52920",
        "919811552920",
    ])
    def test_country_code_is_stripped(self, text):
        assert extract_phone_number(text).phone == "9811552920"

    def test_country_code_inside_sentence(self):
        result = extract_phone_number("my number is +91 8641493433 I ordered yesterday")
        assert result.success
        assert result.phone == "8641493433"

    def test_number_inside_sentence(self):
        assert extract_phone_number("please check 7012345678 thanks").phone == "7012345678"

    def test_number_after_unrelated_digits_falls_back_to_first_mobile_run(self):
        """An order number before the phone glues into one digit run; the lenient rule still finds it."""
        assert extract_phone_number("Order 12345 phone 9876543210").phone == "9876543210"

    def test_multiple_numbers_first_wins(self):
        assert extract_phone_number("9876543210 or 8765432109").phone == "9876543210"

    @pytest.mark.parametrize("text", [None, "", 12345, ["9876543210"]])
    def test_no_text(self, text):
        result = extract_phone_number(text)
        assert not result.success
        assert result.phone is None
        assert result.error == NO_TEXT_ERROR

    @pytest.mark.parametrize("text", [
        "hello, where is my order?",
        "my pincode is 560001",
        "1234567890",
        "5876543210",
        "98765",
    ])
    def test_no_valid_number(self, text):
        result = extract_phone_number(text)
        assert not result.success
        assert result.error == NO_NUMBER_ERROR

    def test_non_ascii_digits_are_ignored(self):
        """Devanagari digits are not treated as a phone number."""
        assert not extract_phone_number("९८७६५४३२१०").success


class TestMatchers:

    def test_bounded_number_rejects_longer_digit_run(self):
        text = "ref 98765432101"
        digits = "98765432101"
        assert match_bounded_number(text, digits) is None

    def test_bounded_number_accepts_91_prefix(self):
        text = "91 9876543210"
        assert match_bounded_number(text, "919876543210") == "9876543210"


class TestHelpers:

    @pytest.mark.parametrize("phone,valid", [
        ("9876543210", True),
        ("6000000000", True),
        ("5876543210", False),
        ("98765", False),
        ("98765432a0", False),
        ("+919876543210", False),
        (None, False),
        (9876543210, False),
    ])
    def test_is_valid_indian_mobile(self, phone, valid):
        assert is_valid_indian_mobile(phone) is valid

    def test_format_phone_for_display(self):
        assert format_phone_for_display("9876543210") == "987-654-3210"
        assert format_phone_for_display("123") == "123"
        assert format_phone_for_display("") == ""

    def test_get_phone_from_message(self):
        assert get_phone_from_message("call me on 9876543210") == "9876543210"
        assert get_phone_from_message("no number here") is None
        assert get_phone_from_message(None) is None
