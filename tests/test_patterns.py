"""Tests for the regex pattern catalog and builder."""

import re

import pytest

from dataknobs_forms import PatternError, RegexPattern, build_regex, register_generator
from dataknobs_forms.patterns import available_generators, has_generator


class TestRegexPattern:
    """Test RegexPattern behavior."""

    def test_fullmatch_whole_string(self):
        """Test that matching always covers the whole value."""
        pattern = RegexPattern(r"\d+")
        assert pattern.fullmatch("123")
        assert not pattern.fullmatch("123abc")

    def test_fullmatch_rejects_non_strings(self):
        """Test that non-string values never match."""
        pattern = RegexPattern(r"\d+")
        assert pattern.fullmatch(123) is False
        assert pattern.fullmatch(None) is False

    def test_flags(self):
        """Test flag letters are applied."""
        pattern = RegexPattern("abc", "i")
        assert pattern.fullmatch("ABC")
        assert pattern.compiled.flags & re.IGNORECASE

    def test_invalid_regex(self):
        """Test that a bad regex fails where it is declared."""
        with pytest.raises(PatternError):
            RegexPattern("(unclosed")

    def test_invalid_flags(self):
        """Test unsupported flag letters."""
        with pytest.raises(PatternError):
            RegexPattern("abc", "x")

    def test_coerce_spellings(self):
        """Test coercion from strings, compiled patterns and mappings."""
        assert RegexPattern.coerce("a+").source == "a+"
        compiled = RegexPattern.coerce(re.compile("a+", re.IGNORECASE))
        assert compiled.flags == "i"
        mapped = RegexPattern.coerce({"source": "a+", "flags": "m"})
        assert mapped == RegexPattern("a+", "m")
        with pytest.raises(PatternError):
            RegexPattern.coerce(42)

    def test_dict_round_trip(self):
        """Test to_dict/from_dict."""
        pattern = RegexPattern("^x$", "i")
        assert RegexPattern.from_dict(pattern.to_dict()) == pattern
        assert str(pattern) == "^x$"


class TestBuildRegex:
    """Test the named pattern generators."""

    def test_zip_india(self):
        """Test an anchored postal code pattern."""
        pattern = build_regex({"type": "zip", "country": "IN"})
        assert pattern.source == r"^(?:[1-9]\d{5})$"
        assert pattern.fullmatch("560001")
        assert not pattern.fullmatch("056001")
        assert not pattern.fullmatch("5600011")

    def test_zip_us_extended(self):
        """Test US ZIP+4 and name normalization."""
        pattern = build_regex("postal-code", country="US")
        assert pattern.fullmatch("12345")
        assert pattern.fullmatch("12345-6789")
        assert not pattern.fullmatch("1234")

    def test_zip_us_plus_four_only(self):
        """Test the ZIP+4 variant requires the four-digit suffix."""
        pattern = build_regex({"type": "zip", "country": "US+4"})
        assert pattern.fullmatch("12345-6789")
        assert not pattern.fullmatch("12345")
        assert build_regex("postal", country="us+4").fullmatch("12345-6789")

    def test_phone_us(self):
        """Test US phone numbers in common spellings."""
        pattern = build_regex({"type": "phone", "country": "US"})
        assert pattern.fullmatch("(555) 123-4567")
        assert pattern.fullmatch("+1 555.123.4567")
        assert not pattern.fullmatch("555-1234")

    def test_phone_india(self):
        """Test Indian mobile numbers."""
        pattern = build_regex({"type": "tel", "country": "in"})
        assert pattern.fullmatch("9876543210")
        assert pattern.fullmatch("+91 9876543210")
        assert not pattern.fullmatch("1876543210")

    def test_email(self):
        """Test the email pattern."""
        pattern = build_regex("email")
        assert pattern.fullmatch("user.name+tag@example.co.uk")
        assert not pattern.fullmatch("user@localhost")
        assert not pattern.fullmatch("not-an-email")

    def test_url_protocol_options(self):
        """Test camelCase parameters are accepted."""
        strict = build_regex({"type": "url"})
        assert strict.fullmatch("https://example.com/path?q=1")
        assert not strict.fullmatch("example.com")

        lenient = build_regex({"type": "url", "requireProtocol": False})
        assert lenient.fullmatch("example.com")

        ftp = build_regex({"type": "url", "protocols": ["ftp"]})
        assert ftp.fullmatch("ftp://files.example.org")
        assert not ftp.fullmatch("http://files.example.org")

    def test_uuid_version(self):
        """Test UUID patterns with and without a version."""
        value = "123e4567-e89b-42d3-a456-426614174000"
        assert build_regex("uuid").fullmatch(value)
        assert build_regex("uuid", version=4).fullmatch(value)
        assert not build_regex("uuid", version=1).fullmatch(value)
        with pytest.raises(PatternError):
            build_regex("uuid", version=9)

    def test_color_formats(self):
        """Test hex, rgb and hsl color patterns."""
        hex_color = build_regex("color")
        assert hex_color.fullmatch("#fff")
        assert hex_color.fullmatch("#A1B2C3")
        assert not hex_color.fullmatch("#ffff")
        assert build_regex("color", alpha=True).fullmatch("#ffff")
        assert build_regex("color", format="rgb").fullmatch("rgb(255, 0, 10)")
        assert not build_regex("color", format="rgb").fullmatch("rgb(256, 0, 10)")
        assert build_regex("color", format="hsl").fullmatch("hsl(120, 50%, 50%)")

    def test_misc_generators(self):
        """Test a selection of the simpler generators."""
        assert build_regex("semver").fullmatch("1.2.3-beta.1+build.5")
        assert build_regex("ipv4").fullmatch("192.168.0.1")
        assert not build_regex("ipv4").fullmatch("256.1.1.1")
        assert build_regex("slug").fullmatch("hello-world-2")
        assert not build_regex("slug").fullmatch("Hello World")
        assert build_regex("alphaSpace").fullmatch("John Smith")
        assert build_regex("creditCard", brand="visa").fullmatch("4111111111111111")
        assert build_regex("countryCode", format="alpha3").fullmatch("IND")
        assert build_regex("time", seconds=True).fullmatch("23:59:59")
        assert not build_regex("time", seconds=False).fullmatch("23:59:59")
        assert build_regex("socialHandle", platform="github").fullmatch("@octo-cat")

    def test_strong_password(self):
        """Test the strong password lookaheads."""
        pattern = build_regex("strongPassword", minLength=10)
        assert pattern.fullmatch("Abcdef1!xy")
        assert not pattern.fullmatch("Abcdef1!x")
        assert not pattern.fullmatch("abcdefgh1!xy")

    def test_fragment_and_flags(self):
        """Test unanchored fragments and flags."""
        assert build_regex("alpha", fragment=True).source == "[A-Za-z]+"
        assert build_regex("alpha", flags="i").flags == "i"

    def test_errors(self):
        """Test invalid builder input raises PatternError."""
        with pytest.raises(PatternError):
            build_regex({})
        with pytest.raises(PatternError):
            build_regex("no-such-pattern")
        with pytest.raises(PatternError):
            build_regex("zip", country="XX")
        with pytest.raises(PatternError):
            build_regex("email", unexpected=1)

    def test_builds_are_cached(self):
        """Test that identical configs return the same pattern object."""
        assert build_regex({"type": "zip", "country": "US"}) is build_regex("zip", country="US")


class TestRegisterGenerator:
    """Test registering custom generators."""

    def test_register_and_build(self):
        """Test a custom generator becomes available by name."""

        @register_generator("ticketId", "ticket")
        def _ticket(prefix: str = "TCK") -> str:
            return re.escape(prefix) + r"-\d{4}"

        assert has_generator("ticket-id")
        assert "ticket" in available_generators()
        assert build_regex("ticket").fullmatch("TCK-1234")
        assert build_regex("ticketId", prefix="BUG").fullmatch("BUG-0001")

    def test_register_format_usable_in_fields(self):
        """Test a format registered by name can back a field's format."""
        from dataknobs_forms import FORMATS, register_format, validate_sync

        register_format("orderNumber", lambda: r"ORD\d{6}")
        assert "ordernumber" in FORMATS

        schema = {"order": {"type": "string", "format": "orderNumber"}}
        assert validate_sync(schema, {"order": "ORD123456"}).valid
        assert validate_sync(schema, {"order": "123456"}).errors["order"].code == "format"
