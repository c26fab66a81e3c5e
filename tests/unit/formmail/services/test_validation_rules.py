import io

import pytest

from formmail.services.validation_rules import (
    AsEmailRule,
    LiteralRule,
    PatternRule,
    RequiredRule,
    is_blank,
    is_payload,
    is_valid_email,
    parse_rule,
    parse_rules,
)


class TestEmailShape:
    @pytest.mark.parametrize("address", ["a@b.com", "first.last@mail.example.org", "x@y.z", "odd name@host.io"])
    def test_accepts(self, address):
        assert is_valid_email(address) is True

    @pytest.mark.parametrize("address", ["bad", "a@b", "@b.com", "a@.com", "a@b.", "a@@b.com"])
    def test_rejects(self, address):
        assert is_valid_email(address) is False

    @pytest.mark.parametrize("blank", [None, "", "   "])
    def test_blank_passes_vacuously(self, blank):
        assert is_valid_email(blank) is True

    def test_non_text_fails(self):
        assert is_valid_email(b"a@b.com") is False


class TestParseRule:
    @pytest.mark.parametrize("text", [None, True, "", "1", 1, "true", "required", "not_blank"])
    def test_required_synonyms(self, text):
        assert parse_rule(text) == RequiredRule()

    def test_as_email(self):
        assert parse_rule("as_email") == AsEmailRule()

    def test_pattern_is_taken_between_outer_slashes(self):
        rule = parse_rule("/^[0-9]{4}$/")
        assert isinstance(rule, PatternRule)
        assert rule.pattern == "^[0-9]{4}$"
        assert rule.regex.search("2024")

    def test_literal_message(self):
        assert parse_rule("Please tell us your name") == LiteralRule(message="Please tell us your name")

    def test_synonyms_are_case_sensitive(self):
        assert parse_rule("Required") == LiteralRule(message="Required")
        assert parse_rule("TRUE") == LiteralRule(message="TRUE")

    def test_rule_keys_are_normalized(self):
        assert parse_rules({":email": "as_email"}) == {"email": AsEmailRule()}

    def test_broken_pattern_fails_every_value(self):
        rule = parse_rule("/[unclosed/")
        assert rule.regex is None
        assert rule.compile_error
        assert rule.check("anything") == "doesn't match regex ([unclosed)"

    def test_parse_rules_accepts_names_only(self):
        assert parse_rules(["name", "email"]) == {"name": RequiredRule(), "email": RequiredRule()}
        assert parse_rules(None) == {}


class TestRuleChecks:
    def test_required(self):
        assert RequiredRule().check("x") is None
        assert RequiredRule().check(" ") == "is required."
        assert RequiredRule().check(None) == "is required."

    def test_as_email(self):
        assert AsEmailRule().check("a@b.com") is None
        assert AsEmailRule().check("") == "invalid email address."
        assert AsEmailRule().check("nope") == "invalid email address."

    def test_pattern_uses_search_semantics(self):
        rule = PatternRule.compile("[0-9]+")
        assert rule.check("abc123") is None
        assert rule.check("abc") == "doesn't match regex ([0-9]+)"
        assert rule.check(None) == "doesn't match regex ([0-9]+)"
        assert rule.check(42) is None

    def test_literal(self):
        assert LiteralRule("Say hi").check("hi") is None
        assert LiteralRule("Say hi").check("") == "Say hi"


def test_blank_and_payload_helpers():
    assert is_blank(b"") is True
    assert is_blank([]) is True
    assert is_blank(io.BytesIO()) is False
    assert is_payload(b"raw") is True
    assert is_payload(io.BytesIO(b"raw")) is True
    assert is_payload("text") is False
