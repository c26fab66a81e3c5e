"""
Required-field rules attached to a form submission.

A form posts its rules next to the data, e.g. ``required[email]=as_email`` or
``required[zip]=/^[0-9]{5}$/``. Each rule text is parsed once into one of the
variants below; evaluation then never looks at the raw text again.
"""
import io
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union

from formmail.core.exceptions import exception_constants
from formmail.schemas.form_mail import normalize_key

logger = logging.getLogger(__name__)

EMAIL_SHAPE = re.compile(r"[^@]+@([^@.]+\.)[^@]+")
PATTERN_RULE = re.compile(r"/(.*)/", re.DOTALL)
REQUIRED_SYNONYMS = frozenset({"", "1", "true", "required", "not_blank"})
AS_EMAIL = "as_email"


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (bytes, bytearray)):
        return len(value) == 0
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


def is_valid_email(value: Any) -> bool:
    """Loose shape check; a blank value passes vacuously."""
    if is_blank(value):
        return True
    if not isinstance(value, str):
        return False
    return EMAIL_SHAPE.fullmatch(value) is not None


def _as_text(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


@dataclass(frozen=True)
class RequiredRule:
    """Value must be present."""

    def check(self, value: Any) -> Optional[str]:
        return exception_constants.FIELD_REQUIRED if is_blank(value) else None


@dataclass(frozen=True)
class AsEmailRule:
    """Value must be present and shaped like an email address."""

    def check(self, value: Any) -> Optional[str]:
        if is_blank(value) or not is_valid_email(value):
            return exception_constants.FIELD_INVALID_EMAIL
        return None


@dataclass(frozen=True)
class PatternRule:
    pattern: str
    regex: Optional[re.Pattern] = field(default=None, compare=False)
    compile_error: Optional[str] = field(default=None, compare=False)

    @classmethod
    def compile(cls, pattern: str) -> "PatternRule":
        try:
            return cls(pattern=pattern, regex=re.compile(pattern))
        except re.error as e:
            return cls(pattern=pattern, compile_error=str(e))

    def check(self, value: Any) -> Optional[str]:
        text = _as_text(value)
        if self.regex is not None and text is not None and self.regex.search(text):
            return None
        return exception_constants.FIELD_REGEX_MISMATCH.format(pattern=self.pattern)


@dataclass(frozen=True)
class LiteralRule:
    """Value must be present; the rule text itself is the error message."""
    message: str

    def check(self, value: Any) -> Optional[str]:
        return self.message if is_blank(value) else None


Rule = Union[RequiredRule, AsEmailRule, PatternRule, LiteralRule]


def parse_rule(raw: Any) -> Rule:
    if raw is None or raw is True:
        return RequiredRule()
    text = str(raw).strip()
    if text == AS_EMAIL:
        return AsEmailRule()
    match = PATTERN_RULE.search(text)
    if match:
        return PatternRule.compile(match.group(1))
    if text in REQUIRED_SYNONYMS:
        return RequiredRule()
    return LiteralRule(message=text)


def parse_rules(raw: Any) -> Dict[str, Rule]:
    """
    Parse the ``required`` entry of a submission into ``{field: Rule}``.

    Accepts a mapping of field -> rule text, or a plain sequence of field
    names (each one simply required). Uncompilable patterns are kept, they
    fail every value, and are reported in the log once here.
    """
    if raw is None:
        return {}
    if isinstance(raw, Mapping):
        items = raw.items()
    elif isinstance(raw, str):
        items = [(raw, None)]
    else:
        items = [(name, None) for name in raw]

    rules: Dict[str, Rule] = {}
    for name, text in items:
        rule = parse_rule(text)
        if isinstance(rule, PatternRule) and rule.compile_error:
            logger.warning(
                exception_constants.REGEX_RULE_INVALID.format(
                    field=name, pattern=rule.pattern, error=rule.compile_error
                )
            )
        rules[normalize_key(name)] = rule
    return rules


def is_payload(value: Any) -> bool:
    """True for uploaded/binary values as opposed to plain text fields."""
    if isinstance(value, (bytes, bytearray)):
        return True
    if isinstance(value, io.IOBase):
        return True
    # starlette/fastapi UploadFile and friends: a wrapped binary file plus a name
    return hasattr(value, "file") and hasattr(value, "filename")
