from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from formmail.core.exceptions import exception_constants
from formmail.core.exceptions.base import FormMailConfigError

REQUIRED_CONFIG_OPTIONS = ("recipients", "from")


def normalize_key(key: Any) -> str:
    """``"from"``, ``":from"`` and an Enum valued ``"from"`` are the same key."""
    if isinstance(key, Enum):
        key = key.value
    return str(key).lstrip(":")


def normalize_mapping(data: Optional[Mapping[Any, Any]]) -> Dict[str, Any]:
    return {normalize_key(k): v for k, v in (data or {}).items()}


def _blank(v: Any) -> bool:
    return v is None or (isinstance(v, str) and not v.strip()) or (isinstance(v, (list, tuple)) and not v)


class FormMailConfig(BaseModel):
    """Mail options of one page, parsed once from an indifferent-key mapping."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    recipients: Optional[List[str]] = Field(default=None, description="Explicit To addresses")
    recipients_field: Optional[str] = Field(default=None, description="Submitted field holding comma-separated To addresses")
    from_address: Optional[str] = Field(default=None, alias="from")
    from_field: Optional[str] = None
    reply_to: Optional[str] = None
    reply_to_field: Optional[str] = None
    cc: Optional[str] = None
    cc_field: Optional[str] = None
    sender: Optional[str] = Field(default=None, description="Sets Sender and Return-Path headers")
    subject: Optional[str] = None
    filesize_limit: int = Field(default=0, ge=0, description="Per-attachment limit in bytes, 0 disables it")

    recipients_check_class: Optional[str] = Field(
        default=None, description="Lookup entity ('app.Model') that submitted recipients must exist in"
    )
    recipients_check_name: Optional[str] = Field(
        default=None, description="Column of the lookup entity compared case-insensitively"
    )
    recipients_check_exceptions: List[str] = Field(default_factory=list)

    @field_validator("*", mode="before")
    @classmethod
    def _noneify_blank(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("recipients", mode="before")
    @classmethod
    def _split_recipients(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [r.strip() for r in v.split(",") if r.strip()]
        return v

    @field_validator("cc", mode="before")
    @classmethod
    def _join_cc(cls, v: Any) -> Any:
        if isinstance(v, (list, tuple)):
            return ", ".join(str(x) for x in v)
        return v

    @field_validator("recipients_check_exceptions", mode="before")
    @classmethod
    def _exceptions_list(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            return [e.strip() for e in v.split(",") if e.strip()]
        return v

    @field_validator("filesize_limit", mode="before")
    @classmethod
    def _default_limit(cls, v: Any) -> Any:
        return 0 if _blank(v) else v

    @classmethod
    def parse(cls, config: Union["FormMailConfig", Mapping[Any, Any], None]) -> "FormMailConfig":
        if isinstance(config, FormMailConfig):
            return config
        try:
            return cls.model_validate(normalize_mapping(config))
        except ValidationError as e:
            raise FormMailConfigError(
                exception_constants.CONFIG_INVALID.format(details=e.errors(include_url=False)),
            ) from e

    def option(self, name: str) -> Any:
        """Value of an option by its configuration key (``from`` included)."""
        if name == "from":
            return self.from_address
        return getattr(self, name, None)


def _raw_option(config: Union[FormMailConfig, Mapping[Any, Any], None], name: str) -> Any:
    if isinstance(config, FormMailConfig):
        return config.option(name)
    return normalize_mapping(config).get(name)


def config_errors(config: Union[FormMailConfig, Mapping[Any, Any], None]) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for option in REQUIRED_CONFIG_OPTIONS:
        if _blank(_raw_option(config, option)) and _blank(_raw_option(config, f"{option}_field")):
            errors[option] = exception_constants.CONFIG_OPTION_REQUIRED
    return errors


def valid_config(config: Union[FormMailConfig, Mapping[Any, Any], None]) -> bool:
    return not config_errors(config)


def to_sentence(parts: List[str]) -> str:
    if not parts:
        return ""
    if len(parts) == 1:
        return parts[0]
    return f"{', '.join(parts[:-1])}, and {parts[-1]}"


def config_error_messages(config: Union[FormMailConfig, Mapping[Any, Any], None]) -> str:
    return to_sentence([f"'{field}' {message}" for field, message in config_errors(config).items()])


class RequestContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    host: str = "localhost"


class ValidationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    valid: bool
    errors: Dict[str, str] = Field(default_factory=dict)
    recipients: List[str] = Field(default_factory=list)


class ResolvedEnvelope(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    recipients: List[str] = Field(default_factory=list)
    from_address: Optional[str] = None
    reply_to: Optional[str] = None
    sender: Optional[str] = None
    subject: str
    cc: str = ""
    files: List[Any] = Field(default_factory=list)
    filesize_limit: int = 0


class FormMailOutcome(BaseModel):
    valid: bool
    sent: Optional[bool] = None
    errors: Dict[str, str] = Field(default_factory=dict)
