from typing import Annotated, Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

NonBlankStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

def normalize_email(e: str) -> str:
	return str(e).strip().lower()

def split_addresses(value: Any) -> list[str]:
	"""Comma separated string (or list) -> list of trimmed, non-empty addresses."""
	if value is None:
		return []
	if isinstance(value, str):
		value = value.split(",")
	return [str(v).strip() for v in value if str(v).strip()]

class GenericMailMessage(BaseModel):
	"""Everything a transport needs to deliver one form mail."""
	model_config = ConfigDict(arbitrary_types_allowed=True)

	recipients: list[NonBlankStr] = Field(default=..., min_length=1, description="The “To” addresses resolved for the form.")
	from_address: NonBlankStr = Field(default=..., description="Value of the From header.")
	subject: NonBlankStr = Field(default=..., description="The email’s title (what shows in the inbox).")
	plain_body: str = Field(default="", description="text/plain body, empty when the page only has an html part")
	html_body: str = Field(default="", description="text/html body, empty when the page only has a plain part")
	cc: list[NonBlankStr] = Field(default_factory=list, description="Carbon copy recipients")
	headers: Mapping[str, NonBlankStr] = Field(default_factory=dict, description="Reply-To, Sender, Return-Path and friends")
	files: list[Any] = Field(default_factory=list, description="Uploaded payloads in submission order (bytes, streams, UploadFile)")
	filesize_limit: int = Field(default=0, ge=0, description="Per-attachment byte limit, 0 disables it")

	@field_validator("recipients", "cc", mode="before")
	@classmethod
	def _split(cls, v: Any) -> list[str]:
		return split_addresses(v)

	@property
	def reply_to(self) -> Optional[str]:
		return self.headers.get("Reply-To")

	@property
	def extra_headers(self) -> dict[str, str]:
		"""Headers the transport cannot express as dedicated fields."""
		return {k: v for k, v in self.headers.items() if k != "Reply-To"}
