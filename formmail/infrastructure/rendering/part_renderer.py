import logging
from abc import abstractmethod
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Protocol

from jinja2 import DictLoader, Environment, StrictUndefined, TemplateError, TemplateNotFound, Undefined

from formmail.infrastructure.mailing_service.exception import exception_constants
from formmail.infrastructure.mailing_service.exception.mail_exceptions import MailConfigError, MailTemplateError

logger = logging.getLogger(__name__)

PLAIN_PART = "email"
PLAIN_FALLBACK_PART = "email_plain"
HTML_PART = "email_html"


class IPartRenderer(Protocol):
	@abstractmethod
	def has_part(self, name: str) -> bool: ...

	@abstractmethod
	def render_part(self, name: str) -> Optional[str]: ...


class NullPartRenderer(IPartRenderer):
	"""A page without any email parts."""

	def has_part(self, name: str) -> bool:
		return False

	def render_part(self, name: str) -> Optional[str]:
		return None


def _autoescape(template_name: Optional[str]) -> bool:
	return bool(template_name) and template_name.endswith("html")


class JinjaPartRenderer(IPartRenderer):
	"""
	Renders the email parts of a page with Jinja.

	``parts`` maps a part name (``email``, ``email_plain``, ``email_html``) to
	its template source. Every submitted field is available in the template
	context under its own name. HTML parts are autoescaped.
	"""

	def __init__(self, parts: Mapping[str, str], context: Optional[Mapping[str, Any]] = None, strict: bool = False):
		self._parts: Dict[str, str] = dict(parts)
		self._context: Dict[str, Any] = dict(context or {})
		self.env = Environment(
			loader=DictLoader(self._parts),
			autoescape=_autoescape,
			undefined=StrictUndefined if strict else Undefined,
			keep_trailing_newline=True,
		)

	@classmethod
	def from_directory(cls, directory: Optional[Path], context: Optional[Mapping[str, Any]] = None, **kwargs) -> "JinjaPartRenderer":
		"""Load parts from files whose stem is the part name (``email_html.html`` -> ``email_html``)."""
		if directory is None:
			raise MailConfigError(exception_constants.TEMPLATES_DISABLED)
		parts = {}
		for path in sorted(Path(directory).iterdir()):
			if path.is_file():
				parts[path.stem] = path.read_text(encoding="utf-8")
		logger.debug(f"Loaded {len(parts)} page part(s) from {directory}")
		return cls(parts, context=context, **kwargs)

	def has_part(self, name: str) -> bool:
		return name in self._parts

	def render_part(self, name: str) -> Optional[str]:
		if not self.has_part(name):
			return None
		try:
			return self.env.get_template(name).render(**self._context)
		except TemplateNotFound:
			return None
		except TemplateError as e:
			raise MailTemplateError(
				exception_constants.TEMPLATE_RENDER_FAILED.format(name=name, error=e)
			) from e
