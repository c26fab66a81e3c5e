import logging
import re
from abc import abstractmethod
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

from pydantic import BaseModel, ConfigDict
from tortoise import Tortoise

logger = logging.getLogger(__name__)

SAFE_COLUMN_NAME = re.compile(r"[\w-]+", re.ASCII)
DEFAULT_APP_LABEL = "models"


def is_safe_column_name(name: Optional[str]) -> bool:
	return bool(name) and SAFE_COLUMN_NAME.fullmatch(name) is not None


class LookupResult(BaseModel):
	"""Outcome of one existence check; ``error`` is set when the lookup itself failed."""
	model_config = ConfigDict(frozen=True)

	found: bool = False
	error: Optional[str] = None

	@property
	def failed(self) -> bool:
		return self.error is not None


class IRecipientLookup(Protocol):
	@abstractmethod
	async def exists(self, entity: str, column: str, value: str) -> LookupResult: ...


def _tortoise_registry(entity: str) -> Any:
	app_label, _, model_name = entity.rpartition(".")
	return Tortoise.apps.get(app_label or DEFAULT_APP_LABEL, {}).get(model_name)


class TortoiseRecipientLookup(IRecipientLookup):
	"""
	Checks that an address exists in a table registered with Tortoise.

	``entity`` is ``"app_label.ModelName"`` (``"Subscriber"`` alone means the
	``models`` app). The comparison is ``<column> ILIKE value`` without
	wildcards, i.e. a case-insensitive equality.
	"""

	def __init__(self, resolve_model: Optional[Callable[[str], Any]] = None):
		self._resolve_model = resolve_model or _tortoise_registry

	async def exists(self, entity: str, column: str, value: str) -> LookupResult:
		if not is_safe_column_name(column):
			return LookupResult(error=f"unsafe column name {column!r}")
		try:
			model = self._resolve_model(entity)
			if model is None:
				return LookupResult(error=f"unknown lookup entity {entity!r}")
			found = await model.filter(**{f"{column}__iexact": value}).exists()
			return LookupResult(found=bool(found))
		except Exception as e:
			logger.debug(f"Recipient lookup on {entity}.{column} failed", exc_info=True)
			return LookupResult(error=str(e) or e.__class__.__name__)


class StaticRecipientLookup(IRecipientLookup):
	"""In-memory lookup for tests and fixtures: a set of known addresses per (entity, column)."""

	def __init__(self, known: Optional[Dict[Tuple[str, str], List[str]]] = None, error: Optional[Exception] = None):
		self._known = {key: {v.lower() for v in values} for key, values in (known or {}).items()}
		self._error = error
		self.calls: List[Tuple[str, str, str]] = []

	async def exists(self, entity: str, column: str, value: str) -> LookupResult:
		self.calls.append((entity, column, value))
		if self._error is not None:
			return LookupResult(error=str(self._error))
		return LookupResult(found=value.lower() in self._known.get((entity, column), set()))
