import pytest
from unittest.mock import AsyncMock, patch

from formmail.core.config import MailSettings, Settings
from formmail.infrastructure.lookup import (
    LookupResult,
    StaticRecipientLookup,
    TortoiseRecipientLookup,
    is_safe_column_name,
)
from formmail.infrastructure.lookup.database import close_lookup_database, init_lookup_database


# ---------- tiny stand-in for a Tortoise model ----------

class _FakeQuery:
    def __init__(self, rows, filters):
        self.rows = rows
        self.filters = filters

    async def exists(self):
        (key, value), = self.filters.items()
        column = key.removesuffix("__iexact")
        return any(str(row.get(column, "")).lower() == value.lower() for row in self.rows)


class _FakeModel:
    rows = [{"email": "Member@Example.com"}]
    last_filters = None

    @classmethod
    def filter(cls, **filters):
        cls.last_filters = filters
        return _FakeQuery(cls.rows, filters)


class _BrokenModel:
    @classmethod
    def filter(cls, **filters):
        raise RuntimeError("no such column")


def _registry(models):
    return lambda entity: models.get(entity)


@pytest.mark.parametrize("name,expected", [
    ("email", True), ("e-mail_2", True), ("email) OR 1=1", False), ("", False), (None, False), ("emäil", False),
    ("email\n", False),
])
def test_safe_column_names(name, expected):
    assert is_safe_column_name(name) is expected


@pytest.mark.asyncio
class TestTortoiseRecipientLookup:
    async def test_found_case_insensitively(self):
        lookup = TortoiseRecipientLookup(resolve_model=_registry({"models.Subscriber": _FakeModel}))
        result = await lookup.exists("models.Subscriber", "email", "member@example.com")
        assert result == LookupResult(found=True)
        assert _FakeModel.last_filters == {"email__iexact": "member@example.com"}

    async def test_not_found(self):
        lookup = TortoiseRecipientLookup(resolve_model=_registry({"models.Subscriber": _FakeModel}))
        result = await lookup.exists("models.Subscriber", "email", "stranger@example.com")
        assert result.found is False
        assert result.failed is False

    async def test_unknown_entity_is_a_failed_result(self):
        lookup = TortoiseRecipientLookup(resolve_model=_registry({}))
        result = await lookup.exists("models.Nope", "email", "a@b.com")
        assert result.found is False
        assert "unknown lookup entity" in result.error

    async def test_unsafe_column_never_queries(self):
        lookup = TortoiseRecipientLookup(resolve_model=_registry({"models.Subscriber": _BrokenModel}))
        result = await lookup.exists("models.Subscriber", "email; drop table", "a@b.com")
        assert result.failed
        assert "unsafe column name" in result.error

    async def test_backend_errors_become_results(self):
        lookup = TortoiseRecipientLookup(resolve_model=_registry({"models.Subscriber": _BrokenModel}))
        result = await lookup.exists("models.Subscriber", "email", "a@b.com")
        assert result == LookupResult(found=False, error="no such column")

    async def test_default_registry_reads_tortoise_apps(self):
        with patch("formmail.infrastructure.lookup.recipient_lookup.Tortoise") as tortoise:
            tortoise.apps = {"models": {"Subscriber": _FakeModel}}
            result = await TortoiseRecipientLookup().exists("Subscriber", "email", "member@example.com")
        assert result.found is True


@pytest.mark.asyncio
class TestStaticRecipientLookup:
    async def test_records_calls(self, allow_list_lookup):
        assert (await allow_list_lookup.exists("models.Subscriber", "email", "MEMBER@example.com")).found
        assert not (await allow_list_lookup.exists("models.Subscriber", "name", "member@example.com")).found
        assert len(allow_list_lookup.calls) == 2

    async def test_planned_error(self):
        lookup = StaticRecipientLookup(error=RuntimeError("db down"))
        assert (await lookup.exists("a", "b", "c")).error == "db down"


@pytest.mark.asyncio
async def test_lookup_database_lifecycle():
    settings_instance = Settings(LOOKUP_DB_URL="sqlite://:memory:", LOOKUP_MODELS=["app.models"], mail=MailSettings())
    with patch("formmail.infrastructure.lookup.database.Tortoise") as tortoise:
        tortoise.init = AsyncMock()
        tortoise.close_connections = AsyncMock()
        await init_lookup_database(settings_instance)
        await close_lookup_database()

    config = tortoise.init.await_args.kwargs["config"]
    assert config["connections"] == {"default": "sqlite://:memory:"}
    assert config["apps"]["models"]["models"] == ["app.models"]
    tortoise.close_connections.assert_awaited_once()
