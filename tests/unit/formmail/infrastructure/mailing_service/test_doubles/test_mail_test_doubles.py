import pytest

from formmail.infrastructure.mailing_service import GenericMailMessage, InMemoryMailClient, SpyMailClient
from formmail.infrastructure.mailing_service.exception.mail_exceptions import MailSendError
from formmail.infrastructure.mailing_service.test_doubles.base import CallSpyMixin, ExceptionPlanMixin, FakeBase


def _message(**overrides):
    data = dict(recipients=["owner@example.com"], from_address="visitor@example.com", subject="Hi")
    data.update(overrides)
    return GenericMailMessage(**data)


# -------- tiny concrete helpers local to the test module --------
class _SpyOnly(CallSpyMixin):
    def __init__(self): super().__init__()
    def ping(self, *args, **kw): return self._touch(self.ping, *args, **kw)


class _FakeForBefore(FakeBase):
    def __init__(self): super().__init__()
    def op(self, *args, **kw): return self._before(self.op, *args, **kw)


class TestBaseMixins:
    def test_records_calls_and_counts(self):
        spy = _SpyOnly()
        spy.ping(1, y=2)
        spy.ping()
        assert spy.received_calls == [("ping", (1,), {"y": 2}), ("ping", (), {})]
        assert spy.call_count(_SpyOnly.ping) == 2

    def test_planned_exception_can_be_cleared(self):
        fake = _FakeForBefore()
        fake.set_exception(_FakeForBefore.op, RuntimeError("boom"))
        with pytest.raises(RuntimeError, match="boom"):
            fake.op()
        fake.clear_exception(_FakeForBefore.op)
        assert fake.op() == "op"
        assert fake.call_count(_FakeForBefore.op) == 2

    def test_exception_plan_alone(self):
        plan = ExceptionPlanMixin()
        plan._maybe_raise("anything")


@pytest.mark.asyncio
class TestMailClientDoubles:
    async def test_in_memory_client_keeps_messages(self):
        client = InMemoryMailClient()
        assert client.last_message is None
        await client.send_generic_mail(_message())
        assert client.last_message.subject == "Hi"
        assert client.call_count(InMemoryMailClient.send_generic_mail) == 1

    async def test_in_memory_client_can_ignore_limits(self):
        client = InMemoryMailClient(enforce_filesize_limit=False)
        await client.send_generic_mail(_message(files=[b"123456"], filesize_limit=1))
        assert len(client.sent) == 1

    async def test_spy_forwards_to_inner(self):
        inner = InMemoryMailClient()
        spy = SpyMailClient(inner)
        message = _message()
        await spy.send_generic_mail(message)
        assert spy.captured == [message]
        assert inner.sent == [message]

    async def test_spy_injected_failure_skips_inner(self):
        inner = InMemoryMailClient()
        spy = SpyMailClient(inner)
        spy.set_exception(SpyMailClient.send_generic_mail, MailSendError("down"))
        with pytest.raises(MailSendError):
            await spy.send_generic_mail(_message())
        assert inner.sent == []
