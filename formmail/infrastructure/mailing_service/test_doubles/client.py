from typing import Optional

from formmail.infrastructure.mailing_service.client.client import IMailClient, check_filesize_limit
from formmail.infrastructure.mailing_service.models.base_models import GenericMailMessage
from formmail.infrastructure.mailing_service.test_doubles.base import FakeBase


class InMemoryMailClient(FakeBase, IMailClient):
    """A fake transport that keeps every delivered message in memory."""

    def __init__(self, enforce_filesize_limit: bool = True) -> None:
        super().__init__()
        self.enforce_filesize_limit = enforce_filesize_limit
        self.sent: list[GenericMailMessage] = []

    async def send_generic_mail(self, message: GenericMailMessage) -> None:
        self._before(self.send_generic_mail, message=message)
        if self.enforce_filesize_limit:
            check_filesize_limit(message)
        self.sent.append(message)

    @property
    def last_message(self) -> Optional[GenericMailMessage]:
        return self.sent[-1] if self.sent else None


class SpyMailClient(FakeBase, IMailClient):
    """Wraps a real IMailClient to spy on calls and optionally inject exceptions."""

    def __init__(self, inner: IMailClient) -> None:
        super().__init__()
        self.inner = inner
        self.captured: list[GenericMailMessage] = []

    async def send_generic_mail(self, message: GenericMailMessage) -> None:
        self._before(self.send_generic_mail, message=message)
        self.captured.append(message)
        await self.inner.send_generic_mail(message)
