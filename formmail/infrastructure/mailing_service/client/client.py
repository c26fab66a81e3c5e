import asyncio
import io
import logging
import os
from abc import abstractmethod
from typing import Any, Optional, Protocol

from fastapi.datastructures import Headers, UploadFile
from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType, MultipartSubtypeEnum

from formmail.core.config import MailSettings
from formmail.infrastructure.mailing_service.exception import exception_constants
from formmail.infrastructure.mailing_service.exception.mail_exceptions import MailAttachmentTooLargeError, MailSendError
from formmail.infrastructure.mailing_service.models.base_models import GenericMailMessage

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class IMailClient(Protocol):
	@abstractmethod
	async def send_generic_mail(self, message: GenericMailMessage) -> None: ...


def payload_size(payload: Any) -> int:
	"""Byte size of an attachment without consuming it."""
	if isinstance(payload, (bytes, bytearray)):
		return len(payload)
	size = getattr(payload, "size", None)
	if isinstance(size, int):
		return size
	stream = getattr(payload, "file", payload)
	position = stream.tell()
	stream.seek(0, io.SEEK_END)
	end = stream.tell()
	stream.seek(position)
	return end


def payload_name(payload: Any, index: int) -> str:
	name = getattr(payload, "filename", None) or getattr(payload, "name", None)
	if isinstance(name, str) and name:
		return os.path.basename(name)
	return f"attachment-{index}"


def to_upload_file(payload: Any, index: int) -> UploadFile:
	if isinstance(payload, UploadFile):
		return payload
	if isinstance(payload, (bytes, bytearray)):
		stream = io.BytesIO(bytes(payload))
	else:
		stream = getattr(payload, "file", payload)
		stream.seek(0)
	content_type = getattr(payload, "content_type", None) or DEFAULT_CONTENT_TYPE
	return UploadFile(
		file=stream,
		filename=payload_name(payload, index),
		headers=Headers({"content-type": content_type}),
	)


def check_filesize_limit(message: GenericMailMessage) -> None:
	if not message.filesize_limit:
		return
	for index, payload in enumerate(message.files):
		size = payload_size(payload)
		if size > message.filesize_limit:
			raise MailAttachmentTooLargeError(
				exception_constants.ATTACHMENT_TOO_LARGE.format(
					name=payload_name(payload, index), size=size, limit=message.filesize_limit
				)
			)


class FastAPIMailClient(IMailClient):

	def __init__(self, settings: MailSettings):
		self.settings = settings
		self.conf = ConnectionConfig(
			MAIL_USERNAME=settings.MAIL_USERNAME,
			MAIL_PASSWORD=settings.MAIL_PASSWORD,
			MAIL_FROM=settings.MAIL_FROM,
			MAIL_FROM_NAME=settings.MAIL_FROM_NAME,
			MAIL_PORT=settings.MAIL_PORT,
			MAIL_SERVER=settings.MAIL_SERVER,
			MAIL_STARTTLS=settings.MAIL_STARTTLS,
			MAIL_SSL_TLS=settings.MAIL_SSL_TLS,
			USE_CREDENTIALS=settings.MAIL_USE_CREDENTIALS,
			VALIDATE_CERTS=settings.MAIL_VALIDATE_CERTS,
			SUPPRESS_SEND=int(settings.MAIL_SUPPRESS_SEND),
			MAIL_DEBUG=settings.MAIL_DEBUG,
		)
		self._fm = FastMail(self.conf)

	@property
	def fm(self) -> FastMail:
		return self._fm

	def _generate_message_schema(self, message: GenericMailMessage) -> MessageSchema:
		schema = MessageSchema(
			subject=message.subject,
			recipients=message.recipients,
			cc=message.cc,
			reply_to=[message.reply_to] if message.reply_to else [],
			from_email=message.from_address,
			headers=message.extra_headers,
			attachments=[to_upload_file(f, i) for i, f in enumerate(message.files)],
			subtype=MessageType.html if message.html_body else MessageType.plain,
		)

		if message.html_body:
			schema.body = message.html_body
			if message.plain_body:
				schema.alternative_body = message.plain_body
				schema.multipart_subtype = MultipartSubtypeEnum.alternative
		else:
			schema.body = message.plain_body
		return schema

	async def send_generic_mail(self, message: GenericMailMessage) -> None:
		check_filesize_limit(message)
		try:
			schema = self._generate_message_schema(message)
			await asyncio.wait_for(self._fm.send_message(schema), timeout=self.settings.MAIL_SEND_TIMEOUT)
		except asyncio.TimeoutError as e:
			raise MailSendError(exception_constants.SEND_TIMED_OUT.format(timeout=self.settings.MAIL_SEND_TIMEOUT)) from e
		except Exception as e:
			raise MailSendError(exception_constants.SEND_FAILED.format(error=e)) from e
		logger.info(f"Form mail '{message.subject}' handed to {self.settings.MAIL_SERVER} for {len(message.recipients)} recipient(s)")
