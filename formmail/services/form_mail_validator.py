"""
Validation and value resolution for one form mail submission.

A validator is built per submission attempt, evaluated once, and then either
used to send the message or thrown away::

    validator = FormMailValidator(config, submission, renderer=renderer, request=request)
    result = await validator.evaluate()
    if result.valid:
        await validator.send(mail_client)

Evaluation is memoized: later ``evaluate()`` calls return the first result.
Instances are not meant to be shared between threads.
"""
import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml

from formmail.core.config import Settings, settings as default_settings
from formmail.core.exceptions import exception_constants
from formmail.core.exceptions.base import ValidationNotEvaluatedError
from formmail.infrastructure.encoding import transcode_body
from formmail.infrastructure.lookup import IRecipientLookup, LookupResult, is_safe_column_name
from formmail.infrastructure.mailing_service import GenericMailMessage, IMailClient, normalize_email, split_addresses
from formmail.infrastructure.mailing_service.client.client import payload_name
from formmail.infrastructure.rendering import (
    HTML_PART,
    PLAIN_FALLBACK_PART,
    PLAIN_PART,
    IPartRenderer,
    NullPartRenderer,
)
from formmail.schemas.form_mail import (
    FormMailConfig,
    RequestContext,
    ResolvedEnvelope,
    ValidationResult,
    config_error_messages,
    config_errors,
    normalize_mapping,
    valid_config,
)
from formmail.services.validation_rules import Rule, is_blank, is_payload, is_valid_email, parse_rules

logger = logging.getLogger(__name__)

REQUIRED_KEY = "required"
FORM_ERROR_KEY = "form"
BASE_ERROR_KEY = "base"


def serialize_submission(data: Mapping[str, Any]) -> str:
    """Plain-text dump of a submission used when the page has no email parts."""
    printable = {}
    for index, (name, value) in enumerate(data.items()):
        if is_payload(value):
            value = f"<attachment: {payload_name(value, index)}>"
        elif value is not None and not isinstance(value, (str, int, float, bool, list, dict)):
            value = str(value)
        printable[name] = value
    dump = yaml.safe_dump(printable, default_flow_style=False, allow_unicode=True, sort_keys=False)
    return f"{exception_constants.SUBMISSION_INTRO}\n{dump}"


class FormMailValidator:

    valid_config = staticmethod(valid_config)
    config_errors = staticmethod(config_errors)
    config_error_messages = staticmethod(config_error_messages)

    def __init__(
            self,
            config: Union[FormMailConfig, Mapping[Any, Any]],
            submission: Optional[Mapping[Any, Any]] = None,
            renderer: Optional[IPartRenderer] = None,
            request: Optional[RequestContext] = None,
            lookup: Optional[IRecipientLookup] = None,
            settings: Optional[Settings] = None,
    ):
        self.config = FormMailConfig.parse(config)
        self.data: Dict[str, Any] = normalize_mapping(submission)
        self.required: Dict[str, Rule] = parse_rules(self.data.pop(REQUIRED_KEY, None))
        self.renderer = renderer or NullPartRenderer()
        self.request = request or RequestContext()
        self.lookup = lookup
        self.settings = settings or default_settings
        self.errors: Dict[str, str] = {}

        self._result: Optional[ValidationResult] = None
        self._evaluate_lock = asyncio.Lock()
        self._plain_body: Optional[str] = None
        self._html_body: Optional[str] = None
        self._bodies_rendered = False
        self._sent: Optional[bool] = None

    # ---- evaluation ----

    async def evaluate(self) -> ValidationResult:
        async with self._evaluate_lock:
            if self._result is None:
                self._result = await self._compute()
        return self._result

    @property
    def evaluated(self) -> bool:
        return self._result is not None

    @property
    def result(self) -> ValidationResult:
        if self._result is None:
            raise ValidationNotEvaluatedError(exception_constants.NOT_EVALUATED)
        return self._result

    @property
    def is_valid(self) -> bool:
        return self.result.valid

    def is_required_field(self, field_name: Optional[str]) -> bool:
        return field_name is not None and field_name in self.required

    async def _compute(self) -> ValidationResult:
        valid = True
        recipients = await self.resolve_recipients()

        if not recipients and not self.is_required_field(self.config.recipients_field):
            self.errors[FORM_ERROR_KEY] = exception_constants.RECIPIENTS_REQUIRED
            valid = False

        if any(not is_valid_email(r) for r in recipients):
            self.errors[FORM_ERROR_KEY] = exception_constants.RECIPIENTS_INVALID
            valid = False

        from_address = self.from_address
        if is_blank(from_address) and not self.is_required_field(self.config.from_field):
            self.errors[FORM_ERROR_KEY] = exception_constants.FROM_REQUIRED
            valid = False

        if not is_valid_email(from_address):
            self.errors[FORM_ERROR_KEY] = exception_constants.FROM_INVALID
            valid = False

        for name, rule in self.required.items():
            message = rule.check(self.data.get(name))
            if message is not None:
                self.errors[name] = message
                valid = False

        if not valid:
            logger.info(f"Form submission rejected: {self.errors}")
        return ValidationResult(valid=valid, errors=dict(self.errors), recipients=recipients)

    # ---- value resolution ----

    def _field(self, field_name: Optional[str]) -> Any:
        if field_name is None:
            return None
        return self.data.get(field_name)

    @staticmethod
    def _first(*values: Any) -> Any:
        for value in values:
            if not is_blank(value):
                return value
        return None

    @property
    def from_address(self) -> Optional[str]:
        return self._first(self.config.from_address, self._field(self.config.from_field))

    async def resolve_recipients(self) -> List[str]:
        if self.config.recipients:
            return list(self.config.recipients)

        raw = self._field(self.config.recipients_field)
        recipients = split_addresses(raw) if isinstance(raw, (str, list, tuple)) else []

        if recipients and self.config.recipients_check_class and self.config.recipients_check_name:
            recipients = await self._filter_recipients(recipients)
        return recipients

    async def _filter_recipients(self, recipients: List[str]) -> List[str]:
        check_class = self.config.recipients_check_class
        check_name = self.config.recipients_check_name

        if not is_safe_column_name(check_name):
            logger.warning(exception_constants.RECIPIENT_CHECK_UNSAFE_NAME.format(name=check_name))
            return recipients
        if self.lookup is None:
            logger.warning(f"Recipients check on {check_class}.{check_name} configured but no lookup is wired")
            return recipients

        allowed = {normalize_email(e) for e in self.config.recipients_check_exceptions}
        kept: List[str] = []
        for recipient in recipients:
            candidate = normalize_email(recipient)
            if candidate in allowed:
                kept.append(recipient)
                continue

            try:
                outcome = await self.lookup.exists(check_class, check_name, candidate)
            except Exception as e:
                outcome = LookupResult(error=str(e) or e.__class__.__name__)
            if outcome.found:
                kept.append(recipient)
            elif outcome.failed:
                logger.warning(
                    exception_constants.RECIPIENT_CHECK_ERROR.format(recipient=recipient, error=outcome.error)
                )
            else:
                logger.warning(exception_constants.RECIPIENT_CHECK_FAILED.format(recipient=recipient))
        return kept

    @property
    def reply_to(self) -> Optional[str]:
        return self._first(self.config.reply_to, self._field(self.config.reply_to_field))

    @property
    def sender(self) -> Optional[str]:
        return self.config.sender

    @property
    def subject(self) -> str:
        return self._first(
            self.data.get("subject"),
            self.config.subject,
        ) or exception_constants.DEFAULT_SUBJECT.format(host=self.request.host)

    @property
    def cc(self) -> str:
        return self._first(self._field(self.config.cc_field), self.config.cc) or ""

    @property
    def files(self) -> List[Any]:
        return [value for value in self.data.values() if is_payload(value)]

    @property
    def filesize_limit(self) -> int:
        return self.config.filesize_limit or 0

    async def envelope(self) -> ResolvedEnvelope:
        recipients = self._result.recipients if self._result is not None else await self.resolve_recipients()
        return ResolvedEnvelope(
            recipients=recipients,
            from_address=self.from_address,
            reply_to=self.reply_to,
            sender=self.sender,
            subject=str(self.subject),
            cc=str(self.cc),
            files=self.files,
            filesize_limit=self.filesize_limit,
        )

    # ---- bodies ----

    def _render_bodies(self) -> None:
        if self._bodies_rendered:
            return
        if self.renderer.has_part(PLAIN_PART):
            self._plain_body = self.renderer.render_part(PLAIN_PART)
        else:
            self._plain_body = self.renderer.render_part(PLAIN_FALLBACK_PART)
        self._html_body = self.renderer.render_part(HTML_PART)
        self._bodies_rendered = True

    def plain_body(self) -> Optional[str]:
        if not self.is_valid:
            return None
        self._render_bodies()
        return self._plain_body

    def html_body(self) -> Optional[str]:
        if not self.is_valid:
            return None
        self._render_bodies()
        return self._html_body

    def _normalize_encoding(self, body: Any) -> str:
        outcome = transcode_body(body, self.settings.legacy_body_encoding)
        if outcome.failed:
            logger.warning(
                exception_constants.BODY_TRANSCODE_FAILED.format(
                    encoding=self.settings.legacy_body_encoding, error=outcome.error
                )
            )
        return outcome.text

    # ---- dispatch ----

    def build_headers(self) -> Dict[str, str]:
        headers = {"Reply-To": self.reply_to or self.from_address}
        if self.sender:
            headers["Return-Path"] = self.sender
            headers["Sender"] = self.sender
        return {k: v for k, v in headers.items() if not is_blank(v)}

    async def send(self, client: IMailClient) -> bool:
        """
        Hand the message to ``client`` once. Returns whether it was accepted.

        Transport failures are not raised: the message lands in
        ``errors["base"]`` and ``sent`` turns False. Calling it again renders
        and sends again.
        """
        result = await self.evaluate()
        if not result.valid:
            return False
        if not result.recipients:
            # a required recipients field can pass evaluation and still be filtered to nobody
            logger.warning("Form mail not sent: no recipient left after the recipients check")
            self.errors[BASE_ERROR_KEY] = exception_constants.RECIPIENTS_REQUIRED
            self._sent = False
            return False

        try:
            plain, html = self.plain_body(), self.html_body()
            if is_blank(plain) and is_blank(html):
                plain = serialize_submission(self.data)
                self._plain_body = plain

            message = GenericMailMessage(
                recipients=result.recipients,
                from_address=self.from_address,
                subject=self.subject,
                plain_body=self._normalize_encoding(plain),
                html_body=self._normalize_encoding(html),
                cc=self.cc,
                headers=self.build_headers(),
                files=self.files,
                filesize_limit=self.filesize_limit,
            )
            await client.send_generic_mail(message)
            self._sent = True
            logger.info(f"Form mail sent to {len(result.recipients)} recipient(s)")
        except Exception as e:
            logger.error(f"Form mail could not be sent: {e}", exc_info=True)
            self.errors[BASE_ERROR_KEY] = str(e) or e.__class__.__name__
            self._sent = False
        return self._sent

    @property
    def sent(self) -> Optional[bool]:
        return self._sent
