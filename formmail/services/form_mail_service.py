import logging
from typing import Any, Mapping, Optional, Union

from formmail.core.config import Settings, settings as default_settings
from formmail.core.exceptions import exception_constants
from formmail.core.exceptions.base import FormMailConfigError
from formmail.infrastructure.lookup import IRecipientLookup
from formmail.infrastructure.mailing_service import IMailClient
from formmail.infrastructure.rendering import IPartRenderer
from formmail.schemas.form_mail import (
    FormMailConfig,
    FormMailOutcome,
    RequestContext,
    config_error_messages,
    config_errors,
)
from formmail.services.form_mail_validator import FormMailValidator

logger = logging.getLogger(__name__)


class FormMailService:
    """
    Entry point used by the page layer when a mail form is posted:
    - refuses pages whose mail configuration is incomplete
    - evaluates the submission
    - sends it when valid and reports the outcome
    """

    def __init__(
            self,
            client: IMailClient,
            lookup: Optional[IRecipientLookup] = None,
            settings: Optional[Settings] = None,
    ):
        self.client = client
        self.lookup = lookup
        self.settings = settings or default_settings

    def build_validator(
            self,
            config: Union[FormMailConfig, Mapping[Any, Any]],
            submission: Optional[Mapping[Any, Any]] = None,
            renderer: Optional[IPartRenderer] = None,
            request: Optional[RequestContext] = None,
    ) -> FormMailValidator:
        errors = config_errors(config)
        if errors:
            raise FormMailConfigError(
                exception_constants.CONFIG_INVALID.format(details=config_error_messages(config)),
                errors=errors,
            )
        return FormMailValidator(
            config,
            submission,
            renderer=renderer,
            request=request,
            lookup=self.lookup,
            settings=self.settings,
        )

    async def submit(
            self,
            config: Union[FormMailConfig, Mapping[Any, Any]],
            submission: Optional[Mapping[Any, Any]] = None,
            renderer: Optional[IPartRenderer] = None,
            request: Optional[RequestContext] = None,
    ) -> FormMailOutcome:
        validator = self.build_validator(config, submission, renderer=renderer, request=request)
        result = await validator.evaluate()

        if result.valid:
            await validator.send(self.client)
        outcome = FormMailOutcome(valid=result.valid, sent=validator.sent, errors=dict(validator.errors))
        logger.info(f"Form mail outcome: valid={outcome.valid} sent={outcome.sent}")
        return outcome
