from dependency_injector import containers, providers

from formmail.core.config import configure_logging, settings
from formmail.infrastructure.lookup import TortoiseRecipientLookup
from formmail.infrastructure.mailing_service import FastAPIMailClient
from formmail.services.form_mail_service import FormMailService


class FormMailContainer(containers.DeclarativeContainer):
    """Dependency injection container"""

    config = providers.Configuration()

    mail_client = providers.Singleton(
        FastAPIMailClient,
        settings=settings.mail,
    )

    recipient_lookup = providers.Singleton(TortoiseRecipientLookup)

    form_mail_service = providers.Factory(
        FormMailService,
        client=mail_client,
        lookup=recipient_lookup,
        settings=settings,
    )


configure_logging(settings)
form_mail_container = FormMailContainer()

def get_form_mail_service() -> FormMailService:
    # resolves on every call, so test overrides still work
    return form_mail_container.form_mail_service()
