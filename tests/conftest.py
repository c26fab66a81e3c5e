import os

import pytest

from formmail.core.config import MailSettings, Settings
from formmail.infrastructure.lookup import StaticRecipientLookup
from formmail.infrastructure.mailing_service import InMemoryMailClient
from formmail.schemas.form_mail import RequestContext

# Environment setup for testing
os.environ.setdefault("Environment", "test")


@pytest.fixture
def test_settings():
    """Development settings: no legacy transcoding, no templates dir."""
    return Settings(
        Environment="test",
        IS_PRODUCTION=False,
        mail=MailSettings(MAIL_TEMPLATES_PARENT_DIR=None),
    )


@pytest.fixture
def production_settings():
    return Settings(
        Environment="production",
        IS_PRODUCTION=True,
        mail=MailSettings(MAIL_TEMPLATES_PARENT_DIR=None, MAIL_LEGACY_BODY_ENCODING="iso-8859-15"),
    )


@pytest.fixture
def mail_client():
    return InMemoryMailClient()


@pytest.fixture
def request_context():
    return RequestContext(host="www.example.org")


@pytest.fixture
def base_config():
    """Static recipients and from-address: valid on its own."""
    return {
        "recipients": ["owner@example.com"],
        "from": "webform@example.com",
        "subject": "Contact form",
    }


@pytest.fixture
def field_config():
    """Recipients and from-address read from submitted fields."""
    return {
        "recipients_field": "to",
        "from_field": "email",
    }


@pytest.fixture
def allow_list_lookup():
    return StaticRecipientLookup(
        known={("models.Subscriber", "email"): ["member@example.com"]}
    )
