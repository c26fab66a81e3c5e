from .client.client import FastAPIMailClient, IMailClient

from .exception import mail_exceptions
from .exception import exception_constants

from .models.base_models import GenericMailMessage, NonBlankStr, normalize_email, split_addresses

from .test_doubles.client import InMemoryMailClient, SpyMailClient


__all__ = [

    # client/
    "FastAPIMailClient",
    "IMailClient",

    # exception/
    "mail_exceptions",
    "exception_constants",

    # models/
    "GenericMailMessage",
    "NonBlankStr",
    "normalize_email",
    "split_addresses",

    # test_doubles/
    "InMemoryMailClient",
    "SpyMailClient",
]
