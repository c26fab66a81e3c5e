"""
Custom exception classes for the form mail bridge.
"""
from typing import Dict, Optional


class FormMailBaseException(Exception):
    """Base exception for all form mail exceptions"""

    def __init__(self, message: str, error_code: str = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__


class FormMailConfigError(FormMailBaseException):
    """A page mail configuration is missing required options or holds bad values"""

    def __init__(self, message: str, errors: Optional[Dict[str, str]] = None, error_code: str = None):
        super().__init__(message, error_code=error_code)
        self.errors = dict(errors or {})


class ValidationNotEvaluatedError(FormMailBaseException):
    """A result accessor was used before the submission was evaluated"""
    pass
