"""Form submission to email bridge: validation, value resolution and dispatch of page mail forms."""

__version__ = "0.3.0"
