# file: app/errors.py
from __future__ import annotations


class IntelError(Exception):
    """Base error; `user_message` is safe to show in the UI."""

    user_message = "Something went wrong."

    def __init__(self, message: str | None = None, *, user_message: str | None = None):
        super().__init__(message or user_message or self.user_message)
        if user_message:
            self.user_message = user_message


class ConfigError(IntelError):
    user_message = "The application is not configured (missing API key?)."


class FormError(IntelError):
    """Invalid search form input, raised before any network call."""

    def __init__(self, message: str):
        super().__init__(message, user_message=message)


class UpstreamError(IntelError):
    user_message = "The AI service request failed."


class ResponseParseError(IntelError):
    user_message = "Could not understand the AI response. Please try again."

    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.raw = raw


class ShapeError(IntelError):
    user_message = "The AI response had an unexpected shape. Please try again."

    def __init__(self, message: str, expected: str, got: str):
        super().__init__(message)
        self.expected = expected
        self.got = got
