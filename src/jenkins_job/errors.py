"""Exceptions raised by the job model."""

from __future__ import annotations


class JenkinsJobError(Exception):
    """Base class for all errors raised by this package."""


class TransportFailure(JenkinsJobError):
    """The request never produced a usable response (network, timeout, HTTP on GET)."""


class APIError(JenkinsJobError):
    """Jenkins explicitly rejected a state-changing request."""

    def __init__(self, message: str, body: str = "") -> None:
        super().__init__(message)
        self.body = body


class InvalidEdit(JenkinsJobError):
    """A config edit targets a node that the loaded document does not have."""

    def __init__(self, field: str, message: str | None = None) -> None:
        super().__init__(message or f"Config document has no node for '{field}'")
        self.field = field


class MalformedDocument(JenkinsJobError):
    """A document from (or for) Jenkins is not well-formed XML."""
