"""Exceptions raised while compiling and running a call flow.

Every error carries the HTTP status the framework-level handler maps it to.
"""

from __future__ import annotations


class FlowError(Exception):
    status_code: int = 500
    default_detail: str = "Call flow error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.default_detail)
        self.detail = detail or self.default_detail


class ConfigurationError(FlowError):
    """A declared state or a transition result does not fit the flow's shape."""

    default_detail = "Invalid call flow configuration."


class TransitionError(FlowError):
    default_detail = "State transition failed."


class RenderError(FlowError):
    default_detail = "Rendering the state failed."


class StoreError(FlowError):
    status_code = 503
    default_detail = "Session store operation failed."


class SessionConflictError(StoreError):
    """The stored session changed between load and save."""

    status_code = 409
    default_detail = "Session was modified concurrently."


class MissingCallIdentifierError(FlowError):
    status_code = 400
    default_detail = "Request did not include a CallSid."
