from __future__ import annotations

from collections.abc import Mapping

from twilio.request_validator import RequestValidator

from config.settings import Settings


def build_request_validator(settings: Settings) -> RequestValidator:
    if not settings.twilio_auth_token:
        raise ValueError("TWILIO_AUTH_TOKEN is required to validate Twilio webhooks")
    return RequestValidator(settings.twilio_auth_token)


def webhook_url(settings: Settings, request_url: str, path: str) -> str:
    """Return the URL Twilio signed.

    Behind a proxy the URL Starlette sees differs from the public one, so the
    public base URL wins when configured.
    """

    if settings.public_base_url:
        return f"{settings.public_base_url}{path}"
    return request_url


def is_valid_twilio_request(
    validator: RequestValidator,
    *,
    url: str,
    params: Mapping[str, str],
    signature: str | None,
) -> bool:
    if not signature:
        return False
    return bool(validator.validate(url, dict(params), signature))
