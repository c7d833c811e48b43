"""Shared FastAPI dependencies.

Separated to avoid circular imports between route modules.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request

from config.settings import Settings
from integrations.twilio_client import build_request_validator, is_valid_twilio_request, webhook_url

LOGGER = logging.getLogger(__name__)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def twilio_signature_guard(settings: Settings):
    """Build a dependency rejecting webhooks not signed by Twilio."""

    validator = build_request_validator(settings)

    async def verify_twilio_signature(request: Request) -> None:
        form = await request.form()
        params = {key: str(value) for key, value in form.items()}
        path = request.url.path
        if request.url.query:
            path = f"{path}?{request.url.query}"

        url = webhook_url(settings, str(request.url), path)
        signature = request.headers.get("X-Twilio-Signature")
        if not is_valid_twilio_request(validator, url=url, params=params, signature=signature):
            LOGGER.warning("Rejected webhook with invalid Twilio signature: %s", url)
            raise HTTPException(status_code=403, detail="Invalid Twilio signature")

    return verify_twilio_signature
