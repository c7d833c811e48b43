"""Routes that sit outside the compiled call flow."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response
from twilio.twiml.voice_response import VoiceResponse

from api.dependencies import get_app_settings
from config.settings import Settings
from flow.assets import build_asset_url_resolver

health_router = APIRouter()
router = APIRouter()


@health_router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/hold-music")
async def hold_music(
    request: Request,
    settings: Settings = Depends(get_app_settings),
) -> Response:
    """TwiML wrapper around the hold MP3.

    Not a flow state: Twilio stops it on its own when another party joins,
    and we want a cacheable GET that never touches the session. It still
    can't be a static file because Twilio needs an absolute URL for the MP3.
    """

    host = request.headers.get("host") or request.url.netloc
    base_url = settings.public_base_url or f"{request.url.scheme}://{host}"
    version = request.query_params.get("v") or settings.asset_version
    asset_url = build_asset_url_resolver(base_url, version)

    twiml = VoiceResponse()
    twiml.play(asset_url(settings.hold_music_path), loop=settings.hold_music_loop)

    return Response(
        content=twiml.to_xml(),
        media_type="application/xml",
        headers={"Cache-Control": f"public, max-age={settings.hold_music_max_age}"},
    )
