from __future__ import annotations

from urllib.parse import urlencode, urlsplit

from flow.states import AssetUrlResolver


def build_asset_url_resolver(base_url: str, version: str | None = None) -> AssetUrlResolver:
    """Return a function mapping an asset path to an absolute, versioned URL.

    Twilio does not accept relative URIs for <Play>, so every asset URL is
    made absolute against ``base_url``.
    """

    base = base_url.rstrip("/")

    def asset_url(path: str) -> str:
        if urlsplit(path).scheme:
            return path
        url = f"{base}/{path.lstrip('/')}"
        if version:
            separator = "&" if "?" in url else "?"
            url = f"{url}{separator}{urlencode({'v': version})}"
        return url

    return asset_url
