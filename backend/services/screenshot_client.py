"""
Client for the remote HTML rendering service (Gotenberg-compatible Chromium routes).

One POST per render, bounded by a timeout, never retried: any failure raises
RemoteRenderUnavailable (or PngExtractionFailed) so the caller can fall back.
"""
from __future__ import annotations

import logging
from typing import Optional

import requests

from services.errors import PngExtractionFailed, RemoteRenderUnavailable
from services.png_extract import looks_like_png, require_png
from settings import settings

logger = logging.getLogger(__name__)

SCREENSHOT_ROUTE = "/forms/chromium/screenshot/html"
CONVERT_ROUTE = "/forms/chromium/convert/html"
DEFAULT_WAIT_DELAY = "1000ms"


def png_from_response(content_type: str, body: bytes) -> bytes:
    """
    Turn a screenshot response body into PNG bytes.

    Archive-like bodies are salvaged by signature scanning. Anything else must
    already be a PNG; other image types are rejected since previews are stored
    as PNG data URIs.
    """
    ct = (content_type or "").lower()
    if not body:
        raise PngExtractionFailed("Empty response body")
    if "zip" in ct:
        return require_png(body)
    if looks_like_png(body):
        return body
    if ct.startswith("image/") and ct != "image/png":
        raise PngExtractionFailed(f"Expected a PNG screenshot, got {ct}")
    return require_png(body)


class ScreenshotClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 5.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or "").rstrip("/")
        self.api_key = api_key or None
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.base_url and self.api_key)

    def _headers(self) -> dict[str, str]:
        # Some deployments check the bearer token, others the API key header.
        return {
            "Authorization": f"Bearer {self.api_key}",
            "X-Api-Key": str(self.api_key),
        }

    def _post(self, route: str, markup: str, data: dict[str, str]) -> requests.Response:
        if not self.configured:
            raise RemoteRenderUnavailable("Remote rendering service is not configured")
        url = f"{self.base_url}{route}"
        files = [("files", ("index.html", markup.encode("utf-8"), "text/html"))]
        try:
            resp = self.session.post(
                url,
                headers=self._headers(),
                files=files,
                data=data,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise RemoteRenderUnavailable(f"Request to {url} failed: {exc}") from exc
        if not 200 <= resp.status_code < 300:
            detail = (resp.text or "")[:200]
            raise RemoteRenderUnavailable(f"{url} answered {resp.status_code}: {detail}")
        return resp

    def screenshot_html(
        self,
        markup: str,
        width: int,
        height: int,
        wait_delay: str = DEFAULT_WAIT_DELAY,
    ) -> bytes:
        """Capture the document at a fixed viewport and return PNG bytes."""
        data = {
            "emulatedMediaType": "print",
            "waitDelay": wait_delay,
            "width": str(int(width)),
            "height": str(int(height)),
            "format": "png",
        }
        resp = self._post(SCREENSHOT_ROUTE, markup, data)
        content_type = resp.headers.get("content-type", "")
        png = png_from_response(content_type, resp.content)
        logger.debug(
            "ScreenshotClient.screenshot_html: %sx%s content_type=%s bytes=%d png_bytes=%d",
            width,
            height,
            content_type,
            len(resp.content),
            len(png),
        )
        return png

    def convert_html_to_pdf(
        self,
        markup: str,
        paper_width_in: float,
        paper_height_in: float,
        wait_delay: str = DEFAULT_WAIT_DELAY,
    ) -> bytes:
        """Print the document to a PDF page of the given size with no margins."""
        data = {
            "paperWidth": f"{paper_width_in:g}",
            "paperHeight": f"{paper_height_in:g}",
            "marginTop": "0",
            "marginBottom": "0",
            "marginLeft": "0",
            "marginRight": "0",
            "landscape": "false",
            "preferCssPageSize": "true",
            "printBackground": "true",
            "emulatedMediaType": "print",
            "waitDelay": wait_delay,
        }
        resp = self._post(CONVERT_ROUTE, markup, data)
        if not resp.content:
            raise RemoteRenderUnavailable("Empty PDF response")
        return resp.content


_default_screenshot_client: Optional[ScreenshotClient] = None


def get_default_screenshot_client() -> ScreenshotClient:
    global _default_screenshot_client
    if _default_screenshot_client is None:
        _default_screenshot_client = ScreenshotClient(
            base_url=settings.RENDER_SERVICE_URL,
            api_key=settings.RENDER_SERVICE_API_KEY,
            timeout=settings.RENDER_TIMEOUT_SECONDS,
        )
    return _default_screenshot_client
