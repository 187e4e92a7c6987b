"""
Asset inlining for card rendering.

Logos, signatures and template artwork are turned into self-contained base64
data URIs before any markup is built, so neither the remote renderer nor the
local compositor needs network or storage access at render time.

Inlining is best effort: a missing or unreadable asset is logged and the card
renders without it.
"""
from __future__ import annotations

import base64
import logging
import mimetypes
import re
from typing import Optional, Tuple
from urllib.parse import unquote, urlparse

import requests

from domain.models import CardContent, Order, Template
from services.errors import AssetFetchFailed, PngExtractionFailed, RemoteRenderUnavailable
from services.screenshot_client import ScreenshotClient
from settings import settings
from storage.file_storage import FileStorage

logger = logging.getLogger(__name__)

PNG_MIME = "image/png"
PDF_MIME = "application/pdf"
ABSOLUTE_URL_RE = re.compile(r"^https?://", re.IGNORECASE)

# Uploaded PDF signatures are captured at this viewport by the remote service
SIGNATURE_PDF_VIEWPORT = (400, 200)
SIGNATURE_PDF_WAIT_DELAY = "2000ms"
# and rasterized at this density when captured locally with ImageMagick.
PDF_RASTER_DPI = 150


def to_data_uri(data: bytes, mime: str = PNG_MIME) -> str:
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def decode_data_uri(uri: str) -> Tuple[bytes, str]:
    """Inverse of to_data_uri. Raises ValueError for anything that is not a base64 data URI."""
    if not uri or not uri.startswith("data:") or "," not in uri:
        raise ValueError("Not a data URI")
    header, payload = uri.split(",", 1)
    mime = header[len("data:"):].split(";", 1)[0] or PNG_MIME
    if ";base64" not in header:
        raise ValueError("Only base64 data URIs are supported")
    return base64.b64decode(payload), mime


def _normalize_mime(content_type: Optional[str]) -> str:
    mime = (content_type or "").split(";", 1)[0].strip().lower()
    return mime or PNG_MIME


def _signature_pdf_html(pdf_data_uri: str) -> str:
    width, height = SIGNATURE_PDF_VIEWPORT
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8" />
  <style>
    html, body {{ margin: 0; padding: 0; width: {width}px; height: {height}px; }}
    body {{ background: #ffffff; overflow: hidden; }}
    embed {{ width: 100%; height: 100%; border: none; }}
  </style>
</head>
<body>
  <embed src="{pdf_data_uri}" type="application/pdf" />
</body>
</html>"""


class AssetInliner:
    """
    Resolves an asset reference to a data URI.

    References may be:
    - storage-relative paths ("logos/acme.png"), read through FileStorage
    - absolute URLs into the asset bucket, mapped back to storage paths
    - other absolute URLs, fetched over HTTP
    - site-relative paths ("/uploads/x.png"), fetched from public_base_url
    - data URIs, returned unchanged
    """

    def __init__(
        self,
        storage: FileStorage,
        session: Optional[requests.Session] = None,
        bucket: Optional[str] = None,
        public_base_url: Optional[str] = None,
        timeout: float = 10.0,
        screenshot_client: Optional[ScreenshotClient] = None,
    ):
        self.storage = storage
        self.session = session or requests.Session()
        self.bucket = bucket if bucket is not None else settings.ASSET_BUCKET
        self.public_base_url = (public_base_url or "").rstrip("/") or None
        self.timeout = timeout
        self.screenshot_client = screenshot_client

    def inline(self, ref: Optional[str]) -> str:
        """Data URI for the asset, or "" when it cannot be fetched."""
        if not ref or not ref.strip():
            return ""
        ref = ref.strip()
        if ref.startswith("data:"):
            return ref
        try:
            data, mime = self._fetch(ref)
            if self._is_pdf(ref, mime, data):
                data, mime = self._rasterize_pdf(data), PNG_MIME
            return to_data_uri(data, mime)
        except AssetFetchFailed as exc:
            logger.warning("[inline] skipping asset %s: %s", ref, exc)
            return ""

    def storage_path_from_url(self, url: str) -> Optional[str]:
        """Storage path for a public bucket URL, e.g. .../object/public/<bucket>/logos/a.png -> logos/a.png."""
        if not self.bucket:
            return None
        parts = [unquote(p) for p in urlparse(url).path.split("/")]
        if self.bucket not in parts:
            return None
        idx = parts.index(self.bucket)
        rest = [p for p in parts[idx + 1:] if p]
        return "/".join(rest) or None

    def _fetch(self, ref: str) -> Tuple[bytes, str]:
        if ABSOLUTE_URL_RE.match(ref):
            path = self.storage_path_from_url(ref)
            if path:
                return self._read_storage(path)
            return self._http_get(ref)
        if ref.startswith("/") and self.public_base_url:
            return self._http_get(f"{self.public_base_url}{ref}")
        return self._read_storage(ref)

    def _read_storage(self, path: str) -> Tuple[bytes, str]:
        try:
            data = self.storage.read_bytes(path)
        except (OSError, ValueError) as exc:
            raise AssetFetchFailed(f"storage read failed for {path}: {exc}") from exc
        mime = mimetypes.guess_type(path)[0] or PNG_MIME
        return data, mime

    def _http_get(self, url: str) -> Tuple[bytes, str]:
        try:
            resp = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise AssetFetchFailed(f"GET {url} failed: {exc}") from exc
        if not resp.ok:
            raise AssetFetchFailed(f"GET {url} answered {resp.status_code}")
        if not resp.content:
            raise AssetFetchFailed(f"GET {url} returned an empty body")
        return resp.content, _normalize_mime(resp.headers.get("content-type"))

    @staticmethod
    def _is_pdf(ref: str, mime: str, data: bytes) -> bool:
        path = urlparse(ref).path if ABSOLUTE_URL_RE.match(ref) else ref
        return path.lower().endswith(".pdf") or mime == PDF_MIME or data[:5] == b"%PDF-"

    def _rasterize_pdf(self, pdf_bytes: bytes) -> bytes:
        """First page of a PDF as PNG: remote capture when available, ImageMagick otherwise."""
        client = self.screenshot_client
        if client is not None and client.configured:
            try:
                width, height = SIGNATURE_PDF_VIEWPORT
                return client.screenshot_html(
                    _signature_pdf_html(to_data_uri(pdf_bytes, PDF_MIME)),
                    width,
                    height,
                    wait_delay=SIGNATURE_PDF_WAIT_DELAY,
                )
            except (RemoteRenderUnavailable, PngExtractionFailed) as exc:
                logger.info("[inline] remote PDF capture failed, rasterizing locally: %s", exc)
        return self._rasterize_pdf_locally(pdf_bytes)

    @staticmethod
    def _rasterize_pdf_locally(pdf_bytes: bytes) -> bytes:
        try:
            from wand.color import Color as WandColor
            from wand.image import Image as WandImage
        except ImportError as exc:
            raise AssetFetchFailed(f"ImageMagick (Wand) unavailable: {exc}") from exc
        try:
            with WandImage(blob=pdf_bytes, resolution=PDF_RASTER_DPI) as pdf:
                with WandImage(image=pdf.sequence[0]) as page:
                    page.background_color = WandColor("white")
                    page.alpha_channel = "remove"
                    page.format = "png"
                    return page.make_blob()
        except Exception as exc:
            raise AssetFetchFailed(f"PDF rasterization failed: {exc}") from exc


def resolve_card_content(
    order: Order,
    template: Template,
    inliner: AssetInliner,
    default_message: Optional[str] = None,
) -> CardContent:
    """Gather the render-time payload for an order, inlining every image."""
    message = order.message or default_message or settings.DEFAULT_CARD_MESSAGE
    preview = inliner.inline(template.preview_url)
    if not preview:
        logger.warning("[inline] no preview image for template %s", template.id)
    return CardContent(
        message=message,
        logo_url=inliner.inline(order.logo_url) or None,
        signature_url=inliner.inline(order.signature_ref) or None,
        template_preview_url=preview or None,
    )
