"""
Salvage a PNG from an opaque, archive-wrapped response body.

The screenshot service may return its single PNG inside a zip wrapper. Rather
than unpacking the archive we locate the PNG signature and the IEND trailer
in the raw bytes and slice between them.
"""
from dataclasses import dataclass

from services.errors import PngExtractionFailed

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
PNG_IEND_TRAILER = b"IEND\xaeB`\x82"


@dataclass(frozen=True)
class PngExtraction:
    """Found(data) when found is True, otherwise NotFound."""
    found: bool
    data: bytes = b""
    start: int = -1
    end: int = -1


NOT_FOUND = PngExtraction(found=False)


def extract_png(buffer: bytes) -> PngExtraction:
    """
    Return the first embedded PNG: from its signature through the end of the
    first IEND trailer after it, inclusive.
    """
    data = bytes(buffer or b"")
    start = data.find(PNG_SIGNATURE)
    if start < 0:
        return NOT_FOUND
    trailer = data.find(PNG_IEND_TRAILER, start + len(PNG_SIGNATURE))
    if trailer < 0:
        return NOT_FOUND
    end = trailer + len(PNG_IEND_TRAILER)
    return PngExtraction(found=True, data=data[start:end], start=start, end=end)


def looks_like_png(buffer: bytes) -> bool:
    return bytes(buffer[: len(PNG_SIGNATURE)]) == PNG_SIGNATURE


def require_png(buffer: bytes) -> bytes:
    """extract_png for callers that fall back on failure."""
    result = extract_png(buffer)
    if not result.found:
        raise PngExtractionFailed(f"No PNG payload found in {len(buffer or b'')} byte response")
    return result.data
