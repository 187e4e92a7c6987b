import pytest

from services.errors import PngExtractionFailed
from services.png_extract import (
    NOT_FOUND,
    PNG_IEND_TRAILER,
    PNG_SIGNATURE,
    extract_png,
    require_png,
)


def test_extracts_png_wrapped_in_archive_bytes(make_png):
    png = make_png()
    wrapped = b"PK\x03\x04" + b"\x00" * 26 + b"index.png" + png + b"PK\x01\x02trailing central directory"
    result = extract_png(wrapped)
    assert result.found
    assert result.data == png
    assert result.start == 39
    assert result.end == 39 + len(png)


def test_returns_first_png_when_several_are_present(make_png):
    first = make_png(color=(1, 2, 3, 255))
    second = make_png(color=(9, 9, 9, 255))
    assert extract_png(b"junk" + first + second).data == first


def test_not_found_without_signature():
    assert extract_png(b"PK\x03\x04 no image here") == NOT_FOUND
    assert extract_png(b"") == NOT_FOUND


def test_not_found_without_trailer_after_signature():
    # A trailer before the signature must not count
    assert not extract_png(PNG_IEND_TRAILER + PNG_SIGNATURE + b"truncated").found


def test_require_png_raises_when_missing():
    with pytest.raises(PngExtractionFailed):
        require_png(b"<html>error</html>")
