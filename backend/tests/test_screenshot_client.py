import logging
from unittest.mock import MagicMock

import pytest
import requests

from services.errors import PngExtractionFailed, RemoteRenderUnavailable
from services.screenshot_client import (
    CONVERT_ROUTE,
    SCREENSHOT_ROUTE,
    ScreenshotClient,
    png_from_response,
)


def _response(status=200, content=b"", content_type="image/png"):
    resp = MagicMock()
    resp.status_code = status
    resp.content = content
    resp.text = content.decode("latin-1")
    resp.headers = {"content-type": content_type}
    return resp


def _client(session, url="https://render.example.com/", key="secret"):
    return ScreenshotClient(base_url=url, api_key=key, timeout=5.0, session=session)


def test_screenshot_posts_markup_and_fields(make_png):
    png = make_png()
    session = MagicMock()
    session.post.return_value = _response(content=png)

    result = _client(session).screenshot_html("<html>hi</html>", 1025, 1400)

    assert result == png
    args, kwargs = session.post.call_args
    assert args[0] == "https://render.example.com" + SCREENSHOT_ROUTE
    assert kwargs["headers"] == {"Authorization": "Bearer secret", "X-Api-Key": "secret"}
    assert kwargs["timeout"] == 5.0
    assert kwargs["data"]["emulatedMediaType"] == "print"
    assert kwargs["data"]["waitDelay"] == "1000ms"
    assert kwargs["data"]["width"] == "1025"
    assert kwargs["data"]["height"] == "1400"
    name, (filename, body, mime) = kwargs["files"][0]
    assert (name, filename, mime) == ("files", "index.html", "text/html")
    assert body == b"<html>hi</html>"


def test_zip_response_is_salvaged(make_png):
    png = make_png()
    session = MagicMock()
    session.post.return_value = _response(content=b"PK\x03\x04junk" + png + b"PK\x05\x06", content_type="application/zip")
    assert _client(session).screenshot_html("<html/>", 10, 10) == png


def test_non_2xx_raises_unavailable():
    session = MagicMock()
    session.post.return_value = _response(status=503, content=b"busy", content_type="text/plain")
    with pytest.raises(RemoteRenderUnavailable):
        _client(session).screenshot_html("<html/>", 10, 10)


def test_network_error_raises_unavailable():
    session = MagicMock()
    session.post.side_effect = requests.Timeout("timed out")
    with pytest.raises(RemoteRenderUnavailable):
        _client(session).screenshot_html("<html/>", 10, 10)


def test_unconfigured_client_never_calls_out():
    session = MagicMock()
    client = _client(session, key=None)
    assert client.configured is False
    with pytest.raises(RemoteRenderUnavailable):
        client.screenshot_html("<html/>", 10, 10)
    session.post.assert_not_called()


def test_convert_sends_paper_size():
    session = MagicMock()
    session.post.return_value = _response(content=b"%PDF-1.4 fake", content_type="application/pdf")

    pdf = _client(session).convert_html_to_pdf("<html/>", 10.25, 7.0)

    assert pdf == b"%PDF-1.4 fake"
    args, kwargs = session.post.call_args
    assert args[0].endswith(CONVERT_ROUTE)
    assert kwargs["data"]["paperWidth"] == "10.25"
    assert kwargs["data"]["paperHeight"] == "7"
    assert kwargs["data"]["preferCssPageSize"] == "true"
    assert kwargs["data"]["marginTop"] == "0"


def test_png_from_response_rejects_html_error_pages():
    with pytest.raises(PngExtractionFailed):
        png_from_response("text/html", b"<html>oops</html>")
    with pytest.raises(PngExtractionFailed):
        png_from_response("image/png", b"")


def test_non_png_image_bodies_are_rejected():
    # previews are always stored as data:image/png
    with pytest.raises(PngExtractionFailed):
        png_from_response("image/jpeg", b"\xff\xd8\xff\xe0\x00\x10JFIF")


def test_png_body_is_accepted_whatever_the_declared_type(make_png):
    png = make_png()
    assert png_from_response("application/octet-stream", png) == png
    assert png_from_response("image/png", png) == png


def test_screenshot_logs_through_the_module_logger(make_png, caplog):
    png = make_png()
    session = MagicMock()
    session.post.return_value = _response(content=png)
    client = _client(session)

    with caplog.at_level(logging.DEBUG, logger="services.screenshot_client"):
        client.screenshot_html("<html/>", 20, 30)

    assert not hasattr(client, "logger")
    assert any(r.name == "services.screenshot_client" and "20x30" in r.getMessage() for r in caplog.records)
