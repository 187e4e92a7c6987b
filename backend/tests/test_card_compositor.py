import io
import re

import pytest
from PIL import Image

from domain.models import CardContent, CardFace, ElementKind, RenderMode
from services.asset_inliner import to_data_uri
from services.card_compositor import composite_face, render_face_png
from services.card_html import render_front_html, render_inside_html
from services.card_layout import (
    CSS_PX_PER_INCH,
    MESSAGE_CHAR_WIDTH_EM,
    MESSAGE_FONT_CSS_PX,
    css_px_to_in,
    plan_face,
    resolve_layout,
)

PPI = 100
BOX_RE = re.compile(
    r'data-element="(\w+)" style="left: ([\d.]+)px; top: ([\d.]+)px; width: ([\d.]+)px; height: ([\d.]+)px;"'
)


def _html_boxes(markup):
    boxes = {}
    for kind, left, top, width, height in BOX_RE.findall(markup):
        left, top, width, height = (float(v) for v in (left, top, width, height))
        boxes[ElementKind(kind)] = (round(left), round(top), round(left + width), round(top + height))
    return boxes


@pytest.fixture
def content(make_png):
    return CardContent(
        message="Warmest wishes for a joyful and restful holiday season.",
        logo_url=to_data_uri(make_png(size=(360, 112), color=(0, 0, 255, 255))),
        signature_url=to_data_uri(make_png(size=(200, 100), color=(0, 0, 0, 255))),
        template_preview_url=to_data_uri(make_png(size=(300, 300), color=(0, 128, 0, 255))),
    )


@pytest.mark.parametrize("mode,spread", [(RenderMode.PREVIEW, False), (RenderMode.PREVIEW, True), (RenderMode.PRODUCTION, False)])
def test_html_and_compositor_place_elements_identically(content, mode, spread):
    for face in CardFace:
        plan = plan_face(face, resolve_layout(face, mode, spread), content)
        render = render_front_html if face == CardFace.FRONT else render_inside_html
        html_boxes = _html_boxes(render(plan, content, PPI))
        composited = composite_face(plan, content, PPI)

        assert set(html_boxes) == {b.kind for b in plan.boxes}
        assert set(composited.placements) == set(html_boxes)
        for kind, rect in html_boxes.items():
            placed = composited.placements[kind]
            if kind == ElementKind.IMAGE:
                assert placed == rect
            else:
                # text and contain-fitted assets stay inside their box and centered on it
                assert rect[0] <= placed[0] and placed[2] <= rect[2]
                assert rect[1] <= placed[1] and placed[3] <= rect[3]
                assert (placed[0] + placed[2]) / 2 == pytest.approx((rect[0] + rect[2]) / 2, abs=2)


def test_output_size_matches_layout(content):
    layout = resolve_layout(CardFace.INSIDE, RenderMode.PRODUCTION)
    png = render_face_png(plan_face(CardFace.INSIDE, layout, content), content, 200)
    img = Image.open(io.BytesIO(png))
    assert img.format == "PNG"
    assert img.size == (2050, 1400)


def test_front_artwork_covers_the_content_box(content):
    plan = plan_face(CardFace.FRONT, resolve_layout(CardFace.FRONT, spread=True), content)
    img = composite_face(plan, content, PPI).image
    assert img.getpixel((10, 10)) == (0, 128, 0)
    assert img.getpixel((500, 690)) == (0, 128, 0)
    # right half of a front spread stays blank
    assert img.getpixel((900, 350)) == (255, 255, 255)


def test_front_placeholder_without_artwork():
    content = CardContent()
    plan = plan_face(CardFace.FRONT, resolve_layout(CardFace.FRONT), content)
    img = composite_face(plan, content, PPI).image
    assert img.getpixel((5, 5)) == (240, 240, 240)


def test_logo_is_drawn_inside_its_box(content):
    plan = plan_face(CardFace.INSIDE, resolve_layout(CardFace.INSIDE), content)
    composited = composite_face(plan, content, PPI)
    left, top, right, bottom = composited.placements[ElementKind.LOGO]
    center = ((left + right) // 2, (top + bottom) // 2)
    assert composited.image.getpixel(center) == (0, 0, 255)


def test_undecodable_asset_is_skipped(content):
    content.logo_url = "data:image/png;base64,bm90IGFuIGltYWdl"
    plan = plan_face(CardFace.INSIDE, resolve_layout(CardFace.INSIDE), content)
    composited = composite_face(plan, content, PPI)
    assert ElementKind.LOGO not in composited.placements
    assert ElementKind.SIGNATURE in composited.placements


LONG_MESSAGE = (
    "Wishing you and your whole family a wonderful holiday season and "
    "a happy, healthy and prosperous new year ahead from all of us!"
)


@pytest.mark.parametrize("spread", [False, True])
def test_long_message_stays_inside_its_box(spread):
    content = CardContent(message=LONG_MESSAGE)
    layout = resolve_layout(CardFace.INSIDE, spread=spread)
    plan = plan_face(CardFace.INSIDE, layout, content)
    composited = composite_face(plan, content, 200)
    box = plan.box(ElementKind.MESSAGE).to_pixels(200)

    left, top, right, bottom = composited.placements[ElementKind.MESSAGE]
    assert box[0] <= left and right <= box[2]
    assert box[1] <= top and bottom <= box[3]
    assert right <= composited.image.width

    # no ink beside the message box on the rows it spans (the light frame is ignored)
    img = composited.image
    for y in range(box[1], box[3]):
        for x in list(range(0, box[0])) + list(range(box[2], img.width)):
            assert sum(img.getpixel((x, y))) > 600, (x, y)


def test_long_message_html_uses_the_planned_font_size_on_one_line():
    content = CardContent(message=LONG_MESSAGE)
    plan = plan_face(CardFace.INSIDE, resolve_layout(CardFace.INSIDE), content)
    markup = render_inside_html(plan, content, 200)

    assert plan.message_font_scale < 1
    font_px = MESSAGE_FONT_CSS_PX * (200 / CSS_PX_PER_INCH) * plan.message_font_scale
    assert f"font-size: {font_px:.2f}px" in markup
    assert "white-space: nowrap" in markup
    assert re.search(r"\.box \{[^}]*overflow", markup) is None
    assert '<div class="box" data-element="message"' in markup

    box = plan.box(ElementKind.MESSAGE)
    for line in plan.message_lines:
        estimated_in = len(line) * MESSAGE_CHAR_WIDTH_EM * css_px_to_in(MESSAGE_FONT_CSS_PX) * plan.message_font_scale
        assert estimated_in <= box.width_in + 1e-9
