"""
Canonical card geometry.

Resolves the physical layout of a face and positions every element on it.
Both the HTML templates (remote capture, PDF export) and the local Pillow
compositor consume these plans, so a preview and its print render place the
message, logo and signature at the same coordinates.

All lengths are inches. Element sizes that were designed in CSS pixels are
converted at CSS_PX_PER_INCH; callers scale to their own resolution.
"""
from typing import Dict, List, Union

from domain.models import (
    CardContent,
    CardFace,
    ElementBox,
    ElementKind,
    FacePlan,
    LayoutConfig,
    RenderMode,
)
from services.message_format import format_message_with_line_break

CSS_PX_PER_INCH = 96

CONTENT_WIDTH_IN = 5.125
CONTENT_HEIGHT_IN = 7.0
SPREAD_WIDTH_IN = CONTENT_WIDTH_IN * 2

# Inside face bands, as fractions of the content box
MESSAGE_TOP_FRACTION = 0.28
MESSAGE_WIDTH_FRACTION = 0.85
LOGO_TOP_FRACTION = 0.56
SIGNATURE_TOP_FRACTION = 0.68

# Typography and element limits, in CSS px
MESSAGE_FONT_CSS_PX = 20
MESSAGE_LINE_HEIGHT = 1.6
# Average glyph advance of the message face, in em; wider than most text faces
MESSAGE_CHAR_WIDTH_EM = 0.55
MIN_MESSAGE_FONT_SCALE = 0.3
LOGO_MAX_CSS_PX = (180, 56)
SIGNATURE_MAX_CSS_PX = (320, 80)
FRAME_CSS_PX = 2

BACKGROUND_COLOR = "#ffffff"
TEXT_COLOR = "#111827"
FRAME_COLOR = "#e5e7eb"
PLACEHOLDER_BACKGROUND = "#f0f0f0"
PLACEHOLDER_TEXT_COLOR = "#666666"
PLACEHOLDER_TEXT = "No Preview Available"


def css_px_to_in(value: float) -> float:
    return value / CSS_PX_PER_INCH


def message_font_scale(lines: List[str], box_width_in: float) -> float:
    """
    Factor (at most 1) to apply to the message font so the longest line fits
    on one line inside the message box. Both renderers draw lines unwrapped at
    this size.
    """
    longest = max((len(line) for line in lines), default=0)
    if longest == 0:
        return 1.0
    estimated_in = longest * MESSAGE_CHAR_WIDTH_EM * css_px_to_in(MESSAGE_FONT_CSS_PX)
    if estimated_in <= box_width_in:
        return 1.0
    return max(MIN_MESSAGE_FONT_SCALE, box_width_in / estimated_in)


def _make_layout(overall_width_in: float, is_spread: bool) -> LayoutConfig:
    return LayoutConfig(
        content_width_in=CONTENT_WIDTH_IN,
        content_height_in=CONTENT_HEIGHT_IN,
        overall_width_in=overall_width_in,
        overall_height_in=CONTENT_HEIGHT_IN,
        aspect_ratio=overall_width_in / CONTENT_HEIGHT_IN,
        is_spread=is_spread,
    )


LAYOUT_CONFIGS: Dict[str, LayoutConfig] = {
    # Front card - portrait 5.125" x 7"
    "front": _make_layout(CONTENT_WIDTH_IN, False),
    # Front spread - 10.25" x 7", artwork on the left half, right half blank
    "front_spread": _make_layout(SPREAD_WIDTH_IN, True),
    # Inside card - portrait 5.125" x 7"
    "inside": _make_layout(CONTENT_WIDTH_IN, False),
    # Inside spread - 10.25" x 7", left half blank, content on the right half
    "inside_spread": _make_layout(SPREAD_WIDTH_IN, True),
}


def resolve_layout(
    face: Union[CardFace, str],
    mode: Union[RenderMode, str] = RenderMode.PREVIEW,
    spread: bool = False,
) -> LayoutConfig:
    """
    Layout for a face. Production output and explicit spread requests always
    get the double-width spread; everything else is a single portrait face.
    """
    face = CardFace(face)
    mode = RenderMode(mode)
    use_spread = mode == RenderMode.PRODUCTION or bool(spread)
    key = face.value + ("_spread" if use_spread else "")
    return LAYOUT_CONFIGS[key]


def content_offset_in(face: Union[CardFace, str], layout: LayoutConfig) -> float:
    """Horizontal offset of the content half: inside spreads print on the right."""
    if layout.is_spread and CardFace(face) == CardFace.INSIDE:
        return layout.overall_width_in - layout.content_width_in
    return 0.0


def plan_front(layout: LayoutConfig, content: CardContent) -> FacePlan:
    """The front is one full-bleed image box covering the content area."""
    x = content_offset_in(CardFace.FRONT, layout)
    return FacePlan(
        face=CardFace.FRONT,
        layout=layout,
        content_x_in=x,
        boxes=[
            ElementBox(
                kind=ElementKind.IMAGE,
                x_in=x,
                y_in=0.0,
                width_in=layout.content_width_in,
                height_in=layout.content_height_in,
            )
        ],
    )


def _centered_box(kind: ElementKind, x: float, content_width: float, top: float, width: float, height: float) -> ElementBox:
    return ElementBox(
        kind=kind,
        x_in=x + (content_width - width) / 2,
        y_in=top,
        width_in=width,
        height_in=height,
    )


def plan_inside(layout: LayoutConfig, content: CardContent) -> FacePlan:
    """
    Three-band inside layout: message near the top third, middle band empty,
    logo and then the (larger) signature below it. Logo and signature boxes
    only exist when the content has them.
    """
    x = content_offset_in(CardFace.INSIDE, layout)
    cw = layout.content_width_in
    ch = layout.content_height_in
    formatted = format_message_with_line_break(content.message)
    lines = formatted.lines

    message_width_in = cw * MESSAGE_WIDTH_FRACTION
    font_scale = message_font_scale(lines, message_width_in)
    line_height_in = css_px_to_in(MESSAGE_FONT_CSS_PX) * font_scale * MESSAGE_LINE_HEIGHT
    boxes = [
        _centered_box(
            ElementKind.MESSAGE,
            x,
            cw,
            ch * MESSAGE_TOP_FRACTION,
            message_width_in,
            line_height_in * len(lines),
        )
    ]
    if content.logo_url:
        boxes.append(
            _centered_box(
                ElementKind.LOGO,
                x,
                cw,
                ch * LOGO_TOP_FRACTION,
                css_px_to_in(LOGO_MAX_CSS_PX[0]),
                css_px_to_in(LOGO_MAX_CSS_PX[1]),
            )
        )
    if content.signature_url:
        boxes.append(
            _centered_box(
                ElementKind.SIGNATURE,
                x,
                cw,
                ch * SIGNATURE_TOP_FRACTION,
                css_px_to_in(SIGNATURE_MAX_CSS_PX[0]),
                css_px_to_in(SIGNATURE_MAX_CSS_PX[1]),
            )
        )

    return FacePlan(
        face=CardFace.INSIDE,
        layout=layout,
        content_x_in=x,
        boxes=boxes,
        message_lines=lines,
        framed=not layout.is_spread,
        message_font_scale=font_scale,
    )


def plan_face(face: Union[CardFace, str], layout: LayoutConfig, content: CardContent) -> FacePlan:
    if CardFace(face) == CardFace.FRONT:
        return plan_front(layout, content)
    return plan_inside(layout, content)
