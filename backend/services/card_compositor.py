"""
Local raster compositor for card faces (the fallback render tier).

Draws the same FacePlan the HTML templates use with Pillow: background,
cover-fitted artwork, message lines, logo and signature. Positions come only
from the plan; nothing here re-derives layout or line breaks.
"""
from __future__ import annotations

import io
import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from PIL import Image, ImageDraw, ImageFont, ImageOps

from domain.models import CardContent, CardFace, ElementKind, FacePlan
from services.asset_inliner import decode_data_uri
from services.card_layout import (
    BACKGROUND_COLOR,
    CSS_PX_PER_INCH,
    FRAME_COLOR,
    FRAME_CSS_PX,
    MESSAGE_FONT_CSS_PX,
    PLACEHOLDER_BACKGROUND,
    PLACEHOLDER_TEXT,
    PLACEHOLDER_TEXT_COLOR,
    TEXT_COLOR,
)
from settings import settings

logger = logging.getLogger(__name__)

Rect = Tuple[int, int, int, int]

MIN_MESSAGE_FONT_PX = 6

# Tried in order after CARD_FONT_PATH; Pillow searches the system font dirs for bare names.
SERIF_ITALIC_FONTS = (
    "DejaVuSerif-Italic.ttf",
    "LiberationSerif-Italic.ttf",
    "georgiai.ttf",
    "Georgia Italic.ttf",
)


@dataclass
class CompositedFace:
    image: Image.Image
    # Where each element actually landed, in pixels (left, top, right, bottom)
    placements: Dict[ElementKind, Rect] = field(default_factory=dict)

    def to_png(self) -> bytes:
        buf = io.BytesIO()
        self.image.save(buf, format="PNG")
        return buf.getvalue()


def _rgb(hex_color: str) -> Tuple[int, int, int]:
    value = hex_color.lstrip("#")
    return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)


def load_message_font(size: int, font_path: Optional[str] = None):
    candidates = [font_path, settings.CARD_FONT_PATH, *SERIF_ITALIC_FONTS]
    for candidate in candidates:
        if not candidate:
            continue
        try:
            return ImageFont.truetype(candidate, size)
        except OSError:
            continue
    logger.warning("[compositor] no serif italic font found; using Pillow default")
    return ImageFont.load_default(size=size)


def _open_image(data_uri: Optional[str]) -> Optional[Image.Image]:
    if not data_uri:
        return None
    try:
        data, _ = decode_data_uri(data_uri)
        img = Image.open(io.BytesIO(data))
        img.load()
        return img.convert("RGBA")
    except (ValueError, OSError):
        logger.warning("[compositor] could not decode inlined image", exc_info=True)
        return None


def _paste_rgba(canvas: Image.Image, img: Image.Image, origin: Tuple[int, int]) -> None:
    canvas.paste(img, origin, img)


def _draw_centered_text(draw: ImageDraw.ImageDraw, text: str, font, center: Tuple[float, float], fill) -> Rect:
    bbox = draw.textbbox((0, 0), text, font=font)
    w = bbox[2] - bbox[0]
    h = bbox[3] - bbox[1]
    x = center[0] - w / 2 - bbox[0]
    y = center[1] - h / 2 - bbox[1]
    draw.text((x, y), text, font=font, fill=fill)
    drawn = draw.textbbox((x, y), text, font=font)
    return (
        int(math.floor(drawn[0])),
        int(math.floor(drawn[1])),
        int(math.ceil(drawn[2])),
        int(math.ceil(drawn[3])),
    )


def _text_width(draw: ImageDraw.ImageDraw, text: str, font) -> float:
    bbox = draw.textbbox((0, 0), text, font=font)
    return bbox[2] - bbox[0]


def _fit_message_font(draw: ImageDraw.ImageDraw, lines, size: int, max_width: int):
    """Largest font no bigger than size whose widest line fits in max_width."""
    # one pixel each side for the rounding of the drawn bbox
    limit = max_width - 2
    font = load_message_font(size)
    while size > MIN_MESSAGE_FONT_PX and max(_text_width(draw, line, font) for line in lines) > limit:
        size -= 1
        font = load_message_font(size)
    return font


def _fit_contain(img: Image.Image, rect: Rect) -> Tuple[Image.Image, Rect]:
    """Scale img to fit inside rect, keeping its aspect ratio, and center it (object-fit: contain)."""
    left, top, right, bottom = rect
    box_w, box_h = max(1, right - left), max(1, bottom - top)
    fitted = ImageOps.contain(img, (box_w, box_h), method=Image.Resampling.LANCZOS)
    x = left + (box_w - fitted.width) // 2
    y = top + (box_h - fitted.height) // 2
    return fitted, (x, y, x + fitted.width, y + fitted.height)


def _compose_front(canvas: Image.Image, plan: FacePlan, content: CardContent, px_per_inch: float) -> Dict[ElementKind, Rect]:
    box = plan.box(ElementKind.IMAGE)
    rect = box.to_pixels(px_per_inch)
    left, top, right, bottom = rect
    size = (max(1, right - left), max(1, bottom - top))
    artwork = _open_image(content.template_preview_url)
    if artwork is not None:
        # Cover: scale to fill, crop the overflow evenly on both sides
        fitted = ImageOps.fit(artwork, size, method=Image.Resampling.LANCZOS, centering=(0.5, 0.5))
        _paste_rgba(canvas, fitted, (left, top))
    else:
        draw = ImageDraw.Draw(canvas)
        draw.rectangle((left, top, right - 1, bottom - 1), fill=_rgb(PLACEHOLDER_BACKGROUND))
        font = load_message_font(max(8, int(round(14 * px_per_inch / CSS_PX_PER_INCH))))
        _draw_centered_text(
            draw,
            PLACEHOLDER_TEXT,
            font,
            ((left + right) / 2, (top + bottom) / 2),
            _rgb(PLACEHOLDER_TEXT_COLOR),
        )
    return {ElementKind.IMAGE: rect}


def _compose_inside(canvas: Image.Image, plan: FacePlan, content: CardContent, px_per_inch: float) -> Dict[ElementKind, Rect]:
    placements: Dict[ElementKind, Rect] = {}
    draw = ImageDraw.Draw(canvas)
    scale = px_per_inch / CSS_PX_PER_INCH
    layout = plan.layout

    if plan.framed:
        left = int(round(plan.content_x_in * px_per_inch))
        right = int(round((plan.content_x_in + layout.content_width_in) * px_per_inch)) - 1
        bottom = int(round(layout.content_height_in * px_per_inch)) - 1
        draw.rectangle((left, 0, right, bottom), outline=_rgb(FRAME_COLOR), width=max(1, int(round(FRAME_CSS_PX * scale))))

    for box in plan.boxes:
        rect = box.to_pixels(px_per_inch)
        if box.kind == ElementKind.MESSAGE:
            lines = plan.message_lines or [""]
            size = max(MIN_MESSAGE_FONT_PX, int(round(MESSAGE_FONT_CSS_PX * scale * plan.message_font_scale)))
            font = _fit_message_font(draw, lines, size, rect[2] - rect[0])
            line_h = (rect[3] - rect[1]) / len(lines)
            center_x = (rect[0] + rect[2]) / 2
            drawn = [
                _draw_centered_text(draw, line, font, (center_x, rect[1] + line_h * (i + 0.5)), _rgb(TEXT_COLOR))
                for i, line in enumerate(lines)
                if line
            ]
            if drawn:
                placements[ElementKind.MESSAGE] = (
                    min(r[0] for r in drawn),
                    min(r[1] for r in drawn),
                    max(r[2] for r in drawn),
                    max(r[3] for r in drawn),
                )
        elif box.kind in (ElementKind.LOGO, ElementKind.SIGNATURE):
            uri = content.logo_url if box.kind == ElementKind.LOGO else content.signature_url
            img = _open_image(uri)
            if img is None:
                continue
            fitted, placed = _fit_contain(img, rect)
            _paste_rgba(canvas, fitted, (placed[0], placed[1]))
            placements[box.kind] = placed
    return placements


def composite_face(plan: FacePlan, content: CardContent, px_per_inch: float) -> CompositedFace:
    """Rasterize a planned face at px_per_inch."""
    size = plan.layout.pixel_size(px_per_inch)
    canvas = Image.new("RGB", size, _rgb(BACKGROUND_COLOR))
    if plan.face == CardFace.FRONT:
        placements = _compose_front(canvas, plan, content, px_per_inch)
    else:
        placements = _compose_inside(canvas, plan, content, px_per_inch)
    logger.debug("[compositor] %s face %sx%s placements=%s", plan.face.value, size[0], size[1], placements)
    return CompositedFace(image=canvas, placements=placements)


def render_face_png(plan: FacePlan, content: CardContent, px_per_inch: float) -> bytes:
    return composite_face(plan, content, px_per_inch).to_png()
