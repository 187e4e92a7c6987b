"""
HTML templates for card faces.

Markup is self-contained (images must already be inlined as data URIs) and
positions every element from the shared FacePlan, so the remote capture, the
PDF export and the local compositor agree on where things go.

px_per_inch controls the pixel scale of the document: 96 gives true CSS
inches (PDF export), RENDER_DPI gives a high-resolution screenshot whose
viewport matches the face's aspect ratio.
"""
import html
import logging
from typing import Union

from domain.models import CardContent, CardFace, ElementBox, ElementKind, FacePlan, LayoutConfig
from services.card_layout import (
    BACKGROUND_COLOR,
    CSS_PX_PER_INCH,
    FRAME_COLOR,
    FRAME_CSS_PX,
    MESSAGE_FONT_CSS_PX,
    MESSAGE_LINE_HEIGHT,
    PLACEHOLDER_BACKGROUND,
    PLACEHOLDER_TEXT,
    PLACEHOLDER_TEXT_COLOR,
    TEXT_COLOR,
    plan_front,
    plan_inside,
)

logger = logging.getLogger(__name__)

MESSAGE_FONT_FAMILY = "Georgia, serif"


def escape_html(value: object) -> str:
    """Escape & < > " ' for safe insertion into markup."""
    return html.escape(str(value or ""), quote=True)


def _px(inches: float, px_per_inch: float) -> str:
    return f"{inches * px_per_inch:.2f}px"


def _box_style(box: ElementBox, px_per_inch: float) -> str:
    return (
        f"left: {_px(box.x_in, px_per_inch)}; top: {_px(box.y_in, px_per_inch)}; "
        f"width: {_px(box.width_in, px_per_inch)}; height: {_px(box.height_in, px_per_inch)};"
    )


def _document(layout: LayoutConfig, px_per_inch: float, extra_css: str, body: str) -> str:
    width_px = _px(layout.overall_width_in, px_per_inch)
    height_px = _px(layout.overall_height_in, px_per_inch)
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8" />
  <style>
    @page {{ size: {layout.overall_width} {layout.overall_height}; margin: 0; }}
    html, body {{ margin: 0; padding: 0; width: {width_px}; height: {height_px}; }}
    body {{ position: relative; overflow: hidden; background: {BACKGROUND_COLOR}; font-family: {MESSAGE_FONT_FAMILY}; }}
    .box {{ position: absolute; display: flex; justify-content: center; box-sizing: border-box; }}
    .clip {{ overflow: hidden; }}
{extra_css}
  </style>
</head>
<body>
{body}
</body>
</html>"""


def render_front_html(plan: FacePlan, content: CardContent, px_per_inch: float = CSS_PX_PER_INCH) -> str:
    box = plan.box(ElementKind.IMAGE)
    img_src = content.template_preview_url or ""
    scale = px_per_inch / CSS_PX_PER_INCH
    css = f"""    .front-img {{ width: 100%; height: 100%; object-fit: cover; display: block; }}
    .placeholder {{ align-items: center; background: {PLACEHOLDER_BACKGROUND}; color: {PLACEHOLDER_TEXT_COLOR}; font-family: Arial, sans-serif; font-size: {14 * scale:.2f}px; }}"""
    if img_src:
        inner = f'<img class="front-img" src="{escape_html(img_src)}" alt="Card front"/>'
        body = f'  <div class="box clip" data-element="image" style="{_box_style(box, px_per_inch)}">{inner}</div>'
    else:
        body = (
            f'  <div class="box clip placeholder" data-element="image" style="{_box_style(box, px_per_inch)}">'
            f"{escape_html(PLACEHOLDER_TEXT)}</div>"
        )
    return _document(plan.layout, px_per_inch, css, body)


def render_inside_html(plan: FacePlan, content: CardContent, px_per_inch: float = CSS_PX_PER_INCH) -> str:
    scale = px_per_inch / CSS_PX_PER_INCH
    font_px = MESSAGE_FONT_CSS_PX * scale * plan.message_font_scale
    css = f"""    .frame {{ position: absolute; box-sizing: border-box; border: {FRAME_CSS_PX * scale:.2f}px solid {FRAME_COLOR}; }}
    .msg {{ margin: 0; flex-shrink: 0; white-space: nowrap; text-align: center; font-size: {font_px:.2f}px; line-height: {MESSAGE_LINE_HEIGHT}; color: {TEXT_COLOR}; font-style: italic; }}
    .asset {{ align-items: center; }}
    .asset img {{ width: 100%; height: 100%; object-fit: contain; }}"""

    parts = []
    layout = plan.layout
    if plan.framed:
        parts.append(
            f'  <div class="frame" style="left: {_px(plan.content_x_in, px_per_inch)}; top: 0px; '
            f'width: {_px(layout.content_width_in, px_per_inch)}; height: {_px(layout.content_height_in, px_per_inch)};"></div>'
        )

    message_html = "<br />".join(escape_html(line) for line in plan.message_lines)
    for box in plan.boxes:
        style = _box_style(box, px_per_inch)
        if box.kind == ElementKind.MESSAGE:
            parts.append(f'  <div class="box" data-element="message" style="{style}"><p class="msg">{message_html}</p></div>')
        elif box.kind == ElementKind.LOGO:
            parts.append(
                f'  <div class="box clip asset" data-element="logo" style="{style}">'
                f'<img src="{escape_html(content.logo_url)}" alt="Logo"/></div>'
            )
        elif box.kind == ElementKind.SIGNATURE:
            parts.append(
                f'  <div class="box clip asset" data-element="signature" style="{style}">'
                f'<img src="{escape_html(content.signature_url)}" alt="Signature"/></div>'
            )
    return _document(layout, px_per_inch, css, "\n".join(parts))


def build_front_html(layout: LayoutConfig, content: CardContent, px_per_inch: float = CSS_PX_PER_INCH) -> str:
    """Front face: template artwork cropped to fill the content box."""
    return render_front_html(plan_front(layout, content), content, px_per_inch)


def build_inside_html(layout: LayoutConfig, content: CardContent, px_per_inch: float = CSS_PX_PER_INCH) -> str:
    """Inside face: message, optional logo and optional signature in three bands."""
    return render_inside_html(plan_inside(layout, content), content, px_per_inch)


def build_card_html(
    face: Union[CardFace, str],
    layout: LayoutConfig,
    content: CardContent,
    px_per_inch: float = CSS_PX_PER_INCH,
) -> str:
    face = CardFace(face)
    logger.debug("[card_html] building %s markup spread=%s px_per_inch=%s", face.value, layout.is_spread, px_per_inch)
    if face == CardFace.FRONT:
        return build_front_html(layout, content, px_per_inch)
    return build_inside_html(layout, content, px_per_inch)
