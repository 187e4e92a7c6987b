"""
Core domain models for the card rendering pipeline.
These are framework-agnostic and can be used across all services.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class CardFace(str, Enum):
    """One printable side of the card."""
    FRONT = "front"
    INSIDE = "inside"


class RenderMode(str, Enum):
    """
    What the rendered output is for.

    - PREVIEW: on-screen preview, single portrait face unless a spread is requested
    - PRODUCTION: print-ready output, always a double-width spread
    """
    PREVIEW = "preview"
    PRODUCTION = "production"


class ElementKind(str, Enum):
    """Kinds of positioned elements on a card face."""
    IMAGE = "image"  # full-bleed template artwork on the front
    MESSAGE = "message"
    LOGO = "logo"
    SIGNATURE = "signature"


@dataclass
class Template:
    """A card design. Immutable from the renderer's point of view."""
    id: str
    name: str = ""
    description: Optional[str] = None
    preview_url: Optional[str] = None


@dataclass
class Order:
    """
    An order as stored by the surrounding order-management system.

    Asset references are either storage-relative paths, absolute URLs or None.
    Only front_preview / inside_preview / previews_updated_at are ever written
    back by the renderer.
    """
    id: str
    template_id: str
    readable_order_id: Optional[str] = None
    custom_message: Optional[str] = None
    selected_message: Optional[str] = None
    card_quantity: Optional[int] = None
    logo_url: Optional[str] = None
    signature_url: Optional[str] = None
    cropped_signature_url: Optional[str] = None
    front_preview: Optional[str] = None
    inside_preview: Optional[str] = None
    previews_updated_at: Optional[datetime] = None

    @property
    def message(self) -> Optional[str]:
        """Custom message wins over the selected stock message."""
        return self.custom_message or self.selected_message or None

    @property
    def signature_ref(self) -> Optional[str]:
        """Cropped signature wins over the original upload."""
        return self.cropped_signature_url or self.signature_url or None


@dataclass(frozen=True)
class LayoutConfig:
    """
    Physical geometry of one rendered face, in inches.

    Content is always 5.125in x 7in; a spread doubles the overall width and
    leaves one half blank.
    """
    content_width_in: float
    content_height_in: float
    overall_width_in: float
    overall_height_in: float
    aspect_ratio: float
    is_spread: bool

    @property
    def content_width(self) -> str:
        return _css_inches(self.content_width_in)

    @property
    def content_height(self) -> str:
        return _css_inches(self.content_height_in)

    @property
    def overall_width(self) -> str:
        return _css_inches(self.overall_width_in)

    @property
    def overall_height(self) -> str:
        return _css_inches(self.overall_height_in)

    def pixel_size(self, px_per_inch: float) -> tuple[int, int]:
        """Overall size in whole pixels at the given resolution."""
        return (
            int(round(self.overall_width_in * px_per_inch)),
            int(round(self.overall_height_in * px_per_inch)),
        )


def _css_inches(value: float) -> str:
    return f"{value:g}in"


@dataclass
class CardContent:
    """
    Render-time payload for one order.

    Image fields hold self-contained data URIs once inlined; an empty value
    means the element is omitted.
    """
    message: str = ""
    logo_url: Optional[str] = None
    signature_url: Optional[str] = None
    template_preview_url: Optional[str] = None


@dataclass(frozen=True)
class ElementBox:
    """A positioned box on a face, in inches from the face's top-left corner."""
    kind: ElementKind
    x_in: float
    y_in: float
    width_in: float
    height_in: float

    def to_pixels(self, px_per_inch: float) -> tuple[int, int, int, int]:
        """(left, top, right, bottom) rounded to whole pixels."""
        left = int(round(self.x_in * px_per_inch))
        top = int(round(self.y_in * px_per_inch))
        right = int(round((self.x_in + self.width_in) * px_per_inch))
        bottom = int(round((self.y_in + self.height_in) * px_per_inch))
        return left, top, right, bottom


@dataclass
class FacePlan:
    """
    Structural layout of a face: the boxes every backend draws into and the
    message lines, computed once and shared.
    """
    face: CardFace
    layout: LayoutConfig
    content_x_in: float
    boxes: List[ElementBox] = field(default_factory=list)
    message_lines: List[str] = field(default_factory=list)
    framed: bool = False
    # Shrink factor applied to the message font so the longest line fits the box
    message_font_scale: float = 1.0

    def box(self, kind: ElementKind) -> Optional[ElementBox]:
        for b in self.boxes:
            if b.kind == kind:
                return b
        return None


@dataclass
class RenderAttempt:
    """Outcome of a single render strategy for a single face."""
    strategy: str
    image: Optional[bytes] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.image is not None


@dataclass
class FaceRender:
    """All attempts made for one face; image is set by the first that succeeded."""
    face: CardFace
    attempts: List[RenderAttempt] = field(default_factory=list)

    @property
    def succeeded(self) -> Optional[RenderAttempt]:
        for attempt in self.attempts:
            if attempt.ok:
                return attempt
        return None

    @property
    def image(self) -> Optional[bytes]:
        attempt = self.succeeded
        return attempt.image if attempt else None

    @property
    def strategy(self) -> Optional[str]:
        attempt = self.succeeded
        return attempt.strategy if attempt else None


@dataclass
class RenderResult:
    """Both faces of one render invocation. Created fresh every time."""
    order_id: str
    front: FaceRender
    inside: FaceRender
    rendered_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def complete(self) -> bool:
        return self.front.image is not None and self.inside.image is not None
