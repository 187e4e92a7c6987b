"""
Order rendering API routes.

Handles preview generation and print-ready PDF export.
"""
import logging
from typing import Dict, Optional
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from db import SessionLocal
from domain.models import CardFace, RenderMode
from repositories import OrdersRepository
from services.card_pdf import CardPdfExporter
from services.card_previews import CardPreviewGenerator, get_default_generator
from services.errors import (
    CardRenderError,
    FallbackRenderFailed,
    OrderOrTemplateNotFound,
    PersistFailed,
)
from settings import settings
from storage.file_storage import FileStorage

logger = logging.getLogger(__name__)

router = APIRouter()
orders_repo = OrdersRepository()


class RenderPreviewsRequest(BaseModel):
    mode: RenderMode = RenderMode.PREVIEW
    spread: bool = False


class RenderPreviewsResponse(BaseModel):
    success: bool
    front_preview: str
    inside_preview: str
    previews_updated_at: str
    strategies: Dict[str, str]


class PreviewsResponse(BaseModel):
    front_preview: Optional[str] = None
    inside_preview: Optional[str] = None
    previews_updated_at: Optional[str] = None


class ExportPdfsRequest(BaseModel):
    format: RenderMode = RenderMode.PRODUCTION


class ExportPdfsResponse(BaseModel):
    success: bool
    front_pdf: str
    inside_pdf: str
    strategies: Dict[str, str]


def get_preview_generator() -> CardPreviewGenerator:
    return get_default_generator()


def get_pdf_exporter() -> CardPdfExporter:
    return CardPdfExporter(FileStorage(settings.MEDIA_ROOT))


def _http_error(exc: CardRenderError) -> HTTPException:
    if isinstance(exc, OrderOrTemplateNotFound):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, FallbackRenderFailed):
        return HTTPException(status_code=502, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))


@router.post("/previews", response_model=RenderPreviewsResponse)
def render_previews(order_id: str, body: Optional[RenderPreviewsRequest] = None):
    """
    Render the front and inside previews for an order and save them.

    Both faces are saved together or not at all.
    """
    body = body or RenderPreviewsRequest()
    generator = get_preview_generator()
    with SessionLocal() as session:
        try:
            result = generator.render_order(session, order_id, mode=body.mode, spread=body.spread)
            order = orders_repo.get_order(session, order_id)
        except (OrderOrTemplateNotFound, FallbackRenderFailed, PersistFailed) as exc:
            logger.warning("[previews] order=%s failed: %s", order_id, exc)
            raise _http_error(exc)

    return RenderPreviewsResponse(
        success=True,
        front_preview=order.front_preview,
        inside_preview=order.inside_preview,
        previews_updated_at=result.rendered_at.isoformat(),
        strategies={
            result.front.face.value: result.front.strategy,
            result.inside.face.value: result.inside.strategy,
        },
    )


@router.get("/previews", response_model=PreviewsResponse)
def get_previews(order_id: str):
    """Return the last saved previews for an order."""
    with SessionLocal() as session:
        order = orders_repo.get_order(session, order_id)
        if not order:
            raise HTTPException(status_code=404, detail="Order not found")
    return PreviewsResponse(
        front_preview=order.front_preview,
        inside_preview=order.inside_preview,
        previews_updated_at=order.previews_updated_at.isoformat() if order.previews_updated_at else None,
    )


@router.post("/pdfs", response_model=ExportPdfsResponse)
def export_pdfs(order_id: str, body: Optional[ExportPdfsRequest] = None):
    """Render print-ready front and inside PDFs and store them under the order's exports."""
    body = body or ExportPdfsRequest()
    exporter = get_pdf_exporter()
    with SessionLocal() as session:
        try:
            export = exporter.export(session, order_id, mode=body.format)
        except (OrderOrTemplateNotFound, FallbackRenderFailed) as exc:
            logger.warning("[pdfs] order=%s failed: %s", order_id, exc)
            raise _http_error(exc)

    return ExportPdfsResponse(
        success=True,
        front_pdf=export.paths[CardFace.FRONT],
        inside_pdf=export.paths[CardFace.INSIDE],
        strategies={face.value: name for face, name in export.strategies.items()},
    )
