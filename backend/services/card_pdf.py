"""
Print-ready PDF export for an order.

Builds both faces at CSS resolution (96 px/in) with the same layout and plan
used for previews, prints each one to a PDF page sized from the layout, and
stores the files under MEDIA_ROOT/orders/<order_id>/exports/.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Optional, Union

from sqlalchemy.orm import Session

from db import SessionLocal
from domain.models import CardFace, RenderMode
from repositories import OrdersRepository, TemplatesRepository
from services.asset_inliner import AssetInliner, resolve_card_content
from services.card_layout import CSS_PX_PER_INCH
from services.card_previews import build_default_inliner, build_face_job, load_order_and_template
from services.errors import CardRenderError, FallbackRenderFailed
from services.render_chain import FaceRenderJob, RenderChain, RenderStrategy
from services.screenshot_client import ScreenshotClient, get_default_screenshot_client
from settings import settings
from storage.file_storage import FileStorage

logger = logging.getLogger(__name__)


class RemotePdfStrategy(RenderStrategy):
    """Print the markup with the remote Chromium service."""
    name = "remote_pdf"

    def __init__(self, client: ScreenshotClient):
        self.client = client

    def available(self) -> bool:
        return self.client.configured

    def render(self, job: FaceRenderJob) -> bytes:
        layout = job.plan.layout
        return self.client.convert_html_to_pdf(job.markup, layout.overall_width_in, layout.overall_height_in)


class WeasyPrintPdfStrategy(RenderStrategy):
    """Print the markup locally with WeasyPrint."""
    name = "weasyprint"

    def __init__(self, base_url: Optional[str] = None):
        self.base_url = base_url

    def render(self, job: FaceRenderJob) -> bytes:
        try:
            from weasyprint import HTML
        except ImportError as exc:
            raise CardRenderError("WeasyPrint is not installed") from exc
        return HTML(string=job.markup, base_url=self.base_url).write_pdf()


def build_pdf_chain(client: Optional[ScreenshotClient] = None, base_url: Optional[str] = None) -> RenderChain:
    return RenderChain(
        [
            RemotePdfStrategy(client or get_default_screenshot_client()),
            WeasyPrintPdfStrategy(base_url=base_url),
        ]
    )


@dataclass
class PdfExport:
    order_id: str
    mode: RenderMode
    paths: Dict[CardFace, str] = field(default_factory=dict)
    strategies: Dict[CardFace, str] = field(default_factory=dict)


class CardPdfExporter:
    def __init__(
        self,
        storage: FileStorage,
        orders_repo: Optional[OrdersRepository] = None,
        templates_repo: Optional[TemplatesRepository] = None,
        inliner: Optional[AssetInliner] = None,
        chain: Optional[RenderChain] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.storage = storage
        self.orders_repo = orders_repo or OrdersRepository()
        self.templates_repo = templates_repo or TemplatesRepository()
        self.inliner = inliner or build_default_inliner()
        self.chain = chain or build_pdf_chain(base_url=str(storage.media_root))
        self.clock = clock

    def export(
        self,
        session: Session,
        order_id: str,
        mode: Union[RenderMode, str] = RenderMode.PRODUCTION,
    ) -> PdfExport:
        """
        Render and store front and inside PDFs.

        Production mode prints both faces on spread-width pages. Both files are
        written only after both faces rendered.
        """
        mode = RenderMode(mode)
        order, template = load_order_and_template(session, order_id, self.orders_repo, self.templates_repo)
        content = resolve_card_content(order, template, self.inliner)

        renders = {}
        for face in (CardFace.FRONT, CardFace.INSIDE):
            job = build_face_job(face, content, mode, False, CSS_PX_PER_INCH)
            renders[face] = self.chain.render(job)

        failed = [face.value for face, render in renders.items() if render.image is None]
        if failed:
            raise FallbackRenderFailed(failed, "PDF export failed for: " + ", ".join(failed))

        stamp = self.clock().strftime("%Y%m%d%H%M%S")
        export = PdfExport(order_id=order.id, mode=mode)
        for face, render in renders.items():
            rel_path = self.storage.get_pdf_path(order.id, f"{face.value}_{stamp}")
            self.storage.save_bytes(rel_path, render.image)
            export.paths[face] = rel_path
            export.strategies[face] = render.strategy
        logger.info("[card_pdf] order=%s mode=%s exported %s", order.id, mode.value, export.paths)
        return export


def render_order_pdfs(order_id: str, mode: Union[RenderMode, str] = RenderMode.PRODUCTION) -> PdfExport:
    """Export PDFs for an order using the default collaborators."""
    exporter = CardPdfExporter(FileStorage(settings.MEDIA_ROOT))
    with SessionLocal() as session:
        return exporter.export(session, order_id, mode=mode)
