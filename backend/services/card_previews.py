"""
Card preview generation service.

Renders an order's front and inside faces and writes both back to the order.

Pipeline stages:
1. Load order and template (abort before rendering if either is missing)
2. Inline logo, signature and template artwork as data URIs
3. Resolve layout and plan each face, build its markup
4. Render each face through the strategy chain (remote capture, local compositor)
5. Persist both faces together, or nothing at all
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple, Union

from sqlalchemy.orm import Session

from db import SessionLocal
from domain.models import CardContent, CardFace, FaceRender, Order, RenderMode, RenderResult, Template
from repositories import OrdersRepository, TemplatesRepository
from services.asset_inliner import AssetInliner, resolve_card_content, to_data_uri
from services.card_html import render_front_html, render_inside_html
from services.card_layout import plan_face, resolve_layout
from services.errors import FallbackRenderFailed, OrderOrTemplateNotFound
from services.render_chain import FaceRenderJob, RenderChain, build_default_chain
from services.screenshot_client import get_default_screenshot_client
from settings import settings
from storage.file_storage import FileStorage

logger = logging.getLogger(__name__)


def load_order_and_template(
    session: Session,
    order_id: str,
    orders_repo: OrdersRepository,
    templates_repo: TemplatesRepository,
) -> Tuple[Order, Template]:
    order = orders_repo.get_order(session, order_id)
    if not order:
        raise OrderOrTemplateNotFound(f"Order not found: {order_id}")
    template = templates_repo.get_template(session, order.template_id)
    if not template:
        raise OrderOrTemplateNotFound(f"Template not found: {order.template_id}")
    return order, template


def build_face_job(
    face: CardFace,
    content: CardContent,
    mode: Union[RenderMode, str],
    spread: bool,
    px_per_inch: float,
) -> FaceRenderJob:
    layout = resolve_layout(face, mode, spread)
    plan = plan_face(face, layout, content)
    if face == CardFace.FRONT:
        markup = render_front_html(plan, content, px_per_inch)
    else:
        markup = render_inside_html(plan, content, px_per_inch)
    return FaceRenderJob(face=face, plan=plan, content=content, markup=markup, px_per_inch=px_per_inch)


class CardPreviewGenerator:
    def __init__(
        self,
        orders_repo: Optional[OrdersRepository] = None,
        templates_repo: Optional[TemplatesRepository] = None,
        inliner: Optional[AssetInliner] = None,
        chain: Optional[RenderChain] = None,
        px_per_inch: Optional[float] = None,
        concurrent: Optional[bool] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.orders_repo = orders_repo or OrdersRepository()
        self.templates_repo = templates_repo or TemplatesRepository()
        self.inliner = inliner or build_default_inliner()
        self.chain = chain or build_default_chain()
        self.px_per_inch = px_per_inch or settings.RENDER_DPI
        self.concurrent = settings.RENDER_FACES_CONCURRENTLY if concurrent is None else concurrent
        self.clock = clock

    def render_faces(self, jobs: List[FaceRenderJob]) -> Dict[CardFace, FaceRender]:
        """Faces are independent: one failing never stops the other."""
        if self.concurrent and len(jobs) > 1:
            with ThreadPoolExecutor(max_workers=len(jobs)) as pool:
                renders = list(pool.map(self.chain.render, jobs))
        else:
            renders = [self.chain.render(job) for job in jobs]
        return {render.face: render for render in renders}

    def render_order(
        self,
        session: Session,
        order_id: str,
        mode: Union[RenderMode, str] = RenderMode.PREVIEW,
        spread: bool = False,
    ) -> RenderResult:
        """
        Render both faces of an order and save them.

        Raises OrderOrTemplateNotFound before any rendering, FallbackRenderFailed
        when a face could not be rendered by any strategy (nothing is saved),
        and PersistFailed when the write-back fails.
        """
        order, template = load_order_and_template(session, order_id, self.orders_repo, self.templates_repo)
        logger.info("[previews] rendering order=%s template=%s mode=%s spread=%s", order.id, template.id, mode, spread)

        content = resolve_card_content(order, template, self.inliner)
        jobs = [
            build_face_job(face, content, mode, spread, self.px_per_inch)
            for face in (CardFace.FRONT, CardFace.INSIDE)
        ]
        faces = self.render_faces(jobs)
        result = RenderResult(
            order_id=order.id,
            front=faces[CardFace.FRONT],
            inside=faces[CardFace.INSIDE],
            rendered_at=self.clock(),
        )

        failed = [f.face.value for f in (result.front, result.inside) if f.image is None]
        if failed:
            raise FallbackRenderFailed(failed)

        self.orders_repo.save_previews(
            session,
            order.id,
            to_data_uri(result.front.image),
            to_data_uri(result.inside.image),
            result.rendered_at,
        )
        logger.info(
            "[previews] saved order=%s front=%s inside=%s",
            order.id,
            result.front.strategy,
            result.inside.strategy,
        )
        return result


def build_default_inliner() -> AssetInliner:
    return AssetInliner(
        storage=FileStorage(settings.MEDIA_ROOT),
        bucket=settings.ASSET_BUCKET,
        public_base_url=settings.PUBLIC_ASSET_BASE_URL,
        timeout=settings.ASSET_FETCH_TIMEOUT_SECONDS,
        screenshot_client=get_default_screenshot_client(),
    )


_default_generator: Optional[CardPreviewGenerator] = None


def get_default_generator() -> CardPreviewGenerator:
    global _default_generator
    if _default_generator is None:
        _default_generator = CardPreviewGenerator()
    return _default_generator


def render_order(
    order_id: str,
    mode: Union[RenderMode, str] = RenderMode.PREVIEW,
    spread: bool = False,
) -> RenderResult:
    """Render and save previews for an order using the default collaborators."""
    with SessionLocal() as session:
        return get_default_generator().render_order(session, order_id, mode=mode, spread=spread)
