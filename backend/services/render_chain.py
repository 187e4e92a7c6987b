"""
Ordered render strategies for a single card face.

A RenderChain tries each strategy in turn and stops at the first one that
produces bytes. Failures are recorded as RenderAttempts on the FaceRender,
never raised, so the caller decides what a face with no successful attempt
means.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from domain.models import CardContent, CardFace, FacePlan, FaceRender, RenderAttempt
from services.card_compositor import render_face_png
from services.errors import CardRenderError
from services.screenshot_client import ScreenshotClient, get_default_screenshot_client

logger = logging.getLogger(__name__)


@dataclass
class FaceRenderJob:
    """Everything any strategy may need to render one face."""
    face: CardFace
    plan: FacePlan
    content: CardContent
    markup: str
    px_per_inch: float

    @property
    def viewport(self) -> tuple[int, int]:
        return self.plan.layout.pixel_size(self.px_per_inch)


class RenderStrategy:
    name = "strategy"

    def available(self) -> bool:
        return True

    def render(self, job) -> bytes:
        raise NotImplementedError


class RemoteScreenshotStrategy(RenderStrategy):
    """Primary tier: capture the markup with the remote Chromium service."""
    name = "remote_screenshot"

    def __init__(self, client: ScreenshotClient):
        self.client = client

    def available(self) -> bool:
        return self.client.configured

    def render(self, job: FaceRenderJob) -> bytes:
        width, height = job.viewport
        return self.client.screenshot_html(job.markup, width, height)


class LocalCompositorStrategy(RenderStrategy):
    """Fallback tier: draw the same plan locally with Pillow."""
    name = "local_compositor"

    def render(self, job: FaceRenderJob) -> bytes:
        return render_face_png(job.plan, job.content, job.px_per_inch)


class RenderChain:
    def __init__(self, strategies: Sequence[RenderStrategy]):
        self.strategies: List[RenderStrategy] = list(strategies)

    def render(self, job) -> FaceRender:
        result = FaceRender(face=job.face)
        for strategy in self.strategies:
            attempt = self._attempt(strategy, job)
            result.attempts.append(attempt)
            if attempt.ok:
                logger.info("[render_chain] %s face rendered by %s", job.face.value, strategy.name)
                break
        if result.image is None:
            logger.error(
                "[render_chain] every strategy failed for %s face: %s",
                job.face.value,
                "; ".join(f"{a.strategy}: {a.error}" for a in result.attempts),
            )
        return result

    @staticmethod
    def _attempt(strategy: RenderStrategy, job) -> RenderAttempt:
        if not strategy.available():
            return RenderAttempt(strategy=strategy.name, error="not configured")
        try:
            data = strategy.render(job)
        except CardRenderError as exc:
            logger.warning("[render_chain] %s failed for %s face: %s", strategy.name, job.face.value, exc)
            return RenderAttempt(strategy=strategy.name, error=str(exc))
        except Exception as exc:
            logger.warning("[render_chain] %s crashed for %s face", strategy.name, job.face.value, exc_info=True)
            return RenderAttempt(strategy=strategy.name, error=f"{type(exc).__name__}: {exc}")
        if not data:
            return RenderAttempt(strategy=strategy.name, error="empty output")
        return RenderAttempt(strategy=strategy.name, image=data)


def build_default_chain(client: Optional[ScreenshotClient] = None) -> RenderChain:
    return RenderChain(
        [
            RemoteScreenshotStrategy(client or get_default_screenshot_client()),
            LocalCompositorStrategy(),
        ]
    )
