"""
Error kinds raised inside the card rendering pipeline.

AssetFetchFailed, RemoteRenderUnavailable and PngExtractionFailed are absorbed
by the tier that sees them; the rest reach the caller.
"""
from typing import Iterable


class CardRenderError(Exception):
    """Base class for pipeline errors."""


class AssetFetchFailed(CardRenderError):
    """An asset could not be downloaded or converted; the card renders without it."""


class RemoteRenderUnavailable(CardRenderError):
    """The remote rendering service is unconfigured, unreachable, timed out or answered non-2xx."""


class PngExtractionFailed(CardRenderError):
    """No PNG payload could be salvaged from the remote response."""


class FallbackRenderFailed(CardRenderError):
    """Every render tier failed for at least one face."""

    def __init__(self, faces: Iterable[str], message: str | None = None):
        self.faces = list(faces)
        super().__init__(message or f"Rendering failed for face(s): {', '.join(self.faces)}")


class OrderOrTemplateNotFound(CardRenderError):
    """The order, or the template it references, does not exist."""


class PersistFailed(CardRenderError):
    """The rendered faces could not be written back to the order."""
