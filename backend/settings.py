import os

# Basic settings helper to read environment configuration.

DEFAULT_CARD_MESSAGE = "Warmest wishes for a joyful and restful holiday season."


def _as_bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return val.lower() in ("1", "true", "yes", "on")


def _as_float(val: str | None, default: float) -> float:
    if val is None or not val.strip():
        return default
    try:
        return float(val)
    except ValueError:
        return default


def _as_int(val: str | None, default: int) -> int:
    if val is None or not val.strip():
        return default
    try:
        return int(val)
    except ValueError:
        return default


def _strip_trailing_slash(url: str | None) -> str | None:
    if not url:
        return None
    return url.rstrip("/")


class Settings:
    def __init__(self) -> None:
        self.DATABASE_URL: str | None = os.getenv("DATABASE_URL")
        self.MEDIA_ROOT: str = os.getenv("MEDIA_ROOT", "media")

        # Remote HTML-to-image service (Gotenberg compatible). Both must be set
        # for the remote tier to be attempted.
        self.RENDER_SERVICE_URL: str | None = _strip_trailing_slash(os.getenv("RENDER_SERVICE_URL"))
        self.RENDER_SERVICE_API_KEY: str | None = os.getenv("RENDER_SERVICE_API_KEY") or None
        self.RENDER_TIMEOUT_SECONDS: float = _as_float(os.getenv("RENDER_TIMEOUT_SECONDS"), 5.0)
        # Raster resolution for captured and composited faces: 5.125in x 7in -> 1025 x 1400 px.
        self.RENDER_DPI: int = _as_int(os.getenv("RENDER_DPI"), 200)
        self.RENDER_FACES_CONCURRENTLY: bool = _as_bool(os.getenv("RENDER_FACES_CONCURRENTLY"), True)

        self.ASSET_BUCKET: str = os.getenv("ASSET_BUCKET", "holiday-cards")
        self.PUBLIC_ASSET_BASE_URL: str | None = _strip_trailing_slash(os.getenv("PUBLIC_ASSET_BASE_URL"))
        self.ASSET_FETCH_TIMEOUT_SECONDS: float = _as_float(os.getenv("ASSET_FETCH_TIMEOUT_SECONDS"), 10.0)

        self.CARD_FONT_PATH: str | None = os.getenv("CARD_FONT_PATH") or None
        self.DEFAULT_CARD_MESSAGE: str = os.getenv("DEFAULT_CARD_MESSAGE") or DEFAULT_CARD_MESSAGE

    @property
    def remote_render_configured(self) -> bool:
        return bool(self.RENDER_SERVICE_URL and self.RENDER_SERVICE_API_KEY)


settings = Settings()
