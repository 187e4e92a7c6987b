"""
File storage abstraction.

Provides a simple interface for storing and retrieving order assets.
Currently uses local filesystem, can be extended to S3 or other backends.
"""
from pathlib import Path


class FileStorage:
    """
    Local file storage implementation.

    Files are organized as:
    - media/<asset paths as stored on the order>  - Uploaded logos, signatures, artwork
    - media/orders/{order_id}/exports/  - Generated print PDFs
    """

    def __init__(self, media_root: str = "media"):
        self.media_root = Path(media_root)
        self.media_root.mkdir(parents=True, exist_ok=True)

    def _resolve(self, relative_path: str) -> Path:
        """Resolve a storage path, refusing anything that escapes the media root."""
        root = self.media_root.resolve()
        path = (root / relative_path.lstrip("/")).resolve()
        if root != path and root not in path.parents:
            raise ValueError(f"Path escapes media root: {relative_path}")
        return path

    def get_order_exports_dir(self, order_id: str) -> Path:
        """Get the exports directory for an order."""
        path = self.media_root / "orders" / order_id / "exports"
        path.mkdir(parents=True, exist_ok=True)
        return path

    def get_pdf_path(self, order_id: str, name: str) -> str:
        """
        Get the path for one of an order's PDF exports.

        Returns:
            Relative path where the PDF should be saved
        """
        exports_dir = self.get_order_exports_dir(order_id)
        return str((exports_dir / f"{name}.pdf").relative_to(self.media_root))

    def read_bytes(self, relative_path: str) -> bytes:
        """Read a stored file. Raises FileNotFoundError when missing."""
        return self._resolve(relative_path).read_bytes()

    def save_bytes(self, relative_path: str, data: bytes) -> str:
        """Write bytes to a relative path, creating parents. Returns the relative path."""
        path = self._resolve(relative_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return relative_path

    def get_absolute_path(self, relative_path: str) -> Path:
        """Convert a relative path to absolute."""
        return self.media_root / relative_path

    def file_exists(self, relative_path: str) -> bool:
        """Check if a file exists."""
        try:
            return self._resolve(relative_path).exists()
        except ValueError:
            return False
