from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import Iterable, Optional

from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from ..core.constants import ALLOWED_UPLOAD_EXTENSIONS
from ..core.exceptions import ValidationError

logger = logging.getLogger(__name__)

URL_PREFIX = "/uploads"


class UploadStore:
    """Stores multipart files on local disk under ``<root>/<kind>/``.

    Stored values are URL paths (``/uploads/<kind>/<name>``) so rows stay
    independent of where the upload root lives.
    """

    def __init__(self, root: str | Path):
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def save(self, file: Optional[FileStorage], kind: str, *, prefix: str = "") -> Optional[str]:
        if file is None or not file.filename:
            return None

        original = secure_filename(file.filename)
        ext = original.rsplit(".", 1)[-1].lower() if "." in original else ""
        if ext not in ALLOWED_UPLOAD_EXTENSIONS:
            raise ValidationError(f"Unsupported file type for {kind}: {file.filename}")

        folder = self._root / kind
        folder.mkdir(parents=True, exist_ok=True)
        name = f"{prefix}{uuid.uuid4().hex}.{ext}"
        file.save(str(folder / name))
        return f"{URL_PREFIX}/{kind}/{name}"

    def path_for(self, url: str) -> Path:
        rel = url[len(URL_PREFIX):].lstrip("/") if url.startswith(URL_PREFIX) else url.lstrip("/")
        return self._root / rel

    def delete(self, url: Optional[str]) -> bool:
        if not url:
            return False
        path = self.path_for(url)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            logger.warning("Upload already missing: %s", path)
            return False

    def delete_all(self, urls: Iterable[Optional[str]]) -> int:
        return sum(1 for u in urls if self.delete(u))
