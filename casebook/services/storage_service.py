"""
Object store for uploaded screenshots (the ``project_files`` bucket).

Files live on local disk under ``UPLOAD_FOLDER/<bucket>/`` and are addressed
by an object path ``<user_id>/<project_id>/<epoch_ms>-<filename>``. The
public URL of an object is ``<PUBLIC_BASE_URL>/storage/<bucket>/<path>``
and ``storage_bp`` serves it back.

Upload and the row insert that references the file are two separate steps;
nothing here knows about database rows.
"""

import logging
import os
import shutil
import time

from flask import current_app
from werkzeug.utils import secure_filename

from casebook.core.exceptions import StorageError, ValidationError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


def build_object_path(user_id: int, project_id: int, filename: str, now_ms: int | None = None) -> str:
    """Return ``<user>/<project>/<epoch_ms>-<safe name>`` for a new upload."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    safe_name = secure_filename(filename or "") or "upload"
    return f"{user_id}/{project_id}/{now_ms}-{safe_name}"


def is_image(content_type: str | None) -> bool:
    return bool(content_type) and content_type.lower().startswith("image/")


class LocalObjectStore:
    """A single bucket on the local filesystem."""

    def __init__(self, root: str, bucket: str, public_base_url: str = ""):
        self.root = os.path.abspath(root)
        self.bucket = bucket
        self.public_base_url = (public_base_url or "").rstrip("/")

    @property
    def bucket_dir(self) -> str:
        return os.path.join(self.root, self.bucket)

    def resolve(self, object_path: str) -> str:
        """Absolute filesystem path for an object, refusing traversal."""
        parts = [p for p in (object_path or "").split("/") if p]
        if not parts or any(p in (".", "..") for p in parts):
            raise StorageError("Invalid object path", path=object_path)
        full = os.path.abspath(os.path.join(self.bucket_dir, *parts))
        if not full.startswith(self.bucket_dir + os.sep):
            raise StorageError("Invalid object path", path=object_path)
        return full

    # ── Writes ───────────────────────────────────────────────────────────

    def upload(self, object_path: str, stream, content_type: str | None = None) -> str:
        """Stream ``stream`` to ``object_path``. Returns the object path.

        Only images are accepted. Existing objects are never overwritten.
        """
        if not is_image(content_type):
            raise ValidationError(
                "Only image uploads are accepted",
                details={"file": "must be an image"},
            )
        target = self.resolve(object_path)
        if os.path.exists(target):
            raise StorageError("Object already exists", path=object_path)

        try:
            os.makedirs(os.path.dirname(target), exist_ok=True)
            with open(target, "wb") as out:
                shutil.copyfileobj(stream, out, CHUNK_SIZE)
        except OSError as exc:
            logger.exception("Upload failed", extra={"object_path": object_path})
            if os.path.exists(target):
                os.remove(target)
            raise StorageError("Could not store the file", path=object_path) from exc

        logger.info("Stored object", extra={"object_path": object_path})
        return object_path

    def remove(self, object_paths) -> list[str]:
        """Delete objects. Missing objects are skipped. Returns the removed paths."""
        removed = []
        for object_path in object_paths:
            target = self.resolve(object_path)
            if not os.path.exists(target):
                logger.warning("Object already gone", extra={"object_path": object_path})
                continue
            try:
                os.remove(target)
            except OSError as exc:
                raise StorageError("Could not remove the file", path=object_path) from exc
            removed.append(object_path)
        return removed

    # ── URLs ─────────────────────────────────────────────────────────────

    def get_public_url(self, object_path: str) -> str:
        return f"{self.public_base_url}/storage/{self.bucket}/{object_path}"

    def path_from_public_url(self, url: str | None) -> str | None:
        """Recover the object path from a public URL (split on ``/<bucket>/``)."""
        if not url:
            return None
        marker = f"/{self.bucket}/"
        if marker not in url:
            return None
        return url.split(marker, 1)[1] or None

    def exists(self, object_path: str) -> bool:
        return os.path.isfile(self.resolve(object_path))


def get_store() -> LocalObjectStore:
    """The configured bucket for the current app."""
    cfg = current_app.config
    return LocalObjectStore(
        root=cfg["UPLOAD_FOLDER"],
        bucket=cfg.get("STORAGE_BUCKET", "project_files"),
        public_base_url=cfg.get("PUBLIC_BASE_URL", ""),
    )
