"""
Upload Service - issue photos on local disk

Images live under UPLOAD_DIR/ISSUE_IMAGE_SUBDIR and are served by the
/uploads static mount, so the stored path doubles as the public URL.
"""

import os
import random
import time
from pathlib import Path
from typing import Optional

import aiofiles
import aiofiles.os
from fastapi import UploadFile

from app.core.config import settings
from app.core.exceptions import ValidationError
from app.core.logging_config import logger


CHUNK_SIZE = 64 * 1024
PUBLIC_PREFIX = "/uploads"


class UploadService:
    """Validates and stores uploaded issue images"""

    def __init__(self):
        self.max_size = settings.MAX_IMAGE_SIZE
        self.allowed_extensions = settings.ALLOWED_IMAGE_EXTENSIONS

    @property
    def image_dir(self) -> Path:
        return settings.ISSUE_IMAGE_PATH

    def is_allowed(self, filename: Optional[str], content_type: Optional[str]) -> bool:
        """Both the extension and the MIME type must name an allowed image format"""
        ext = os.path.splitext(filename or "")[1].lower().lstrip(".")
        mime = (content_type or "").lower()
        ext_ok = any(allowed in ext for allowed in self.allowed_extensions) if ext else False
        mime_ok = any(allowed in mime for allowed in self.allowed_extensions)
        return ext_ok and mime_ok

    def make_filename(self, original_name: str) -> str:
        """issue-<epoch ms>-<random suffix><original extension>"""
        suffix = random.randint(0, 10 ** 9)
        ext = os.path.splitext(original_name)[1]
        return f"issue-{int(time.time() * 1000)}-{suffix}{ext}"

    async def save_issue_image(self, upload: UploadFile) -> str:
        """
        Store an uploaded image and return its public path.

        Raises ValidationError for a disallowed type or an oversized file;
        nothing is left on disk in either case.
        """
        if not self.is_allowed(upload.filename, upload.content_type):
            raise ValidationError("Only image files are allowed", field="image")

        self.image_dir.mkdir(parents=True, exist_ok=True)
        filename = self.make_filename(upload.filename)
        target = self.image_dir / filename

        written = 0
        try:
            async with aiofiles.open(target, "wb") as f:
                while True:
                    chunk = await upload.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > self.max_size:
                        raise ValidationError(
                            f"Image too large. Maximum size is {self.max_size // 1024 // 1024}MB",
                            field="image",
                        )
                    await f.write(chunk)
        except ValidationError:
            await self._remove(target)
            raise

        logger.info(f"[Upload] Stored issue image {filename} ({written} bytes)")
        return f"{PUBLIC_PREFIX}/{settings.ISSUE_IMAGE_SUBDIR}/{filename}"

    def path_for(self, public_url: str) -> Optional[Path]:
        """Disk path behind a /uploads/... URL, or None if it points elsewhere"""
        if not public_url or not public_url.startswith(PUBLIC_PREFIX + "/"):
            return None
        relative = public_url[len(PUBLIC_PREFIX) + 1:]
        candidate = (settings.UPLOAD_PATH / relative).resolve()
        root = settings.UPLOAD_PATH.resolve()
        if root not in candidate.parents:
            return None
        return candidate

    async def delete_public_file(self, public_url: Optional[str]) -> bool:
        """Best-effort removal of a stored upload"""
        path = self.path_for(public_url) if public_url else None
        if path is None:
            return False
        return await self._remove(path)

    async def _remove(self, path: Path) -> bool:
        try:
            await aiofiles.os.remove(path)
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning(f"[Upload] Could not remove {path}: {e}")
            return False


# Singleton instance
upload_service = UploadService()
