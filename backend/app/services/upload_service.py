"""
Upload Service
Stores product and store images on local disk, served under /uploads
"""
import logging
import os
import random
import time
from typing import List, Optional

from fastapi import UploadFile

from app.core.config import settings
from app.services.errors import ValidationError

logger = logging.getLogger(__name__)

MAX_FILES = 5
ALLOWED_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}
ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}


def stored_filename(original_name: Optional[str], content_type: str) -> str:
    """<epoch-ms>-<random>.<ext>, keeping the original extension when allowed"""
    ext = os.path.splitext(original_name or "")[1].lower()
    if ext not in ALLOWED_EXTENSIONS:
        ext = ALLOWED_TYPES[content_type]
    return f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}{ext}"


class UploadService:

    def __init__(self, root_dir: Optional[str] = None, max_bytes: Optional[int] = None):
        self.root_dir = root_dir or settings.UPLOADS_DIR
        self.max_bytes = max_bytes or settings.MAX_UPLOAD_BYTES

    async def save_images(self, files: List[UploadFile], folder: str = "products") -> List[str]:
        """
        Validate and write images; returns their public URLs

        Raises:
            ValidationError: no files, too many files, bad type or too large
        """
        if not files:
            raise ValidationError("لم يتم رفع أي صور")
        if len(files) > MAX_FILES:
            raise ValidationError(f"الحد الأقصى {MAX_FILES} صور")

        # validate everything before writing anything
        contents = []
        for upload in files:
            if upload.content_type not in ALLOWED_TYPES:
                raise ValidationError("نوع الملف غير مدعوم. يرجى رفع صور فقط (JPEG, PNG, GIF, WebP)")
            # one byte past the limit is enough to know it is too large
            data = await upload.read(self.max_bytes + 1)
            if len(data) > self.max_bytes:
                raise ValidationError("حجم الصورة يجب ألا يتجاوز 5 ميجابايت")
            contents.append((upload, data))

        target_dir = os.path.join(self.root_dir, folder)
        os.makedirs(target_dir, exist_ok=True)

        urls = []
        for upload, data in contents:
            filename = stored_filename(upload.filename, upload.content_type)
            with open(os.path.join(target_dir, filename), "wb") as f:
                f.write(data)
            urls.append(f"/uploads/{folder}/{filename}")

        logger.info(f"Stored {len(urls)} images under {target_dir}")
        return urls
