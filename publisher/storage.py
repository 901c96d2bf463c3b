# publisher/storage.py
import os
import time
import logging
from typing import Callable, Optional
from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool
from werkzeug.utils import secure_filename

from publisher.config import config
from publisher.errors import ValidationError

logger = logging.getLogger(__name__)


def _epoch_millis() -> int:
    return int(time.time() * 1000)


class ImageStorage:
    """Writes uploaded images to a local directory served under url_prefix."""

    def __init__(
        self,
        directory: str,
        url_prefix: str = '/uploads',
        max_bytes: int = 5 * 1024 * 1024,
        clock: Callable[[], int] = _epoch_millis,
    ):
        self.directory = directory
        self.url_prefix = url_prefix.rstrip('/')
        self.max_bytes = max_bytes
        self._clock = clock

    async def save(self, upload: Optional[UploadFile]) -> str:
        """Store the file as '<epoch-ms>-<name>' and return its public URL."""
        if upload is None or not upload.filename:
            raise ValidationError("No file uploaded")
        if not (upload.content_type or '').startswith('image/'):
            raise ValidationError("Only image uploads are allowed")

        data = await upload.read(self.max_bytes + 1)
        if not data:
            raise ValidationError("Uploaded file is empty")
        if len(data) > self.max_bytes:
            raise ValidationError(f"File exceeds the {self.max_bytes} byte limit")

        filename = f"{self._clock()}-{secure_filename(upload.filename) or 'upload'}"
        path = os.path.join(self.directory, filename)
        await run_in_threadpool(self._write, path, data)
        logger.info(f"Stored upload '{upload.filename}' as {path} ({len(data)} bytes)")
        return f"{self.url_prefix}/{filename}"

    def _write(self, path: str, data: bytes) -> None:
        os.makedirs(self.directory, exist_ok=True)
        with open(path, 'wb') as fh:
            fh.write(data)


image_storage = ImageStorage(
    config.storage.upload_dir,
    url_prefix=config.storage.upload_url_prefix,
    max_bytes=config.storage.max_upload_bytes,
)
