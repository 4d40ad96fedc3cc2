import asyncio
import logging
import uuid
from pathlib import Path
from typing import Dict, List

from roadside.config import Settings
from roadside.errors import UpstreamUnavailable

logger = logging.getLogger(__name__)

class ImageStore:
    """
    Opaque photo storage on the local filesystem.

    Callers only keep the returned ``url`` and ``public_id``; image content is
    never inspected.
    """

    def __init__(self, settings: Settings):
        self.upload_dir = Path(settings.UPLOAD_DIR)
        self.base_url = settings.UPLOAD_BASE_URL.rstrip("/")

    def _path_for(self, public_id: str) -> Path:
        # public ids are generated here, never taken from clients as paths
        return self.upload_dir / Path(public_id).name

    def _write(self, public_id: str, data: bytes) -> None:
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        with open(self._path_for(public_id), "wb") as buffer:
            buffer.write(data)

    async def upload_photos(self, buffers: List[bytes], suffix: str = ".png") -> List[Dict[str, str]]:
        uploaded = []
        for data in buffers:
            public_id = f"{uuid.uuid4().hex}{suffix}"
            try:
                await asyncio.to_thread(self._write, public_id, data)
            except OSError as e:
                raise UpstreamUnavailable(f"Image upload failed: {e}") from e
            uploaded.append({"url": f"{self.base_url}/{public_id}", "public_id": public_id})
        return uploaded

    async def delete(self, public_id: str) -> bool:
        path = self._path_for(public_id)
        try:
            await asyncio.to_thread(path.unlink)
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning("Could not delete image %s: %s", public_id, e)
            return False
