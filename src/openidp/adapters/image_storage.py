"""ABOUTME: Image storage adapters for uploaded profile pictures
ABOUTME: Abstract interface plus a local filesystem implementation"""

import re
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO

import structlog

logger = structlog.get_logger(__name__)

_SCHEME_AND_HOST = re.compile(r"^.*//[^/]+/")


class ImageStorage(ABC):
    """Abstract base class for storing uploaded images."""

    @abstractmethod
    def upload_image_stream(self, stream: BinaryIO, key: str, content_type: str) -> str:
        """Store the stream under key and return the public URL of the stored image."""

    @abstractmethod
    def delete_image(self, key: str) -> None:
        """Delete the image stored under key. Deleting a missing image is not an error."""

    def key_from_url(self, url: str) -> str:
        """Strip scheme and host from a public URL to get the storage key."""
        return _SCHEME_AND_HOST.sub("", url)


class LocalImageStorage(ImageStorage):
    """Stores images in a directory, served under base_url."""

    def __init__(self, root_dir: Path, base_url: str) -> None:
        self.root_dir = root_dir
        self.base_url = base_url.rstrip("/")

    def _path_for(self, key: str) -> Path:
        path = (self.root_dir / key).resolve()
        if not path.is_relative_to(self.root_dir.resolve()):
            raise ValueError(f"Image key escapes the storage directory: {key}")
        return path

    def upload_image_stream(self, stream: BinaryIO, key: str, content_type: str) -> str:
        path = self._path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("wb") as fp:
            shutil.copyfileobj(stream, fp)
        logger.info("stored image", key=key, content_type=content_type)
        return f"{self.base_url}/{key}"

    def delete_image(self, key: str) -> None:
        path = self._path_for(key)
        if path.exists():
            path.unlink()
            logger.info("deleted image", key=key)
        else:
            logger.warning("image to delete not found", key=key)

    def key_from_url(self, url: str) -> str:
        if url.startswith(f"{self.base_url}/"):
            return url[len(self.base_url) + 1 :]
        return super().key_from_url(url)
