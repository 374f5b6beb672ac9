"""Local filesystem storage implementation."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import IO, BinaryIO

from werkzeug.utils import secure_filename

from config import Config
from errors import GatewayError

from .abstract_storage import AbstractStorage

logger = logging.getLogger(__name__)


class LocalStorage(AbstractStorage):
    """Persist files under the configured upload directory and serve them from ``url_prefix``."""

    def __init__(self, upload_dir: str | None = None, url_prefix: str = "/media"):
        self.base_directory = Path(upload_dir or Config.UPLOAD_DIR)
        self.url_prefix = url_prefix.rstrip("/")
        os.makedirs(self.base_directory, exist_ok=True)

    def upload(self, file_obj: IO[bytes], filename: str, folder: str) -> str:
        """Save a file and return the URL it is served from."""

        safe_name = secure_filename(filename)
        if not safe_name:
            raise ValueError("Filename must contain at least one valid character.")

        directory = self.base_directory / folder
        destination = directory / safe_name
        try:
            os.makedirs(directory, exist_ok=True)
            if hasattr(file_obj, "save"):
                file_obj.save(destination)  # type: ignore[arg-type]
            else:
                with open(destination, "wb") as output:
                    output.write(file_obj.read())
        except OSError as exc:
            raise GatewayError("Media upload failed.") from exc

        relative = destination.relative_to(self.base_directory).as_posix()
        logger.info("Stored media file %s", relative)
        return f"{self.url_prefix}/{relative}"

    def delete(self, url: str) -> None:
        path = self.path_for_url(url)
        if path is not None and self.exists(path):
            try:
                (self.base_directory / path).unlink()
            except OSError as exc:
                raise GatewayError("Media delete failed.") from exc
            logger.info("Removed media file %s", path)

    def path_for_url(self, url: str) -> str | None:
        """Return the relative path for a URL issued by this backend."""

        prefix = f"{self.url_prefix}/"
        if not url.startswith(prefix):
            return None
        return url[len(prefix):]

    def exists(self, path: str) -> bool:
        """Return True if the given relative path exists within the upload directory."""

        return (self.base_directory / path).is_file()

    def open(self, path: str, mode: str = "rb") -> BinaryIO:
        """Open a stored file using the provided mode."""

        return open(self.base_directory / path, mode)
