"""Storage abstraction layer for uploaded media."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import IO, Iterable

from errors import GatewayError

logger = logging.getLogger(__name__)


class AbstractStorage(ABC):
    """Interface for media backends.

    ``upload`` returns a durable URL that is stored on the owning row; the
    caller never needs the backend again to render it.
    """

    @abstractmethod
    def upload(self, file_obj: IO[bytes], filename: str, folder: str) -> str:
        """Persist a file under ``folder`` and return its public URL."""

    @abstractmethod
    def delete(self, url: str) -> None:
        """Remove a previously uploaded file identified by its URL."""

    def discard(self, urls: Iterable[str]) -> None:
        """Best-effort removal of orphaned uploads; failures are logged, not raised."""

        for url in urls:
            try:
                self.delete(url)
            except GatewayError:
                logger.exception("Could not remove orphaned media %s", url)
