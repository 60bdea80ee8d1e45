from __future__ import annotations

import json
import logging
from typing import Any

from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.storage.blob import BlobServiceClient

from abex_transport.errors import ContentStoreError

logger = logging.getLogger("abex_transport.storage")


def document_path(raw: str | None) -> list[str] | None:
    if not raw:
        return None
    segments = [part.strip() for part in raw.split("/") if part.strip()]
    if not segments or len(segments) % 2 != 0:
        return None
    return segments


class ContentStore:
    """JSON documents kept as one blob per collection/document path.

    Writes are read-modify-write with no concurrency check, so the last
    writer wins.
    """

    def __init__(self, connection_string: str | None, container: str) -> None:
        self._conn = connection_string
        self.container = container

    @classmethod
    def from_settings(cls, settings) -> ContentStore:
        return cls(settings.content_blob_connection_string, settings.content_blob_container)

    def _blob_client(self, path: str):
        if not self._conn:
            logger.info("content_storage_not_configured")
            raise ContentStoreError("Content storage is not configured")
        segments = document_path(path)
        if segments is None:
            raise ContentStoreError(f"Invalid document path: {path}")
        svc = BlobServiceClient.from_connection_string(self._conn)
        return svc.get_blob_client(container=self.container, blob="/".join(segments) + ".json")

    def read(self, path: str) -> dict[str, Any] | None:
        client = self._blob_client(path)
        try:
            data = client.download_blob().readall()
        except ResourceNotFoundError:
            logger.info("content_document_missing path=%s", path)
            return None
        except AzureError as exc:
            logger.warning("content_read_failed path=%s error=%s", path, str(exc))
            raise ContentStoreError("Failed to load content") from exc

        try:
            document = json.loads(data)
        except ValueError as exc:
            logger.warning("content_document_invalid path=%s error=%s", path, str(exc))
            raise ContentStoreError("Failed to load content") from exc
        if not isinstance(document, dict):
            logger.warning("content_document_not_an_object path=%s", path)
            return {}
        return document

    def write(self, path: str, document: dict[str, Any]) -> None:
        client = self._blob_client(path)
        try:
            client.upload_blob(json.dumps(document).encode("utf-8"), overwrite=True)
        except AzureError as exc:
            logger.warning("content_write_failed path=%s error=%s", path, str(exc))
            raise ContentStoreError("Failed to save content") from exc
        logger.info("content_saved path=%s keys=%s", path, len(document))

    def merge(self, path: str, fields: dict[str, Any]) -> dict[str, Any]:
        document = self.read(path) or {}
        document.update(fields)
        self.write(path, document)
        return document

    def delete_field(self, path: str, key: str) -> None:
        document = self.read(path)
        if document is None:
            raise ContentStoreError("Document not found", status_code=404)
        document.pop(key, None)
        self.write(path, document)
