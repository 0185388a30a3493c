"""Document store access (MongoDB)."""

from __future__ import annotations

from typing import Any, Protocol

from pymongo import MongoClient
from pymongo.errors import PyMongoError


class PersistTransportError(Exception):
    """Raised when the document store cannot be reached or queried."""


class DocumentStore(Protocol):
    def collection(self, dbname: str, name: str) -> Any: ...
    def collection_names(self, dbname: str) -> list[str]: ...


class MongoDocumentStore:
    """Thin wrapper over a shared MongoClient."""

    def __init__(self, uri: str | None = None, *, client: MongoClient | None = None, timeout_ms: int = 10000):
        if client is None:
            if not uri:
                raise ValueError("MONGO_URI is not configured")
            client = MongoClient(uri, serverSelectionTimeoutMS=timeout_ms)
        self._client = client

    def collection(self, dbname: str, name: str):
        return self._client[dbname][name]

    def collection_names(self, dbname: str) -> list[str]:
        try:
            return self._client[dbname].list_collection_names()
        except PyMongoError as e:
            raise PersistTransportError(f"Could not list collections in {dbname}: {e}") from e

    def close(self) -> None:
        self._client.close()
