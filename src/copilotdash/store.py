"""A small document store: one JSON file per collection, or purely in memory.

Queries are dictionaries of field -> value. A value that is itself a dict may
use the ``$gte`` / ``$lte`` range operators; anything else is an equality match.
"""

from __future__ import annotations

from copy import deepcopy
from pathlib import Path
import json
import os
import tempfile

import structlog

from copilotdash.errors import StoreError

logger = structlog.get_logger(__name__)

Document = dict[str, object]

_OPERATORS = {
    "$gte": lambda have, want: have is not None and have >= want,
    "$lte": lambda have, want: have is not None and have <= want,
    "$gt": lambda have, want: have is not None and have > want,
    "$lt": lambda have, want: have is not None and have < want,
    "$ne": lambda have, want: have != want,
}


def matches(doc: Document, query: Document) -> bool:
    for key, expected in query.items():
        have = doc.get(key)
        if isinstance(expected, dict) and expected and all(k.startswith("$") for k in expected):
            for op, operand in expected.items():
                check = _OPERATORS.get(op)
                if check is None:
                    raise StoreError(f"unsupported query operator {op}")
                if not check(have, operand):
                    return False
        elif have != expected:
            return False
    return True


class DocumentStore:
    """Handle owning the store's lifecycle: ``open()``, ``ping()``, ``close()``.

    With ``path=None`` nothing touches disk, which is what the tests use.
    """

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path).expanduser() if path is not None else None
        self._collections: dict[str, list[Document]] = {}
        self._open = False

    def __enter__(self) -> "DocumentStore":
        self.open()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> None:
        if self._open:
            return
        if self.path is not None:
            try:
                self.path.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise StoreError(f"cannot create store directory {self.path}: {exc}") from exc
        self._open = True
        logger.debug("store_opened", path=str(self.path) if self.path else None)

    def ping(self) -> bool:
        if not self._open:
            return False
        if self.path is None:
            return True
        return self.path.is_dir() and os.access(self.path, os.W_OK)

    def close(self) -> None:
        self._collections.clear()
        self._open = False

    # Queries

    def find(self, collection: str, query: Document | None = None, sort: str | None = None) -> list[Document]:
        docs = [deepcopy(d) for d in self._load(collection) if matches(d, query or {})]
        if sort:
            docs.sort(key=lambda d: (d.get(sort) is None, d.get(sort)))
        return docs

    def find_one(self, collection: str, query: Document) -> Document | None:
        for doc in self._load(collection):
            if matches(doc, query):
                return deepcopy(doc)
        return None

    def insert_one(self, collection: str, doc: Document) -> None:
        docs = self._load(collection)
        docs.append(deepcopy(doc))
        self._flush(collection, docs)

    def replace_one(self, collection: str, query: Document, doc: Document, upsert: bool = True) -> bool:
        """Replace the first match; insert when nothing matches and ``upsert`` is set.

        Returns True when a document was written.
        """
        docs = self._load(collection)
        for i, existing in enumerate(docs):
            if matches(existing, query):
                docs[i] = deepcopy(doc)
                self._flush(collection, docs)
                return True
        if not upsert:
            return False
        docs.append(deepcopy(doc))
        self._flush(collection, docs)
        return True

    # Persistence

    def _file(self, collection: str) -> Path:
        if self.path is None:
            raise StoreError(f"in-memory store has no file for {collection}")
        return self.path / f"{collection}.json"

    def _load(self, collection: str) -> list[Document]:
        if not self._open:
            raise StoreError("document store is not open")
        if collection in self._collections:
            return self._collections[collection]

        docs: list[Document] = []
        if self.path is not None:
            path = self._file(collection)
            if path.exists():
                try:
                    docs = json.loads(path.read_text())
                except (OSError, json.JSONDecodeError) as exc:
                    raise StoreError(f"cannot read collection {collection}: {exc}") from exc
                if not isinstance(docs, list):
                    raise StoreError(f"collection {collection} is not a list of documents")
        self._collections[collection] = docs
        return docs

    def _flush(self, collection: str, docs: list[Document]) -> None:
        self._collections[collection] = docs
        if self.path is None:
            return
        target = self._file(collection)
        try:
            fd, tmp = tempfile.mkstemp(dir=self.path, prefix=f".{collection}.", suffix=".tmp")
            with os.fdopen(fd, "w") as fh:
                json.dump(docs, fh, indent=2)
            os.replace(tmp, target)
        except OSError as exc:
            # Drop the cached copy so the next read reflects what is on disk.
            self._collections.pop(collection, None)
            raise StoreError(f"cannot write collection {collection}: {exc}") from exc
