"""JSON file ledger store used by the client SDK."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Dict, Mapping

from jobboard.moderation.domain.ledger import LedgerStoreError

logger = logging.getLogger(__name__)


class FileLedgerStore:
    """Keeps every actor's ledger in one JSON file for a single client profile.

    Writes go through a temporary file and ``os.replace`` so a crash never leaves
    a half-written document. A corrupt file reads as an error; the next write
    starts it over.
    """

    name = "file"

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def get(self, actor_id: str) -> Mapping[str, Any] | None:
        documents = await asyncio.to_thread(self._read)
        return documents.get(actor_id)

    async def set(self, actor_id: str, document: Mapping[str, Any]) -> None:
        await asyncio.to_thread(self._update, actor_id, dict(document))

    async def delete(self, actor_id: str) -> None:
        await asyncio.to_thread(self._update, actor_id, None)

    @asynccontextmanager
    async def lock(self, actor_id: str) -> AsyncIterator[None]:
        async with self._lock:
            yield

    def _read(self) -> Dict[str, Any]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except (OSError, UnicodeDecodeError) as exc:
            raise LedgerStoreError(f"cannot read {self._path}") from exc
        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except ValueError as exc:
            raise LedgerStoreError(f"corrupt ledger file {self._path}") from exc
        if not isinstance(data, dict):
            raise LedgerStoreError(f"ledger file {self._path} must hold an object")
        return data

    def _update(self, actor_id: str, document: Dict[str, Any] | None) -> None:
        try:
            documents = self._read()
        except LedgerStoreError:
            logger.warning("discarding unreadable ledger file %s", self._path)
            documents = {}
        if document is None:
            if actor_id not in documents:
                return
            documents.pop(actor_id)
        else:
            documents[actor_id] = document
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(documents, indent=2, sort_keys=True), encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as exc:
            raise LedgerStoreError(f"cannot write {self._path}") from exc
