"""Storage helpers for configured business-data sources."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Sequence

from bizdash.config import SETTINGS
from bizdash.domain.models import Source
from bizdash.domain.repositories import SourceRepository

logger = logging.getLogger(__name__)


def _normalize_source(raw: Any) -> Source | None:
    if not isinstance(raw, dict):
        return None
    try:
        source_id = int(raw.get("id"))
    except (TypeError, ValueError):
        return None
    base_url = str(raw.get("base_url") or "").strip()
    workbook = str(raw.get("workbook") or "").strip() or None
    if not base_url and not workbook:
        return None
    alias = str(raw.get("alias") or "").strip() or f"source-{source_id}"
    try:
        refresh_seconds = int(raw.get("refresh_seconds") or 0)
    except (TypeError, ValueError):
        refresh_seconds = 0
    return Source(
        id=source_id,
        alias=alias,
        base_url=base_url,
        username=str(raw.get("username") or ""),
        password=str(raw.get("password") or ""),
        refresh_seconds=refresh_seconds,
        workbook=workbook,
    )


def _source_to_dict(source: Source) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "id": source.id,
        "alias": source.alias,
        "base_url": source.base_url,
        "username": source.username,
        "password": source.password,
        "refresh_seconds": source.refresh_seconds,
    }
    if source.workbook:
        entry["workbook"] = source.workbook
    return entry


def load_sources(path: Path | None = None) -> list[Source]:
    store_path = path or SETTINGS.sources_path
    if not store_path.exists():
        return []
    try:
        data = json.loads(store_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        logger.warning("Ignoring unreadable source store %s", store_path)
        return []
    if isinstance(data, dict):
        data = data.get("sources", [])
    if not isinstance(data, list):
        return []
    sources: list[Source] = []
    seen: set[int] = set()
    for raw in data:
        source = _normalize_source(raw)
        if source is None or source.id in seen:
            continue
        seen.add(source.id)
        sources.append(source)
    return sources


def save_sources(sources: Sequence[Source], path: Path | None = None) -> list[Source]:
    store_path = path or SETTINGS.sources_path
    store_path.parent.mkdir(parents=True, exist_ok=True)
    payload = {"sources": [_source_to_dict(source) for source in sources]}
    store_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    return load_sources(store_path)


class JsonSourceRepository(SourceRepository):
    def __init__(self, path: Path | None = None) -> None:
        self._path = path

    def list_sources(self) -> Sequence[Source]:
        return load_sources(self._path)

    def get_source(self, source_id: int) -> Source | None:
        return next((source for source in self.list_sources() if source.id == source_id), None)

    def find(self, key: str) -> Source | None:
        """Look a source up by numeric id or case-insensitive alias."""
        wanted = key.strip()
        for source in self.list_sources():
            if str(source.id) == wanted or source.alias.lower() == wanted.lower():
                return source
        return None
