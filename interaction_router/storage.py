"""Key-value and durable-object storage handles exposed to handlers."""

from __future__ import annotations

import asyncio
import hashlib
import json
from contextlib import AbstractContextManager
from datetime import UTC, datetime, timedelta
from typing import Any, Callable, Dict, List

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from interaction_router.db import session_scope
from interaction_router.models import DurableEntry, KvEntry

ScopeFactory = Callable[[], AbstractContextManager[Session]]


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _is_expired(entry: KvEntry, now: datetime) -> bool:
    if entry.expires_at is None:
        return False
    expires_at = entry.expires_at
    if expires_at.tzinfo is None:
        # SQLite drops tzinfo on read; values are always written in UTC.
        expires_at = expires_at.replace(tzinfo=UTC)
    return expires_at <= now


class KvStore:
    """String values grouped under a namespace binding.

    All methods are coroutines; database work runs in a worker thread so a
    handler awaiting a read does not block other in-flight requests.
    """

    def __init__(self, namespace: str, *, scope: ScopeFactory = session_scope) -> None:
        self.namespace = namespace
        self._scope = scope

    async def get(self, key: str) -> str | None:
        return await asyncio.to_thread(self._get, key)

    async def get_json(self, key: str) -> Any:
        raw = await self.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    async def put(self, key: str, value: str, *, expiration_ttl: int | None = None) -> None:
        if expiration_ttl is not None and expiration_ttl <= 0:
            raise ValueError("expiration_ttl must be greater than zero seconds.")
        await asyncio.to_thread(self._put, key, value, expiration_ttl)

    async def put_json(self, key: str, value: Any, *, expiration_ttl: int | None = None) -> None:
        await self.put(key, json.dumps(value), expiration_ttl=expiration_ttl)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._delete, key)

    async def list_keys(self, prefix: str | None = None, *, limit: int = 1000) -> List[str]:
        return await asyncio.to_thread(self._list_keys, prefix, limit)

    def _get(self, key: str) -> str | None:
        with self._scope() as session:
            entry = session.execute(
                select(KvEntry).where(KvEntry.namespace == self.namespace, KvEntry.key == key)
            ).scalar_one_or_none()
            if entry is None or _is_expired(entry, _utcnow()):
                return None
            return entry.value

    def _put(self, key: str, value: str, expiration_ttl: int | None) -> None:
        expires_at = _utcnow() + timedelta(seconds=expiration_ttl) if expiration_ttl else None
        try:
            self._write(key, value, expires_at)
        except IntegrityError:
            # Another writer inserted the key first; the retry takes the update path.
            self._write(key, value, expires_at)

    def _write(self, key: str, value: str, expires_at: datetime | None) -> None:
        with self._scope() as session:
            entry = session.execute(
                select(KvEntry).where(KvEntry.namespace == self.namespace, KvEntry.key == key)
            ).scalar_one_or_none()
            if entry is None:
                session.add(
                    KvEntry(namespace=self.namespace, key=key, value=value, expires_at=expires_at)
                )
            else:
                entry.value = value
                entry.expires_at = expires_at

    def _delete(self, key: str) -> None:
        with self._scope() as session:
            session.execute(
                delete(KvEntry).where(KvEntry.namespace == self.namespace, KvEntry.key == key)
            )

    def _list_keys(self, prefix: str | None, limit: int) -> List[str]:
        now = _utcnow()
        with self._scope() as session:
            query = select(KvEntry.key).where(
                KvEntry.namespace == self.namespace,
                or_(KvEntry.expires_at.is_(None), KvEntry.expires_at > now),
            )
            if prefix:
                query = query.where(KvEntry.key.startswith(prefix, autoescape=True))
            query = query.order_by(KvEntry.key).limit(limit)
            return list(session.execute(query).scalars().all())


class DurableObjectStorage:
    """JSON values scoped to a single object of a durable-object namespace."""

    def __init__(self, namespace: str, object_id: str, *, scope: ScopeFactory = session_scope) -> None:
        self.namespace = namespace
        self.object_id = object_id
        self._scope = scope

    async def get(self, key: str, default: Any = None) -> Any:
        return await asyncio.to_thread(self._get, key, default)

    async def put(self, key: str, value: Any) -> None:
        await asyncio.to_thread(self._put, key, json.dumps(value))

    async def delete(self, key: str) -> bool:
        return await asyncio.to_thread(self._delete, key)

    async def list(self) -> Dict[str, Any]:
        return await asyncio.to_thread(self._list)

    def _where(self):
        return (
            DurableEntry.namespace == self.namespace,
            DurableEntry.object_id == self.object_id,
        )

    def _get(self, key: str, default: Any) -> Any:
        with self._scope() as session:
            entry = session.execute(
                select(DurableEntry).where(*self._where(), DurableEntry.key == key)
            ).scalar_one_or_none()
            if entry is None:
                return default
            return json.loads(entry.value_json)

    def _put(self, key: str, value_json: str) -> None:
        try:
            self._write(key, value_json)
        except IntegrityError:
            self._write(key, value_json)

    def _write(self, key: str, value_json: str) -> None:
        with self._scope() as session:
            entry = session.execute(
                select(DurableEntry).where(*self._where(), DurableEntry.key == key)
            ).scalar_one_or_none()
            if entry is None:
                session.add(
                    DurableEntry(
                        namespace=self.namespace,
                        object_id=self.object_id,
                        key=key,
                        value_json=value_json,
                    )
                )
            else:
                entry.value_json = value_json

    def _delete(self, key: str) -> bool:
        with self._scope() as session:
            result = session.execute(
                delete(DurableEntry).where(*self._where(), DurableEntry.key == key)
            )
            return bool(result.rowcount)

    def _list(self) -> Dict[str, Any]:
        with self._scope() as session:
            entries = session.execute(
                select(DurableEntry).where(*self._where()).order_by(DurableEntry.key)
            ).scalars().all()
            return {entry.key: json.loads(entry.value_json) for entry in entries}


class DurableObjectNamespace:
    """Handle to a durable-object binding; objects are addressed by id."""

    def __init__(self, binding: str, *, scope: ScopeFactory = session_scope) -> None:
        self.binding = binding
        self._scope = scope

    def id_from_name(self, name: str) -> str:
        """Return the stable object id for *name* within this namespace."""

        return hashlib.sha256(f"{self.binding}:{name}".encode("utf-8")).hexdigest()

    def get(self, object_id: str) -> DurableObjectStorage:
        return DurableObjectStorage(self.binding, object_id, scope=self._scope)
