"""Capability providers handing secrets, vars and storage to handlers."""

from __future__ import annotations

import os
from typing import Iterable, Mapping, Protocol

from interaction_router.db import session_scope
from interaction_router.errors import CapabilityError
from interaction_router.storage import DurableObjectNamespace, KvStore, ScopeFactory


class CapabilityProvider(Protocol):
    """Host bindings reachable from an interaction context."""

    def secret(self, binding: str) -> str: ...

    def var(self, binding: str) -> str: ...

    def kv(self, binding: str) -> KvStore: ...

    def durable_object(self, binding: str) -> DurableObjectNamespace: ...


class EnvironmentCapabilities:
    """Resolve bindings from the process environment and the storage database.

    Secrets and vars are looked up in *environ*. Key-value and durable-object
    bindings must be declared up front; requesting any other name raises
    :class:`CapabilityError`.
    """

    def __init__(
        self,
        *,
        environ: Mapping[str, str] | None = None,
        kv_namespaces: Iterable[str] = (),
        durable_objects: Iterable[str] = (),
        scope: ScopeFactory = session_scope,
    ) -> None:
        self._environ = environ if environ is not None else os.environ
        self._kv_namespaces = frozenset(kv_namespaces)
        self._durable_objects = frozenset(durable_objects)
        self._scope = scope

    def _lookup(self, binding: str, kind: str) -> str:
        value = self._environ.get(binding)
        if value is None:
            raise CapabilityError(f"{kind} binding '{binding}' is not configured")
        return value

    def secret(self, binding: str) -> str:
        return self._lookup(binding, "Secret")

    def var(self, binding: str) -> str:
        return self._lookup(binding, "Variable")

    def kv(self, binding: str) -> KvStore:
        if binding not in self._kv_namespaces:
            raise CapabilityError(f"KV binding '{binding}' is not configured")
        return KvStore(binding, scope=self._scope)

    def durable_object(self, binding: str) -> DurableObjectNamespace:
        if binding not in self._durable_objects:
            raise CapabilityError(f"Durable object binding '{binding}' is not configured")
        return DurableObjectNamespace(binding, scope=self._scope)
