"""The interface the operator uses to read and write cluster objects."""

from __future__ import annotations

from collections.abc import AsyncIterable
from typing import Any, Protocol

from s2i_operator.k8s.models import K8sObject, K8sObjectFilter, K8sObjectMeta


class K8sClient(Protocol):
    """Typed access to objects keyed by kind, namespace and name."""

    async def create(self, obj: K8sObject, refresh: bool) -> K8sObject:
        """Create an object, raises a `ConflictError` when it already exists.

        With `refresh` the returned manifest includes the fields set by the server.
        """
        ...

    async def patch(
        self,
        meta: K8sObjectMeta,
        patch: dict[str, Any] | list[dict[str, Any]],
        subresource: str | None = None,
    ) -> K8sObject:
        """Patch an object with a json merge patch (a dict) or a json patch (a list of operations)."""
        ...

    async def get(self, meta: K8sObjectMeta) -> K8sObject | None:
        """The object, None when it does not exist."""
        ...

    def list(self, _filter: K8sObjectFilter) -> AsyncIterable[K8sObject]:
        """The objects matching the filter."""
        ...
