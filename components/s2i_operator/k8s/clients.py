"""Different implementations of k8s clients."""

from __future__ import annotations

from collections.abc import AsyncIterable
from copy import deepcopy
from typing import Any

import kr8s
from box import Box
from kr8s.asyncio import Api
from kr8s.asyncio.objects import APIObject

from s2i_operator.app_config import logging
from s2i_operator.errors import errors
from s2i_operator.k8s.client_interfaces import K8sClient
from s2i_operator.k8s.config import KubeConfig
from s2i_operator.k8s.models import GVK, K8sObject, K8sObjectFilter, K8sObjectMeta

logger = logging.getLogger(__name__)


class K8sClusterClient(K8sClient):
    """A wrapper around a kr8s k8s client, acts on all resources of a cluster."""

    def __init__(self, kube_config: KubeConfig) -> None:
        self.__kube_config = kube_config
        self.__api: Api | None = None

    async def api(self) -> Api:
        """The kr8s api used by this client, created on first use."""
        if self.__api is None:
            self.__api = await self.__kube_config.api()
        return self.__api

    async def __list(self, _filter: K8sObjectFilter) -> AsyncIterable[APIObject]:
        names = [_filter.name] if _filter.name is not None else []
        try:
            api = await self.api()
            res = api.async_get(
                _filter.gvk.kr8s_kind,
                *names,
                label_selector=_filter.label_selector,
                namespace=_filter.namespace,
            )
            async for r in res:
                yield r
        except (kr8s.NotFoundError, ValueError):
            # ValueError is generated when the kind does not exist on the cluster
            return

    async def __get_api_object(self, _filter: K8sObjectFilter) -> APIObject | None:
        return await anext(aiter(self.__list(_filter)), None)

    async def create(self, obj: K8sObject, refresh: bool) -> K8sObject:
        """Create the k8s object."""
        api_obj = obj.to_api_object(await self.api())
        try:
            await api_obj.create()
        except kr8s.ServerError as err:
            if err.response is not None and err.response.status_code == 409:
                raise errors.ConflictError(message=f"The k8s resource {obj} already exists.") from err
            raise

        if refresh:
            # if refresh isn't called, status and timestamp will be blank
            await api_obj.refresh()
        logger.debug(f"Created k8s resource {obj}")

        return obj.with_manifest(api_obj.to_dict())

    async def patch(
        self,
        meta: K8sObjectMeta,
        patch: dict[str, Any] | list[dict[str, Any]],
        subresource: str | None = None,
    ) -> K8sObject:
        """Patch a k8s object.

        If the patch is a list we assume that we have a rfc6902 json patch like
        `[{ "op": "add", "path": "/a/b/c", "value": [ "foo", "bar" ] }]`.
        If the patch is a dictionary then it is considered to be a rfc7386 json merge patch.
        """
        obj = await self.__get_api_object(meta.to_filter())
        if obj is None:
            raise errors.MissingResourceError(message=f"The k8s resource with metadata {meta} cannot be found.")
        patch_type = "json" if isinstance(patch, list) else "merge"
        await obj.patch(patch, subresource=subresource, type=patch_type)
        await obj.refresh()
        return meta.with_manifest(obj.to_dict())

    async def get(self, meta: K8sObjectMeta) -> K8sObject | None:
        """Get a specific k8s object, None is returned if the object does not exist."""
        obj = await self.__get_api_object(meta.to_filter())
        if obj is None:
            return None
        return meta.with_manifest(obj.to_dict())

    async def list(self, _filter: K8sObjectFilter) -> AsyncIterable[K8sObject]:
        """List all k8s objects."""
        async for r in self.__list(_filter):
            yield K8sObject.from_api_object(r)


def _merge_patch(target: Any, patch: Any) -> Any:
    """Apply a rfc7386 json merge patch."""
    if not isinstance(patch, dict):
        return deepcopy(patch)
    result = deepcopy(target) if isinstance(target, dict) else {}
    for key, value in patch.items():
        if value is None:
            result.pop(key, None)
        else:
            result[key] = _merge_patch(result.get(key), value)
    return result


class DummyK8sClient(K8sClient):
    """Dummy k8s client that keeps all objects in memory and does not require a k8s cluster.

    Not suitable for production - to be used only for testing and development.
    """

    def __init__(self, objects: list[K8sObject] | None = None) -> None:
        self.objects: dict[tuple[GVK, str | None, str], dict[str, Any]] = {}
        self.created: list[K8sObject] = []
        for obj in objects or []:
            self.objects[self._key(obj)] = self._normalize(obj)

    @staticmethod
    def _key(meta: K8sObjectMeta) -> tuple[GVK, str | None, str]:
        return meta.gvk, meta.namespace, meta.name

    @staticmethod
    def _normalize(obj: K8sObject) -> dict[str, Any]:
        manifest = obj.manifest.to_dict() if isinstance(obj.manifest, Box) else deepcopy(dict(obj.manifest))
        manifest.setdefault("apiVersion", obj.gvk.group_version)
        manifest.setdefault("kind", obj.gvk.kind)
        metadata = manifest.setdefault("metadata", {})
        metadata["name"] = obj.name
        if obj.namespace is not None:
            metadata["namespace"] = obj.namespace
        return manifest

    async def create(self, obj: K8sObject, refresh: bool) -> K8sObject:
        """Create the k8s object."""
        key = self._key(obj)
        if key in self.objects:
            raise errors.ConflictError(message=f"The k8s resource {obj} already exists.")
        self.objects[key] = self._normalize(obj)
        created = obj.with_manifest(deepcopy(self.objects[key]))
        self.created.append(created)
        return created

    async def patch(
        self,
        meta: K8sObjectMeta,
        patch: dict[str, Any] | list[dict[str, Any]],
        subresource: str | None = None,
    ) -> K8sObject:
        """Patch a k8s object, only rfc7386 json merge patches are supported."""
        key = self._key(meta)
        if key not in self.objects:
            raise errors.MissingResourceError(message=f"The k8s resource with metadata {meta} cannot be found.")
        if isinstance(patch, list):
            raise errors.ProgrammingError(message="The dummy k8s client does not support rfc6902 json patches.")
        self.objects[key] = _merge_patch(self.objects[key], patch)
        return meta.with_manifest(deepcopy(self.objects[key]))

    async def get(self, meta: K8sObjectMeta) -> K8sObject | None:
        """Get a specific k8s object, None is returned if the object does not exist."""
        manifest = self.objects.get(self._key(meta))
        if manifest is None:
            return None
        return meta.with_manifest(deepcopy(manifest))

    async def list(self, _filter: K8sObjectFilter) -> AsyncIterable[K8sObject]:
        """List all k8s objects."""
        for (gvk, namespace, name), manifest in list(self.objects.items()):
            if gvk != _filter.gvk:
                continue
            if _filter.namespace is not None and namespace != _filter.namespace:
                continue
            if _filter.name is not None and name != _filter.name:
                continue
            labels = manifest.get("metadata", {}).get("labels") or {}
            if _filter.label_selector and any(labels.get(k) != v for k, v in _filter.label_selector.items()):
                continue
            yield K8sObject(name=name, namespace=namespace, gvk=gvk, manifest=Box(deepcopy(manifest)))
