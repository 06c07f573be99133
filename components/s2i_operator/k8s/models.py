"""Models for the k8s objects handled by the operator."""

from __future__ import annotations

from base64 import b64decode
from binascii import Error as BinasciiError
from dataclasses import dataclass, field
from typing import Any, Final, Self

from box import Box
from kr8s._api import Api
from kr8s.asyncio.objects import APIObject

from s2i_operator.errors import errors

CORE_GROUP: Final[str] = "core"


@dataclass(kw_only=True, frozen=True)
class GVK:
    """Group, version and kind of a k8s resource."""

    kind: str
    version: str
    group: str | None = None

    @property
    def is_core(self) -> bool:
        """Whether the kind belongs to the core api group."""
        return self.group is None or self.group.lower() == CORE_GROUP

    @property
    def group_version(self) -> str:
        """The `apiVersion` of objects of this kind."""
        return self.version if self.is_core else f"{self.group}/{self.version}"

    @property
    def kr8s_kind(self) -> str:
        """The kind string kr8s accepts, e.g. `secret/v1` or `s2irun.devops.kubesphere.io/v1alpha1`."""
        if self.is_core:
            return f"{self.kind.lower()}/{self.version}"
        return f"{self.kind.lower()}.{self.group_version}"

    @classmethod
    def from_api_version(cls, api_version: str, kind: str) -> Self:
        """Split an `apiVersion` into group and version."""
        group, _, version = api_version.rpartition("/")
        return cls(kind=kind, version=version, group=group or None)


@dataclass
class K8sObjectMeta:
    """Identifies a k8s object, an empty namespace means the object is cluster scoped."""

    name: str
    namespace: str | None
    gvk: GVK

    def __post_init__(self) -> None:
        if self.namespace == "":
            self.namespace = None

    @property
    def namespaced(self) -> bool:
        """Whether the object lives in a namespace."""
        return self.namespace is not None

    def with_manifest(self, manifest: dict[str, Any]) -> K8sObject:
        """Attach a manifest to this metadata."""
        return K8sObject(name=self.name, namespace=self.namespace, gvk=self.gvk, manifest=Box(manifest))

    def to_filter(self) -> K8sObjectFilter:
        """A filter matching only this object."""
        return K8sObjectFilter(gvk=self.gvk, namespace=self.namespace, name=self.name)


@dataclass
class K8sObject(K8sObjectMeta):
    """A k8s object with its manifest, the manifest is kept out of the repr."""

    manifest: Box = field(repr=False)

    def to_api_object(self, api: Api) -> APIObject:
        """The kr8s representation of this object."""
        meta = self

        class _APIObject(APIObject):
            kind = meta.gvk.kind
            version = meta.gvk.group_version
            singular = meta.gvk.kind.lower()
            plural = f"{meta.gvk.kind.lower()}s"
            endpoint = plural
            namespaced = meta.namespaced

        return _APIObject(resource=self.manifest.to_dict(), namespace=self.namespace, api=api)

    @classmethod
    def from_api_object(cls, obj: APIObject) -> K8sObject:
        """Convert a kr8s object."""
        if obj.name is None:
            raise errors.ProgrammingError(message="Cannot convert a k8s object without a name.")
        return cls(
            name=obj.name,
            namespace=obj.namespace,
            gvk=GVK.from_api_version(obj.version, obj.kind),
            manifest=Box(obj.to_dict()),
        )


@dataclass
class K8sSecret(K8sObject):
    """A secret, values are read through `get_value`."""

    @classmethod
    def from_k8s_object(cls, k8s_object: K8sObject) -> K8sSecret:
        """Treat a k8s object as a secret."""
        return cls(
            name=k8s_object.name,
            namespace=k8s_object.namespace,
            gvk=k8s_object.gvk,
            manifest=k8s_object.manifest,
        )

    @property
    def type(self) -> str:
        """The type of the secret, 'Opaque' when not set."""
        return str(self.manifest.get("type") or "Opaque")

    def get_value(self, key: str) -> bytes | None:
        """The decoded value under `key`, None when the key is absent.

        `stringData` wins over the base64 encoded `data`.
        """
        string_data = self.manifest.get("stringData") or {}
        if key in string_data:
            return str(string_data[key]).encode("utf-8")
        data = self.manifest.get("data") or {}
        if key not in data:
            return None
        try:
            return b64decode(data[key], validate=True)
        except (BinasciiError, ValueError) as err:
            raise errors.MalformedSecretError(
                message=f"The key {key} of secret {self.namespace}/{self.name} is not valid base64."
            ) from err


@dataclass
class K8sObjectFilter:
    """Selects objects when listing."""

    gvk: GVK
    name: str | None = None
    namespace: str | None = None
    label_selector: dict[str, str] | None = None
