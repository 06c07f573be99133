"""Helpers shared by the tests."""

import base64
import json
from typing import Any

from box import Box

from s2i_operator.k8s.clients import DummyK8sClient
from s2i_operator.k8s.constants import S2I_BUILDER_GVK, S2I_BUILDER_TEMPLATE_GVK, S2I_RUN_GVK, SECRET_GVK
from s2i_operator.k8s.models import K8sObject, K8sObjectMeta

RUN_UID = "d3a7c1f0-8b5e-4c2a-9f1d-2e6b7a9c0f31"
RUN_UID_SUFFIX = "2e6b7a9c0f31"


def run_manifest(
    name: str = "run1", namespace: str = "ns1", builder: str = "builder1", uid: str = RUN_UID, **spec: Any
) -> dict[str, Any]:
    return {
        "apiVersion": "devops.kubesphere.io/v1alpha1",
        "kind": "S2iRun",
        "metadata": {"name": name, "namespace": namespace, "uid": uid},
        "spec": {"builderName": builder, **spec},
    }


def builder_manifest(
    name: str = "builder1",
    namespace: str = "ns1",
    config: dict[str, Any] | None = None,
    from_template: dict[str, Any] | None = None,
) -> dict[str, Any]:
    spec: dict[str, Any] = {
        "config": config
        if config is not None
        else {
            "sourceUrl": "https://github.com/kubesphere/devops-java-sample.git",
            "builderImage": "kubesphere/java-8-centos7:v2.1.0",
            "imageName": "kubesphere/hello-java",
            "tag": "v1",
            "revisionId": "master",
        }
    }
    if from_template is not None:
        spec["fromTemplate"] = from_template
    return {
        "apiVersion": "devops.kubesphere.io/v1alpha1",
        "kind": "S2iBuilder",
        "metadata": {"name": name, "namespace": namespace},
        "spec": spec,
    }


def template_manifest(
    name: str = "java",
    default_image: str = "kubesphere/java-8-centos7:v2.1.0",
    images: list[str] | None = None,
    parameters: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    images = images if images is not None else [default_image, "kubesphere/java-11-centos7:v2.1.0"]
    return {
        "apiVersion": "devops.kubesphere.io/v1alpha1",
        "kind": "S2iBuilderTemplate",
        "metadata": {"name": name},
        "spec": {
            "defaultBaseImage": default_image,
            "containerInfo": [{"builderImage": image} for image in images],
            "parameters": parameters or [],
        },
    }


def docker_config_secret_manifest(
    name: str,
    namespace: str = "ns1",
    auths: dict[str, dict[str, str]] | None = None,
    secret_type: str = "kubernetes.io/dockerconfigjson",
) -> dict[str, Any]:
    docker_config = {"auths": auths if auths is not None else {}}
    encoded = base64.b64encode(json.dumps(docker_config).encode()).decode()
    return {
        "apiVersion": "v1",
        "kind": "Secret",
        "metadata": {"name": name, "namespace": namespace},
        "type": secret_type,
        "data": {".dockerconfigjson": encoded},
    }


def basic_auth_secret_manifest(name: str, namespace: str = "ns1", **values: str | bytes) -> dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": "Secret",
        "metadata": {"name": name, "namespace": namespace},
        "type": "kubernetes.io/basic-auth",
        "data": {
            key: base64.b64encode(value if isinstance(value, bytes) else value.encode()).decode()
            for key, value in values.items()
        },
    }


_GVKS = {
    "S2iRun": S2I_RUN_GVK,
    "S2iBuilder": S2I_BUILDER_GVK,
    "S2iBuilderTemplate": S2I_BUILDER_TEMPLATE_GVK,
    "Secret": SECRET_GVK,
}


def to_k8s_object(manifest: dict[str, Any]) -> K8sObject:
    metadata = manifest["metadata"]
    return K8sObject(
        name=metadata["name"],
        namespace=metadata.get("namespace"),
        gvk=_GVKS[manifest["kind"]],
        manifest=Box(manifest),
    )


class RecordingK8sClient(DummyK8sClient):
    """In-memory client that records every call made to it."""

    def __init__(self, manifests: list[dict[str, Any]] | None = None) -> None:
        super().__init__([to_k8s_object(m) for m in manifests or []])
        self.calls: list[tuple[str, str]] = []

    async def create(self, obj: K8sObject, refresh: bool) -> K8sObject:
        self.calls.append(("create", obj.gvk.kind))
        return await super().create(obj, refresh)

    async def patch(
        self, meta: K8sObjectMeta, patch: dict[str, Any] | list[dict[str, Any]], subresource: str | None = None
    ) -> K8sObject:
        self.calls.append(("patch", meta.gvk.kind))
        return await super().patch(meta, patch, subresource)

    async def get(self, meta: K8sObjectMeta) -> K8sObject | None:
        self.calls.append(("get", meta.gvk.kind))
        return await super().get(meta)
