"""Tests for the in-memory k8s client."""

import pytest
from box import Box

from s2i_operator.errors import errors
from s2i_operator.k8s.clients import DummyK8sClient
from s2i_operator.k8s.constants import CONFIG_MAP_GVK
from s2i_operator.k8s.models import K8sObject, K8sObjectFilter, K8sObjectMeta


def _config_map(name: str, namespace: str = "ns1", labels: dict[str, str] | None = None) -> K8sObject:
    return K8sObject(
        name=name,
        namespace=namespace,
        gvk=CONFIG_MAP_GVK,
        manifest=Box({"metadata": {"labels": labels or {}}, "data": {"data": "{}"}}),
    )


@pytest.mark.asyncio
async def test_create_and_get():
    client = DummyK8sClient()
    created = await client.create(_config_map("cm1"), refresh=True)

    assert created.manifest["apiVersion"] == "v1"
    assert created.manifest["kind"] == "ConfigMap"
    assert created.manifest["metadata"]["namespace"] == "ns1"
    res = await client.get(K8sObjectMeta(name="cm1", namespace="ns1", gvk=CONFIG_MAP_GVK))
    assert res is not None
    assert res.manifest["data"]["data"] == "{}"
    assert await client.get(K8sObjectMeta(name="cm1", namespace="ns2", gvk=CONFIG_MAP_GVK)) is None


@pytest.mark.asyncio
async def test_create_twice_conflicts():
    client = DummyK8sClient([_config_map("cm1")])
    with pytest.raises(errors.ConflictError):
        await client.create(_config_map("cm1"), refresh=False)


@pytest.mark.asyncio
async def test_merge_patch_keeps_unrelated_keys():
    client = DummyK8sClient([_config_map("cm1", labels={"team": "a"})])
    meta = K8sObjectMeta(name="cm1", namespace="ns1", gvk=CONFIG_MAP_GVK)

    res = await client.patch(meta, {"metadata": {"labels": {"run": "run1"}, "annotations": {"x": "y"}}})

    assert res.manifest["metadata"]["labels"] == {"team": "a", "run": "run1"}
    assert res.manifest["metadata"]["annotations"] == {"x": "y"}

    res = await client.patch(meta, {"metadata": {"labels": {"team": None}}})
    assert res.manifest["metadata"]["labels"] == {"run": "run1"}


@pytest.mark.asyncio
async def test_patch_missing_object():
    client = DummyK8sClient()
    with pytest.raises(errors.MissingResourceError):
        await client.patch(K8sObjectMeta(name="cm1", namespace="ns1", gvk=CONFIG_MAP_GVK), {"data": {}})


@pytest.mark.asyncio
async def test_json_patch_is_not_supported():
    client = DummyK8sClient([_config_map("cm1")])
    meta = K8sObjectMeta(name="cm1", namespace="ns1", gvk=CONFIG_MAP_GVK)
    with pytest.raises(errors.ProgrammingError):
        await client.patch(meta, [{"op": "remove", "path": "/data/data"}])


@pytest.mark.asyncio
async def test_list_filters():
    client = DummyK8sClient(
        [
            _config_map("cm1", labels={"run": "a"}),
            _config_map("cm2", labels={"run": "b"}),
            _config_map("cm3", namespace="ns2", labels={"run": "a"}),
        ]
    )

    names = [o.name async for o in client.list(K8sObjectFilter(gvk=CONFIG_MAP_GVK, label_selector={"run": "a"}))]
    assert sorted(names) == ["cm1", "cm3"]
    names = [o.name async for o in client.list(K8sObjectFilter(gvk=CONFIG_MAP_GVK, namespace="ns1"))]
    assert sorted(names) == ["cm1", "cm2"]
