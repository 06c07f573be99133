import asyncio

import httpx
import pytest

from s2i_operator.app_config import logging
from s2i_operator.controller.config import Config
from s2i_operator.controller.main import RunController, run_key
from s2i_operator.k8s.constants import CONFIG_MAP_GVK, JOB_GVK, S2I_RUN_GVK
from s2i_operator.s2i import constants
from s2i_operator.s2i.config import MaterializerConfig
from s2i_operator.s2i.reconcile import S2iRunReconciler
from test.utils import RecordingK8sClient, builder_manifest, run_manifest


@pytest.mark.parametrize(
    "kind,event_type,manifest,expected",
    [
        (S2I_RUN_GVK, "ADDED", {"metadata": {"name": "run1", "namespace": "ns1"}}, ("ns1", "run1")),
        (S2I_RUN_GVK, "MODIFIED", {"metadata": {"name": "run1", "namespace": "ns1"}}, ("ns1", "run1")),
        (S2I_RUN_GVK, "DELETED", {"metadata": {"name": "run1", "namespace": "ns1"}}, None),
        (
            JOB_GVK,
            "MODIFIED",
            {"metadata": {"name": "run1-abc-job", "namespace": "ns1", "labels": {constants.S2I_RUN_LABEL: "run1"}}},
            ("ns1", "run1"),
        ),
        (
            JOB_GVK,
            "DELETED",
            {"metadata": {"name": "run1-abc-job", "namespace": "ns1", "labels": {constants.S2I_RUN_LABEL: "run1"}}},
            ("ns1", "run1"),
        ),
        (JOB_GVK, "MODIFIED", {"metadata": {"name": "unrelated", "namespace": "ns1", "labels": {"app": "x"}}}, None),
        (CONFIG_MAP_GVK, "ADDED", {"metadata": {"name": "cm"}}, None),
    ],
)
def test_run_key(kind, event_type, manifest, expected):
    assert run_key(kind, event_type, manifest) == expected


def _controller(client: RecordingK8sClient, runner_image: str | None) -> RunController:
    materializer = MaterializerConfig(runner_image=runner_image)
    config = Config(log_cfg=logging.Config(), materializer=materializer, retry_delay_seconds=0)
    return RunController(client, S2iRunReconciler(client, materializer), config)  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_reconcile_creates_the_job():
    client = RecordingK8sClient([run_manifest(), builder_manifest()])
    controller = _controller(client, "kubesphere/s2irun:v3.2.0")

    await controller.reconcile("ns1", "run1")

    assert [obj.gvk.kind for obj in client.created][-1] == "Job"
    assert controller.queue.empty()


@pytest.mark.asyncio
async def test_failed_reconcile_is_retried():
    client = RecordingK8sClient([run_manifest(), builder_manifest()])
    controller = _controller(client, None)

    await controller.reconcile("ns1", "run1")
    await asyncio.sleep(0.01)

    assert client.created == []
    assert controller.queue.get_nowait() == ("ns1", "run1")


class FlakyListClient(RecordingK8sClient):
    """Fails the first list call like an unreachable api server would."""

    def __init__(self, manifests):
        super().__init__(manifests)
        self.list_calls = 0

    async def list(self, _filter):
        self.list_calls += 1
        if self.list_calls == 1:
            raise httpx.ConnectError("connection refused")
        async for obj in super().list(_filter):
            yield obj


@pytest.mark.asyncio
async def test_resync_survives_a_failed_list():
    client = FlakyListClient([run_manifest(), builder_manifest()])
    materializer = MaterializerConfig(runner_image="kubesphere/s2irun:v3.2.0")
    config = Config(
        log_cfg=logging.Config(),
        materializer=materializer,
        namespace="ns1",
        resync_period_seconds=0,
        retry_delay_seconds=0,
    )
    controller = RunController(client, S2iRunReconciler(client, materializer), config)  # type: ignore[arg-type]

    task = asyncio.create_task(controller._periodic_resync())
    while client.list_calls < 2:
        await asyncio.sleep(0.01)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert controller.queue.get_nowait() == ("ns1", "run1")
