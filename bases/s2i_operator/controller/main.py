"""The entrypoint for the controller that reconciles runs."""

from __future__ import annotations

import asyncio
from typing import Any

import httpcore
import httpx

from s2i_operator.app_config import logging
from s2i_operator.controller.config import Config
from s2i_operator.errors import errors
from s2i_operator.k8s.clients import K8sClusterClient
from s2i_operator.k8s.config import kube_config_from_env
from s2i_operator.k8s.constants import JOB_GVK, S2I_RUN_GVK
from s2i_operator.k8s.models import GVK, K8sObjectFilter
from s2i_operator.s2i import constants
from s2i_operator.s2i.reconcile import S2iRunReconciler

logger = logging.getLogger(__name__)


def run_key(kind: GVK, event_type: str, manifest: dict[str, Any]) -> tuple[str, str] | None:
    """The namespace and name of the run an event is about, None if the event needs no reconciliation."""
    metadata = manifest.get("metadata") or {}
    namespace = metadata.get("namespace")
    if namespace is None:
        return None
    if kind == S2I_RUN_GVK:
        if event_type == "DELETED":
            return None
        return namespace, metadata["name"]
    run_name = (metadata.get("labels") or {}).get(constants.S2I_RUN_LABEL)
    if run_name is None:
        return None
    return namespace, run_name


class RunController:
    """Reconciles runs one at a time as their objects change."""

    def __init__(self, client: K8sClusterClient, reconciler: S2iRunReconciler, config: Config) -> None:
        self.client = client
        self.reconciler = reconciler
        self.config = config
        self.queue: asyncio.Queue[tuple[str, str]] = asyncio.Queue()

    async def reconcile(self, namespace: str, name: str) -> None:
        """Reconcile one run, failures are retried later."""
        try:
            await self.reconciler.reconcile(namespace, name)
        except errors.BaseError as err:
            logger.error(f"Failed to reconcile S2iRun {namespace}/{name}: {err.message}")
            self._retry_later(namespace, name)
        except Exception as e:
            logger.error(f"Failed to reconcile S2iRun {namespace}/{name}", exc_info=e)
            self._retry_later(namespace, name)

    def _retry_later(self, namespace: str, name: str) -> None:
        asyncio.get_running_loop().call_later(self.config.retry_delay_seconds, self.queue.put_nowait, (namespace, name))

    async def _worker(self) -> None:
        while True:
            namespace, name = await self.queue.get()
            await self.reconcile(namespace, name)
            self.queue.task_done()

    async def _watch_kind(self, kind: GVK) -> None:
        logger.info(f"Watching kind {kind.kind} in namespace {self.config.namespace}")
        while True:
            try:
                api = await self.client.api()
                watch = api.async_watch(kind=kind.kr8s_kind, namespace=self.config.namespace)
                async for event_type, obj in watch:
                    key = run_key(kind, event_type, obj.to_dict())
                    if key is not None:
                        self.queue.put_nowait(key)
            except (httpx.ReadError, httpcore.ReadError):
                logger.warning(f"Encountered HTTP ReadError, restarting the watch of {kind.kind}.")
                continue
            except Exception as e:
                logger.error(f"watch loop failed for {kind.kind}", exc_info=e)
            await asyncio.sleep(self.config.retry_delay_seconds)

    async def _periodic_resync(self) -> None:
        while True:
            await asyncio.sleep(self.config.resync_period_seconds)
            _filter = K8sObjectFilter(gvk=S2I_RUN_GVK, namespace=self.config.namespace)
            try:
                async for run in self.client.list(_filter):
                    if run.namespace is not None:
                        self.queue.put_nowait((run.namespace, run.name))
            except Exception as e:
                logger.error("resync of S2iRuns failed, trying again in the next period", exc_info=e)

    async def run(self) -> None:
        """Watch runs and their jobs until cancelled."""
        await asyncio.gather(
            self._worker(),
            self._watch_kind(S2I_RUN_GVK),
            self._watch_kind(JOB_GVK),
            self._periodic_resync(),
        )


async def main() -> None:
    """Controller entrypoint."""
    config = Config.from_env()
    logging.configure_logging(config.log_cfg)
    client = K8sClusterClient(await kube_config_from_env())
    reconciler = S2iRunReconciler(client, config.materializer)
    controller = RunController(client, reconciler, config)
    logger.info("started watching S2iRuns")
    await controller.run()


def run() -> None:
    """Run the controller until it is interrupted."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
