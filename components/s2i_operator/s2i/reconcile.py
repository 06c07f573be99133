"""Reconciliation of runs into the objects that execute them."""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError as PydanticValidationError

from s2i_operator.app_config import logging
from s2i_operator.errors import errors
from s2i_operator.k8s.client_interfaces import K8sClient
from s2i_operator.k8s.constants import (
    CONFIG_MAP_GVK,
    JOB_GVK,
    ROLE_BINDING_GVK,
    ROLE_GVK,
    S2I_BUILDER_GVK,
    S2I_RUN_GVK,
    SERVICE_ACCOUNT_GVK,
)
from s2i_operator.k8s.models import GVK, K8sObject, K8sObjectMeta
from s2i_operator.s2i import core
from s2i_operator.s2i.config import MaterializerConfig
from s2i_operator.s2i.crs import RunState, S2iBuilder, S2iRun, S2iRunStatus

logger = logging.getLogger(__name__)

TERMINAL_RUN_STATES = (RunState.successful, RunState.failed)


def run_status_from_job(job: K8sObject) -> S2iRunStatus:
    """Derive the status of a run from the status of its job."""
    status = job.manifest.get("status") or {}
    conditions = status.get("conditions") or []
    failed = any(c.get("type") == "Failed" and c.get("status") == "True" for c in conditions)
    if (status.get("succeeded") or 0) > 0:
        run_state = RunState.successful
    elif failed:
        run_state = RunState.failed
    else:
        run_state = RunState.running
    return S2iRunStatus.model_validate(
        {
            "runState": run_state,
            "kubernetesJobName": job.name,
            "startTime": status.get("startTime"),
            "completionTime": status.get("completionTime"),
        }
    )


class S2iRunReconciler:
    """Applies the materialized objects of a run to the cluster, safe to run any number of times."""

    def __init__(self, k8s_client: K8sClient, config: MaterializerConfig) -> None:
        self.k8s_client = k8s_client
        self.materializer = core.BuildMaterializer(k8s_client, config)

    async def get_run(self, namespace: str, name: str) -> S2iRun | None:
        """Get a run, None if it does not exist."""
        obj = await self.k8s_client.get(K8sObjectMeta(name=name, namespace=namespace, gvk=S2I_RUN_GVK))
        if obj is None:
            return None
        try:
            return S2iRun.model_validate(obj.manifest.to_dict())
        except PydanticValidationError as err:
            raise errors.ValidationError(
                message=f"The S2iRun {namespace}/{name} is not valid.", detail=str(err)
            ) from err

    async def get_builder(self, namespace: str, name: str) -> S2iBuilder:
        """Get the builder of a run."""
        obj = await self.k8s_client.get(K8sObjectMeta(name=name, namespace=namespace, gvk=S2I_BUILDER_GVK))
        if obj is None:
            raise errors.missing_resource("S2iBuilder", namespace, name)
        return S2iBuilder.model_validate(obj.manifest.to_dict())

    async def _create_if_missing(self, manifest: dict[str, Any], gvk: GVK) -> None:
        meta = K8sObjectMeta(name=manifest["metadata"]["name"], namespace=manifest["metadata"]["namespace"], gvk=gvk)
        if await self.k8s_client.get(meta) is not None:
            return
        try:
            await self.k8s_client.create(meta.with_manifest(manifest), refresh=False)
        except errors.ConflictError:
            logger.debug(f"{gvk.kind} {meta.namespace}/{meta.name} was created concurrently")
            return
        logger.info(f"Created {gvk.kind} {meta.namespace}/{meta.name}")

    async def ensure_rbac(self, namespace: str) -> None:
        """Create the service account, role and role binding of build pods unless they exist."""
        await self._create_if_missing(core.to_manifest(core.new_service_account(namespace)), SERVICE_ACCOUNT_GVK)
        await self._create_if_missing(core.to_manifest(core.new_role(namespace)), ROLE_GVK)
        await self._create_if_missing(core.to_manifest(core.new_role_binding(namespace)), ROLE_BINDING_GVK)

    async def _upsert(
        self, meta: K8sObjectMeta, existing: K8sObject | None, manifest: dict[str, Any], patch: dict[str, Any]
    ) -> K8sObject:
        """Create the object or, when it exists, only merge the given metadata into it."""
        if existing is None:
            try:
                created = await self.k8s_client.create(meta.with_manifest(manifest), refresh=True)
            except errors.ConflictError:
                logger.debug(f"{meta.gvk.kind} {meta.namespace}/{meta.name} was created concurrently")
            else:
                logger.info(f"Created {meta.gvk.kind} {meta.namespace}/{meta.name}")
                return created
        return await self.k8s_client.patch(meta, patch)

    async def sync_status(self, run: S2iRun, job: K8sObject) -> S2iRun:
        """Copy the progress of the job into the status of the run."""
        new_status = run_status_from_job(job)
        if run.status == new_status:
            return run
        meta = K8sObjectMeta(name=run.metadata.name or "", namespace=run.metadata.namespace, gvk=S2I_RUN_GVK)
        res = await self.k8s_client.patch(
            meta, {"status": new_status.model_dump(mode="json", exclude_none=True)}, subresource="status"
        )
        logger.info(f"S2iRun {meta.namespace}/{meta.name} is {new_status.runState}")
        return S2iRun.model_validate(res.manifest.to_dict())

    async def reconcile(self, namespace: str, name: str) -> S2iRun | None:
        """Bring the cluster in line with one run.

        Every object is materialized before anything is written, a failure leaves the cluster untouched.
        """
        run = await self.get_run(namespace, name)
        if run is None:
            logger.debug(f"S2iRun {namespace}/{name} is gone, nothing to reconcile")
            return None
        if run.status is not None and run.status.runState in TERMINAL_RUN_STATES:
            logger.debug(f"S2iRun {namespace}/{name} has already finished")
            return run
        builder = await self.get_builder(namespace, run.spec.builderName)

        config_map_meta = K8sObjectMeta(name=core.config_map_name(run), namespace=namespace, gvk=CONFIG_MAP_GVK)
        job_meta = K8sObjectMeta(name=core.job_name(run), namespace=namespace, gvk=JOB_GVK)
        existing_config_map = await self.k8s_client.get(config_map_meta)
        existing_job = await self.k8s_client.get(job_meta)
        build = await self.materializer.materialize(run, builder, resolve_credentials=existing_config_map is None)

        await self.ensure_rbac(namespace)
        config_map_manifest = core.to_manifest(build.config_map)
        await self._upsert(
            config_map_meta,
            existing_config_map,
            config_map_manifest,
            _metadata_patch(config_map_manifest),
        )
        job_manifest = core.to_manifest(build.job)
        job = await self._upsert(job_meta, existing_job, job_manifest, _metadata_patch(job_manifest))
        return await self.sync_status(run, job)


def _metadata_patch(manifest: dict[str, Any]) -> dict[str, Any]:
    """The labels, annotations and owner references of a materialized object as a json merge patch."""
    metadata = manifest["metadata"]
    return {"metadata": {key: metadata[key] for key in ("labels", "annotations", "ownerReferences") if key in metadata}}
