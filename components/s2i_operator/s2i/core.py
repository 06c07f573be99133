"""Business logic for turning runs into config maps, jobs and the RBAC objects the jobs need."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import yaml
from kubernetes import client

from s2i_operator.app_config import logging
from s2i_operator.errors import errors
from s2i_operator.k8s.client_interfaces import K8sClient
from s2i_operator.k8s.constants import S2I_BUILDER_TEMPLATE_GVK
from s2i_operator.k8s.models import K8sObjectMeta
from s2i_operator.s2i import constants
from s2i_operator.s2i.config import MaterializerConfig
from s2i_operator.s2i.credentials import CredentialResolver
from s2i_operator.s2i.crs import S2iBuilder, S2iBuilderTemplate, S2iConfig, S2iRun, UserDefineTemplate

logger = logging.getLogger(__name__)

_api_client = client.ApiClient()


def to_manifest(obj: Any) -> dict[str, Any]:
    """Serialize a kubernetes client model into a plain manifest."""
    res: dict[str, Any] = _api_client.sanitize_for_serialization(obj)
    return res


def name_prefix(run: S2iRun) -> str:
    """The prefix shared by the config map and the job of a run.

    It is the name of the run followed by the last dash-delimited segment of its uid.
    """
    if not run.metadata.name:
        raise errors.FieldRequiredError(field="metadata.name")
    if not run.metadata.uid:
        raise errors.FieldRequiredError(field="metadata.uid")
    return f"{run.metadata.name}-{run.metadata.uid.split('-')[-1]}"


def config_map_name(run: S2iRun) -> str:
    """The name of the config map holding the build configuration of a run."""
    return name_prefix(run) + constants.CONFIG_MAP_SUFFIX


def job_name(run: S2iRun) -> str:
    """The name of the job executing a run."""
    return name_prefix(run) + constants.JOB_SUFFIX


def new_image_name(run: S2iRun, config: S2iConfig) -> str:
    """The image and tag a run produces."""
    tag = run.spec.newTag or config.tag or constants.DEFAULT_TAG
    return f"{config.imageName}:{tag}"


def new_revision_id(run: S2iRun, config: S2iConfig) -> str | None:
    """The source revision a run builds."""
    return run.spec.newRevisionId or config.revisionId


def new_source_url(run: S2iRun, config: S2iConfig) -> str:
    """The source repository a run builds."""
    return run.spec.newSourceURL or config.sourceUrl


def describe(kind: str, run: S2iRun, config: S2iConfig, template: UserDefineTemplate | None) -> str:
    """The human readable description of an object materialized for a run."""
    image_name = new_image_name(run, config)
    if template is not None:
        return f"image {image_name} 's build {kind}, use template {template.name}, s2iName {run.metadata.name}"
    return f"image {image_name} 's build {kind}, s2iName {run.metadata.name}"


def merge_metadata(meta: client.V1ObjectMeta, run: S2iRun, description: str) -> None:
    """Set the run label and the description annotation without replacing the other keys."""
    if meta.labels is None:
        meta.labels = {}
    meta.labels[constants.S2I_RUN_LABEL] = run.metadata.name
    if meta.annotations is None:
        meta.annotations = {}
    meta.annotations[constants.DESCRIPTION_ANNOTATION] = description


def owner_reference(run: S2iRun) -> client.V1OwnerReference:
    """A controller owner reference to the run, objects carrying it are removed together with the run."""
    return client.V1OwnerReference(
        api_version=run.apiVersion,
        kind=run.kind,
        name=run.metadata.name,
        uid=run.metadata.uid,
        controller=True,
        block_owner_deletion=True,
    )


def set_scheduling(job: client.V1Job, config: S2iConfig, materializer_config: MaterializerConfig) -> None:
    """Steer the build pod onto build nodes: tolerate their taint and prefer their label."""
    taint_key = config.taintKey or materializer_config.default_taint_key
    affinity_key = config.nodeAffinityKey or materializer_config.default_node_affinity_key
    affinity_values = (
        config.nodeAffinityValues
        if config.nodeAffinityValues is not None
        else list(materializer_config.default_node_affinity_values)
    )
    pod_spec: client.V1PodSpec = job.spec.template.spec
    pod_spec.tolerations = [
        client.V1Toleration(key=taint_key, operator="Exists", effect="NoSchedule"),
        client.V1Toleration(key=taint_key, operator="Exists", effect="PreferNoSchedule"),
    ]
    pod_spec.affinity = client.V1Affinity(
        node_affinity=client.V1NodeAffinity(
            preferred_during_scheduling_ignored_during_execution=[
                client.V1PreferredSchedulingTerm(
                    weight=constants.NODE_AFFINITY_WEIGHT,
                    preference=client.V1NodeSelectorTerm(
                        match_expressions=[
                            client.V1NodeSelectorRequirement(key=affinity_key, operator="In", values=affinity_values)
                        ]
                    ),
                )
            ]
        )
    )


def new_service_account(namespace: str) -> client.V1ServiceAccount:
    """The service account build pods run as."""
    return client.V1ServiceAccount(
        api_version="v1",
        kind="ServiceAccount",
        metadata=client.V1ObjectMeta(name=constants.SERVICE_ACCOUNT_NAME, namespace=namespace),
    )


def new_role(namespace: str) -> client.V1Role:
    """The role that lets a build pod observe and patch pods of its namespace."""
    return client.V1Role(
        api_version="rbac.authorization.k8s.io/v1",
        kind="Role",
        metadata=client.V1ObjectMeta(name=constants.ROLE_NAME, namespace=namespace),
        rules=[
            client.V1PolicyRule(
                api_groups=[""],
                resources=list(constants.ROLE_RESOURCES),
                verbs=list(constants.ROLE_VERBS),
            )
        ],
    )


def new_role_binding(namespace: str) -> client.V1RoleBinding:
    """Binds the build role to the build service account."""
    return client.V1RoleBinding(
        api_version="rbac.authorization.k8s.io/v1",
        kind="RoleBinding",
        metadata=client.V1ObjectMeta(name=constants.ROLE_BINDING_NAME, namespace=namespace),
        subjects=[
            client.RbacV1Subject(kind="ServiceAccount", name=constants.SERVICE_ACCOUNT_NAME, namespace=namespace)
        ],
        role_ref=client.V1RoleRef(api_group="rbac.authorization.k8s.io", kind="Role", name=constants.ROLE_NAME),
    )


def new_config_map(run: S2iRun, config: S2iConfig) -> client.V1ConfigMap:
    """The config map holding the serialized build configuration under a single key."""
    return client.V1ConfigMap(
        api_version="v1",
        kind="ConfigMap",
        metadata=client.V1ObjectMeta(name=config_map_name(run), namespace=run.metadata.namespace),
        data={constants.CONFIG_DATA_KEY: config.model_dump_json(exclude_none=True)},
    )


@dataclass
class MaterializedBuild:
    """Everything that has to be written to the cluster for one run."""

    config: S2iConfig
    template: UserDefineTemplate | None
    config_map: client.V1ConfigMap
    job: client.V1Job


class BuildMaterializer:
    """Turns a run and its builder into a build configuration, a config map and a job."""

    def __init__(self, k8s_client: K8sClient, config: MaterializerConfig) -> None:
        self.k8s_client = k8s_client
        self.config = config
        self.credential_resolver = CredentialResolver(k8s_client)

    async def get_template(self, name: str) -> S2iBuilderTemplate:
        """Fetch a builder template, templates are not namespaced."""
        obj = await self.k8s_client.get(K8sObjectMeta(name=name, namespace=None, gvk=S2I_BUILDER_TEMPLATE_GVK))
        if obj is None:
            raise errors.missing_resource("S2iBuilderTemplate", None, name)
        return S2iBuilderTemplate.model_validate(obj.manifest.to_dict())

    async def resolve_config(self, run: S2iRun, builder: S2iBuilder) -> S2iConfig:
        """Flatten the builder config, its template and the overrides of the run into one build config.

        Secret references are left untouched.
        """
        if builder.spec.config is None:
            raise errors.FieldRequiredError(field="spec.config")
        config = builder.spec.config.model_copy(deep=True)
        template = builder.spec.fromTemplate
        if template is not None:
            builder_template = await self.get_template(template.name)
            config.builderImage = template.builderImage or builder_template.spec.defaultBaseImage
            environment = list(config.environment or [])
            for parameter in template.parameters or []:
                env = parameter.to_environment()
                if env is not None:
                    environment.append(env)
            config.environment = environment
        config.tag = new_image_name(run, config)
        config.revisionId = new_revision_id(run, config)
        config.sourceUrl = new_source_url(run, config)
        return config

    def generate_job(self, run: S2iRun) -> client.V1Job:
        """Expand the job template for a run, failing when the runner image is not configured."""
        runner_image = self.config.require_runner_image()
        if not run.metadata.namespace:
            raise errors.FieldRequiredError(field="metadata.namespace")
        name = job_name(run)
        backoff_limit = run.spec.backoffLimit if run.spec.backoffLimit is not None else constants.DEFAULT_BACKOFF_LIMIT
        rendered = self.config.job_template.substitute(
            name=name,
            namespace=run.metadata.namespace,
            service_account=constants.SERVICE_ACCOUNT_NAME,
            runner_image=runner_image,
            backoff_limit=backoff_limit,
            config_map=config_map_name(run),
        )
        try:
            data = yaml.safe_load(rendered)
        except yaml.YAMLError as err:
            raise errors.ConfigurationError(message="The job template does not expand into valid yaml.") from err
        job: client.V1Job = _api_client._ApiClient__deserialize(data, client.V1Job)  # type: ignore[attr-defined]
        if run.spec.secondsAfterFinished is not None and run.spec.secondsAfterFinished > 0:
            job.spec.ttl_seconds_after_finished = run.spec.secondsAfterFinished
        return job

    async def materialize(
        self, run: S2iRun, builder: S2iBuilder, resolve_credentials: bool = True
    ) -> MaterializedBuild:
        """Produce every object of a run in memory, nothing is written to the cluster.

        When `resolve_credentials` is false the secret references stay in the config, which is only useful
        when the config map of the run already exists and will not be replaced.
        """
        job = self.generate_job(run)
        config = await self.resolve_config(run, builder)
        if resolve_credentials:
            await self.credential_resolver.resolve(run.metadata.namespace or "", config)
        template = builder.spec.fromTemplate

        config_map = new_config_map(run, config)
        merge_metadata(config_map.metadata, run, describe("configmap", run, config, template))

        merge_metadata(job.metadata, run, describe("job", run, config, template))
        set_scheduling(job, config, self.config)

        owner = owner_reference(run)
        config_map.metadata.owner_references = [owner]
        job.metadata.owner_references = [owner]
        logger.debug(f"Materialized job {job.metadata.name} and config map {config_map.metadata.name}")
        return MaterializedBuild(config=config, template=template, config_map=config_map, job=job)
