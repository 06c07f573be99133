"""Validation of webhook events against the branch policy of a builder and creation of runs."""

from __future__ import annotations

import random
import re
import string

from box import Box

from s2i_operator.app_config import logging
from s2i_operator.errors import errors
from s2i_operator.k8s.client_interfaces import K8sClient
from s2i_operator.k8s.constants import S2I_BUILDER_GVK, S2I_RUN_GVK
from s2i_operator.k8s.models import K8sObject, K8sObjectMeta
from s2i_operator.s2i import constants
from s2i_operator.s2i.crs import Metadata, S2iBuilder, S2iConfig, S2iRun, S2iRunSpec
from s2i_operator.trigger.models import IgnoredEvent, PingEvent, PushEvent, WebhookEvent

logger = logging.getLogger(__name__)

_NAME_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def branch_from_ref(ref: str) -> str:
    """Everything after the second `/` of a ref, `refs/heads/main` is the branch `main`."""
    parts = ref.split("/", 2)
    if len(parts) < 3 or parts[2] == "":
        raise errors.BranchMismatchError(message=f"malformed ref {ref}")
    return parts[2]


def check_branch_policy(branch: str, config: S2iConfig) -> None:
    """Raise if the branch may not trigger a build of the builder config.

    With a branch expression the branch has to match it, otherwise it has to be the revision of the builder.
    """
    if config.branchExpression:
        try:
            pattern = re.compile(config.branchExpression)
        except re.error as err:
            raise errors.RegexCompileError(
                message=f"Failed to compile the branch expression {config.branchExpression}", detail=str(err)
            ) from err
        if pattern.search(branch) is None:
            raise errors.BranchMismatchError(message=f"branch {branch} is not matched")
        return
    if branch != config.revisionId:
        raise errors.BranchMismatchError(message=f"branch {branch} is not matched with expired revision id")


def generate_run_name(builder_name: str) -> str:
    """A new run name derived from the builder name."""
    suffix = "".join(
        random.choice(_NAME_SUFFIX_ALPHABET)  # nosec B311
        for _ in range(constants.RUN_NAME_SUFFIX_LENGTH)
    )
    return f"{builder_name}-{suffix}"


def new_s2i_run(namespace: str, builder_name: str, committer: str, revision_id: str) -> S2iRun:
    """A run of the builder at the given revision, annotated with who triggered it."""
    return S2iRun(
        metadata=Metadata(
            name=generate_run_name(builder_name),
            namespace=namespace,
            annotations={constants.CREATOR_ANNOTATION: constants.TRIGGER_CREATOR_PREFIX + committer},
        ),
        spec=S2iRunSpec(builderName=builder_name, newRevisionId=revision_id),
    )


class Trigger:
    """Creates runs of a builder from webhook events."""

    def __init__(self, k8s_client: K8sClient) -> None:
        self.k8s_client = k8s_client

    async def get_builder(self, namespace: str, name: str) -> S2iBuilder:
        """Get the builder the webhook is registered for."""
        obj = await self.k8s_client.get(K8sObjectMeta(name=name, namespace=namespace, gvk=S2I_BUILDER_GVK))
        if obj is None:
            raise errors.missing_resource("S2iBuilder", namespace, name)
        return S2iBuilder.model_validate(obj.manifest.to_dict())

    async def validate(self, namespace: str, builder_name: str, event: PushEvent) -> S2iBuilder:
        """Check a push against the branch policy of the builder."""
        builder = await self.get_builder(namespace, builder_name)
        if builder.spec.config is None:
            raise errors.FieldRequiredError(field="spec.config")
        branch = branch_from_ref(event.payload.ref)
        check_branch_policy(branch, builder.spec.config)
        return builder

    async def _dispatch_push(self, namespace: str, builder_name: str, event: PushEvent) -> S2iRun:
        head_commit = event.payload.head_commit
        if head_commit is None:
            raise errors.FieldRequiredError(field="head_commit")
        committer = head_commit.committer.name if head_commit.committer is not None else None
        if not committer:
            raise errors.FieldRequiredError(field="head_commit.committer.name")
        run = new_s2i_run(namespace, builder_name, committer, head_commit.id)
        manifest = run.model_dump(mode="json", exclude_none=True)
        obj = K8sObject(name=run.metadata.name or "", namespace=namespace, gvk=S2I_RUN_GVK, manifest=Box(manifest))
        created = await self.k8s_client.create(obj, refresh=True)
        logger.info(f"Created S2iRun {namespace}/{created.name} for revision {head_commit.id}")
        return S2iRun.model_validate(created.manifest.to_dict())

    async def handle(self, namespace: str, builder_name: str, event: WebhookEvent) -> S2iRun | None:
        """Validate and act on an event, a new run is returned only for accepted pushes."""
        match event:
            case PingEvent():
                return None
            case PushEvent():
                await self.validate(namespace, builder_name, event)
                return await self._dispatch_push(namespace, builder_name, event)
            case IgnoredEvent(kind=kind):
                logger.info(f"Can not do any action with event type {kind}")
                return None
