"""Custom Resources for source-to-image builds."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import Field

from s2i_operator.s2i.cr_base import BaseCRD


class Metadata(BaseCRD):
    """Basic k8s metadata spec."""

    name: str | None = None
    generateName: str | None = None
    namespace: str | None = None
    labels: dict[str, str] | None = None
    annotations: dict[str, str] | None = None
    uid: str | None = None
    generation: int | None = None
    creationTimestamp: datetime | None = None
    deletionTimestamp: datetime | None = None


class LocalObjectReference(BaseCRD):
    """Reference to an object in the same namespace."""

    name: str


class EnvironmentSpec(BaseCRD):
    """Environment variable passed to the build."""

    name: str
    value: str


class AuthConfig(BaseCRD):
    """Registry credentials used for one of the image operations of a build."""

    username: str | None = None
    password: str | None = None
    email: str | None = None
    serverAddress: str | None = None
    secretRef: LocalObjectReference | None = None


class Parameter(BaseCRD):
    """A typed template parameter that expands into an environment variable."""

    key: str
    description: str | None = None
    type: str | None = None
    optValues: list[str] | None = None
    required: bool | None = None
    defaultValue: str | None = None
    value: str | None = None

    def to_environment(self) -> EnvironmentSpec | None:
        """The environment entry of the parameter, its value wins over its default."""
        if self.value:
            return EnvironmentSpec(name=self.key, value=self.value)
        if self.defaultValue:
            return EnvironmentSpec(name=self.key, value=self.defaultValue)
        return None


class S2iConfig(BaseCRD):
    """The resolved, flattened configuration of a single build."""

    displayName: str | None = None
    sourceUrl: str = ""
    builderImage: str = ""
    imageName: str = ""
    tag: str | None = None
    revisionId: str | None = None
    environment: list[EnvironmentSpec] | None = None
    pushAuthentication: AuthConfig | None = None
    pullAuthentication: AuthConfig | None = None
    incrementalAuthentication: AuthConfig | None = None
    runtimeAuthentication: AuthConfig | None = None
    gitSecretRef: LocalObjectReference | None = None
    branchExpression: str | None = None
    taintKey: str | None = None
    nodeAffinityKey: str | None = None
    nodeAffinityValues: list[str] | None = None


class UserDefineTemplate(BaseCRD):
    """Reference from a builder to a template, with optional overrides."""

    name: str
    builderImage: str | None = None
    parameters: list[Parameter] | None = None


class S2iBuilderSpec(BaseCRD):
    """Spec of a builder."""

    config: S2iConfig | None = None
    fromTemplate: UserDefineTemplate | None = None


class S2iBuilder(BaseCRD):
    """A reusable build definition that runs are created from."""

    apiVersion: str = "devops.kubesphere.io/v1alpha1"
    kind: str = "S2iBuilder"
    metadata: Metadata
    spec: S2iBuilderSpec = Field(default_factory=S2iBuilderSpec)


class RunState(StrEnum):
    """The states of a run."""

    running = "Running"
    successful = "Successful"
    failed = "Failed"
    unknown = "Unknown"


class S2iRunSpec(BaseCRD):
    """Spec of a run."""

    builderName: str
    backoffLimit: int | None = None
    secondsAfterFinished: int | None = None
    newTag: str | None = None
    newRevisionId: str | None = None
    newSourceURL: str | None = None


class S2iRunStatus(BaseCRD):
    """Status of a run."""

    startTime: datetime | None = None
    completionTime: datetime | None = None
    runState: RunState | None = None
    kubernetesJobName: str | None = None


class S2iRun(BaseCRD):
    """A request to produce one image build."""

    apiVersion: str = "devops.kubesphere.io/v1alpha1"
    kind: str = "S2iRun"
    metadata: Metadata
    spec: S2iRunSpec
    status: S2iRunStatus | None = None


class ContainerInfo(BaseCRD):
    """One base image offered by a template."""

    builderImage: str = ""
    runtimeImage: str | None = None
    runtimeArtifacts: list[dict[str, str]] | None = None
    buildVolumes: list[str] | None = None


class S2iBuilderTemplateSpec(BaseCRD):
    """Spec of a builder template."""

    containerInfo: list[ContainerInfo] | None = None
    defaultBaseImage: str = ""
    codeFramework: str | None = None
    version: str | None = None
    description: str | None = None
    iconPath: str | None = None
    environment: list[EnvironmentSpec] | None = None
    parameters: list[Parameter] | None = None


class S2iBuilderTemplate(BaseCRD):
    """A named, reusable set of base images with defaults and parameters."""

    apiVersion: str = "devops.kubesphere.io/v1alpha1"
    kind: str = "S2iBuilderTemplate"
    metadata: Metadata
    spec: S2iBuilderTemplateSpec = Field(default_factory=S2iBuilderTemplateSpec)


class DockerConfigEntry(BaseCRD):
    """Credentials for one registry of a docker config json."""

    username: str | None = None
    password: str | None = None
    email: str | None = None
    serverAddress: str | None = None
    auth: str | None = None


class DockerConfigJson(BaseCRD):
    """The payload of a `kubernetes.io/dockerconfigjson` secret."""

    auths: dict[str, DockerConfigEntry] | None = None
