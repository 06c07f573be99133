"""Constants for source-to-image builds."""

from string import Template
from typing import Final

S2I_RUN_LABEL: Final[str] = "labels.devops.kubesphere.io/s2irun"
"""The label identifying the run an object was materialized for."""

DESCRIPTION_ANNOTATION: Final[str] = "desc.kubesphere.io/description"
"""The annotation holding a human readable description of a materialized object."""

CREATOR_ANNOTATION: Final[str] = "kubesphere.io/creator"

TRIGGER_CREATOR_PREFIX: Final[str] = "trigger-"
"""Prefix of the creator annotation of runs created from webhooks."""

CONFIG_DATA_KEY: Final[str] = "data"
"""The key of the config map entry that holds the serialized build configuration."""

CONFIG_MAP_SUFFIX: Final[str] = "-configmap"
JOB_SUFFIX: Final[str] = "-job"

DEFAULT_TAG: Final[str] = "latest"

DEFAULT_TAINT_KEY: Final[str] = "node.kubernetes.io/ci"
"""The taint tolerated by build pods when the builder does not name one."""

DEFAULT_NODE_AFFINITY_KEY: Final[str] = "node-role.kubernetes.io/worker"
DEFAULT_NODE_AFFINITY_VALUES: Final[tuple[str, ...]] = ("ci",)
NODE_AFFINITY_WEIGHT: Final[int] = 1

SERVICE_ACCOUNT_NAME: Final[str] = "s2irun-sa"
ROLE_NAME: Final[str] = "s2irun-role"
ROLE_BINDING_NAME: Final[str] = "s2irun-rolebinding"

ROLE_RESOURCES: Final[tuple[str, ...]] = ("pods",)
ROLE_VERBS: Final[tuple[str, ...]] = ("get", "list", "watch", "update", "patch")

RUNNER_IMAGE_ENV: Final[str] = "S2IIMAGENAME"
"""The environment variable naming the image that performs the build."""

DOCKER_CONFIG_JSON_SECRET_TYPE: Final[str] = "kubernetes.io/dockerconfigjson"
DOCKER_CONFIG_JSON_KEY: Final[str] = ".dockerconfigjson"

GIT_USERNAME_KEY: Final[str] = "username"
GIT_PASSWORD_KEY: Final[str] = "password"

RUN_NAME_SUFFIX_LENGTH: Final[int] = 5

JOB_TEMPLATE: Final[Template] = Template(
    """\
apiVersion: batch/v1
kind: Job
metadata:
  name: "${name}"
  namespace: "${namespace}"
spec:
  backoffLimit: ${backoff_limit}
  template:
    metadata:
      labels:
        job-name: "${name}"
    spec:
      serviceAccountName: "${service_account}"
      restartPolicy: Never
      containers:
        - name: s2irun
          image: "${runner_image}"
          imagePullPolicy: IfNotPresent
          command:
            - ./builder
          env:
            - name: S2I_CONFIG_PATH
              value: /etc/data/config.json
          volumeMounts:
            - name: config-data
              mountPath: /etc/data
              readOnly: true
            - name: docker-sock
              mountPath: /var/run/docker.sock
      volumes:
        - name: config-data
          configMap:
            name: "${config_map}"
            items:
              - key: data
                path: config.json
        - name: docker-sock
          hostPath:
            path: /var/run/docker.sock
"""
)
"""The text template a build job is expanded from."""

DEFAULT_BACKOFF_LIMIT: Final[int] = 0
