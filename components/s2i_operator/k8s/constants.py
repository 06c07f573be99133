"""Constant values for k8s."""

from __future__ import annotations

from typing import Final

from s2i_operator.k8s.models import GVK

S2I_GROUP: Final[str] = "devops.kubesphere.io"
S2I_VERSION: Final[str] = "v1alpha1"

S2I_RUN_GVK: Final[GVK] = GVK(group=S2I_GROUP, version=S2I_VERSION, kind="S2iRun")
S2I_BUILDER_GVK: Final[GVK] = GVK(group=S2I_GROUP, version=S2I_VERSION, kind="S2iBuilder")
S2I_BUILDER_TEMPLATE_GVK: Final[GVK] = GVK(group=S2I_GROUP, version=S2I_VERSION, kind="S2iBuilderTemplate")

SECRET_GVK: Final[GVK] = GVK(version="v1", kind="Secret")
CONFIG_MAP_GVK: Final[GVK] = GVK(version="v1", kind="ConfigMap")
SERVICE_ACCOUNT_GVK: Final[GVK] = GVK(version="v1", kind="ServiceAccount")
JOB_GVK: Final[GVK] = GVK(group="batch", version="v1", kind="Job")
ROLE_GVK: Final[GVK] = GVK(group="rbac.authorization.k8s.io", version="v1", kind="Role")
ROLE_BINDING_GVK: Final[GVK] = GVK(group="rbac.authorization.k8s.io", version="v1", kind="RoleBinding")
