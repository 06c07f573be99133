"""Connection settings for the kubernetes api."""

import os
from dataclasses import dataclass
from typing import Any

import aiofiles
import kr8s
import yaml

from s2i_operator.app_config import logging
from s2i_operator.errors import errors

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KubeConfig:
    """Where and as whom to reach the api server.

    Without a kubeconfig file the in-cluster service account is used.
    """

    kubeconfig: str | None = None
    context: str | None = None
    ns: str | None = None

    async def api(self) -> kr8s.asyncio.Api:
        """An async kr8s api for these settings."""
        return await kr8s.asyncio.api(kubeconfig=self.kubeconfig, context=self.context, namespace=self.ns)


def _context_namespace(conf: dict[str, Any], context_name: str) -> str | None:
    for context in conf.get("contexts") or []:
        if isinstance(context, dict) and context.get("name") == context_name:
            return (context.get("context") or {}).get("namespace")
    return None


async def from_kubeconfig_file(kubeconfig_path: str) -> KubeConfig:
    """Settings for the current context of a kubeconfig file."""
    async with aiofiles.open(kubeconfig_path) as stream:
        conf = yaml.safe_load(await stream.read())
    if not isinstance(conf, dict):
        raise errors.ConfigurationError(message=f"The kubeconfig {kubeconfig_path} is empty or has a bad format.")
    context_name = conf.get("current-context")
    ns = _context_namespace(conf, context_name) if context_name else None
    logger.info(f"Loaded kubeconfig {kubeconfig_path} with context {context_name}")
    return KubeConfig(kubeconfig=kubeconfig_path, context=context_name, ns=ns)


async def kube_config_from_env() -> KubeConfig:
    """Use the file named by `KUBECONFIG` when set, else the service account in `K8S_NAMESPACE`."""
    kubeconfig_path = os.environ.get("KUBECONFIG", "")
    if kubeconfig_path == "":
        return KubeConfig(ns=os.environ.get("K8S_NAMESPACE", "default"))
    return await from_kubeconfig_file(kubeconfig_path)
