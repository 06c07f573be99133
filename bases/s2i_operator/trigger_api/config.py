"""Configuration of the webhook server."""

import os
from dataclasses import dataclass
from typing import Self

from s2i_operator.app_config import logging


@dataclass
class Config:
    """Main config for the webhook server."""

    log_cfg: logging.Config
    app_name: str = "s2i_trigger"
    version: str = "0.0.1"
    k8s_namespace: str = "default"
    dummy_stores: bool = False

    @classmethod
    def from_env(cls) -> Self:
        """Load values from environment."""
        dummy_stores = os.environ.get("DUMMY_STORES", "false").lower() == "true"
        version = os.environ.get("VERSION", "0.0.1")
        k8s_namespace = os.environ.get("K8S_NAMESPACE", "default")
        return cls(
            log_cfg=logging.Config.from_env(),
            version=version,
            k8s_namespace=k8s_namespace,
            dummy_stores=dummy_stores,
        )
