"""Configuration of the controller."""

import os
from dataclasses import dataclass
from typing import Self

import kr8s

from s2i_operator.app_config import logging
from s2i_operator.s2i.config import MaterializerConfig


@dataclass
class Config:
    """Main config for the controller."""

    log_cfg: logging.Config
    materializer: MaterializerConfig
    namespace: str = kr8s.ALL
    resync_period_seconds: int = 300
    retry_delay_seconds: int = 10

    @classmethod
    def from_env(cls) -> Self:
        """Load values from environment."""
        namespace = os.environ.get("KUBERNETES_NAMESPACE") or kr8s.ALL
        resync_period_seconds = int(os.environ.get("RESYNC_PERIOD_SECONDS") or "300")
        return cls(
            log_cfg=logging.Config.from_env(),
            materializer=MaterializerConfig.from_env(),
            namespace=namespace,
            resync_period_seconds=resync_period_seconds,
        )
