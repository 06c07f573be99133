"""Dependencies management of the webhook server."""

from __future__ import annotations

from dataclasses import dataclass, field

from s2i_operator.k8s.client_interfaces import K8sClient
from s2i_operator.k8s.clients import DummyK8sClient, K8sClusterClient
from s2i_operator.k8s.config import KubeConfig
from s2i_operator.trigger.core import Trigger
from s2i_operator.trigger_api.config import Config


@dataclass
class DependencyManager:
    """Dependencies for the webhook server."""

    config: Config
    k8s_client: K8sClient
    _trigger: Trigger | None = field(default=None, repr=False, init=False)

    @property
    def trigger(self) -> Trigger:
        """Validates webhook events and creates runs."""
        if not self._trigger:
            self._trigger = Trigger(self.k8s_client)
        return self._trigger

    @classmethod
    def from_env(cls) -> DependencyManager:
        """Create a config from environment variables."""
        k8s_client: K8sClient
        config = Config.from_env()
        if config.dummy_stores:
            k8s_client = DummyK8sClient()
        else:
            k8s_client = K8sClusterClient(KubeConfig(ns=config.k8s_namespace))
        return cls(config=config, k8s_client=k8s_client)
