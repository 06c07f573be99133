"""Fixtures for testing."""

import logging as ll

import pytest

from s2i_operator.app_config import logging
from s2i_operator.s2i.config import MaterializerConfig
from test.utils import RecordingK8sClient, builder_manifest, run_manifest, template_manifest

RUNNER_IMAGE = "kubesphere/s2irun:v3.2.0"


def __make_logging_config() -> logging.Config:
    def_cfg = logging.Config(
        root_level=ll.ERROR,
        app_level=ll.ERROR,
        format_style=logging.LogFormatStyle.plain,
        override_levels={ll.ERROR: set(["sanic"])},
    )
    env_cfg = logging.Config.from_env()
    def_cfg.update_override_levels(env_cfg.override_levels)

    test_cfg = logging.Config.from_env(prefix="TEST_")
    def_cfg.update_override_levels(test_cfg.override_levels)
    return def_cfg


logging.configure_logging(__make_logging_config())


@pytest.fixture
def materializer_config() -> MaterializerConfig:
    return MaterializerConfig(runner_image=RUNNER_IMAGE)


@pytest.fixture
def k8s_client() -> RecordingK8sClient:
    """A cluster with one builder based on a template and one run of it."""
    return RecordingK8sClient(
        [
            run_manifest(),
            builder_manifest(),
            template_manifest(),
        ]
    )
