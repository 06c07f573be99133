"""Configuration for materializing build jobs."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from string import Template

from s2i_operator.app_config import logging
from s2i_operator.errors import errors
from s2i_operator.s2i import constants

logger = logging.getLogger(__name__)


@dataclass
class MaterializerConfig:
    """Configuration for turning runs into jobs and config maps."""

    runner_image: str | None = None
    job_template: Template = field(default_factory=lambda: constants.JOB_TEMPLATE)
    default_taint_key: str = constants.DEFAULT_TAINT_KEY
    default_node_affinity_key: str = constants.DEFAULT_NODE_AFFINITY_KEY
    default_node_affinity_values: list[str] = field(
        default_factory=lambda: list(constants.DEFAULT_NODE_AFFINITY_VALUES)
    )

    def require_runner_image(self) -> str:
        """The image that performs the build, which has to be configured before any job is generated."""
        if not self.runner_image:
            raise errors.ConfigurationError(
                message=f"Failed to get s2i-image name, please set the env '{constants.RUNNER_IMAGE_ENV}'"
            )
        return self.runner_image

    @classmethod
    def from_env(cls) -> "MaterializerConfig":
        """Create a config from environment variables."""
        runner_image = os.environ.get(constants.RUNNER_IMAGE_ENV) or None
        if runner_image is None:
            logger.warning(f"{constants.RUNNER_IMAGE_ENV} is not set, build jobs cannot be generated.")
        job_template = constants.JOB_TEMPLATE
        template_path = os.environ.get("S2I_JOB_TEMPLATE_PATH")
        if template_path:
            path = Path(template_path)
            if not path.is_file():
                raise errors.ConfigurationError(message=f"The job template file {template_path} does not exist.")
            job_template = Template(path.read_text())
        taint_key = os.environ.get("S2I_DEFAULT_TAINT_KEY") or constants.DEFAULT_TAINT_KEY
        node_affinity_key = os.environ.get("S2I_DEFAULT_NODE_AFFINITY_KEY") or constants.DEFAULT_NODE_AFFINITY_KEY
        node_affinity_values_str = os.environ.get("S2I_DEFAULT_NODE_AFFINITY_VALUES")
        node_affinity_values = (
            [value.strip() for value in node_affinity_values_str.split(",") if value.strip()]
            if node_affinity_values_str
            else list(constants.DEFAULT_NODE_AFFINITY_VALUES)
        )
        return cls(
            runner_image=runner_image,
            job_template=job_template,
            default_taint_key=taint_key,
            default_node_affinity_key=node_affinity_key,
            default_node_affinity_values=node_affinity_values,
        )
