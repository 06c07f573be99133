"""Common blueprints."""

from dataclasses import dataclass

from sanic import Request, json
from sanic.response import JSONResponse

from s2i_operator.base_api.apispec import Version
from s2i_operator.base_api.blueprint import BlueprintFactoryResponse, CustomBlueprint


@dataclass(kw_only=True)
class MiscBP(CustomBlueprint):
    """Probes and version information."""

    version: str

    def get_version(self) -> BlueprintFactoryResponse:
        """Returns the version."""

        async def _get_version(_: Request) -> JSONResponse:
            return json(Version(version=self.version).model_dump())

        return "/version", ["GET"], _get_version

    def get_healthz(self) -> BlueprintFactoryResponse:
        """Liveness and readiness probe."""

        async def _get_healthz(_: Request) -> JSONResponse:
            return json({"status": "ok"})

        return "/healthz", ["GET"], _get_healthz
