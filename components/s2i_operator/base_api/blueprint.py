"""Custom blueprint wrapper for Sanic."""

from collections.abc import Callable
from dataclasses import dataclass, field
from inspect import getmembers, ismethod
from typing import Optional, cast

from sanic import Blueprint
from sanic.models.handler_types import RequestMiddlewareType, RouteHandler

BlueprintFactoryResponse = tuple[str, list[str], RouteHandler]
BlueprintFactory = Callable[..., BlueprintFactoryResponse]


@dataclass(kw_only=True)
class CustomBlueprint:
    """A Sanic blueprint assembled from route factories.

    Every public method of a subclass returns the url of a route, its HTTP methods and the handler. The
    `blueprint` method collects them all into a single Sanic blueprint.
    """

    name: str
    url_prefix: Optional[str] = None
    request_middlewares: list[RequestMiddlewareType] = field(default_factory=list, repr=False)

    def _route_factories(self) -> list[tuple[str, BlueprintFactory]]:
        return [
            (name, cast(BlueprintFactory, method))
            for name, method in getmembers(self, ismethod)
            if name != "blueprint" and not name.startswith("_")
        ]

    def blueprint(self) -> Blueprint:
        """Generates the Sanic blueprint from all public methods."""
        bp = Blueprint(name=self.name, url_prefix=self.url_prefix)
        for name, factory in self._route_factories():
            url, http_methods, handler = factory()
            bp.add_route(handler=handler, uri=url, methods=http_methods, name=name)
        for middleware in self.request_middlewares:
            bp.middleware("request")(middleware)
        return bp
