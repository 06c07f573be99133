"""Webhook endpoints that trigger builds."""

import json as jsonlib
from dataclasses import dataclass
from typing import Any

from sanic import HTTPResponse, Request, json
from sanic.exceptions import BadRequest

from s2i_operator.app_config import logging
from s2i_operator.base_api.blueprint import BlueprintFactoryResponse, CustomBlueprint
from s2i_operator.errors import errors
from s2i_operator.trigger.core import Trigger
from s2i_operator.trigger.models import EVENT_TYPE_HEADER, EventKind, parse_event

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def _payload(request: Request) -> dict[str, Any]:
    """The event payload, either the raw json body or the `payload` field of a form."""
    try:
        if request.content_type.startswith(FORM_CONTENT_TYPE):
            raw = request.form.get("payload")
            if raw is None:
                raise errors.ValidationError(message="The form does not contain a payload field.")
            payload = jsonlib.loads(raw)
        else:
            payload = request.json
    except (jsonlib.JSONDecodeError, BadRequest) as err:
        raise errors.ValidationError(message="The event payload is not valid json.") from err
    if not isinstance(payload, dict):
        raise errors.ValidationError(message="The event payload has to be a json object.")
    return payload


@dataclass(kw_only=True)
class GithubTriggerBP(CustomBlueprint):
    """Handlers for GitHub webhooks registered on a builder."""

    trigger: Trigger

    def post(self) -> BlueprintFactoryResponse:
        """Validate a webhook event and create a run for accepted pushes."""

        async def _post(request: Request, namespace: str, s2ibuilder: str) -> HTTPResponse:
            log = logging.with_request_id(logger, str(request.id))
            event_type = request.headers.get(EVENT_TYPE_HEADER)
            if event_type == EventKind.ping:
                return json({}, status=200)
            try:
                event = parse_event(event_type, _payload(request))
                run = await self.trigger.handle(namespace, s2ibuilder, event)
            except errors.BaseError as err:
                log.error(
                    f"Failed to handle {event_type} event for S2iBuilder {s2ibuilder} in namespace {namespace}: "
                    f"{err.message}"
                )
                raise errors.TriggerFailedError() from err
            if run is None:
                return json({}, status=200)
            log.info(f"Github handling event with S2iBuilder name {s2ibuilder} in namespace {namespace}")
            return json({"name": run.metadata.name, "namespace": run.metadata.namespace}, status=201)

        return "/namespaces/<namespace>/s2ibuilders/<s2ibuilder>", ["POST"], _post
