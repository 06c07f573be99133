"""Models for source control webhook events."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from s2i_operator.errors import errors

EVENT_TYPE_HEADER = "X-GitHub-Event"


class EventKind(StrEnum):
    """The webhook event types that are understood."""

    ping = "ping"
    push = "push"
    pull_request = "pull_request"
    create = "create"
    delete = "delete"
    release = "release"


class _EventModel(BaseModel):
    model_config = ConfigDict(extra="allow")


class Committer(_EventModel):
    """The author or committer of a commit."""

    name: str | None = None
    email: str | None = None
    username: str | None = None


class HeadCommit(_EventModel):
    """The most recent commit of a push."""

    id: str
    message: str | None = None
    committer: Committer | None = None


class PushPayload(_EventModel):
    """The payload of a push event."""

    ref: str
    before: str | None = None
    after: str | None = None
    head_commit: HeadCommit | None = None


class PingPayload(_EventModel):
    """The payload sent when a webhook is registered."""

    zen: str | None = None
    hook_id: int | None = None


@dataclass(frozen=True)
class PushEvent:
    """A push to a branch or tag."""

    payload: PushPayload


@dataclass(frozen=True)
class PingEvent:
    """A ping sent by the source control platform."""


@dataclass(frozen=True)
class IgnoredEvent:
    """A known event that does not trigger anything."""

    kind: EventKind
    payload: dict[str, Any]


WebhookEvent = PushEvent | PingEvent | IgnoredEvent


def parse_event(event_type: str | None, payload: dict[str, Any]) -> WebhookEvent:
    """Turn the event type header and the payload into one of the known events."""
    try:
        kind = EventKind(event_type or "")
    except ValueError as err:
        raise errors.UnsupportedEventTypeError(message=f"not support event type {event_type}") from err
    match kind:
        case EventKind.ping:
            return PingEvent()
        case EventKind.push:
            try:
                return PushEvent(payload=PushPayload.model_validate(payload))
            except PydanticValidationError as err:
                raise errors.ValidationError(message="The push event payload is not valid.", detail=str(err)) from err
        case _:
            return IgnoredEvent(kind=kind, payload=payload)
