"""Admission validation of builder templates."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from s2i_operator.app_config import logging
from s2i_operator.errors import errors
from s2i_operator.s2i.cr_base import BaseCRD
from s2i_operator.s2i.crs import S2iBuilderTemplate
from s2i_operator.s2i.images import validate_image_reference

logger = logging.getLogger(__name__)

ADMISSION_API_VERSION = "admission.k8s.io/v1"


def _invalid(field: str, reason: str) -> errors.FieldInvalidValueError:
    return errors.FieldInvalidValueError(field=field, message=f"Invalid value: {field}: {reason}")


def _check_image(field: str, ref: str) -> None:
    try:
        validate_image_reference(ref)
    except errors.ValidationError as err:
        raise _invalid(field, err.message) from err


def validate_template(template: S2iBuilderTemplate) -> None:
    """Check the invariants of a builder template, raising the first violation found.

    The template needs at least one base image, a default base image that is one of the base images and
    syntactically valid image references everywhere.
    """
    container_info = template.spec.containerInfo or []
    if len(container_info) == 0:
        raise errors.FieldRequiredError(field="baseImages")
    default_image = template.spec.defaultBaseImage
    if default_image.strip() == "":
        raise errors.FieldRequiredError(field="defaultBaseImage")
    builder_images = [info.builderImage for info in container_info]
    if default_image not in builder_images:
        raise _invalid("defaultBaseImage", f"defaultBaseImage [{default_image}] should in {builder_images}")
    for builder_image in builder_images:
        _check_image("builderImage", builder_image)
    _check_image("defaultBaseImage", default_image)


class Operation(StrEnum):
    """The operations an admission request is sent for."""

    create = "CREATE"
    update = "UPDATE"
    delete = "DELETE"
    connect = "CONNECT"


class AdmissionRequest(BaseCRD):
    """The request part of an AdmissionReview."""

    uid: str
    operation: Operation
    name: str | None = None
    namespace: str | None = None
    object: dict[str, Any] | None = None
    oldObject: dict[str, Any] | None = None


class AdmissionReview(BaseCRD):
    """An admission review sent by the api server."""

    apiVersion: str = ADMISSION_API_VERSION
    kind: str = "AdmissionReview"
    request: AdmissionRequest


def _response(uid: str, allowed: bool, code: int = 200, message: str | None = None) -> dict[str, Any]:
    response: dict[str, Any] = {"uid": uid, "allowed": allowed}
    if not allowed:
        response["status"] = {"code": code, "message": message or ""}
    return {"apiVersion": ADMISSION_API_VERSION, "kind": "AdmissionReview", "response": response}


def review_template(review: AdmissionReview) -> dict[str, Any]:
    """Answer an admission review for a builder template, deletes are always allowed."""
    request = review.request
    logger.info(f"validate {request.operation.lower()} of S2iBuilderTemplate {request.name}")
    if request.operation in (Operation.delete, Operation.connect):
        return _response(request.uid, True)
    if request.object is None:
        return _response(request.uid, False, 400, "The admission request does not contain an object.")
    try:
        template = S2iBuilderTemplate.model_validate(request.object)
    except PydanticValidationError as err:
        return _response(request.uid, False, 400, f"The object is not a valid S2iBuilderTemplate: {err}")
    try:
        validate_template(template)
    except errors.ValidationError as err:
        logger.info(f"Denied S2iBuilderTemplate {request.name}: {err.message}")
        return _response(request.uid, False, err.status_code, err.message)
    return _response(request.uid, True)
