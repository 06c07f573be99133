"""Tests for the admission validation of builder templates."""

import pytest
from hypothesis import assume, given
from hypothesis import strategies as st

from s2i_operator.errors import errors
from s2i_operator.s2i.admission import AdmissionReview, review_template, validate_template
from s2i_operator.s2i.crs import S2iBuilderTemplate
from test.utils import template_manifest

JAVA_8 = "kubesphere/java-8-centos7:v2.1.0"
JAVA_11 = "kubesphere/java-11-centos7:v2.1.0"
REVIEW_UID = "705ab4f5-6393-11e8-b7cc-42010a800002"

image_strat = st.from_regex(
    r"[a-z][a-z0-9]{0,8}(/[a-z][a-z0-9]{0,8})?(:[a-zA-Z0-9_][a-zA-Z0-9_.-]{0,8})?", fullmatch=True
)


def _template(**kwargs) -> S2iBuilderTemplate:
    return S2iBuilderTemplate.model_validate(template_manifest(**kwargs))


def _review(operation: str, obj: dict | None) -> AdmissionReview:
    return AdmissionReview.model_validate(
        {
            "apiVersion": "admission.k8s.io/v1",
            "kind": "AdmissionReview",
            "request": {"uid": REVIEW_UID, "operation": operation, "name": "java", "object": obj},
        }
    )


def test_valid_template():
    validate_template(_template())


@pytest.mark.parametrize(
    "kwargs,expected_error,message",
    [
        ({"images": []}, errors.FieldRequiredError, "baseImages"),
        ({"default_image": "  ", "images": [JAVA_8]}, errors.FieldRequiredError, "defaultBaseImage"),
        ({"default_image": JAVA_11, "images": [JAVA_8]}, errors.FieldInvalidValueError, "should in"),
        ({"default_image": JAVA_8, "images": [JAVA_8, "Java/Base"]}, errors.FieldInvalidValueError, "builderImage"),
        ({"default_image": "java:8:8", "images": ["java:8:8"]}, errors.FieldInvalidValueError, "invalid reference"),
        (
            {"default_image": "docker.io/library/nginx:1.0\n", "images": ["docker.io/library/nginx:1.0\n"]},
            errors.FieldInvalidValueError,
            "builderImage",
        ),
    ],
)
def test_invalid_template(kwargs, expected_error, message):
    with pytest.raises(expected_error, match=message):
        validate_template(_template(**kwargs))


def test_empty_images_are_reported_before_the_default():
    template = _template(default_image="", images=[])
    with pytest.raises(errors.FieldRequiredError, match="baseImages"):
        validate_template(template)


@given(images=st.lists(image_strat, min_size=1, max_size=4), data=st.data())
def test_any_listed_default_is_accepted(images, data):
    default_image = data.draw(st.sampled_from(images))
    validate_template(_template(default_image=default_image, images=images))


@given(images=st.lists(image_strat, min_size=1, max_size=4), default_image=image_strat)
def test_unlisted_default_is_rejected(images, default_image):
    assume(default_image not in images)
    with pytest.raises(errors.FieldInvalidValueError):
        validate_template(_template(default_image=default_image, images=images))


@pytest.mark.parametrize("operation", ["DELETE", "CONNECT"])
def test_review_allows_deletes(operation):
    res = review_template(_review(operation, None))
    assert res["response"] == {"uid": REVIEW_UID, "allowed": True}


def test_review_allows_valid_templates():
    res = review_template(_review("CREATE", template_manifest()))
    assert res["apiVersion"] == "admission.k8s.io/v1"
    assert res["kind"] == "AdmissionReview"
    assert res["response"]["allowed"] is True


def test_review_denies_invalid_templates():
    res = review_template(_review("UPDATE", template_manifest(images=[])))
    assert res["response"]["allowed"] is False
    assert res["response"]["status"]["code"] == 422
    assert "baseImages" in res["response"]["status"]["message"]


@pytest.mark.parametrize("obj", [None, {"metadata": "not a mapping"}])
def test_review_denies_unreadable_objects(obj):
    res = review_template(_review("CREATE", obj))
    assert res["response"]["allowed"] is False
    assert res["response"]["status"]["code"] == 400
