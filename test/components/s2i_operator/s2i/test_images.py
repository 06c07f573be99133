"""Tests for image reference validation."""

import pytest

from s2i_operator.errors import errors
from s2i_operator.s2i.images import ImageReference, validate_image_reference

SHA256 = "sha256:" + "a" * 64


@pytest.mark.parametrize(
    "ref",
    [
        "nginx",
        "nginx:1.28",
        "kubesphere/java-8-centos7:v2.1.0",
        "docker.io/library/nginx:latest",
        "localhost:5000/team/app",
        "harbor.example.com:8443/group/sub/app:1.0.0-rc.1",
        f"nginx@{SHA256}",
        f"quay.io/org/app:v1@{SHA256}",
        "my_registry/a__b/c--d",
        "[::1]:5000/app",
    ],
)
def test_valid_references(ref: str):
    validate_image_reference(ref)


@pytest.mark.parametrize(
    "ref",
    [
        "",
        "Kubesphere/Java",
        "nginx:",
        ":latest",
        "nginx app",
        "app-",
        "registry.example.com/-app",
        "nginx:" + "a" * 129,
        "nginx@sha256:abc",
        "nginx@md5:" + "a" * 32,
        "a/" * 130 + "b",
        "nginx:latest\n",
        "nginx\n",
        "nginx:t\u00e4g",
        "nginx:\u0661\u0662",
        "r\u00e9gistry.example.com/app",
    ],
)
def test_invalid_references(ref: str):
    with pytest.raises(errors.ValidationError):
        validate_image_reference(ref)


def test_uppercase_is_reported():
    with pytest.raises(errors.ValidationError, match="must be lowercase"):
        ImageReference.parse("Kubesphere/Java")


def test_parse_parts():
    ref = ImageReference.parse(f"harbor.example.com:8443/group/app:1.0@{SHA256}")
    assert ref.domain == "harbor.example.com:8443"
    assert ref.path == "group/app"
    assert ref.tag == "1.0"
    assert ref.digest == SHA256
    assert str(ref) == f"harbor.example.com:8443/group/app:1.0@{SHA256}"


def test_first_component_without_dot_is_part_of_the_path():
    ref = ImageReference.parse("kubesphere/java-8-centos7:v2.1.0")
    assert ref.domain is None
    assert ref.name == "kubesphere/java-8-centos7"
