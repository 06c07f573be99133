"""Syntax validation of container image references."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final, Self

from s2i_operator.errors import errors

NAME_TOTAL_LENGTH_MAX: Final[int] = 255

_ALPHANUMERIC = r"[a-z0-9]+"
_SEPARATOR = r"(?:[._]|__|[-]+)"
_PATH_COMPONENT = rf"{_ALPHANUMERIC}(?:{_SEPARATOR}{_ALPHANUMERIC})*"
_DOMAIN_NAME_COMPONENT = r"(?:[a-zA-Z0-9]|[a-zA-Z0-9][a-zA-Z0-9-]*[a-zA-Z0-9])"
_IPV6_ADDRESS = r"\[(?:[a-fA-F0-9:]+)\]"
_DOMAIN_NAME = rf"{_DOMAIN_NAME_COMPONENT}(?:\.{_DOMAIN_NAME_COMPONENT})*"
_HOST = rf"(?:{_DOMAIN_NAME}|{_IPV6_ADDRESS})"
_DOMAIN = rf"{_HOST}(?::[0-9]+)?"
_REMOTE_NAME = rf"{_PATH_COMPONENT}(?:/{_PATH_COMPONENT})*"
_NAME = rf"(?:{_DOMAIN}/)?{_REMOTE_NAME}"
_TAG = r"[A-Za-z0-9_][A-Za-z0-9_.-]{0,127}"
_DIGEST = r"[A-Za-z][A-Za-z0-9]*(?:[-_+.][A-Za-z][A-Za-z0-9]*)*:[0-9a-fA-F]{32,}"

REFERENCE_REGEX: Final[re.Pattern[str]] = re.compile(
    rf"(?P<name>{_NAME})(?::(?P<tag>{_TAG}))?(?:@(?P<digest>{_DIGEST}))?",
    re.ASCII,
)
"""Matches a full image reference like `docker.io/library/nginx:1.28@sha256:...`."""

_DOMAIN_REGEX: Final[re.Pattern[str]] = re.compile(_DOMAIN, re.ASCII)

DIGEST_HEX_LENGTHS: Final[dict[str, int]] = {"sha256": 64, "sha384": 96, "sha512": 128}
"""The supported digest algorithms and the length of their lowercase hex encoding."""


@dataclass(frozen=True)
class ImageReference:
    """A parsed container image reference."""

    domain: str | None
    path: str
    tag: str | None = None
    digest: str | None = None

    @property
    def name(self) -> str:
        """The repository name including its domain."""
        return f"{self.domain}/{self.path}" if self.domain else self.path

    @classmethod
    def parse(cls, ref: str) -> Self:
        """Parse an image reference, raises a validation error describing why the reference is not valid."""
        if ref == "":
            raise errors.ValidationError(message="repository name must have at least one component")
        match = REFERENCE_REGEX.fullmatch(ref)
        if match is None:
            if REFERENCE_REGEX.fullmatch(ref.lower()) is not None:
                raise errors.ValidationError(message=f"repository name must be lowercase: {ref}")
            raise errors.ValidationError(message=f"invalid reference format: {ref}")
        name = match.group("name")
        if len(name) > NAME_TOTAL_LENGTH_MAX:
            raise errors.ValidationError(
                message=f"repository name must not be more than {NAME_TOTAL_LENGTH_MAX} characters"
            )
        digest = match.group("digest")
        if digest is not None:
            _validate_digest(digest)
        domain, path = _split_domain(name)
        return cls(domain=domain, path=path, tag=match.group("tag"), digest=digest)

    def __str__(self) -> str:
        res = self.name
        if self.tag:
            res += f":{self.tag}"
        if self.digest:
            res += f"@{self.digest}"
        return res


def _split_domain(name: str) -> tuple[str | None, str]:
    """Split off the leading domain component, it is only a domain if it looks like a host."""
    first, sep, rest = name.partition("/")
    if sep == "":
        return None, name
    if ("." in first or ":" in first or first == "localhost" or first.startswith("[")) and _DOMAIN_REGEX.fullmatch(
        first
    ):
        return first, rest
    return None, name


def _validate_digest(digest: str) -> None:
    algorithm, _, encoded = digest.partition(":")
    expected_length = DIGEST_HEX_LENGTHS.get(algorithm)
    if expected_length is None:
        raise errors.ValidationError(message=f"unsupported digest algorithm: {algorithm}")
    if len(encoded) != expected_length or encoded != encoded.lower():
        raise errors.ValidationError(message=f"invalid checksum digest format: {digest}")


def validate_image_reference(ref: str) -> None:
    """Raise a validation error if the image reference is not syntactically valid."""
    ImageReference.parse(ref)

