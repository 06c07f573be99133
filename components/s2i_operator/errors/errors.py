"""Exceptions for the operator and its webhooks."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class BaseError(Exception):
    """Base class for all exceptions."""

    code: int = 1500
    status_code: int = 500
    message: str = "An unexpected error occurred"
    detail: Optional[str] = None
    quiet: bool = False

    def __repr__(self) -> str:
        """String representation of the error."""
        return f"{self.__class__.__qualname__}: {self.message}"

    def __str__(self) -> str:
        """String representation of the error."""
        return f"{self.__class__.__qualname__}: {self.message}"


# ! IMPORTANT: keep this list ordered by HTTP status code.


@dataclass
class GeneralBadRequest(BaseError):
    """Raised for a 400 status code - when the server cannot or will not process the request."""

    code: int = 1400
    message: str = "The request is invalid, malformed or non-sensical and cannot be fulfilled."
    status_code: int = 400


@dataclass
class UnsupportedEventTypeError(GeneralBadRequest):
    """Raised when a webhook delivers an event type that is not known."""

    code: int = 1410
    message: str = "The event type is not supported."


@dataclass
class MissingResourceError(BaseError):
    """Raised when a resource is not found."""

    code: int = 1404
    status_code: int = 404
    message: str = "The requested resource does not exist or cannot be found"
    quiet: bool = True


@dataclass
class ConflictError(BaseError):
    """Raised when a conflicting update occurs."""

    code: int = 1409
    message: str = "Conflicting update detected."
    status_code: int = 409


@dataclass
class ValidationError(BaseError):
    """Raised when the inputs or outputs are invalid."""

    code: int = 1422
    message: str = "The provided input is invalid"
    status_code: int = 422


@dataclass
class FieldRequiredError(ValidationError):
    """Raised when a required field is missing or empty."""

    code: int = 1423
    field: str = ""
    message: str = "A required field is missing."

    def __post_init__(self) -> None:
        if self.field and self.message == FieldRequiredError.message:
            self.message = f"Required value: {self.field} is required"


@dataclass
class FieldInvalidValueError(ValidationError):
    """Raised when a field holds a value that is not acceptable."""

    code: int = 1424
    field: str = ""
    message: str = "A field has an invalid value."


@dataclass
class InvalidSecretTypeError(ValidationError):
    """Raised when a referenced secret does not have the expected type."""

    code: int = 1425
    message: str = "The secret does not have the expected type."


@dataclass
class MalformedSecretError(ValidationError):
    """Raised when the payload of a referenced secret cannot be used."""

    code: int = 1426
    message: str = "The secret payload is malformed."


@dataclass
class EmptyAuthMapError(MalformedSecretError):
    """Raised when a docker config secret contains no registry credentials."""

    code: int = 1427
    message: str = "docker config auth len should not be 0"


@dataclass
class BranchMismatchError(ValidationError):
    """Raised when a pushed branch does not satisfy the branch policy of a builder."""

    code: int = 1430
    message: str = "The branch does not match the builder policy."


@dataclass
class RegexCompileError(ValidationError):
    """Raised when a branch expression is not a valid regular expression."""

    code: int = 1431
    message: str = "The branch expression cannot be compiled."


@dataclass
class ConfigurationError(BaseError):
    """Raised when the server is not properly configured."""

    message: str = "The server is not properly configured and cannot run"


@dataclass
class ProgrammingError(BaseError):
    """Raised an irrecoverable programming error or bug occurs."""

    code: int = 1500
    message: str = "An unexpected error occurred."
    status_code: int = 500


@dataclass
class TriggerFailedError(BaseError):
    """Raised when a webhook trigger could not be validated or dispatched."""

    code: int = 1520
    message: str = "The webhook event could not be handled."
    status_code: int = 500


def missing_resource(kind: str, namespace: str | None, name: str) -> MissingResourceError:
    """Generate a missing resource error for a namespaced or cluster scoped object."""
    location = f"{namespace}/{name}" if namespace else name
    return MissingResourceError(message=f"The {kind} {location} does not exist or cannot be found.")
