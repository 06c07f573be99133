"""The error handler for the application."""

import os
import sys
import traceback
from asyncio import CancelledError

import kr8s
from pydantic import ValidationError as PydanticValidationError
from sanic import HTTPResponse, Request, SanicException, json
from sanic.errorpages import BaseRenderer, TextRenderer
from sanic.handlers import ErrorHandler
from sanic_ext.exceptions import ValidationError

from s2i_operator.base_api import apispec
from s2i_operator.errors import errors


def _pydantic_message(exception: PydanticValidationError) -> str:
    parts = [".".join(str(i) for i in field["loc"]) + ": " + field["msg"] for field in exception.errors()]
    return f"There are errors in the following fields, {', '.join(parts)}"


class CustomErrorHandler(ErrorHandler):
    """Central error handling, every error is answered with an `ErrorResponse` body."""

    def __init__(self, base: type[BaseRenderer] = TextRenderer) -> None:
        super().__init__(base)

    @staticmethod
    def format_exception(request: Request, exception: Exception) -> errors.BaseError:
        """Convert any exception into one of the application errors."""
        formatted_exception = errors.BaseError()
        match exception:
            case errors.BaseError():
                formatted_exception = exception
            case ValidationError():
                extra_exception = None if exception.extra is None else exception.extra["exception"]
                match extra_exception:
                    case TypeError():
                        formatted_exception = errors.ValidationError(
                            message="The validation failed because the provided input has the wrong type"
                        )
                    case PydanticValidationError():
                        formatted_exception = errors.ValidationError(message=_pydantic_message(extra_exception))
            case SanicException():
                message = exception.message
                if message == "" or message is None:
                    message = ", ".join([str(i) for i in exception.args])
                formatted_exception = errors.BaseError(
                    message=message,
                    status_code=exception.status_code,
                    code=1000 + exception.status_code,
                    quiet=exception.quiet or False,
                )
            case PydanticValidationError():
                formatted_exception = errors.ValidationError(message=_pydantic_message(exception))
            case kr8s.ServerError():
                formatted_exception = errors.BaseError(
                    message="The request to the kubernetes api failed.", detail=str(exception)
                )
            case CancelledError():
                formatted_exception = errors.BaseError(
                    message="The request was cancelled", quiet=request.transport.is_closing()
                )
        return formatted_exception

    def default(self, request: Request, exception: Exception) -> HTTPResponse:
        """Overrides the default error handler."""
        formatted_exception = self.format_exception(request, exception)
        self.log(request, formatted_exception)
        if formatted_exception.status_code == 500 and "PYTEST_CURRENT_TEST" in os.environ:
            sys.stderr.write(f"A 500 error was raised because of {type(exception)} on request {request}\n")
            traceback.print_exception(exception)
        return json(
            apispec.ErrorResponse(
                error=apispec.Error(
                    code=formatted_exception.code,
                    message=formatted_exception.message,
                    detail=formatted_exception.detail,
                )
            ).model_dump(exclude_none=True),
            status=formatted_exception.status_code,
        )
