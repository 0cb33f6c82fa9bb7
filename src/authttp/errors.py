# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

from typing import Optional

RESPONSE_FORMAT_ERROR = 102
UNAUTHORIZED = 401
FORBIDDEN = 403
NOT_FOUND = 404
REQUEST_TIMEOUT = 408
MULTIFILE_NOT_FOUND = 416
INTERNAL_SERVER_ERROR = 500
BAD_GATEWAY = 502
SERVICE_UNAVAILABLE = 503
GATEWAY_TIMEOUT = 504

DEFAULT_MESSAGE = "Request failed, please try again later !"

_DEFAULT_MESSAGES: dict[int, str] = {
    RESPONSE_FORMAT_ERROR: "Bad Response Format!",
    UNAUTHORIZED: "Unauthorized Error",
    MULTIFILE_NOT_FOUND: "Multipart file not found!",
    BAD_GATEWAY: "Something wrong on Server!",
    GATEWAY_TIMEOUT: "Request timed out, please checkout network connection!",
    INTERNAL_SERVER_ERROR: "Internal Server Error!",
    NOT_FOUND: "Bad Request uri not found!",
}


def default_message(code: Optional[int]) -> str:
    if code is None:
        return DEFAULT_MESSAGE
    return _DEFAULT_MESSAGES.get(code, DEFAULT_MESSAGE)


class HttpError(Exception):
    """Base error for every failure surfaced by the client.

    Carries a numeric ``code`` (an HTTP status or an application code from the
    response envelope) and a human readable ``message``.
    """

    default_code: Optional[int] = None

    def __init__(self, code: Optional[int] = None, message: Optional[str] = None):
        self.code = code if code is not None else self.default_code
        self.message = message if message else default_message(self.code)
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[Error:{self.code}] {self.message}"


class TimeoutException(HttpError):
    """Raised when a request does not complete within its timeout"""

    default_code = GATEWAY_TIMEOUT


class RequestNetworkError(HttpError):
    """Raised when the transport could not reach the server"""

    default_code = INTERNAL_SERVER_ERROR


class ResponseFormatError(HttpError):
    """A 200 response whose body is not valid JSON"""

    default_code = RESPONSE_FORMAT_ERROR


class Unauthorized(HttpError):

    default_code = UNAUTHORIZED


class UnderMaintenance(HttpError):

    def __init__(self, code: Optional[int] = None, message: Optional[str] = None):
        super().__init__(
            code,
            message
            or "Briefly Unavailable for Scheduled Maintenance. Check Back in a Minute!",
        )


class ApplicationFailure(HttpError):
    """A non-zero envelope ``code`` the client has no special handling for"""


class HttpStatusError(ApplicationFailure):
    """A non-200 transport status that is not the unauthorized status"""


class MultipartFileNotFound(HttpError):

    default_code = MULTIFILE_NOT_FOUND


class MockFixtureNotFound(HttpError):

    default_code = NOT_FOUND


class InvalidDescriptorError(ValueError):
    """Raised for request descriptors that cannot be parsed"""


def describe_error(error: BaseException) -> str:
    """
    Render any exception raised by a request as ``[Error:<type>] <message>``.

    Typed client errors use their code, other exceptions their class name.
    """
    if isinstance(error, HttpError):
        return str(error)
    if isinstance(error, TimeoutError):
        return f"[Error:{GATEWAY_TIMEOUT}] {default_message(GATEWAY_TIMEOUT)}"
    if isinstance(error, ConnectionError):
        code = INTERNAL_SERVER_ERROR
        return f"[Error:{code}] {default_message(code)}"
    return f"[Error:{type(error).__name__}] {error}"


__all__ = [
    "HttpError",
    "TimeoutException",
    "RequestNetworkError",
    "ResponseFormatError",
    "Unauthorized",
    "UnderMaintenance",
    "ApplicationFailure",
    "HttpStatusError",
    "MultipartFileNotFound",
    "MockFixtureNotFound",
    "InvalidDescriptorError",
    "describe_error",
    "default_message",
]
