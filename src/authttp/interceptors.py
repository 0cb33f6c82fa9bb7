# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

import json
import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from authttp.config import ClientConfig
from authttp.errors import (
    ApplicationFailure,
    HttpError,
    HttpStatusError,
    ResponseFormatError,
    Unauthorized,
    UnderMaintenance,
)
from authttp.navigation import Navigator, NullNavigator
from authttp.types import (
    ErrorInterceptor,
    HeadersInterceptor,
    PreparedRequest,
    TransportResponse,
)

logger = logging.getLogger(__name__)

SUCCESS_CODE = 0
SUCCESS_STATUS = 200
FORMAT_ERROR_EXCERPT = 55
STATUS_ERROR_EXCERPT = 100
EMPTY_BODY_MESSAGE = "Bad request, try it later! "

REQUEST_ID_HEADER = "X-Request-Id"
SKIP_HEADERS_HEADER = "X-Skip-Headers"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
JSON_CONTENT_TYPE = "application/json"


class Outcome(str, Enum):
    RAW_BYTES = "RAW_BYTES"
    SUCCESS = "SUCCESS"
    AUTH_FAILURE = "AUTH_FAILURE"
    MAINTENANCE = "MAINTENANCE"
    FORMAT_ERROR = "FORMAT_ERROR"
    GENERIC_FAILURE = "GENERIC_FAILURE"
    PASSTHROUGH = "PASSTHROUGH"


@dataclass(frozen=True)
class SessionEntry:
    request_id: str
    silent: bool = False
    authenticate: bool = True


@dataclass(frozen=True)
class Classification:
    outcome: Outcome
    payload: Any = None
    code: Optional[int] = None
    message: Optional[str] = None
    by_status: bool = False


def is_json_text(text: str) -> bool:
    try:
        json.loads(text)
    except ValueError:
        return False
    return True


def is_key_value_query(text: str) -> bool:
    return all(len(pair.split("=")) == 2 for pair in text.split("&"))


def infer_content_type(body: str) -> str:
    if not is_json_text(body) and is_key_value_query(body):
        return FORM_CONTENT_TYPE
    return JSON_CONTENT_TYPE


def excerpt(text: str, limit: int) -> str:
    return text[:limit].replace("\n", "\t")


def new_request_id() -> str:
    return uuid.uuid4().hex


def _find_header(headers: Dict[str, str], name: str) -> Optional[str]:
    lowered = name.lower()
    for key in headers:
        if key.lower() == lowered:
            return key
    return None


class InterceptorPipeline:
    """
    Request/response interception shared by every call of a client.

    On the way out it completes the request headers and records a
    :class:`SessionEntry` under the request id. On the way back it classifies
    the response against that entry, triggers navigation when needed and
    either returns the decoded envelope or raises a typed :class:`HttpError`.
    """

    def __init__(self, config: ClientConfig, navigator: Optional[Navigator] = None):
        self.config = config
        self.navigator: Navigator = navigator or NullNavigator()
        self.sessions: Dict[str, SessionEntry] = {}

    def intercept_request(
        self, request: PreparedRequest, token: Optional[str] = None
    ) -> PreparedRequest:
        headers = dict(request.headers)
        headers["charset"] = "UTF-8"

        caller_request_id = _find_header(headers, REQUEST_ID_HEADER)
        if not request.request_id:
            request.request_id = (
                headers[caller_request_id] if caller_request_id else new_request_id()
            )
        if caller_request_id:
            del headers[caller_request_id]
        headers[REQUEST_ID_HEADER] = request.request_id

        if request.authenticate and token:
            if _find_header(headers, "Authorization") is None:
                headers["Authorization"] = (
                    f"{self.config.auth_scheme} {token}"
                    if self.config.auth_scheme
                    else token
                )

        if request.body is not None and not request.files:
            content_type_key = _find_header(headers, "Content-Type")
            if content_type_key:
                del headers[content_type_key]
            headers["Content-Type"] = infer_content_type(
                request.body.decode("utf-8", errors="replace")
            )

        if not request.intercepted:
            headers[SKIP_HEADERS_HEADER] = "true"

        for interceptor in self.config.headers_interceptors:
            try:
                headers = interceptor.intercept_headers(headers)
            except Exception:
                logger.exception(
                    "Headers interceptor %r failed, ignoring it", interceptor
                )

        request.headers = headers

        if request.intercepted:
            if request.request_id in self.sessions:
                raise ValueError(
                    "Request id %r is already in flight" % request.request_id
                )
            self.sessions[request.request_id] = SessionEntry(
                request_id=request.request_id,
                silent=request.silent,
                authenticate=request.authenticate,
            )

        logger.debug(
            "in interceptRequest[%s]%s ====> %s %s headers=%s query=%s body=%r",
            request.request_id,
            "[silent]" if request.silent else "",
            request.method,
            request.url,
            {k: v for k, v in headers.items() if k != "Authorization"},
            request.query_params,
            request.body,
        )
        return request

    def discard(self, request_id: str) -> None:
        """Forget a request whose transport call failed"""
        self.sessions.pop(request_id, None)

    def classify(
        self, response: TransportResponse, entry: Optional[SessionEntry]
    ) -> Classification:
        """Pure classification of ``response``, without side effects"""
        if entry is None:
            return Classification(Outcome.PASSTHROUGH, payload=response)

        if response.raw:
            return Classification(
                Outcome.RAW_BYTES, payload=response.saved_to or response.content
            )
        try:
            body = response.content.decode("utf-8")
        except UnicodeDecodeError:
            return Classification(Outcome.RAW_BYTES, payload=response.content)

        status = response.status_code
        if status == SUCCESS_STATUS:
            try:
                decoded = json.loads(body)
            except ValueError:
                return Classification(
                    Outcome.FORMAT_ERROR,
                    code=ResponseFormatError.default_code,
                    message=excerpt(body, FORMAT_ERROR_EXCERPT) or EMPTY_BODY_MESSAGE,
                )
            if not isinstance(decoded, dict):
                return Classification(Outcome.SUCCESS, payload=decoded)

            code = decoded.get("code")
            message = decoded.get("message")
            if (
                self.config.maintenance_code is not None
                and code == self.config.maintenance_code
            ):
                return Classification(
                    Outcome.MAINTENANCE, payload=decoded, code=code, message=message
                )
            if isinstance(code, int) and code in self.config.unauthorized_codes:
                return Classification(
                    Outcome.AUTH_FAILURE,
                    payload=decoded,
                    code=code,
                    message=message or "Unauthorized Error",
                )
            if code is None or code == SUCCESS_CODE:
                return Classification(Outcome.SUCCESS, payload=decoded, code=code)
            return Classification(
                Outcome.GENERIC_FAILURE,
                payload=decoded,
                code=code,
                message=message or "Failed Request Error",
            )

        if status == self.config.unauthorized_status:
            return Classification(
                Outcome.AUTH_FAILURE,
                code=status,
                message="Unauthorized Error",
                by_status=True,
            )

        return Classification(
            Outcome.GENERIC_FAILURE,
            code=status,
            message=excerpt(body, STATUS_ERROR_EXCERPT) or None,
            by_status=True,
        )

    def intercept_response(
        self, request: PreparedRequest, response: TransportResponse
    ) -> Any:
        entry = self.sessions.pop(request.request_id, None)
        result = self.classify(response, entry)
        silent = entry.silent if entry else request.silent

        logger.debug(
            "in interceptResponse[%s]%s <==== status=%s outcome=%s",
            request.request_id,
            "[silent]" if silent else "",
            response.status_code,
            result.outcome.value,
        )

        if result.outcome in (Outcome.RAW_BYTES, Outcome.PASSTHROUGH):
            return result.payload

        if result.outcome is Outcome.SUCCESS:
            return self._handle_success(result.payload)

        if result.outcome is Outcome.MAINTENANCE:
            logger.warning("[silent: %s] Gonna jump to maintenance page ...", silent)
            if not silent:
                self.navigator.on_maintenance(code=result.code)
            raise UnderMaintenance(result.code, result.message)

        if result.outcome is Outcome.AUTH_FAILURE:
            logger.warning("[silent: %s] Gonna jump to login page ...", silent)
            if not silent:
                if result.by_status:
                    self.navigator.on_unauthorized(status_code=result.code)
                else:
                    self.navigator.on_unauthorized(code=result.code)
            raise Unauthorized(result.code, result.message)

        if result.outcome is Outcome.FORMAT_ERROR:
            raise ResponseFormatError(result.code, result.message)

        logger.warning(
            "[silent: %s] Failed response [%s] code=%s message=%s",
            silent,
            request.request_id,
            result.code,
            result.message,
        )
        self.notify_error(code=result.code, message=result.message, silent=silent)
        if result.by_status:
            raise HttpStatusError(result.code, result.message)
        raise ApplicationFailure(result.code, result.message)

    def _handle_success(self, payload: Any) -> Any:
        handler = self.config.response_handler
        if handler is None:
            return payload
        try:
            return handler(payload)
        except Exception:
            logger.exception("Response handler failed, returning raw envelope")
            return payload

    def notify_error(
        self, *, code: Optional[int], message: Optional[str], silent: bool
    ) -> None:
        interceptor: Optional[ErrorInterceptor] = self.config.error_interceptor
        if interceptor is None:
            return
        try:
            interceptor(code=code, message=message, silent=silent)
        except Exception:
            logger.exception("Error interceptor failed")

    def notify_exception(self, error: BaseException, silent: bool) -> None:
        if isinstance(error, HttpError):
            self.notify_error(code=error.code, message=error.message, silent=silent)
        else:
            self.notify_error(code=None, message=str(error), silent=silent)


__all__ = [
    "HeadersInterceptor",
    "ErrorInterceptor",
    "Outcome",
    "SessionEntry",
    "Classification",
    "InterceptorPipeline",
    "infer_content_type",
    "is_json_text",
    "is_key_value_query",
    "new_request_id",
]
