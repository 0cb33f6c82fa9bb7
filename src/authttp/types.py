# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

from dataclasses import dataclass, field
from pathlib import Path
from typing import (
    Any,
    Dict,
    List,
    Optional,
    Protocol,
    TypedDict,
    Union,
    runtime_checkable,
)


class ProgressCallback(Protocol):

    def __call__(self, received: int, total: Optional[int]) -> None: ...


class ResponseEnvelope(TypedDict, total=False):
    """Decoded JSON object answered by the api service"""

    code: int
    message: str
    data: Any


QueryParams = Dict[str, Union[str, List[str]]]


@runtime_checkable
class HeadersInterceptor(Protocol):
    """Adds custom headers, e.g. device or app version, to every request"""

    def intercept_headers(self, headers: Dict[str, str]) -> Dict[str, str]: ...


@runtime_checkable
class ErrorInterceptor(Protocol):
    """Told about every failed request, silent or not"""

    def __call__(
        self, *, code: Optional[int], message: Optional[str], silent: bool
    ) -> Any: ...


@dataclass
class PreparedRequest:
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    query_params: QueryParams = field(default_factory=dict)
    body: Optional[bytes] = None
    form_fields: Optional[Dict[str, str]] = None
    files: Optional[Dict[str, Path]] = None
    timeout: Optional[float] = None
    request_id: str = ""
    silent: bool = False
    intercepted: bool = False
    authenticate: bool = True
    expects_bytes: bool = False
    save_path: Optional[Path] = None
    on_progress: Optional[ProgressCallback] = None


@dataclass
class TransportResponse:
    status_code: int
    content: bytes
    headers: Optional[Dict[str, str]] = None
    elapsed_time: Optional[float] = None
    raw: bool = False
    saved_to: Optional[Path] = None

    @property
    def text(self) -> str:
        return self.content.decode("utf-8")


class TransportBackend(Protocol):

    async def send(self, request: PreparedRequest) -> TransportResponse: ...

    async def aclose(self) -> None: ...


__all__ = [
    "ProgressCallback",
    "ResponseEnvelope",
    "QueryParams",
    "HeadersInterceptor",
    "ErrorInterceptor",
    "PreparedRequest",
    "TransportResponse",
    "TransportBackend",
]
