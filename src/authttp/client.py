# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

import asyncio
import json
import logging
from pathlib import Path
from types import TracebackType
from typing import Any, Dict, Iterator, Mapping, Optional, Self
from urllib.parse import urlencode

from authttp.aggregate import gather_paced
from authttp.backends.httpx import HTTPXTransportBackend
from authttp.config import ClientConfig
from authttp.descriptor import HttpVerb, RequestDescriptor, parse_descriptor
from authttp.errors import (
    HttpStatusError,
    MultipartFileNotFound,
    RequestNetworkError,
    TimeoutException,
)
from authttp.interceptors import FORM_CONTENT_TYPE, InterceptorPipeline
from authttp.mock import JsonDirectoryMockLoader, MockLoader, load_mock_response
from authttp.navigation import Navigator
from authttp.paths import resolve_path_params
from authttp.throttling import RequestTask, ThrottlingQueue
from authttp.token_store import InMemoryTokenStore, TokenStore
from authttp.types import (
    PreparedRequest,
    ProgressCallback,
    QueryParams,
    TransportBackend,
    TransportResponse,
)

logger = logging.getLogger(__name__)


class Endpoint:
    """A named request built by :meth:`AuthenticatedHttpClient.factory`"""

    def __init__(
        self,
        client: "AuthenticatedHttpClient",
        name: str,
        descriptor: RequestDescriptor,
    ):
        self.client = client
        self.name = name
        self.descriptor = descriptor

    async def __call__(
        self,
        params: Optional[Mapping[str, Any]] = None,
        *,
        headers: Optional[Mapping[str, str]] = None,
        encoding: Optional[str] = None,
        timeout: Optional[float] = None,
        request_id: Optional[str] = None,
        authenticate: bool = True,
        save_path: Optional[str | Path] = None,
        on_progress: Optional[ProgressCallback] = None,
        form_fields: Optional[Mapping[str, str]] = None,
        throttling: bool = False,
    ) -> Any:
        return await self.client.send(
            self.descriptor,
            params,
            headers=headers,
            encoding=encoding,
            timeout=timeout,
            request_id=request_id,
            authenticate=authenticate,
            save_path=save_path,
            on_progress=on_progress,
            form_fields=form_fields,
            throttling=throttling,
        )

    def __repr__(self) -> str:
        flags = [
            flag
            for flag, enabled in (
                ("MOCK", self.descriptor.is_mock),
                ("SILENT", self.descriptor.is_silent),
            )
            if enabled
        ]
        return "<Endpoint %s: %s>" % (
            self.name,
            " ".join(
                [*flags, self.descriptor.method.value, self.descriptor.path_template]
            ),
        )


class Endpoints(Mapping[str, Endpoint]):
    """
    Read-only set of endpoints, reachable by key or as attributes.

    Names that would be shadowed by an attribute of the record itself
    (``get``, ``items``, ``keys``, ...) are rejected.
    """

    def __init__(self, endpoints: Dict[str, Endpoint]):
        reserved = sorted(name for name in endpoints if hasattr(Endpoints, name))
        if reserved:
            raise ValueError(
                "Reserved endpoint names %s, pick other names" % ", ".join(reserved)
            )
        self._endpoints = dict(endpoints)

    def __getitem__(self, name: str) -> Endpoint:
        return self._endpoints[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._endpoints)

    def __len__(self) -> int:
        return len(self._endpoints)

    def __getattr__(self, name: str) -> Endpoint:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._endpoints[name]
        except KeyError:
            raise AttributeError(f"No endpoint named {name!r}") from None


class AuthenticatedHttpClient:
    """
    HTTP client that turns request descriptors into async callables.

    Example::

        config = ClientConfig(base_url="https://api.company.com")
        client = AuthenticatedHttpClient(config)
        api = client.factory({
            "plan": "GET /api/plan/:id/details",
            "submit": "POST /api/submit/plan",
            "config": "MOCK POST /api/task/config",
            "unread": "SILENT GET /api/message/check/unread",
        })
        envelope = await api.plan({"id": 9527})

    Every endpoint call goes through the :class:`InterceptorPipeline`, which
    attaches the stored auth token and turns envelopes with a non-zero
    ``code`` into typed errors.
    """

    all = staticmethod(gather_paced)

    def __init__(
        self,
        config: ClientConfig,
        *,
        backend: Optional[TransportBackend] = None,
        token_store: Optional[TokenStore] = None,
        navigator: Optional[Navigator] = None,
        mock_loader: Optional[MockLoader] = None,
    ):
        self.config = config
        self.backend: TransportBackend = backend or HTTPXTransportBackend(
            default_timeout=config.timeout
        )
        self.token_store: TokenStore = token_store or InMemoryTokenStore()
        self.pipeline = InterceptorPipeline(config, navigator)
        self.queue = ThrottlingQueue(config.max_concurrency)
        self.mock_loader: MockLoader = mock_loader or JsonDirectoryMockLoader(
            config.mock_directory
        )
        self._token: Optional[str] = None
        self._token_loaded = False

    def factory(self, requests: Mapping[str, str]) -> Endpoints:
        """
        Build one endpoint per ``name: descriptor`` entry, e.g.
        ``{"plan": "GET /api/plan/:id/details"}``. All descriptors are parsed
        up front, so an invalid one fails the whole registration.
        """
        endpoints = {
            name: Endpoint(self, name, parse_descriptor(dsl))
            for name, dsl in requests.items()
        }
        logger.debug("Registered endpoints: %s", list(endpoints.values()))
        return Endpoints(endpoints)

    async def get_auth_token(self) -> Optional[str]:
        if not self._token_loaded:
            self._token = await self.token_store.get_token()
            self._token_loaded = True
        return self._token

    async def set_auth_token(self, token: str) -> None:
        await self.token_store.set_token(token)
        self._token = token
        self._token_loaded = True

    async def clear_auth_token(self) -> None:
        await self.token_store.clear_token()
        self._token = None
        self._token_loaded = True

    def build_url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return self.config.base_url + "/" + path.lstrip("/")

    async def send(
        self,
        descriptor: RequestDescriptor,
        params: Optional[Mapping[str, Any]] = None,
        *,
        headers: Optional[Mapping[str, str]] = None,
        encoding: Optional[str] = None,
        timeout: Optional[float] = None,
        request_id: Optional[str] = None,
        authenticate: bool = True,
        save_path: Optional[str | Path] = None,
        on_progress: Optional[ProgressCallback] = None,
        form_fields: Optional[Mapping[str, str]] = None,
        throttling: bool = False,
    ) -> Any:
        if descriptor.is_mock:
            logger.info(
                "MOCK %s %s params=%s",
                descriptor.method.value,
                self.build_url(descriptor.path_template),
                params,
            )
            return await load_mock_response(
                self.mock_loader, descriptor.method, descriptor.path_template
            )

        path, residual = resolve_path_params(
            descriptor.path_template,
            {str(key): value for key, value in (params or {}).items()},
        )
        if descriptor.method is HttpVerb.UPLOAD:
            validate_upload_files(residual)

        task = RequestTask(
            handler=self._perform,
            descriptor=descriptor,
            path=path,
            headers=dict(headers or {}),
            params=residual,
            form_fields=dict(form_fields) if form_fields else None,
            encoding=encoding,
            timeout=timeout,
            request_id=request_id,
            authenticate=authenticate,
            save_path=Path(save_path) if save_path is not None else None,
            on_progress=on_progress,
        )

        if not throttling:
            return await self._perform(task)
        return await self.queue.submit(task)

    def _prepare(self, task: RequestTask) -> PreparedRequest:
        assert task.descriptor is not None
        verb = task.descriptor.method
        request = PreparedRequest(
            method=verb.transport_method,
            url=self.build_url(task.path),
            headers=dict(task.headers),
            timeout=task.timeout if task.timeout is not None else self.config.timeout,
            request_id=task.request_id or "",
            silent=task.descriptor.is_silent,
            intercepted=verb is not HttpVerb.READ,
            authenticate=task.authenticate,
            expects_bytes=verb.expects_bytes,
            save_path=task.save_path if verb is HttpVerb.DOWNLOAD else None,
            on_progress=task.on_progress,
        )

        if verb is HttpVerb.UPLOAD:
            request.files = validate_upload_files(task.params)
            request.form_fields = task.form_fields
        elif verb.sends_body:
            if task.params or verb is not HttpVerb.DELETE:
                request.body = encode_body(
                    task.params, request.headers, task.encoding or "utf-8"
                )
        else:
            request.query_params = encode_query(task.params)
        return request

    async def _perform(self, task: RequestTask) -> Any:
        request = self._prepare(task)
        token = await self.get_auth_token() if request.authenticate else None
        request = self.pipeline.intercept_request(request, token)

        try:
            response = await asyncio.wait_for(
                self.backend.send(request), timeout=request.timeout
            )
        except asyncio.TimeoutError as err:
            self.pipeline.discard(request.request_id)
            error = TimeoutException(
                message="Request timed out after %ss: %s %s"
                % (request.timeout, request.method, request.url)
            )
            self.pipeline.notify_exception(error, request.silent)
            raise error from err
        except (TimeoutException, RequestNetworkError) as err:
            self.pipeline.discard(request.request_id)
            logger.warning(
                "Transport failure [%s] %s %s: %s",
                request.request_id,
                request.method,
                request.url,
                err,
            )
            self.pipeline.notify_exception(err, request.silent)
            raise
        except Exception as err:
            self.pipeline.discard(request.request_id)
            logger.warning(
                "Request failed [%s] %s %s: %r",
                request.request_id,
                request.method,
                request.url,
                err,
            )
            self.pipeline.notify_exception(err, request.silent)
            raise
        except BaseException:
            # cancelled while in flight
            self.pipeline.discard(request.request_id)
            raise

        assert task.descriptor is not None
        if task.descriptor.method is HttpVerb.READ:
            return read_text(response)
        return self.pipeline.intercept_response(request, response)

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[Mapping[str, Any]] = None,
        body: Any = None,
        timeout: Optional[float] = None,
        authenticate: bool = True,
    ) -> TransportResponse:
        """
        Plain request that skips response classification: the transport
        response comes back whatever its status or envelope.
        """
        request = PreparedRequest(
            method=method.upper(),
            url=self.build_url(url),
            headers=dict(headers or {}),
            query_params=encode_query(params or {}),
            timeout=timeout if timeout is not None else self.config.timeout,
            authenticate=authenticate,
        )
        if body is not None:
            if isinstance(body, bytes):
                request.body = body
            elif isinstance(body, str):
                request.body = body.encode()
            else:
                request.body = encode_body(body, request.headers, "utf-8")

        token = await self.get_auth_token() if authenticate else None
        request = self.pipeline.intercept_request(request, token)
        response = await self.backend.send(request)
        return self.pipeline.intercept_response(request, response)

    async def get(self, url: str, **kwargs: Any) -> TransportResponse:
        return await self.request("GET", url, **kwargs)

    async def head(self, url: str, **kwargs: Any) -> TransportResponse:
        return await self.request("HEAD", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> TransportResponse:
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs: Any) -> TransportResponse:
        return await self.request("PUT", url, **kwargs)

    async def patch(self, url: str, **kwargs: Any) -> TransportResponse:
        return await self.request("PATCH", url, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> TransportResponse:
        return await self.request("DELETE", url, **kwargs)

    async def close(self) -> None:
        """Forget the auth token and release the transport"""
        await self.clear_auth_token()
        await self.backend.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_value: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        await self.close()


def encode_body(
    params: Mapping[str, Any], headers: Mapping[str, str], encoding: str
) -> bytes:
    content_type = next(
        (value for key, value in headers.items() if key.lower() == "content-type"), ""
    )
    if content_type.lower().startswith(FORM_CONTENT_TYPE):
        return urlencode(params, doseq=True).encode(encoding)
    return json.dumps(params, default=str).encode(encoding)


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def encode_query(params: Mapping[str, Any]) -> QueryParams:
    """
    Query string values: lists and tuples repeat the parameter, booleans are
    ``true``/``false`` and ``None`` values are left out.
    """
    query: QueryParams = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            query[key] = [_query_value(item) for item in value if item is not None]
        else:
            query[key] = _query_value(value)
    return query


def validate_upload_files(params: Mapping[str, Any]) -> Dict[str, Path]:
    """``{field name: file path}``, each path an absolute, existing file"""
    if not params:
        raise MultipartFileNotFound(message="No file given for multipart upload")
    files: Dict[str, Path] = {}
    for field_name, value in params.items():
        if not field_name or not isinstance(value, (str, Path)):
            raise MultipartFileNotFound(
                message="Invalid multipart file for field %r" % field_name
            )
        path = Path(value)
        if not path.is_absolute() or not path.is_file():
            raise MultipartFileNotFound(message="Multipart file not found: %s" % path)
        files[field_name] = path
    return files


def read_text(response: TransportResponse) -> str:
    if not 200 <= response.status_code < 300:
        raise HttpStatusError(
            response.status_code,
            response.content[:100].decode("utf-8", errors="replace") or None,
        )
    return response.content.decode("utf-8", errors="replace")


__all__ = [
    "AuthenticatedHttpClient",
    "Endpoint",
    "Endpoints",
    "encode_body",
    "encode_query",
    "validate_upload_files",
]
