import logging
import time
from contextlib import ExitStack
from typing import Any, Optional

import httpx

from authttp.errors import RequestNetworkError, TimeoutException
from authttp.types import PreparedRequest, TransportBackend, TransportResponse

logger = logging.getLogger(__name__)

DOWNLOAD_CHUNK_SIZE = 64 * 1024


class HTTPXTransportBackend(TransportBackend):
    """
    Sends prepared requests with one shared :class:`httpx.AsyncClient`.

    ``transport`` is handed to the client as is, which lets tests plug an
    :class:`httpx.MockTransport`.
    """

    def __init__(
        self,
        default_timeout: float = 45.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **client_kwargs: Any,
    ):
        self.default_timeout = default_timeout
        self._transport = transport
        self._client_kwargs = client_kwargs
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                transport=self._transport, **self._client_kwargs
            )
        return self._client

    async def send(self, request: PreparedRequest) -> TransportResponse:
        start_time = time.time()

        timeout = (
            request.timeout if request.timeout is not None else self.default_timeout
        )

        request_kwargs: dict[str, Any] = {
            "method": request.method,
            "url": request.url,
            "headers": request.headers,
            "params": request.query_params,
            "timeout": timeout,
        }

        with ExitStack() as stack:
            if request.files:
                # Multipart form data with files
                request_kwargs["files"] = {
                    name: (path.name, stack.enter_context(open(path, "rb")))
                    for name, path in request.files.items()
                }
                if request.form_fields:
                    request_kwargs["data"] = request.form_fields
            elif request.form_fields:
                request_kwargs["data"] = request.form_fields
            elif request.body is not None:
                request_kwargs["content"] = request.body

            try:
                if request.save_path is not None:
                    response = await self._download(request, request_kwargs)
                else:
                    backend_response = await self.client.request(**request_kwargs)
                    response = TransportResponse(
                        status_code=backend_response.status_code,
                        content=backend_response.content,
                        headers=dict(backend_response.headers),
                        raw=request.expects_bytes
                        and backend_response.is_success,
                    )
                    if request.files and request.on_progress is not None:
                        sent = sum(
                            path.stat().st_size for path in request.files.values()
                        )
                        request.on_progress(sent, sent)
            except httpx.TimeoutException as err:
                raise TimeoutException(message=f"Request timed out: {err}") from err
            except httpx.RequestError as err:
                raise RequestNetworkError(message=f"Network error: {err}") from err

        response.elapsed_time = time.time() - start_time
        logger.debug(
            "%s %s -> %s in %.3fs",
            request.method,
            request.url,
            response.status_code,
            response.elapsed_time,
        )
        return response

    async def _download(
        self, request: PreparedRequest, request_kwargs: dict[str, Any]
    ) -> TransportResponse:
        assert request.save_path is not None
        async with self.client.stream(**request_kwargs) as backend_response:
            if not backend_response.is_success:
                await backend_response.aread()
                return TransportResponse(
                    status_code=backend_response.status_code,
                    content=backend_response.content,
                    headers=dict(backend_response.headers),
                )

            total_header = backend_response.headers.get("Content-Length")
            total = (
                int(total_header)
                if total_header and total_header.isdigit()
                else None
            )
            received = 0
            request.save_path.parent.mkdir(parents=True, exist_ok=True)
            with open(request.save_path, "wb") as output:
                async for chunk in backend_response.aiter_bytes(DOWNLOAD_CHUNK_SIZE):
                    output.write(chunk)
                    received += len(chunk)
                    if request.on_progress is not None:
                        request.on_progress(received, total)

            return TransportResponse(
                status_code=backend_response.status_code,
                content=b"",
                headers=dict(backend_response.headers),
                raw=True,
                saved_to=request.save_path,
            )

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
