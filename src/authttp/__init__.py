# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Declarative authenticated HTTP client:
- request descriptors (``"SILENT POST /api/plan/:id"``) turned into async callables
- auth token injection and response envelope classification
- bounded-concurrency throttling queue
- paced aggregate waiter
- local JSON mocks
"""

from .aggregate import gather_paced
from .backends.httpx import HTTPXTransportBackend
from .client import AuthenticatedHttpClient, Endpoint, Endpoints
from .config import ClientConfig
from .descriptor import HttpVerb, RequestDescriptor, parse_descriptor
from .errors import (
    ApplicationFailure,
    HttpError,
    HttpStatusError,
    InvalidDescriptorError,
    MockFixtureNotFound,
    MultipartFileNotFound,
    RequestNetworkError,
    ResponseFormatError,
    TimeoutException,
    Unauthorized,
    UnderMaintenance,
    describe_error,
)
from .interceptors import (
    Classification,
    InterceptorPipeline,
    Outcome,
    SessionEntry,
)
from .mock import JsonDirectoryMockLoader, MockLoader, mock_filenames
from .navigation import CallbackNavigator, Navigator, NullNavigator
from .paths import resolve_path_params, template_parameters
from .throttling import RequestTask, ThrottlingQueue
from .token_store import InMemoryTokenStore, JsonFileTokenStore, TokenStore
from .types import (
    ErrorInterceptor,
    HeadersInterceptor,
    PreparedRequest,
    ResponseEnvelope,
    TransportBackend,
    TransportResponse,
)

__all__ = [
    # Client
    "AuthenticatedHttpClient",
    "ClientConfig",
    "Endpoint",
    "Endpoints",
    # Descriptors
    "HttpVerb",
    "RequestDescriptor",
    "parse_descriptor",
    "resolve_path_params",
    "template_parameters",
    # Pipeline
    "InterceptorPipeline",
    "HeadersInterceptor",
    "ErrorInterceptor",
    "Outcome",
    "Classification",
    "SessionEntry",
    # Throttling and aggregation
    "ThrottlingQueue",
    "RequestTask",
    "gather_paced",
    # Collaborators
    "Navigator",
    "NullNavigator",
    "CallbackNavigator",
    "TokenStore",
    "InMemoryTokenStore",
    "JsonFileTokenStore",
    "MockLoader",
    "JsonDirectoryMockLoader",
    "mock_filenames",
    # Transport
    "HTTPXTransportBackend",
    "TransportBackend",
    "PreparedRequest",
    "TransportResponse",
    "ResponseEnvelope",
    # Errors
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
]
