# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

import os
from typing import Any, Callable, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from authttp.types import ErrorInterceptor, HeadersInterceptor, ResponseEnvelope

DEFAULT_MAX_CONCURRENCY = 10
DEFAULT_TIMEOUT_SECONDS = 45.0
DEFAULT_UNAUTHORIZED_STATUS = 401
DEFAULT_UNAUTHORIZED_CODES = frozenset({101})
DEFAULT_MOCK_DIRECTORY = "mock"

ENV_PREFIX = "AUTHTTP_"


def parse_codes(value: Any) -> frozenset[int]:
    """
    Accept ``101``, ``"101|103"`` or an iterable of ints. ``0`` is reserved
    for success and is dropped.
    """
    if value is None:
        return DEFAULT_UNAUTHORIZED_CODES
    if isinstance(value, bool):
        raise ValueError("invalid type of unauthorized codes")
    if isinstance(value, int):
        codes: Iterable[Any] = [value]
    elif isinstance(value, str):
        codes = [item.strip() for item in value.split("|") if item.strip()]
    else:
        codes = value
    return frozenset(code for code in (int(item) for item in codes) if code != 0)


class ClientConfig(BaseModel):
    """Configuration of an :class:`~authttp.client.AuthenticatedHttpClient`"""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    base_url: str
    max_concurrency: int = Field(default=DEFAULT_MAX_CONCURRENCY, ge=1)
    timeout: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)
    unauthorized_status: int = DEFAULT_UNAUTHORIZED_STATUS
    unauthorized_codes: frozenset[int] = DEFAULT_UNAUTHORIZED_CODES
    maintenance_code: Optional[int] = None
    mock_directory: str = DEFAULT_MOCK_DIRECTORY
    auth_scheme: Optional[str] = None

    response_handler: Optional[Callable[[ResponseEnvelope], Any]] = None
    error_interceptor: Optional[ErrorInterceptor] = None
    headers_interceptors: tuple[HeadersInterceptor, ...] = ()

    @field_validator("base_url")
    @classmethod
    def _strip_base_url(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("base_url CAN NOT be empty")
        return value.rstrip("/")

    @field_validator("unauthorized_codes", mode="before")
    @classmethod
    def _parse_unauthorized_codes(cls, value: Any) -> frozenset[int]:
        return parse_codes(value)

    @field_validator("maintenance_code")
    @classmethod
    def _maintenance_code_not_success(cls, value: Optional[int]) -> Optional[int]:
        return None if value == 0 else value

    @field_validator("headers_interceptors", mode="before")
    @classmethod
    def _check_headers_interceptors(cls, value: Any) -> tuple[Any, ...]:
        if value is None:
            return ()
        interceptors = tuple(value)
        for interceptor in interceptors:
            if not callable(getattr(interceptor, "intercept_headers", None)):
                raise ValueError(
                    "%r does not implement intercept_headers" % (interceptor,)
                )
        return interceptors

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX, **overrides: Any) -> "ClientConfig":
        """
        Build a config from ``<prefix>BASE_URL``, ``<prefix>MAX_CONCURRENCY``,
        ``<prefix>TIMEOUT``, ``<prefix>UNAUTHORIZED_STATUS``,
        ``<prefix>UNAUTHORIZED_CODES``, ``<prefix>MAINTENANCE_CODE``,
        ``<prefix>MOCK_DIRECTORY`` and ``<prefix>AUTH_SCHEME``.
        Keyword arguments take precedence over the environment.
        """
        env_keys = {
            "base_url": "BASE_URL",
            "max_concurrency": "MAX_CONCURRENCY",
            "timeout": "TIMEOUT",
            "unauthorized_status": "UNAUTHORIZED_STATUS",
            "unauthorized_codes": "UNAUTHORIZED_CODES",
            "maintenance_code": "MAINTENANCE_CODE",
            "mock_directory": "MOCK_DIRECTORY",
            "auth_scheme": "AUTH_SCHEME",
        }
        values: dict[str, Any] = {}
        for field_name, env_name in env_keys.items():
            value = os.getenv(prefix + env_name)
            if value is not None and value != "":
                values[field_name] = value
        values.update(overrides)
        return cls.model_validate(values)


__all__ = [
    "ClientConfig",
    "parse_codes",
    "DEFAULT_MAX_CONCURRENCY",
    "DEFAULT_TIMEOUT_SECONDS",
    "DEFAULT_UNAUTHORIZED_STATUS",
    "DEFAULT_UNAUTHORIZED_CODES",
]
