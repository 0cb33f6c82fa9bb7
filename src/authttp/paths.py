# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

import re
from typing import Any, Mapping, Optional

_PATH_TOKEN = re.compile(r"^(?::(?P<colon>\w+)|\{(?P<brace>\w+)\})$")


def _token_name(segment: str) -> Optional[str]:
    match = _PATH_TOKEN.match(segment)
    if match is None:
        return None
    return match.group("colon") or match.group("brace")


def _is_path_value(value: Any) -> bool:
    # bool is an int subclass but never a valid path segment
    return isinstance(value, (str, int)) and not isinstance(value, bool)


def template_parameters(template: str) -> list[str]:
    """Names of the ``:name`` / ``{name}`` tokens in a path template"""
    return [
        name
        for segment in template.split("/")
        if (name := _token_name(segment)) is not None
    ]


def resolve_path_params(
    template: str, params: Optional[Mapping[str, Any]]
) -> tuple[str, dict[str, Any]]:
    """
    Substitute ``:name`` and ``{name}`` path segments from ``params``.

    Returns the resolved path and a copy of ``params`` without the keys that
    were consumed. Segments whose key is missing, ``None`` or not a str/int
    value are left as they are.
    """
    residual: dict[str, Any] = dict(params or {})
    if not residual:
        return template, residual

    segments: list[str] = []
    for segment in template.split("/"):
        name = _token_name(segment)
        if name is None or not _is_path_value(residual.get(name)):
            segments.append(segment)
            continue
        segments.append(str(residual.pop(name)))

    return "/".join(segments), residual


__all__ = ["resolve_path_params", "template_parameters"]
