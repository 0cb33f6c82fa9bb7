# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

# Transport backends
"""
Backend implementations sending requests for an authenticated client.
"""

from .httpx import HTTPXTransportBackend

__all__ = [
    "HTTPXTransportBackend",
]
