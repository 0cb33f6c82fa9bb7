# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

import logging
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)


class Navigator(Protocol):
    """
    Side effects triggered by the response pipeline, usually a jump to the
    login or maintenance screen. The pipeline decides whether to call them,
    the navigator decides how to navigate.
    """

    def on_unauthorized(
        self, code: Optional[int] = None, status_code: Optional[int] = None
    ) -> None: ...

    def on_maintenance(self, code: Optional[int] = None) -> None: ...


class NullNavigator(Navigator):

    def on_unauthorized(
        self, code: Optional[int] = None, status_code: Optional[int] = None
    ) -> None:
        logger.debug("No navigator configured for unauthorized response")

    def on_maintenance(self, code: Optional[int] = None) -> None:
        logger.debug("No navigator configured for maintenance response")


class CallbackNavigator(Navigator):
    """Adapts plain callables, e.g. a router's ``go("/login")``"""

    def __init__(
        self,
        on_login: Callable[[], None],
        on_under_maintenance: Optional[Callable[[], None]] = None,
    ):
        self._on_login = on_login
        self._on_under_maintenance = on_under_maintenance

    def on_unauthorized(
        self, code: Optional[int] = None, status_code: Optional[int] = None
    ) -> None:
        logger.info("Redirecting to login (code=%s, status=%s)", code, status_code)
        self._on_login()

    def on_maintenance(self, code: Optional[int] = None) -> None:
        if self._on_under_maintenance is None:
            return
        logger.info("Redirecting to maintenance page (code=%s)", code)
        self._on_under_maintenance()


__all__ = ["Navigator", "NullNavigator", "CallbackNavigator"]
