"""
Tests for the error hierarchy.
"""

import asyncio

from authttp import (
    ApplicationFailure,
    HttpError,
    HttpStatusError,
    MockFixtureNotFound,
    MultipartFileNotFound,
    RequestNetworkError,
    TimeoutException,
    Unauthorized,
    UnderMaintenance,
    describe_error,
)


class TestHttpError:
    """Test suite for error codes and rendering."""

    def test_default_codes_and_messages(self) -> None:
        assert str(TimeoutException()) == (
            "[Error:504] Request timed out, please checkout network connection!"
        )
        assert RequestNetworkError().code == 500
        assert Unauthorized().message == "Unauthorized Error"
        assert MultipartFileNotFound().code == 416
        assert MockFixtureNotFound().code == 404
        assert HttpError().message == "Request failed, please try again later !"

    def test_explicit_code_and_message(self) -> None:
        error = ApplicationFailure(7, "no stock")
        assert error.code == 7
        assert str(error) == "[Error:7] no stock"

    def test_maintenance_message(self) -> None:
        error = UnderMaintenance(9)
        assert error.message.startswith("Briefly Unavailable")

    def test_hierarchy(self) -> None:
        assert issubclass(HttpStatusError, ApplicationFailure)
        assert issubclass(Unauthorized, HttpError)


def test_describe_error() -> None:
    assert describe_error(ApplicationFailure(3, "bad")) == "[Error:3] bad"
    assert describe_error(asyncio.TimeoutError()).startswith("[Error:504]")
    assert describe_error(ConnectionRefusedError()).startswith("[Error:500]")
    assert describe_error(KeyError("x")) == "[Error:KeyError] 'x'"
