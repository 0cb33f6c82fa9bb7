# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Tests for request header injection and response classification.
"""

import json
from typing import Any, Optional

import pytest

from authttp import (
    ApplicationFailure,
    ClientConfig,
    HttpStatusError,
    InterceptorPipeline,
    Outcome,
    PreparedRequest,
    ResponseFormatError,
    SessionEntry,
    TransportResponse,
    Unauthorized,
    UnderMaintenance,
)
from authttp.interceptors import infer_content_type

from .conftest import RecordingNavigator


def make_pipeline(
    navigator: RecordingNavigator, **overrides: Any
) -> InterceptorPipeline:
    config = ClientConfig(
        **{"base_url": "https://api.company.com", "maintenance_code": 9, **overrides}
    )
    return InterceptorPipeline(config, navigator)


def envelope(payload: Any, status_code: int = 200) -> TransportResponse:
    return TransportResponse(status_code=status_code, content=json.dumps(payload).encode())


def send_through(
    pipeline: InterceptorPipeline,
    response: TransportResponse,
    silent: bool = False,
    token: Optional[str] = None,
) -> Any:
    request = pipeline.intercept_request(
        PreparedRequest(
            method="GET",
            url="https://api.company.com/x",
            silent=silent,
            intercepted=True,
        ),
        token,
    )
    return pipeline.intercept_response(request, response)


class TestRequestInterception:
    """Test suite for outgoing header injection."""

    def test_authorization_and_request_id(self, navigator: RecordingNavigator) -> None:
        pipeline = make_pipeline(navigator)
        request = pipeline.intercept_request(
            PreparedRequest(method="GET", url="/x", intercepted=True), "tok"
        )
        assert request.headers["Authorization"] == "tok"
        assert request.headers["charset"] == "UTF-8"
        assert request.headers["X-Request-Id"] == request.request_id
        assert len(request.request_id) == 32
        assert pipeline.sessions[request.request_id] == SessionEntry(
            request_id=request.request_id, silent=False, authenticate=True
        )

    def test_auth_scheme_prefix(self, navigator: RecordingNavigator) -> None:
        pipeline = make_pipeline(navigator, auth_scheme="Bearer")
        request = pipeline.intercept_request(
            PreparedRequest(method="GET", url="/x"), "tok"
        )
        assert request.headers["Authorization"] == "Bearer tok"

    def test_no_authorization_without_authenticate(
        self, navigator: RecordingNavigator
    ) -> None:
        pipeline = make_pipeline(navigator)
        request = pipeline.intercept_request(
            PreparedRequest(method="GET", url="/x", authenticate=False), "tok"
        )
        assert "Authorization" not in request.headers

    def test_caller_request_id_header_is_reused(
        self, navigator: RecordingNavigator
    ) -> None:
        pipeline = make_pipeline(navigator)
        request = pipeline.intercept_request(
            PreparedRequest(
                method="GET", url="/x", headers={"x-request-id": "abc"}, intercepted=True
            )
        )
        assert request.request_id == "abc"
        assert request.headers == {
            "charset": "UTF-8",
            "X-Request-Id": "abc",
        }
        assert "abc" in pipeline.sessions

    def test_duplicate_in_flight_request_id(self, navigator: RecordingNavigator) -> None:
        pipeline = make_pipeline(navigator)
        pipeline.intercept_request(
            PreparedRequest(method="GET", url="/x", request_id="r1", intercepted=True)
        )
        with pytest.raises(ValueError):
            pipeline.intercept_request(
                PreparedRequest(method="GET", url="/y", request_id="r1", intercepted=True)
            )

    def test_not_intercepted_requests_skip_headers(
        self, navigator: RecordingNavigator
    ) -> None:
        pipeline = make_pipeline(navigator)
        request = pipeline.intercept_request(PreparedRequest(method="GET", url="/x"))
        assert request.headers["X-Skip-Headers"] == "true"
        assert pipeline.sessions == {}

    def test_content_type_inference(self) -> None:
        assert infer_content_type("a=1&b=2") == "application/x-www-form-urlencoded"
        assert infer_content_type('{"a": 1}') == "application/json"
        assert infer_content_type("a=1&b") == "application/json"
        assert infer_content_type("") == "application/json"

    def test_content_type_header_follows_body(
        self, navigator: RecordingNavigator
    ) -> None:
        pipeline = make_pipeline(navigator)
        request = pipeline.intercept_request(
            PreparedRequest(
                method="POST",
                url="/x",
                headers={"content-type": "application/json"},
                body=b"name=bob&age=3",
            )
        )
        assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert "content-type" not in request.headers

    def test_failing_headers_interceptor_is_ignored(
        self, navigator: RecordingNavigator
    ) -> None:
        class Broken:
            def intercept_headers(self, headers: dict[str, str]) -> dict[str, str]:
                raise RuntimeError("boom")

        class Device:
            def intercept_headers(self, headers: dict[str, str]) -> dict[str, str]:
                headers["device"] = "test"
                return headers

        pipeline = make_pipeline(navigator, headers_interceptors=[Broken(), Device()])
        request = pipeline.intercept_request(PreparedRequest(method="GET", url="/x"))
        assert request.headers["device"] == "test"


class TestResponseClassification:
    """Test suite for the response classification state machine."""

    def test_success(self, navigator: RecordingNavigator) -> None:
        pipeline = make_pipeline(navigator)
        result = send_through(pipeline, envelope({"code": 0, "data": {"x": 1}}))
        assert result["data"]["x"] == 1
        assert pipeline.sessions == {}

    def test_success_without_code(self, navigator: RecordingNavigator) -> None:
        pipeline = make_pipeline(navigator)
        assert send_through(pipeline, envelope({"data": 1})) == {"data": 1}

    def test_json_array_is_returned(self, navigator: RecordingNavigator) -> None:
        pipeline = make_pipeline(navigator)
        assert send_through(pipeline, envelope([1, 2])) == [1, 2]

    def test_response_handler(self, navigator: RecordingNavigator) -> None:
        pipeline = make_pipeline(navigator, response_handler=lambda env: env["data"])
        assert send_through(pipeline, envelope({"code": 0, "data": 5})) == 5

    def test_failing_response_handler_returns_envelope(
        self, navigator: RecordingNavigator
    ) -> None:
        def handler(env: Any) -> Any:
            raise KeyError("nope")

        pipeline = make_pipeline(navigator, response_handler=handler)
        assert send_through(pipeline, envelope({"code": 0})) == {"code": 0}

    def test_unauthorized_code(self, navigator: RecordingNavigator) -> None:
        pipeline = make_pipeline(navigator)
        with pytest.raises(Unauthorized) as exc_info:
            send_through(pipeline, envelope({"code": 101, "message": "expired"}))
        assert exc_info.value.code == 101
        assert exc_info.value.message == "expired"
        assert navigator.unauthorized == [{"code": 101, "status_code": None}]
        assert pipeline.sessions == {}

    def test_unauthorized_code_silent(self, navigator: RecordingNavigator) -> None:
        """Silent requests still fail but do not navigate."""
        pipeline = make_pipeline(navigator)
        with pytest.raises(Unauthorized):
            send_through(pipeline, envelope({"code": 101}), silent=True)
        assert navigator.unauthorized == []

    def test_custom_unauthorized_codes(self, navigator: RecordingNavigator) -> None:
        pipeline = make_pipeline(navigator, unauthorized_codes="101|103")
        with pytest.raises(Unauthorized):
            send_through(pipeline, envelope({"code": 103}))

    def test_maintenance(self, navigator: RecordingNavigator) -> None:
        pipeline = make_pipeline(navigator)
        with pytest.raises(UnderMaintenance) as exc_info:
            send_through(pipeline, envelope({"code": 9}))
        assert exc_info.value.code == 9
        assert "Maintenance" in exc_info.value.message
        assert navigator.maintenance == [9]

    def test_maintenance_disabled_by_default(
        self, navigator: RecordingNavigator
    ) -> None:
        pipeline = make_pipeline(navigator, maintenance_code=None)
        with pytest.raises(ApplicationFailure) as exc_info:
            send_through(pipeline, envelope({"code": 9}))
        assert not isinstance(exc_info.value, UnderMaintenance)
        assert navigator.maintenance == []

    def test_application_failure_calls_error_interceptor(
        self, navigator: RecordingNavigator
    ) -> None:
        calls: list[dict[str, Any]] = []
        pipeline = make_pipeline(
            navigator, error_interceptor=lambda **kwargs: calls.append(kwargs)
        )
        with pytest.raises(ApplicationFailure) as exc_info:
            send_through(pipeline, envelope({"code": 7, "message": "no stock"}))
        assert str(exc_info.value) == "[Error:7] no stock"
        assert calls == [{"code": 7, "message": "no stock", "silent": False}]

    def test_format_error(self, navigator: RecordingNavigator) -> None:
        pipeline = make_pipeline(navigator)
        body = "<html>\n" + "x" * 100
        with pytest.raises(ResponseFormatError) as exc_info:
            send_through(pipeline, TransportResponse(200, body.encode()))
        assert exc_info.value.code == 102
        assert len(exc_info.value.message) == 55
        assert exc_info.value.message.startswith("<html>\t")

    def test_unauthorized_status(self, navigator: RecordingNavigator) -> None:
        pipeline = make_pipeline(navigator)
        with pytest.raises(Unauthorized) as exc_info:
            send_through(pipeline, TransportResponse(401, b"denied"))
        assert exc_info.value.code == 401
        assert navigator.unauthorized == [{"code": None, "status_code": 401}]

    def test_other_status(self, navigator: RecordingNavigator) -> None:
        pipeline = make_pipeline(navigator)
        with pytest.raises(HttpStatusError) as exc_info:
            send_through(pipeline, TransportResponse(500, b"e" * 300))
        assert exc_info.value.code == 500
        assert exc_info.value.message == "e" * 100
        assert isinstance(exc_info.value, ApplicationFailure)

    def test_raw_bytes(self, navigator: RecordingNavigator) -> None:
        pipeline = make_pipeline(navigator)
        payload = b"\x89PNG\r\n\x1a\n\xff\xfe"
        assert send_through(pipeline, TransportResponse(200, payload)) == payload
        assert send_through(pipeline, TransportResponse(200, b"{}", raw=True)) == b"{}"

    def test_passthrough_without_session(self, navigator: RecordingNavigator) -> None:
        pipeline = make_pipeline(navigator)
        request = pipeline.intercept_request(PreparedRequest(method="GET", url="/x"))
        response = TransportResponse(500, b"oops")
        assert pipeline.intercept_response(request, response) is response

    def test_classify_is_pure(self, navigator: RecordingNavigator) -> None:
        pipeline = make_pipeline(navigator)
        entry = SessionEntry(request_id="r")
        result = pipeline.classify(envelope({"code": 101}), entry)
        assert result.outcome is Outcome.AUTH_FAILURE
        assert result.code == 101
        assert navigator.unauthorized == []
        assert pipeline.classify(envelope({}), None).outcome is Outcome.PASSTHROUGH
