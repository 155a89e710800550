from __future__ import annotations

import httpx
import pytest

from qbo_gateway.clients.quickbooks import clamp_page
from qbo_gateway.core.errors import (
    RemoteApiError,
    translate_remote_error,
    translate_transport_error,
)

FAULT = {
    "Fault": {
        "Error": [
            {
                "Message": "Object Not Found",
                "Detail": "Object Not Found : Something you're trying to use has been made inactive or is not found",
                "code": "610",
            }
        ],
        "type": "ValidationFault",
    },
    "time": "2024-01-01T00:00:00.000-08:00",
}


def test_json_fault_is_carried_verbatim() -> None:
    error = translate_remote_error(httpx.Response(400, json=FAULT))

    assert error.remote_status == 400
    assert error.status_code == 400
    assert error.to_body() == FAULT


def test_json_sent_as_plain_text_is_parsed() -> None:
    response = httpx.Response(
        401,
        text='{"fault": {"type": "AUTHENTICATION"}}',
        headers={"content-type": "text/plain"},
    )

    error = translate_remote_error(response)

    assert error.to_body() == {"fault": {"type": "AUTHENTICATION"}}
    assert error.status_code == 401


def test_plain_text_is_wrapped() -> None:
    error = translate_remote_error(httpx.Response(503, text="Service Unavailable"))

    assert error.to_body() == {"error": "Service Unavailable"}
    assert error.remote_status == 503


def test_empty_body_gets_generic_message() -> None:
    error = translate_remote_error(httpx.Response(500))

    assert error.to_body() == {
        "error": "QuickBooks API request failed with status 500"
    }


def test_timeout_has_no_remote_status() -> None:
    request = httpx.Request("GET", "https://sandbox-quickbooks.api.intuit.com/")
    error = translate_transport_error(httpx.ReadTimeout("slow", request=request))

    assert error.kind == "timeout"
    assert error.remote_status is None
    assert error.status_code == 400
    assert "timed out" in error.to_body()["error"]


def test_respond_with_overrides_status_only() -> None:
    error = RemoteApiError(FAULT, remote_status=404)

    overridden = error.respond_with(400)

    assert overridden.status_code == 400
    assert overridden.remote_status == 404
    assert overridden.to_body() == FAULT


@pytest.mark.parametrize(
    ("start", "max_results", "expected"),
    [
        (None, None, (1, 50)),
        (1, 500, (1, 100)),
        (0, 0, (1, 1)),
        (-5, 25, (1, 25)),
        (101, 100, (101, 100)),
    ],
)
def test_clamp_page(start, max_results, expected) -> None:
    assert clamp_page(start, max_results) == expected


@pytest.mark.parametrize("status", [204, 302, 304])
def test_non_error_status_answers_400(status) -> None:
    error = translate_remote_error(httpx.Response(status))

    assert error.remote_status == status
    assert error.status_code == 400
