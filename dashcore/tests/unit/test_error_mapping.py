from __future__ import annotations

import asyncio

import pytest
import requests
from requests import exceptions as req_exc

from dashcore.adapters.api_errors import ApiClientError, ApiServerError, ApiTimeoutError
from dashcore.adapters.translator import CatalogTranslator
from dashcore.domain.errors import ErrorKind
from dashcore.usecases.error_mapping import (
    classify,
    extract_status,
    friendly_message,
    message_for_kind,
)


def _http_error(status: int) -> requests.HTTPError:
    resp = requests.Response()
    resp.status_code = status
    return requests.HTTPError(response=resp)


@pytest.mark.parametrize("status", [401, 403])
def test_auth_statuses_are_permission(status: int) -> None:
    assert classify({"status": status}) is ErrorKind.PERMISSION
    assert classify(ApiClientError("ctx", status=status)) is ErrorKind.PERMISSION


@pytest.mark.parametrize("status", [400, 404, 409, 422, 499])
def test_other_client_statuses_are_data(status: int) -> None:
    assert classify({"status": status}) is ErrorKind.DATA


@pytest.mark.parametrize("status", [500, 502, 503, 599])
def test_server_statuses_are_server(status: int) -> None:
    assert classify(ApiServerError("ctx", status=status)) is ErrorKind.SERVER


@pytest.mark.parametrize(
    "failure",
    [
        {"code": "ECONNABORTED"},
        {"code": "ERR_NETWORK"},
        {"code": "NETWORK_ERROR"},
        {"name": "AbortError"},
        {"message": "timeout of 5000ms exceeded"},
        {"message": "TypeError: Failed to fetch"},
        {"message": "Network Error"},
        ApiTimeoutError("Timeout contacting http://dash"),
        req_exc.ConnectTimeout(),
        req_exc.ReadTimeout(),
        req_exc.ConnectionError(),
        asyncio.TimeoutError(),
        ConnectionRefusedError(),
        asyncio.CancelledError(),
    ],
)
def test_transport_signals_are_network(failure) -> None:
    assert classify(failure) is ErrorKind.NETWORK


@pytest.mark.parametrize(
    "failure",
    [None, ValueError("boom"), {"status": "abc"}, {"status": 302}, 42, object(), {}],
)
def test_unrecognized_failures_are_unknown(failure) -> None:
    assert classify(failure) is ErrorKind.UNKNOWN


def test_network_signal_wins_over_status() -> None:
    assert classify({"status": 404, "message": "upstream timeout"}) is ErrorKind.NETWORK


def test_offline_host_classifies_as_network() -> None:
    assert classify(ValueError("boom"), online=lambda: False) is ErrorKind.NETWORK
    assert classify(ValueError("boom"), online=lambda: True) is ErrorKind.UNKNOWN
    assert classify(None, online=lambda: False) is ErrorKind.UNKNOWN


def test_requests_http_error_status_read_from_response() -> None:
    assert extract_status(_http_error(503)) == 503
    assert classify(_http_error(503)) is ErrorKind.SERVER
    assert classify(_http_error(401)) is ErrorKind.PERMISSION


def test_classify_never_raises_on_hostile_objects() -> None:
    class Hostile:
        @property
        def response(self):
            raise RuntimeError("no")

    assert classify(Hostile()) is ErrorKind.UNKNOWN


def test_structured_codes_do_not_hide_status() -> None:
    assert classify({"code": {"detail": "quota"}, "status": 500}) is ErrorKind.SERVER
    assert classify(ApiClientError("ctx", status=409, code=["E1", "E2"])) is ErrorKind.DATA  # type: ignore[arg-type]
    assert classify({"code": ["ERR_NETWORK"], "status": 403}) is ErrorKind.PERMISSION


def test_data_message_prefers_server_payload() -> None:
    err = ApiClientError("ctx", status=422, payload={"message": "Date range too wide"})

    assert message_for_kind(ErrorKind.DATA, err) == "Date range too wide"


def test_data_message_falls_back_to_default() -> None:
    err = ApiClientError("ctx", status=404)

    assert message_for_kind(ErrorKind.DATA, err) == "Data request failed."


def test_message_uses_translation_when_present() -> None:
    translate = CatalogTranslator({"error": {"server": "Dienst nicht verfuegbar"}})

    assert message_for_kind(ErrorKind.SERVER, None, translate) == "Dienst nicht verfuegbar"
    assert message_for_kind(ErrorKind.NETWORK, None, translate) == (
        "Network connection failed, please check your connection."
    )


def test_unknown_message_uses_fallback() -> None:
    assert message_for_kind(ErrorKind.UNKNOWN, ValueError("x"), fallback="Oops") == "Oops"
    assert message_for_kind(ErrorKind.UNKNOWN, ValueError("x")) == (
        "Operation failed, please try again later."
    )


def test_friendly_message_variants() -> None:
    assert "retry" in friendly_message({"code": "ERR_NETWORK"})
    assert "sign in again" in friendly_message({"status": 401})
    assert friendly_message({"status": 422, "payload": {"message": "Bad filter"}}) == "Bad filter"
    assert friendly_message(ValueError("broken chart")) == "broken chart"
    assert friendly_message(None) == "Operation failed, please try again later."
