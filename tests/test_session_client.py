"""Unit tests for SessionClient against a faked HTTP transport."""

import random
from typing import Any, Callable

import httpx
import pytest

from tunebook.session_client import SessionAPIError, SessionClient, infer_meter
from tunebook.session_models import SessionSetting

KESH_DETAIL: dict[str, Any] = {
    "id": 55,
    "name": "The Kesh",
    "type": "jig",
    "settings": [
        {"id": 55, "key": "Gmajor", "abc": "GAB AGE|!GAB AGE|", "date": "2001-09-19"},
        {"id": 12345, "key": "Amajor", "abc": "ABc BAF|ABc BAF|", "date": "2010-01-01"},
    ],
}


def _client(handler: Callable[[httpx.Request], httpx.Response]) -> SessionClient:
    return SessionClient(base_url="https://session.test", transport=httpx.MockTransport(handler))


def _routes(routes: dict[str, Any]) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        payload = routes.get(request.url.path)
        if payload is None:
            return httpx.Response(404, json={"error": "not found"})
        return httpx.Response(200, json=payload)

    return handler


def test_requests_ask_for_json_with_user_agent() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"tunes": []})

    with _client(handler) as client:
        client.search_tunes("kesh")

    assert seen[0].url.params["format"] == "json"
    assert seen[0].url.params["q"] == "kesh"
    assert seen[0].headers["User-Agent"] == SessionClient.USER_AGENT


def test_search_tunes_parses_summaries() -> None:
    routes = {"/tunes/search": {"tunes": [{"id": 55, "name": "The Kesh", "type": "jig"}]}}
    with _client(_routes(routes)) as client:
        tunes = client.search_tunes("kesh")

    assert len(tunes) == 1
    assert tunes[0].id == 55
    assert tunes[0].name == "The Kesh"
    assert tunes[0].settings == []


def test_get_tune_parses_settings() -> None:
    with _client(_routes({"/tunes/55": KESH_DETAIL})) as client:
        tune = client.get_tune(55)

    assert [setting.key for setting in tune.settings] == ["Gmajor", "Amajor"]
    assert tune.settings[0].meter == ""


def test_import_tune_cleans_abc_and_infers_meter_from_type() -> None:
    with _client(_routes({"/tunes/55": KESH_DETAIL})) as client:
        imported = client.import_tune(55)

    assert imported.title == "The Kesh"
    assert imported.meter == "6/8"
    assert imported.key == "Gmajor"
    assert imported.key_name == "G Major"
    assert imported.abc == "X:1\nT:The Kesh\nM:6/8\nL:1/8\nK:Gmajor\nGAB AGE|\nGAB AGE|"
    assert imported.notes == "Imported from The Session (tune #55)\nOriginal key: Gmajor"


def test_import_tune_selects_setting() -> None:
    with _client(_routes({"/tunes/55": KESH_DETAIL})) as client:
        imported = client.import_tune(55, setting_index=1)

    assert imported.key == "Amajor"
    assert "K:Amajor" in imported.abc


def test_import_tune_without_settings_raises() -> None:
    routes = {"/tunes/9": {"id": 9, "name": "Bare", "type": "reel", "settings": []}}
    with _client(_routes(routes)) as client, pytest.raises(SessionAPIError):
        client.import_tune(9)


def test_import_tune_with_missing_setting_index_raises() -> None:
    with _client(_routes({"/tunes/55": KESH_DETAIL})) as client, pytest.raises(SessionAPIError):
        client.import_tune(55, setting_index=5)


def test_http_error_status_is_reported() -> None:
    with _client(_routes({})) as client:
        with pytest.raises(SessionAPIError) as excinfo:
            client.get_tune(1)

    assert excinfo.value.status_code == 404


def test_transport_error_is_wrapped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with _client(handler) as client, pytest.raises(SessionAPIError):
        client.search_tunes("kesh")


def test_tune_sets() -> None:
    routes = {
        "/tunes/55/sets": {
            "sets": [{"id": 7, "name": "Kesh / Morrison's", "url": "https://x/7", "date": "2020"}]
        }
    }
    with _client(_routes(routes)) as client:
        sets = client.tune_sets(55)

    assert [(item.id, item.name) for item in sets] == [(7, "Kesh / Morrison's")]


def test_tune_sets_missing_list_is_empty() -> None:
    with _client(_routes({"/tunes/55/sets": {"total": 0}})) as client:
        assert client.tune_sets(55) == []


def test_random_set_imports_requested_number_of_tunes() -> None:
    popular = {"tunes": [{"id": tune_id, "name": f"Tune {tune_id}"} for tune_id in range(1, 6)]}
    routes: dict[str, Any] = {"/tunes/popular": popular}
    for tune_id in range(1, 6):
        routes[f"/tunes/{tune_id}"] = {
            "id": tune_id,
            "name": f"Tune {tune_id}",
            "type": "reel",
            "settings": [{"id": tune_id, "key": "Dmajor", "abc": "ABcd|"}],
        }

    with _client(_routes(routes)) as client:
        tunes = client.random_set(3, rng=random.Random(0))

    assert len(tunes) == 3
    assert len({tune.session_id for tune in tunes}) == 3
    assert all(tune.meter == "4/4" for tune in tunes)


def test_random_set_skips_tunes_that_fail() -> None:
    popular = {"tunes": [{"id": 1, "name": "Broken"}]}
    with _client(_routes({"/tunes/popular": popular})) as client:
        assert client.random_set(3) == []


@pytest.mark.parametrize(
    ("setting", "tune_type", "expected"),
    [
        (SessionSetting(id=1, abc="ABc|", meter="2/4"), "jig", "2/4"),
        (SessionSetting(id=1, abc="M: 9/8\nABc|"), "jig", "9/8"),
        (SessionSetting(id=1, abc="ABc|"), "Slip Jig", "9/8"),
        (SessionSetting(id=1, abc="ABc|"), "waltz", "3/4"),
        (SessionSetting(id=1, abc="ABc|"), "mazurka", ""),
    ],
)
def test_infer_meter(setting: SessionSetting, tune_type: str, expected: str) -> None:
    assert infer_meter(setting, tune_type) == expected
