"""Tests for SourceSearchClient - request shape, retry, payload handling, isolation."""

import asyncio
import logging

import httpx
import pytest

from federated_search.config import SearchSettings
from federated_search.infrastructure.sources.source_search import SourceSearchClient

HOST = "alpha.example.com"


@pytest.fixture
def source(make_source):
    return make_source("alpha", name="Alpha")


@pytest.fixture
def client(fast_settings, http_client):
    return SourceSearchClient(fast_settings, client=http_client)


# ============================================================
# Request construction
# ============================================================


class TestBuildRequest:
    def test_url_params_headers(self, fast_settings, make_source):
        source = make_source("alpha", headers={"Referer": "https://alpha.example.com/"})
        url, params, headers = SourceSearchClient(fast_settings).build_request("电影", source, 2)
        assert url == "https://alpha.example.com/api.php/provide/vod"
        assert params == {"ac": "detail", "wd": "电影", "pg": "2"}
        assert headers["User-Agent"] == fast_settings.user_agent
        assert headers["Referer"] == "https://alpha.example.com/"

    def test_source_headers_win(self, make_source):
        settings = SearchSettings(user_agent="Default/1.0")
        source = make_source("alpha", headers={"User-Agent": "Custom/2.0"})
        _, _, headers = SourceSearchClient(settings).build_request("q", source)
        assert headers["User-Agent"] == "Custom/2.0"
        assert "Accept" in headers


class TestSearchRequest:
    async def test_sends_expected_request(self, servers, client, source, vod_payload):
        servers.json(HOST, vod_payload("A"))
        await client.search("电影", source, page=3)

        request = servers.requests[0]
        assert request.method == "GET"
        assert request.url.path == "/api.php/provide/vod"
        assert request.url.params["ac"] == "detail"
        assert request.url.params["wd"] == "电影"
        assert request.url.params["pg"] == "3"
        assert "Mozilla" in request.headers["User-Agent"]

    async def test_default_page(self, servers, client, source, vod_payload):
        servers.json(HOST, vod_payload())
        await client.search("q", source)
        assert servers.requests[0].url.params["pg"] == "1"

    @pytest.mark.parametrize("page", [0, -2, "3", None, True])
    async def test_invalid_page_falls_back(self, servers, client, source, page, vod_payload):
        servers.json(HOST, vod_payload("A"))
        outcome = await client.search("q", source, page=page)
        assert outcome.ok
        assert servers.requests[0].url.params["pg"] == "1"

    @pytest.mark.parametrize("query", ["", "   "])
    async def test_empty_query_short_circuits(self, servers, client, source, query):
        outcome = await client.search(query, source)
        assert outcome.results == []
        assert outcome.response_time == 0
        assert outcome.error is None
        assert outcome.source == "alpha"
        assert servers.requests == []


# ============================================================
# Response handling
# ============================================================


class TestSearchResponse:
    async def test_items_tagged_with_source(self, servers, client, source, vod_payload):
        servers.json(HOST, vod_payload("Movie A", "Movie B"))
        outcome = await client.search("movie", source)

        assert outcome.ok
        assert outcome.source == "alpha"
        assert [item["vod_name"] for item in outcome.results] == ["Movie A", "Movie B"]
        assert all(item["source"] == "alpha" for item in outcome.results)
        assert outcome.response_time is not None
        assert outcome.response_time >= 0

    async def test_item_source_field_overwritten(self, servers, client, source):
        servers.json(HOST, {"code": 1, "list": [{"vod_id": 1, "source": "upstream"}]})
        outcome = await client.search("q", source)
        assert outcome.results == [{"vod_id": 1, "source": "alpha"}]

    async def test_null_list_is_empty_not_error(self, servers, client, source):
        servers.json(HOST, {"code": 1, "msg": "ok", "list": None})
        outcome = await client.search("q", source)
        assert outcome.results == []
        assert outcome.error is None

    async def test_missing_list_is_empty(self, servers, client, source):
        servers.json(HOST, {"code": 1, "msg": "ok"})
        outcome = await client.search("q", source)
        assert outcome.ok
        assert outcome.results == []

    async def test_non_array_list_is_empty(self, servers, client, source):
        servers.json(HOST, {"code": 1, "list": {"vod_id": 1}})
        outcome = await client.search("q", source)
        assert outcome.ok
        assert outcome.results == []

    async def test_non_object_items_dropped(self, servers, client, source):
        servers.json(HOST, {"list": [{"vod_id": 1}, "junk", 3, None]})
        outcome = await client.search("q", source)
        assert outcome.results == [{"vod_id": 1, "source": "alpha"}]

    @pytest.mark.parametrize("code", [0, 1, "1"])
    async def test_success_codes(self, servers, client, source, code, vod_payload):
        servers.json(HOST, vod_payload("A", code=code))
        outcome = await client.search("q", source)
        assert outcome.ok
        assert len(outcome.results) == 1

    async def test_failure_code_is_error(self, servers, client, source):
        servers.json(HOST, {"code": -2, "msg": "keyword too short", "list": []})
        outcome = await client.search("q", source)
        assert outcome.results == []
        assert "keyword too short" in outcome.error
        assert len(servers.requests) == 1


# ============================================================
# Failures become outcomes
# ============================================================


class TestSearchFailures:
    async def test_http_500_after_retries(self, servers, client, source):
        servers.json(HOST, {}, status_code=500)
        outcome = await client.search("q", source)

        assert outcome.results == []
        assert outcome.response_time == 0
        assert "Alpha" in outcome.error
        assert "HTTP 500" in outcome.error
        assert len(servers.requests) == 3

    async def test_transient_then_success(self, servers, client, source, vod_payload):
        calls = 0

        def flaky(request):
            nonlocal calls
            calls += 1
            if calls == 1:
                raise httpx.ConnectError("Connection reset by peer", request=request)
            return httpx.Response(200, json=vod_payload("A"))

        servers.route(HOST, flaky)
        outcome = await client.search("q", source)
        assert outcome.ok
        assert len(outcome.results) == 1
        assert calls == 2

    async def test_404_not_retried(self, servers, client, source):
        servers.json(HOST, {}, status_code=404)
        outcome = await client.search("q", source)
        assert "HTTP 404" in outcome.error
        assert len(servers.requests) == 1

    async def test_timeout(self, servers, http_client, source, vod_payload):
        async def hang(request):
            await asyncio.sleep(5)
            return httpx.Response(200, json=vod_payload())

        servers.route(HOST, hang)
        settings = SearchSettings(
            normalization_timeout=0.01, request_timeout=0.05, max_attempts=2, retry_base_delay=0, retry_max_delay=0
        )
        outcome = await SourceSearchClient(settings, client=http_client).search("q", source)

        assert outcome.results == []
        assert outcome.response_time == 0
        assert "timed out" in outcome.error
        assert len(servers.requests) == 2

    async def test_connection_refused(self, servers, client, source):
        def refuse(request):
            raise httpx.ConnectError("Connection refused", request=request)

        servers.route(HOST, refuse)
        outcome = await client.search("q", source)
        assert "Connection refused" in outcome.error
        assert outcome.results == []

    async def test_malformed_json(self, servers, client, source):
        servers.route(HOST, lambda request: httpx.Response(200, text="<!DOCTYPE html>"))
        outcome = await client.search("q", source)
        assert "Invalid JSON" in outcome.error
        assert len(servers.requests) == 1

    async def test_non_object_payload(self, servers, client, source):
        servers.json(HOST, [{"vod_id": 1}])
        outcome = await client.search("q", source)
        assert outcome.results == []
        assert "JSON object" in outcome.error

    async def test_unexpected_exception_contained(self, client, source, monkeypatch):
        async def broken(*args, **kwargs):
            raise RuntimeError("defect")

        monkeypatch.setattr(client, "_get_json", broken)
        outcome = await client.search("q", source)
        assert outcome.error is not None
        assert "defect" in outcome.error


class TestFailureLogging:
    async def test_classified_failure_logged(self, servers, client, source, caplog):
        def refuse(request):
            raise httpx.ConnectError("Connection refused", request=request)

        servers.route(HOST, refuse)
        logger_name = "federated_search.infrastructure.sources.source_search"
        with caplog.at_level(logging.WARNING, logger=logger_name):
            await client.search("q", source)

        records = [r for r in caplog.records if r.name == logger_name]
        assert len(records) == 1
        assert "[network/transient]" in records[0].getMessage()
        details = records[0].error_details
        assert details["source"] == "alpha"
        assert details["category"] == "network"
        assert details["retryable"] is True

    async def test_status_code_in_details(self, servers, client, source, caplog):
        servers.json(HOST, {}, status_code=404)
        with caplog.at_level(logging.WARNING):
            await client.search("q", source)

        record = next(r for r in caplog.records if hasattr(r, "error_details"))
        assert record.error_details["status_code"] == 404
        assert record.error_details["category"] == "data"

    async def test_unclassified_failure_logged(self, client, source, monkeypatch, caplog):
        async def broken(*args, **kwargs):
            raise RuntimeError("defect")

        monkeypatch.setattr(client, "_get_json", broken)
        with caplog.at_level(logging.WARNING):
            await client.search("q", source)
        assert "RuntimeError('defect')" in caplog.text
