"""Tests for the token cache, lazy refresh, and the single 401 retry."""

from __future__ import annotations

import asyncio
import json
import threading
import time
from datetime import timedelta
from typing import Optional

import httpx
import pytest

from cloudauth.auth.expiring import ExpiringTokenClient
from cloudauth.config import AuthSettings
from cloudauth.exceptions import CredentialError, TransportError
from cloudauth.models import CachedToken, utcnow


API_URL = "https://storage.googleapis.com/storage/v1/b"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class CountingCredential(ExpiringTokenClient):
    """Issues ``token-1``, ``token-2``, ... and counts refreshes."""

    def __init__(self, *args, delay: float = 0.0, failure: Optional[Exception] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.refresh_count = 0
        self.delay = delay
        self.failure = failure

    @property
    def kind(self) -> str:
        return "counting"

    def refresh_access_token(self) -> CachedToken:
        self.refresh_count += 1
        if self.delay:
            time.sleep(self.delay)
        if self.failure is not None:
            raise self.failure
        return CachedToken(
            access_token=f"token-{self.refresh_count}",
            expiry=utcnow() + timedelta(hours=1),
        )


def _valid(token: str = "cached") -> CachedToken:
    return CachedToken(access_token=token, expiry=utcnow() + timedelta(hours=1))


def _expired(token: str = "stale") -> CachedToken:
    return CachedToken(access_token=token, expiry=utcnow() - timedelta(seconds=1))


def _ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"items": []})


# ---------------------------------------------------------------------------
# Lazy refresh
# ---------------------------------------------------------------------------


class TestLazyRefresh:
    def test_expired_token_refreshes_once_before_request(self, make_transport) -> None:
        transport, recorder = make_transport(_ok)
        credential = CountingCredential(transport=transport)
        credential.credentials = _expired()

        credential.request(API_URL)

        assert credential.refresh_count == 1
        assert len(recorder.requests) == 1
        assert recorder.requests[0].headers["Authorization"] == "Bearer token-1"

    def test_future_token_is_reused(self, make_transport) -> None:
        transport, recorder = make_transport(_ok)
        credential = CountingCredential(transport=transport)
        credential.credentials = _valid("cached")

        credential.request(API_URL)
        credential.request(API_URL)

        assert credential.refresh_count == 0
        assert [r.headers["Authorization"] for r in recorder.requests] == [
            "Bearer cached",
            "Bearer cached",
        ]

    def test_no_token_refreshes_first(self) -> None:
        credential = CountingCredential()
        metadata = credential.get_request_metadata()
        assert metadata.headers == {"Authorization": "Bearer token-1"}
        assert credential.credentials is not None
        assert credential.credentials.access_token == "token-1"

    def test_get_access_token_returns_cached_string(self) -> None:
        credential = CountingCredential()
        credential.credentials = _valid("abc")
        assert credential.get_access_token() == "abc"
        assert credential.refresh_count == 0

    def test_expiry_margin_refreshes_early(self) -> None:
        credential = CountingCredential(settings=AuthSettings(expiry_margin=120))
        credential.credentials = CachedToken(
            access_token="nearly-expired", expiry=utcnow() + timedelta(seconds=60)
        )
        assert credential.get_access_token() == "token-1"

    def test_zero_margin_uses_token_until_expiry(self) -> None:
        credential = CountingCredential()
        credential.credentials = CachedToken(
            access_token="nearly-expired", expiry=utcnow() + timedelta(seconds=60)
        )
        assert credential.get_access_token() == "nearly-expired"


# ---------------------------------------------------------------------------
# 401 retry
# ---------------------------------------------------------------------------


class TestRetryOn401:
    def test_401_then_200_refreshes_once_and_retries(self, make_transport) -> None:
        statuses = iter([401, 200])

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(next(statuses), json={"ok": True})

        transport, recorder = make_transport(handler)
        credential = CountingCredential(transport=transport)
        credential.credentials = _valid("rejected")

        response = credential.request(API_URL)

        assert response.status == 200
        assert credential.refresh_count == 1
        assert len(recorder.requests) == 2
        assert recorder.requests[0].headers["Authorization"] == "Bearer rejected"
        assert recorder.requests[1].headers["Authorization"] == "Bearer token-1"

    def test_401_forever_fails_after_two_attempts(self, make_transport) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"error": {"code": 401, "message": "nope"}})

        transport, recorder = make_transport(handler)
        credential = CountingCredential(transport=transport)
        credential.credentials = _valid()

        with pytest.raises(TransportError) as exc_info:
            credential.request(API_URL)

        assert exc_info.value.status == 401
        assert len(recorder.requests) == 2
        assert credential.refresh_count == 1

    def test_non_401_error_is_not_retried(self, make_transport) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, json={"error": {"code": 500, "message": "boom"}})

        transport, recorder = make_transport(handler)
        credential = CountingCredential(transport=transport)
        credential.credentials = _valid()

        with pytest.raises(TransportError) as exc_info:
            credential.request(API_URL)

        assert exc_info.value.status == 500
        assert "boom" in exc_info.value.message
        assert len(recorder.requests) == 1
        assert credential.refresh_count == 0

    def test_request_passes_method_headers_and_body(self, make_transport) -> None:
        transport, recorder = make_transport(_ok)
        credential = CountingCredential(transport=transport)
        credential.credentials = _valid()

        credential.request(
            API_URL,
            method="POST",
            headers={"X-Custom": "1", "Authorization": "Bearer ignored"},
            json_body={"name": "bucket"},
        )

        sent = recorder.requests[0]
        assert sent.method == "POST"
        assert sent.headers["X-Custom"] == "1"
        assert sent.headers["Authorization"] == "Bearer cached"
        assert json.loads(sent.content) == {"name": "bucket"}


# ---------------------------------------------------------------------------
# Refresh failures
# ---------------------------------------------------------------------------


class TestRefreshFailure:
    def test_transport_error_becomes_credential_error_with_status(self) -> None:
        credential = CountingCredential(
            failure=TransportError("invalid_grant: Bad Request", status=400)
        )

        with pytest.raises(CredentialError) as exc_info:
            credential.get_request_metadata()

        assert exc_info.value.status == 400
        assert "invalid_grant" in exc_info.value.message
        assert isinstance(exc_info.value.__cause__, TransportError)

    def test_failed_refresh_leaves_previous_token(self) -> None:
        credential = CountingCredential(failure=CredentialError("down"))
        previous = _expired("old")
        credential.credentials = previous

        with pytest.raises(CredentialError):
            credential.get_request_metadata()

        assert credential.credentials is previous

    def test_refresh_without_access_token_is_rejected(self) -> None:
        class EmptyCredential(CountingCredential):
            def refresh_access_token(self) -> CachedToken:
                self.refresh_count += 1
                return CachedToken(expiry=utcnow() + timedelta(hours=1))

        credential = EmptyCredential()
        previous = _expired("old")
        credential.credentials = previous

        with pytest.raises(CredentialError, match="returned no access token"):
            credential.get_access_token()

        assert credential.credentials is previous
        assert credential.refresh_count == 1

    def test_refresh_failure_during_request_sends_nothing(self, make_transport) -> None:
        transport, recorder = make_transport(_ok)
        credential = CountingCredential(
            transport=transport, failure=TransportError("denied", status=403)
        )

        with pytest.raises(CredentialError):
            credential.request(API_URL)

        assert recorder.requests == []


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------


class TestConcurrency:
    def test_concurrent_callers_share_one_refresh(self) -> None:
        credential = CountingCredential(delay=0.05)
        results: list[str] = []
        lock = threading.Lock()

        def worker() -> None:
            token = credential.get_access_token()
            with lock:
                results.append(token)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert credential.refresh_count == 1
        assert results == ["token-1"] * 8

    def test_stale_token_already_replaced_is_not_refreshed_again(self) -> None:
        credential = CountingCredential()
        stale = _valid("rejected")
        credential.credentials = _valid("replacement")

        token = credential._ensure_token(stale=stale)

        assert token.access_token == "replacement"
        assert credential.refresh_count == 0

    def test_stale_token_still_cached_is_discarded(self) -> None:
        credential = CountingCredential()
        stale = _valid("rejected")
        credential.credentials = stale

        token = credential._ensure_token(stale=stale)

        assert token.access_token == "token-1"
        assert credential.refresh_count == 1


# ---------------------------------------------------------------------------
# Async form
# ---------------------------------------------------------------------------


class TestAsync:
    def test_async_metadata_matches_sync_contract(self) -> None:
        credential = CountingCredential()

        metadata = asyncio.run(credential.get_request_metadata_async())

        assert metadata.headers == {"Authorization": "Bearer token-1"}
        assert credential.refresh_count == 1

    def test_async_refresh_failure_propagates(self) -> None:
        credential = CountingCredential(failure=CredentialError("down", status=503))

        with pytest.raises(CredentialError) as exc_info:
            asyncio.run(credential.get_request_metadata_async())

        assert exc_info.value.status == 503
