"""
Unit tests for the caller-level pipeline — login when needed, resolve, retry.

Uses mock ports (fake session manager and resolver) to test the
orchestration in isolation.

Test categories:
  - Session reuse: active session → no login
  - Login: inactive session → login before resolving
  - Retry: TransportError retried up to the attempt limit
  - No retry: LoginError / ParseError end the run at once
"""

from __future__ import annotations

from datetime import datetime
from unittest.mock import MagicMock

import pytest
from tenacity import wait_none

from cfdi_sat_scraper.domain.errors import LoginError, ParseError, TransportError
from cfdi_sat_scraper.domain.models import Metadata, MetadataList, Query
from cfdi_sat_scraper.pipeline import ensure_login, run_query

QUERY = Query(datetime(2024, 1, 1), datetime(2024, 1, 1, 23, 59, 59))
RESULT = MetadataList([Metadata("a"), Metadata("b")])


def _make_session_manager(active: bool = True) -> MagicMock:
    mock = MagicMock()
    mock.has_active_session.return_value = active
    mock.get_identity.return_value = "EKU9003173C9"
    return mock


def _make_resolver(*outcomes: object) -> MagicMock:
    mock = MagicMock()
    mock.resolve.side_effect = list(outcomes)
    return mock


class TestEnsureLogin:
    def test_active_session_is_reused(self) -> None:
        manager = _make_session_manager(active=True)
        ensure_login(manager)
        manager.login.assert_not_called()

    def test_inactive_session_logs_in(self) -> None:
        manager = _make_session_manager(active=False)
        ensure_login(manager)
        manager.login.assert_called_once()


class TestRunQuery:
    def test_returns_resolver_result(self) -> None:
        """
        GIVEN an active session and a resolver returning two documents
        WHEN run_query is called
        THEN the resolver result is returned and no login happens.
        """
        manager = _make_session_manager()
        resolver = _make_resolver(RESULT)
        assert run_query(manager, QUERY, resolver) is RESULT
        resolver.resolve.assert_called_once_with(QUERY)
        manager.login.assert_not_called()

    def test_transport_error_is_retried(self) -> None:
        manager = _make_session_manager()
        resolver = _make_resolver(TransportError("post form", "https://x"), RESULT)
        assert run_query(manager, QUERY, resolver, attempts=3, wait=wait_none()) is RESULT
        assert resolver.resolve.call_count == 2
        assert manager.has_active_session.call_count == 2

    def test_gives_up_after_attempts(self) -> None:
        manager = _make_session_manager()
        error = TransportError("post form", "https://x")
        resolver = _make_resolver(error, error, error)
        with pytest.raises(TransportError):
            run_query(manager, QUERY, resolver, attempts=3, wait=wait_none())
        assert resolver.resolve.call_count == 3

    def test_parse_error_is_not_retried(self) -> None:
        manager = _make_session_manager()
        resolver = _make_resolver(ParseError("search form", "missing"), RESULT)
        with pytest.raises(ParseError):
            run_query(manager, QUERY, resolver, attempts=3, wait=wait_none())
        assert resolver.resolve.call_count == 1

    def test_login_error_is_not_retried(self) -> None:
        manager = _make_session_manager(active=False)
        manager.login.side_effect = LoginError("EKU9003173C9", "denied")
        resolver = _make_resolver(RESULT)
        with pytest.raises(LoginError):
            run_query(manager, QUERY, resolver, attempts=3, wait=wait_none())
        manager.login.assert_called_once()
        resolver.resolve.assert_not_called()
