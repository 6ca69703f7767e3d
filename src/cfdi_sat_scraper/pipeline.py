"""
Pipeline — caller-level orchestration of login and search.

The session managers and the query resolver never retry. This module is
the layer above them where the retry policy lives:

  has_active_session()?  ──no──▶ login()
          │
          ▼
  QueryResolver.resolve(query) ──▶ MetadataList

Only TransportError is retried (tenacity, exponential backoff); a
LoginError or ParseError ends the run at once because repeating the same
request cannot fix it.
"""

from __future__ import annotations

import structlog
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from cfdi_sat_scraper.domain.errors import TransportError
from cfdi_sat_scraper.domain.models import MetadataList, Query
from cfdi_sat_scraper.domain.ports import SessionManager
from cfdi_sat_scraper.query_resolver import QueryResolver

log = structlog.get_logger()


def ensure_login(session_manager: SessionManager) -> None:
    """Log in unless the portal already recognizes the session."""
    if session_manager.has_active_session():
        log.debug("pipeline.session_reused", rfc=session_manager.get_identity())
        return
    session_manager.login()


def _log_retry(retry_state: RetryCallState) -> None:
    outcome = retry_state.outcome
    log.warning(
        "pipeline.retrying",
        attempt=retry_state.attempt_number,
        error=str(outcome.exception()) if outcome else None,
    )


def run_query(
    session_manager: SessionManager,
    query: Query,
    resolver: QueryResolver | None = None,
    attempts: int = 3,
    wait: wait_base | None = None,
) -> MetadataList:
    """
    Resolve one query with an authenticated session.

    Each attempt re-checks the session before searching, so an expired
    portal session is renewed on the next attempt.
    """
    resolver = resolver or QueryResolver(session_manager.http_gateway)

    def _attempt() -> MetadataList:
        ensure_login(session_manager)
        return resolver.resolve(query)

    retrying = Retrying(
        stop=stop_after_attempt(attempts),
        wait=wait or wait_exponential(multiplier=1, min=0.1, max=30),
        retry=retry_if_exception_type(TransportError),
        before_sleep=_log_retry,
        reraise=True,
    )
    result: MetadataList = retrying(_attempt)
    log.info("pipeline.query_completed", rfc=session_manager.get_identity(), count=len(result))
    return result
