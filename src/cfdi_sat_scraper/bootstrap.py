"""
Composition root — structlog setup and wiring of concrete adapters.

create_query_runner() is the entry point for callers: it applies every
ScraperSettings field and hands back a callable that runs queries.

This is where settings meet concrete classes: the gateway is built from
ScraperSettings, bound to a session manager, and shared with the query
resolver. One gateway per identity; never hand the same gateway to two
session managers.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from functools import partial

import structlog

from cfdi_sat_scraper.adapters.http_gateway import HttpxSatGateway
from cfdi_sat_scraper.config import ScraperSettings
from cfdi_sat_scraper.domain.models import MetadataList, Query
from cfdi_sat_scraper.domain.ports import SessionManager
from cfdi_sat_scraper.pipeline import run_query
from cfdi_sat_scraper.query_resolver import QueryResolver


def configure_structlog(log_level: str = "INFO") -> None:
    """
    Configure structlog for structured, human-readable console logging.

    Events go to stderr so the output of callers stays clean on stdout.
    Unknown level names fall back to INFO.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
        cache_logger_on_first_use=True,
    )


def create_gateway(settings: ScraperSettings) -> HttpxSatGateway:
    return HttpxSatGateway(
        timeout=settings.http_timeout_seconds,
        verify_tls=settings.verify_tls,
        user_agent=settings.user_agent,
    )


def bind_session(session_manager: SessionManager, settings: ScraperSettings) -> QueryResolver:
    """
    Give the session manager a fresh gateway and return a resolver sharing it.

    The returned resolver searches with the cookies the manager obtains
    when it logs in.
    """
    gateway = create_gateway(settings)
    session_manager.set_http_gateway(gateway)
    structlog.get_logger().debug("bootstrap.session_bound", rfc=session_manager.get_identity())
    return QueryResolver(gateway)


def create_query_runner(
    session_manager: SessionManager,
    settings: ScraperSettings | None = None,
) -> Callable[[Query], MetadataList]:
    """
    Wire everything one identity needs and return `query -> MetadataList`.

    Settings are loaded from the environment when not given. Logging is
    configured at settings.log_level and each query runs through
    run_query with settings.retry_attempts.
    """
    settings = settings or ScraperSettings()
    configure_structlog(settings.log_level)
    resolver = bind_session(session_manager, settings)
    structlog.get_logger().info(
        "bootstrap.runner_ready",
        rfc=session_manager.get_identity(),
        log_level=settings.log_level,
        retry_attempts=settings.retry_attempts,
    )
    return partial(
        run_query,
        session_manager,
        resolver=resolver,
        attempts=settings.retry_attempts,
    )
