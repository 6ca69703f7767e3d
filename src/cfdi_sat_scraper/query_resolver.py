"""
Query resolver — the stateful search protocol of the portal.

One resolve() is a strictly sequential chain of three round trips:

  GET  search page                              → base form values
  POST base ∪ initial filters                   → refreshed hidden state
  POST base ∪ request filters ∪ hidden state    → result table

The hidden state (__VIEWSTATE and friends) is a plain dict handed from
one step to the next; nothing is kept on the resolver between calls.
Transport errors propagate as raised by the gateway; there is no retry.
"""

from __future__ import annotations

from typing import TypeAlias

import structlog

from cfdi_sat_scraper import portal
from cfdi_sat_scraper.adapters.html_form import BeautifulSoupFormExtractor, parse_ajax_hidden_fields
from cfdi_sat_scraper.adapters.metadata_extractor import MetadataExtractor
from cfdi_sat_scraper.domain.errors import ParseError
from cfdi_sat_scraper.domain.models import DownloadType, MetadataList, Query
from cfdi_sat_scraper.domain.ports import FormExtractor, HttpGateway
from cfdi_sat_scraper.filters import Filters, filters_from_query

log = structlog.get_logger()

SEARCH_FORM_SELECTOR = "form#aspnetForm"
SEARCH_FORM_EXCLUDE = (r"^seleccionador$",)

HiddenFormState: TypeAlias = dict[str, str]


class QueryResolver:
    """Run the portal search for a Query over an authenticated gateway."""

    def __init__(
        self,
        gateway: HttpGateway,
        form_extractor: FormExtractor | None = None,
        metadata_extractor: MetadataExtractor | None = None,
    ) -> None:
        self._gateway = gateway
        self._form_extractor = form_extractor or BeautifulSoupFormExtractor()
        self._metadata_extractor = metadata_extractor or MetadataExtractor()

    @property
    def gateway(self) -> HttpGateway:
        return self._gateway

    def resolve(self, query: Query) -> MetadataList:
        url = self.url_from_download_type(query.download_type)
        bound = log.bind(download_type=query.download_type.value, url=url)

        base_inputs = self.consume_form_page(url)
        filters = self.filters_from_query(query)

        hidden_state = self.select_filter_mode(url, base_inputs, filters)

        html = self.consume_search(
            url,
            {**base_inputs, **filters.request_filters(), **hidden_state},
        )
        result = self._metadata_extractor.extract(html)
        bound.info("query.resolved", count=len(result), by_uuid=query.has_uuid)
        return result

    def consume_form_page(self, url: str) -> dict[str, str]:
        html = self._gateway.get(url)
        # the portal declares utf-16 but serves utf-8
        html = html.replace("charset=utf-16", "charset=utf-8")
        inputs = self._form_extractor.extract_fields(html, SEARCH_FORM_SELECTOR, SEARCH_FORM_EXCLUDE)
        if not inputs:
            raise ParseError("search form", f"form {SEARCH_FORM_SELECTOR} not found in {url}")
        return inputs

    def select_filter_mode(self, url: str, base_inputs: dict[str, str], filters: Filters) -> HiddenFormState:
        """Post the filter mode selection and return the regenerated hidden fields."""
        html = self.consume_search(url, {**base_inputs, **filters.initial_filters()})
        hidden_state = parse_ajax_hidden_fields(html)
        if not hidden_state:
            raise ParseError("filter selection", "the response has no hidden fields to continue the search")
        return hidden_state

    def consume_search(self, url: str, form: dict[str, str]) -> str:
        return self._gateway.post(url, form, portal.post_ajax_headers(portal.HOST_PORTAL_CFDI, url))

    @staticmethod
    def url_from_download_type(download_type: DownloadType) -> str:
        if download_type.is_issued:
            return portal.URL_PORTAL_CFDI_CONSULTA_EMISOR
        return portal.URL_PORTAL_CFDI_CONSULTA_RECEPTOR

    @staticmethod
    def filters_from_query(query: Query) -> Filters:
        return filters_from_query(query)
