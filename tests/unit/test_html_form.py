"""
Unit tests for the HTML form adapter and the AJAX delta parser.
"""

from __future__ import annotations

import base64

from cfdi_sat_scraper.adapters.html_form import (
    BeautifulSoupFormExtractor,
    parse_ajax_hidden_fields,
    read_embedded_image,
)
from tests.conftest import ajax_delta, challenge_page, search_form_page


class TestExtractFields:
    """Verify which fields a browser would submit are reported."""

    def test_reads_hidden_inputs_checked_radios_and_selects(self) -> None:
        """
        GIVEN the search form page
        WHEN its fields are extracted excluding "seleccionador"
        THEN hidden inputs, the checked radio and the selected option are returned,
             and the submit button and excluded checkbox are not.
        """
        fields = BeautifulSoupFormExtractor().extract_fields(
            search_form_page(), "form#aspnetForm", [r"^seleccionador$"]
        )
        assert fields == {
            "__VIEWSTATE": "initial-view-state",
            "__VIEWSTATEGENERATOR": "A1B2C3",
            "__EVENTVALIDATION": "initial-validation",
            "ctl00$MainContent$FiltroCentral": "RdoFolioFiscal",
            "ctl00$MainContent$DdlEstadoComprobante": "-1",
        }

    def test_excluded_pattern_only_applies_when_given(self) -> None:
        fields = BeautifulSoupFormExtractor().extract_fields(search_form_page(), "form#aspnetForm")
        assert fields["seleccionador"] == ""

    def test_selector_without_match_returns_empty(self) -> None:
        assert BeautifulSoupFormExtractor().extract_fields(search_form_page(), "#missing") == {}

    def test_nameless_input_uses_empty_key(self) -> None:
        fields = BeautifulSoupFormExtractor().extract_fields(challenge_page({"": "token-1"}), "#certform")
        assert fields == {"": "token-1"}

    def test_select_without_selected_option_is_empty(self) -> None:
        html = '<form><select name="s"><option value="1">a</option></select><textarea name="t">hi</textarea></form>'
        assert BeautifulSoupFormExtractor().extract_fields(html, "form") == {"s": "", "t": "hi"}


class TestParseAjaxHiddenFields:
    """Verify reading hiddenField records of ASP.NET AJAX delta responses."""

    def test_reads_hidden_fields(self) -> None:
        source = ajax_delta({"__VIEWSTATE": "abc|def", "__EVENTVALIDATION": "xyz"})
        assert parse_ajax_hidden_fields(source) == {"__VIEWSTATE": "abc|def", "__EVENTVALIDATION": "xyz"}

    def test_empty_hidden_value(self) -> None:
        assert parse_ajax_hidden_fields(ajax_delta({"__EVENTTARGET": ""})) == {"__EVENTTARGET": ""}

    def test_html_page_yields_nothing(self) -> None:
        assert parse_ajax_hidden_fields(search_form_page()) == {}

    def test_truncated_record_stops_parsing(self) -> None:
        source = "5|hiddenField|__VIEWSTATE|abcde|99|hiddenField|__OTHER|short|"
        assert parse_ajax_hidden_fields(source) == {"__VIEWSTATE": "abcde"}


class TestReadEmbeddedImage:
    def test_reads_base64_data_uri(self) -> None:
        payload = base64.b64encode(b"\x89PNG").decode()
        html = f'<div id="divCaptcha"><img src="data:image/png;base64,{payload}"/></div>'
        assert read_embedded_image(html, "#divCaptcha img") == b"\x89PNG"

    def test_missing_or_remote_image_is_none(self) -> None:
        assert read_embedded_image("<div></div>", "#divCaptcha img") is None
        html = '<div id="divCaptcha"><img src="https://example.com/captcha.png"/></div>'
        assert read_embedded_image(html, "#divCaptcha img") is None
