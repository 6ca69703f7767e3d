"""
HTML form adapter — read form fields with BeautifulSoup (lxml parser).

Adapter layer — implements the FormExtractor port, plus the parser of the
ASP.NET AJAX "delta" responses the search page answers with.

Field reading follows what a browser would submit:
  - <input> of every type except submit, button, reset and image;
    radio and checkbox only when checked
  - <select> with the value of its selected option ("" if none)
  - <textarea> with its text
An input without a name attribute is reported under the key "".
"""

from __future__ import annotations

import base64
import re
from collections.abc import Iterable

from bs4 import BeautifulSoup, Tag

_SKIPPED_INPUT_TYPES = frozenset({"submit", "button", "reset", "image"})
_CHECKABLE_INPUT_TYPES = frozenset({"radio", "checkbox"})


class BeautifulSoupFormExtractor:
    """
    Extract submittable values from the first element matching a CSS selector.

    Implements the FormExtractor port.
    """

    def __init__(self, parser: str = "lxml") -> None:
        self._parser = parser

    def extract_fields(
        self,
        html: str,
        selector: str,
        exclude: Iterable[str] = (),
    ) -> dict[str, str]:
        soup = BeautifulSoup(html, self._parser)
        container = soup.select_one(selector)
        if container is None:
            return {}
        patterns = [re.compile(pattern) for pattern in exclude]
        values: dict[str, str] = {}
        for element in container.find_all(["input", "select", "textarea"]):
            name = str(element.get("name", ""))
            if any(pattern.search(name) for pattern in patterns):
                continue
            match element.name:
                case "input":
                    self._read_input(element, name, values)
                case "select":
                    values[name] = self._read_select(element)
                case "textarea":
                    values[name] = element.get_text()
        return values

    @staticmethod
    def _read_input(element: Tag, name: str, values: dict[str, str]) -> None:
        input_type = str(element.get("type", "text")).lower()
        if input_type in _SKIPPED_INPUT_TYPES:
            return
        if input_type in _CHECKABLE_INPUT_TYPES and not element.has_attr("checked"):
            return
        values[name] = str(element.get("value", ""))

    @staticmethod
    def _read_select(element: Tag) -> str:
        for option in element.find_all("option"):
            if option.has_attr("selected"):
                return str(option.get("value", option.get_text()))
        return ""


def parse_ajax_hidden_fields(source: str) -> dict[str, str]:
    """
    Read the hidden fields of an ASP.NET AJAX delta response.

    The body is a sequence of "length|type|id|content|" records where
    length counts the characters of content. Records of type
    "hiddenField" carry the refreshed __VIEWSTATE, __EVENTVALIDATION and
    similar fields. Parsing stops at the first malformed record, so a
    regular HTML page yields an empty mapping.
    """
    values: dict[str, str] = {}
    position = 0
    size = len(source)
    while position < size:
        length_end = source.find("|", position)
        if length_end < 0:
            break
        try:
            length = int(source[position:length_end])
        except ValueError:
            break
        type_end = source.find("|", length_end + 1)
        id_end = source.find("|", type_end + 1) if type_end >= 0 else -1
        if id_end < 0:
            break
        record_type = source[length_end + 1 : type_end]
        record_id = source[type_end + 1 : id_end]
        content_start = id_end + 1
        content_end = content_start + length
        if content_end > size:
            break
        if record_type == "hiddenField":
            values[record_id] = source[content_start:content_end]
        position = content_end + 1
    return values


def read_embedded_image(html: str, selector: str, parser: str = "lxml") -> bytes | None:
    """Return the bytes of a data-URI <img> matched by `selector`, if any."""
    element = BeautifulSoup(html, parser).select_one(selector)
    if element is None:
        return None
    source = str(element.get("src", ""))
    if not source.startswith("data:") or "," not in source:
        return None
    header, payload = source.split(",", 1)
    if not header.endswith(";base64"):
        return None
    return base64.b64decode(payload)
