"""
Metadata extractor — result table of the search page → MetadataList.

Adapter layer — uses BeautifulSoup (lxml) to read the result table.

The first row of table#ctl00_MainContent_tblResult holds the column
captions; they are matched against FIELDS_CAPTIONS to know which cell
feeds which attribute. Every following row is one document; rows with an
empty "Folio Fiscal" cell are skipped. Only the table's own rows and
cells are read, since the actions cell nests a table of buttons.

A page without the table is an empty search result; a table whose header
has no "Folio Fiscal" column cannot be read and raises ParseError.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from urllib.parse import urljoin

import structlog
from bs4 import BeautifulSoup, Tag

from cfdi_sat_scraper import portal
from cfdi_sat_scraper.domain.errors import InputError, ParseError
from cfdi_sat_scraper.domain.models import Metadata, MetadataList

log = structlog.get_logger()

RESULT_TABLE_SELECTOR = "table#ctl00_MainContent_tblResult"
DOWNLOAD_BUTTON_SELECTOR = "span#BtnDescarga"
# the actions cell nests its own table of buttons
ROW_SELECTOR = ":scope > tr, :scope > thead > tr, :scope > tbody > tr"

FIELDS_CAPTIONS: dict[str, str] = {
    "uuid": "Folio Fiscal",
    "rfcEmisor": "RFC Emisor",
    "nombreEmisor": "Nombre o Razón Social del Emisor",
    "rfcReceptor": "RFC Receptor",
    "nombreReceptor": "Nombre o Razón Social del Receptor",
    "fechaEmision": "Fecha de Emisión",
    "fechaCertificacion": "Fecha de Certificación",
    "pacCertifico": "PAC que Certificó",
    "total": "Total",
    "efectoComprobante": "Efecto del Comprobante",
    "estatusCancelacion": "Estatus de cancelación",
    "estadoComprobante": "Estado del Comprobante",
    "estatusProcesoCancelacion": "Estatus de Proceso de Cancelación",
    "fechaProcesoCancelacion": "Fecha de Proceso de Cancelación",
    "rfcACuentaTerceros": "RFC a cuenta de terceros",
}

_DOWNLOAD_URL_PATTERN = re.compile(r"'(RecuperaCfdi\.aspx\?Datos=[^']+)'")


def _clean_text(element: Tag) -> str:
    return " ".join(element.get_text(" ").split())


class MetadataExtractor:
    """Read search results from the final search page."""

    def __init__(
        self,
        fields_captions: Mapping[str, str] | None = None,
        parser: str = "lxml",
    ) -> None:
        self._fields_captions = dict(fields_captions or FIELDS_CAPTIONS)
        self._parser = parser

    def extract(self, html: str) -> MetadataList:
        soup = BeautifulSoup(html, self._parser)
        table = soup.select_one(RESULT_TABLE_SELECTOR)
        if table is None:
            log.debug("metadata.no_result_table")
            return MetadataList()

        rows = table.select(ROW_SELECTOR)
        if not rows:
            return MetadataList()

        positions = self.locate_fields_positions(rows[0])
        if "uuid" not in positions:
            raise ParseError("read search results", "the result table has no 'Folio Fiscal' column")

        items: list[Metadata] = []
        for row in rows[1:]:
            values = self.obtain_metadata_values(row, positions)
            try:
                items.append(Metadata(values.pop("uuid", ""), values))
            except InputError:
                log.debug("metadata.row_without_uuid")
        return MetadataList(items)

    def locate_fields_positions(self, header_row: Tag) -> dict[str, int]:
        captions = [_clean_text(cell) for cell in header_row.find_all(["th", "td"], recursive=False)]
        positions: dict[str, int] = {}
        for field, caption in self._fields_captions.items():
            if caption in captions:
                positions[field] = captions.index(caption)
        return positions

    def obtain_metadata_values(self, row: Tag, positions: Mapping[str, int]) -> dict[str, str]:
        cells = row.find_all(["td", "th"], recursive=False)
        values = {
            field: _clean_text(cells[position])
            for field, position in positions.items()
            if position < len(cells)
        }
        download_url = self.obtain_download_url(row)
        if download_url:
            values["urlXml"] = download_url
        return values

    @staticmethod
    def obtain_download_url(row: Tag) -> str:
        button = row.select_one(DOWNLOAD_BUTTON_SELECTOR)
        if button is None:
            return ""
        found = _DOWNLOAD_URL_PATTERN.search(str(button.get("onclick", "")))
        if found is None:
            return ""
        return urljoin(portal.URL_PORTAL_CFDI, found.group(1))
