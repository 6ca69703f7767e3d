"""
Filter strategies — translate a Query into the search form field sets.

The portal search needs two submissions:

  initial_filters()  selects the filter mode (RdoFolioFiscal or RdoFechas)
                     so the server regenerates its view state for that mode
  request_filters()  the full search payload that presses "Buscar CFDI"

The issued and received search pages name their date fields differently,
so each direction has its own strategy.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from cfdi_sat_scraper.domain.models import Query

SCRIPT_MANAGER = "ctl00$ScriptManager1"
UPDATE_PANEL = "ctl00$MainContent$UpnlBusqueda"
FILTER_MODE = "ctl00$MainContent$FiltroCentral"
MODE_UUID = "RdoFolioFiscal"
MODE_DATES = "RdoFechas"
SEARCH_BUTTON = "ctl00$MainContent$BtnBusqueda"


class Filters(ABC):
    """Field sets of one direction of the search page for one Query."""

    def __init__(self, query: Query) -> None:
        self._query = query

    @property
    def query(self) -> Query:
        return self._query

    @property
    def mode(self) -> str:
        return MODE_UUID if self._query.has_uuid else MODE_DATES

    @abstractmethod
    def date_filters(self) -> dict[str, str]:
        """Period and search criteria fields of this direction."""

    def initial_filters(self) -> dict[str, str]:
        radio = f"ctl00$MainContent${self.mode}"
        return {
            FILTER_MODE: self.mode,
            "__ASYNCPOST": "true",
            "__EVENTTARGET": radio,
            "__EVENTARGUMENT": "",
            SCRIPT_MANAGER: f"{UPDATE_PANEL}|{radio}",
        }

    def request_filters(self) -> dict[str, str]:
        base = {
            FILTER_MODE: self.mode,
            "__ASYNCPOST": "true",
            "__EVENTTARGET": "",
            "__EVENTARGUMENT": "",
            "__LASTFOCUS": "",
            SEARCH_BUTTON: "Buscar CFDI",
            SCRIPT_MANAGER: f"{UPDATE_PANEL}|{SEARCH_BUTTON}",
        }
        if self._query.has_uuid:
            return {**base, "ctl00$MainContent$TxtUUID": self._query.uuid}
        return {**base, **self.date_filters()}

    def _common_filters(self) -> dict[str, str]:
        return {
            "ctl00$MainContent$TxtRfcReceptor": self._query.rfc,
            "ctl00$MainContent$DdlEstadoComprobante": self._query.state_voucher.value,
            "ctl00$MainContent$ddlComplementos": self._query.complement,
        }


class FiltersIssued(Filters):
    """ConsultaEmisor.aspx: start and end calendars with time selects."""

    def date_filters(self) -> dict[str, str]:
        start = self._query.start
        end = self._query.end
        return {
            "ctl00$MainContent$hfInicialBool": "false",
            "ctl00$MainContent$CldFechaInicial2$Calendario_text": start.strftime("%d/%m/%Y"),
            "ctl00$MainContent$CldFechaInicial2$DdlHora": str(start.hour),
            "ctl00$MainContent$CldFechaInicial2$DdlMinuto": str(start.minute),
            "ctl00$MainContent$CldFechaInicial2$DdlSegundo": str(start.second),
            "ctl00$MainContent$CldFechaFinal2$Calendario_text": end.strftime("%d/%m/%Y"),
            "ctl00$MainContent$CldFechaFinal2$DdlHora": str(end.hour),
            "ctl00$MainContent$CldFechaFinal2$DdlMinuto": str(end.minute),
            "ctl00$MainContent$CldFechaFinal2$DdlSegundo": str(end.second),
            **self._common_filters(),
        }


class FiltersReceived(Filters):
    """
    ConsultaReceptor.aspx: one calendar day plus start and end times.

    The received search only filters inside a single day; the day of
    `query.start` is used and `query.end` only contributes its time.
    """

    def date_filters(self) -> dict[str, str]:
        start = self._query.start
        end = self._query.end
        return {
            "ctl00$MainContent$CldFecha$DdlAnio": str(start.year),
            "ctl00$MainContent$CldFecha$DdlMes": str(start.month),
            "ctl00$MainContent$CldFecha$DdlDia": f"{start.day:02d}",
            "ctl00$MainContent$CldFecha$DdlHora": str(start.hour),
            "ctl00$MainContent$CldFecha$DdlMinuto": str(start.minute),
            "ctl00$MainContent$CldFecha$DdlSegundo": str(start.second),
            "ctl00$MainContent$CldFecha$DdlHoraFin": str(end.hour),
            "ctl00$MainContent$CldFecha$DdlMinutoFin": str(end.minute),
            "ctl00$MainContent$CldFecha$DdlSegundoFin": str(end.second),
            **self._common_filters(),
        }


def filters_from_query(query: Query) -> Filters:
    if query.download_type.is_issued:
        return FiltersIssued(query)
    return FiltersReceived(query)
