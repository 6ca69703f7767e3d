"""
Shared test fixtures and helpers for the cfdi-sat-scraper test suite.

Provides:
  - ScriptedGateway: an HttpGateway replaying canned responses in order
    and recording every call it receives
  - make_credential: self-signed FIEL-like credentials built with cryptography
  - builders for the portal pages the protocols consume
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from functools import cache

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID

from cfdi_sat_scraper.adapters.credential import FielCredential

RFC = "EKU9003173C9"
SAT_SERIAL = "30001000000500003416"


# ─────────────────────── Scripted gateway ───────────────────────


@dataclass
class RecordedCall:
    method: str
    url: str
    form: dict[str, str] | None = None
    headers: dict[str, str] | None = None


@dataclass
class ScriptedGateway:
    """HttpGateway double: pops one canned response (or raises one exception) per call."""

    responses: list[str | Exception] = field(default_factory=list)
    has_cookies: bool = True
    calls: list[RecordedCall] = field(default_factory=list)

    def get(self, url: str, headers: Mapping[str, str] | None = None) -> str:
        self.calls.append(RecordedCall("GET", url, None, dict(headers or {})))
        return self._next()

    def post(self, url: str, form: Mapping[str, str], headers: Mapping[str, str] | None = None) -> str:
        self.calls.append(RecordedCall("POST", url, dict(form), dict(headers or {})))
        return self._next()

    def is_cookie_jar_empty(self) -> bool:
        return not self.has_cookies

    def clear_cookie_jar(self) -> None:
        self.has_cookies = False

    def _next(self) -> str:
        if not self.responses:
            raise AssertionError("ScriptedGateway ran out of responses")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


# ─────────────────────── Credentials ───────────────────────


@cache
def _private_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


def make_credential(
    rfc: str = RFC,
    serial: str = SAT_SERIAL,
    not_before: datetime | None = None,
    not_after: datetime | None = None,
    with_private_key: bool = True,
) -> FielCredential:
    """Build a self-signed certificate shaped like a SAT FIEL certificate."""
    key = _private_key()
    now = datetime.now(UTC)
    name = x509.Name([
        x509.NameAttribute(NameOID.COMMON_NAME, "ESCUELA KEMPER URGATE SA DE CV"),
        x509.NameAttribute(NameOID.X500_UNIQUE_IDENTIFIER, f"{rfc} / VADA800927DJ3"),
    ])
    certificate = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(int(serial.encode("ascii").hex(), 16))
        .not_valid_before(not_before or now - timedelta(days=1))
        .not_valid_after(not_after or now + timedelta(days=365))
        .sign(key, hashes.SHA256())
    )
    return FielCredential(certificate, key if with_private_key else None)


@pytest.fixture()
def credential() -> FielCredential:
    return make_credential()


# ─────────────────────── Portal pages ───────────────────────


def challenge_page(fields: dict[str, str] | None = None) -> str:
    """FIEL login page; `fields` become the inputs of #certform."""
    if fields is None:
        fields = {"guid": "f0b3a8d2-challenge"}
    inputs = "".join(
        f'<input type="hidden" name="{name}" value="{value}"/>' if name
        else f'<input type="hidden" value="{value}"/>'
        for name, value in fields.items()
    )
    return (
        "<html><body>"
        f'<form id="certform" method="post">{inputs}<input type="submit" value="Enviar"/></form>'
        "</body></html>"
    )


def auto_submit_page() -> str:
    return (
        '<html><body onload="document.forms[0].submit()">'
        '<form method="post" action="https://portalcfdi.facturaelectronica.sat.gob.mx/">'
        '<input type="hidden" name="wa" value="wsignin1.0"/>'
        '<input type="hidden" name="wresult" value="&lt;token/&gt;"/>'
        '<input type="hidden" name="wctx" value="rm=0&amp;id=passive"/>'
        "</form></body></html>"
    )


def portal_home_page(rfc: str = RFC) -> str:
    return f"<html><body><div>RFC Autenticado: {rfc}</div></body></html>"


def search_form_page() -> str:
    return (
        '<html><head><meta http-equiv="Content-Type" content="text/html; charset=utf-16"/></head>'
        '<body><form id="aspnetForm" method="post" action="./ConsultaReceptor.aspx">'
        '<input type="hidden" name="__VIEWSTATE" value="initial-view-state"/>'
        '<input type="hidden" name="__VIEWSTATEGENERATOR" value="A1B2C3"/>'
        '<input type="hidden" name="__EVENTVALIDATION" value="initial-validation"/>'
        '<input type="radio" name="ctl00$MainContent$FiltroCentral" value="RdoFolioFiscal" checked="checked"/>'
        '<input type="radio" name="ctl00$MainContent$FiltroCentral" value="RdoFechas"/>'
        '<input type="checkbox" name="seleccionador" checked="checked"/>'
        '<select name="ctl00$MainContent$DdlEstadoComprobante">'
        '<option value="-1" selected="selected">Todos</option><option value="1">Vigente</option>'
        "</select>"
        '<input type="submit" name="ctl00$MainContent$BtnBusqueda" value="Buscar CFDI"/>'
        "</form></body></html>"
    )


def ajax_delta(hidden: dict[str, str]) -> str:
    """ASP.NET AJAX delta body carrying `hidden` as hiddenField records."""
    panel = "<div>filtros</div>"
    records = ["1|#||4|", f"{len(panel)}|updatePanel|ctl00_MainContent_UpnlBusqueda|{panel}|"]
    for name, value in hidden.items():
        records.append(f"{len(value)}|hiddenField|{name}|{value}|")
    records.append("0|asyncPostBackControlIDs|||")
    return "".join(records)


RESULT_HEADER = (
    "<tr>"
    "<th>Acciones</th><th>Folio Fiscal</th><th>RFC Emisor</th>"
    "<th>Nombre o Razón Social del Emisor</th><th>RFC Receptor</th>"
    "<th>Fecha de Emisión</th><th>Total</th><th>Estado del Comprobante</th>"
    "</tr>"
)


def result_row(
    uuid: str,
    total: str = "$1,160.00",
    with_download: bool = True,
    nested_actions: bool = False,
) -> str:
    button = (
        '<span id="BtnDescarga" onclick="return AccionCfdi(\'RecuperaCfdi.aspx?Datos=abc123\','
        "'Recuperacion');\"></span>"
        if with_download
        else ""
    )
    actions = button
    if nested_actions:
        # the live portal lays the action buttons out in a table of their own
        actions = (
            f"<div><table><tr><td>{button}</td>"
            '<td><span id="BtnVerDetalle"></span></td></tr></table></div>'
        )
    return (
        "<tr>"
        f"<td>{actions}</td><td>{uuid}</td><td>{RFC}</td><td>ESCUELA KEMPER URGATE</td>"
        "<td>XAXX010101000</td><td>2024-01-15T10:20:30</td>"
        f"<td>{total}</td><td>Vigente</td>"
        "</tr>"
    )


def results_page(rows: list[str]) -> str:
    table = f'<table id="ctl00_MainContent_tblResult">{RESULT_HEADER}{"".join(rows)}</table>'
    body = f"<div>{table}</div>"
    return f"{len(body)}|updatePanel|ctl00_MainContent_UpnlResultados|{body}|"


def empty_results_page() -> str:
    body = '<div id="ctl00_MainContent_PnlNoResultados">No existen registros que cumplan con los criterios de búsqueda ingresados</div>'
    return f"{len(body)}|updatePanel|ctl00_MainContent_UpnlResultados|{body}|"
