"""
Portal protocol constants — fixed hosts, endpoints and request headers.

These are part of the wire contract with the SAT portal and are not
configurable. The AJAX headers must accompany every search POST or the
portal answers with a full page instead of an update panel delta.
"""

from __future__ import annotations

HOST_CFDI_AUTH = "cfdiau.sat.gob.mx"
HOST_PORTAL_CFDI = "portalcfdi.facturaelectronica.sat.gob.mx"

URL_PORTAL_CFDI = "https://portalcfdi.facturaelectronica.sat.gob.mx/"
URL_PORTAL_CFDI_CONSULTA_EMISOR = "https://portalcfdi.facturaelectronica.sat.gob.mx/ConsultaEmisor.aspx"
URL_PORTAL_CFDI_CONSULTA_RECEPTOR = "https://portalcfdi.facturaelectronica.sat.gob.mx/ConsultaReceptor.aspx"
URL_PORTAL_CFDI_LOGOUT = "https://portalcfdi.facturaelectronica.sat.gob.mx/logout.aspx?salir=y"

URL_CIEC_LOGIN = "https://cfdiau.sat.gob.mx/nidp/wsfed/ep?id=SATUPCFDiCon&sid=0&option=credential&sid=0"
URL_FIEL_LOGIN = "https://cfdiau.sat.gob.mx/nidp/app/login?id=SATx509Custom&sid=0&option=credential&sid=0"
URL_FIEL_APPLET = "https://cfdiau.sat.gob.mx/nidp/app/login?id=SATx509Custom"

USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64; rv:109.0) Gecko/20100101 Firefox/115.0"
)


def authenticated_marker(rfc: str) -> str:
    """Text the portal home page shows only to an authenticated identity."""
    return f"RFC Autenticado: {rfc}"


def get_headers(referer: str = "") -> dict[str, str]:
    headers = {
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "es-MX,es;q=0.8,en-US;q=0.5,en;q=0.3",
        "Upgrade-Insecure-Requests": "1",
    }
    if referer:
        headers["Referer"] = referer
    return headers


def post_headers(host: str, referer: str) -> dict[str, str]:
    return {
        **get_headers(referer),
        "Host": host,
        "Origin": f"https://{host}",
        "Content-Type": "application/x-www-form-urlencoded",
    }


def post_ajax_headers(host: str, referer: str) -> dict[str, str]:
    return {
        **post_headers(host, referer),
        "X-MicrosoftAjax": "Delta=true",
        "X-Requested-With": "XMLHttpRequest",
        "Cache-Control": "no-cache",
        "Pragma": "no-cache",
    }
