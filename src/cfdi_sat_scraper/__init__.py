"""
cfdi_sat_scraper — CFDI metadata retrieval from the SAT invoicing portal.

Emulates the browser-driven login handshake (password or FIEL
challenge/response) and the stateful ASP.NET search workflow of the
portal, returning the found documents as a MetadataList.
"""

__version__ = "0.1.0"
