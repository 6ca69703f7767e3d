"""
Session managers — the two portal login strategies.

  CiecSessionManager  RFC + password (CIEC)
  FielSessionManager  certificate challenge signed with the FIEL credential
"""

from cfdi_sat_scraper.sessions.base import BaseSessionManager
from cfdi_sat_scraper.sessions.ciec import CiecSessionManager
from cfdi_sat_scraper.sessions.fiel import FielSessionManager

__all__ = [
    "BaseSessionManager",
    "CiecSessionManager",
    "FielSessionManager",
]
