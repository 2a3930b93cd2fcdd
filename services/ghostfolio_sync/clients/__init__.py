"""HTTP clients for Ghostfolio, the EIC portal and the reference data sources."""

from .country_codes import CountryCodesClient
from .eic import EicPortal, fetch_broker_export
from .ghostfolio import GhostfolioClient
from .justetf import JustEtfClient
from .ofx import OfxClient

__all__ = [
    "CountryCodesClient",
    "EicPortal",
    "GhostfolioClient",
    "JustEtfClient",
    "OfxClient",
    "fetch_broker_export",
]
