from .errors import (
    ConfigError,
    ConversionError,
    DownloadError,
    ExtractionError,
    TcmspError,
    TransportError,
)
from .extractor import extract_records, find_blocks
from .fetcher import RateLimitedFetcher
from .herbs import HerbIdentity, HerbResult, resolve_herb, retrieve_herb, run_herb
from .pipeline import AggregateTables, aggregate_results, get_tcmsp_info

__version__ = "0.3.0"

__all__ = [
    "AggregateTables",
    "ConfigError",
    "ConversionError",
    "DownloadError",
    "ExtractionError",
    "HerbIdentity",
    "HerbResult",
    "RateLimitedFetcher",
    "TcmspError",
    "TransportError",
    "aggregate_results",
    "extract_records",
    "find_blocks",
    "get_tcmsp_info",
    "resolve_herb",
    "retrieve_herb",
    "run_herb",
]
