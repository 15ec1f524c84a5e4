import re

from bs4 import BeautifulSoup

from .config import SEARCH_URL
from .errors import ExtractionError
from .fetcher import RateLimitedFetcher

TOKEN_IN_URL = re.compile(r"[?&]token=([0-9A-Za-z]+)")


def parse_token(page: str) -> str:
    soup = BeautifulSoup(page, "lxml")
    field = soup.select_one("form#SearchForm input[name='token']") or soup.find("input", attrs={"name": "token"})
    if field is not None and field.get("value", "").strip():
        return field["value"].strip()
    m = TOKEN_IN_URL.search(page)
    if m:
        return m.group(1)
    raise ExtractionError("no search token in page")


def fetch_token(fetcher: RateLimitedFetcher, url: str = SEARCH_URL) -> str:
    """Read the session token TCMSP puts in its search form."""
    return parse_token(fetcher.fetch(url))
