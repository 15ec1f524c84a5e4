import json
from typing import Callable, Dict, List, Optional

import pytest

from tcmsp_harvest.fetcher import RateLimitedFetcher

ASTRAGALUS = {
    "info": {"herb_cn_name": "黄芪", "herb_pinyin": "Huangqi", "herb_en_name": "Astragali Radix"},
    "compounds": [
        {"MOL_ID": "MOL000211", "molecule_name": "Mairin", "mw": 456.78, "ob": 55.38, "dl": 0.78},
        {"MOL_ID": "MOL000239", "molecule_name": "Jaranol", "mw": 314.31, "ob": 50.83, "dl": 0.29},
        {"MOL_ID": "MOL000359", "molecule_name": "sitosterol", "mw": 414.79, "ob": 36.91, "dl": 0.75},
        {"MOL_ID": "MOL000409", "molecule_name": "glycine", "mw": 75.08, "ob": 8.12, "dl": 0.0},
        {"MOL_ID": "", "molecule_name": "unnamed", "mw": "", "ob": "", "dl": ""},
    ],
    "targets": [
        {"MOL_ID": "MOL000211", "molecule_name": "Mairin", "target_name": "Prostaglandin G/H synthase 2",
         "target_ID": "TAR00001", "validated": "0"},
        {"MOL_ID": "MOL000239", "molecule_name": "Jaranol", "target_name": "Estrogen receptor",
         "target_ID": "TAR00015", "validated": "1"},
        {"MOL_ID": "MOL000359", "molecule_name": "sitosterol", "target_name": "Progesterone receptor",
         "target_ID": "TAR00072", "validated": "0"},
        {"MOL_ID": "MOL000409", "molecule_name": "glycine", "target_name": "Glycine receptor",
         "target_ID": None, "validated": "0"},
    ],
}

ACONITE = {
    "info": {"herb_cn_name": "附子", "herb_pinyin": "Fuzi", "herb_en_name": "Aconiti Lateralis Radix Praeparata"},
    "compounds": [
        {"MOL_ID": "MOL002388", "molecule_name": "Delphin_qt", "mw": 421.58, "ob": 57.76, "dl": 0.28},
        {"MOL_ID": "MOL000359", "molecule_name": "sitosterol", "mw": 414.79, "ob": 36.91, "dl": 0.75},
    ],
    "targets": [
        {"MOL_ID": "MOL000359", "molecule_name": "sitosterol", "target_name": "Progesterone receptor",
         "target_ID": "TAR00072", "validated": "0"},
        {"MOL_ID": "MOL002388", "molecule_name": "Delphin_qt", "target_name": "Sodium channel protein",
         "target_ID": "TAR00210", "validated": "0"},
    ],
}


def kendo_page(*arrays: list) -> bytes:
    """HTML shaped like a TCMSP result page: one Kendo grid script per array."""
    scripts = []
    for i, rows in enumerate(arrays, 1):
        grid = "grid" if i == 1 else f"grid{i}"
        scripts.append(
            "<script>\n"
            f'  $("#{grid}").kendoGrid({{\n'
            "    dataSource: {\n"
            f"      data: {json.dumps(rows, ensure_ascii=False)},\n"
            "      pageSize: 15\n"
            "    },\n"
            "    sortable: true\n"
            "  });\n"
            "</script>"
        )
    html = (
        "<html><head><script src='/js/kendo.all.min.js'></script></head><body>"
        "<form id='SearchForm'><input type='hidden' name='token' value='0123abcd'></form>"
        + "".join(scripts)
        + "</body></html>"
    )
    return html.encode("utf-8")


class FakeResponse:
    def __init__(self, status: int = 200, body: bytes = b"", status_text: str = ""):
        self.status = status
        self.status_text = status_text or ("OK" if status == 200 else "Not Found")
        self._body = body
        self.disposed = False

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def body(self) -> bytes:
        return self._body

    def dispose(self) -> None:
        self.disposed = True


class FakeRequestContext:
    """Stands in for Playwright's APIRequestContext."""

    def __init__(self, handler: Callable[[str, dict], object], clock=None, latency: float = 0.0):
        self.handler = handler
        self.clock = clock
        self.latency = latency
        self.calls: List[tuple] = []
        self.disposed = False

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, dict(params or {})))
        if self.clock is not None:
            self.clock.now += self.latency
        result = self.handler(url, dict(params or {}))
        if isinstance(result, Exception):
            raise result
        return result

    def dispose(self) -> None:
        self.disposed = True


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeTcmspSite:
    def __init__(self, herbs: List[dict], mol2: Optional[Dict[str, bytes]] = None):
        self.herbs = herbs
        self.mol2 = mol2 or {}
        self.broken_details: Dict[str, bytes] = {}

    def __call__(self, url: str, params: dict):
        if url.endswith(".mol2"):
            mol_id = url.rsplit("/", 1)[-1][: -len(".mol2")]
            if mol_id in self.mol2:
                return FakeResponse(200, self.mol2[mol_id])
            return FakeResponse(404)
        if params.get("qs") == "herb_all_name":
            q = params.get("q", "")
            # the catalog search matches any of the names, case-insensitively
            rows = [
                h["info"] for h in self.herbs
                if q and any(q.lower() in v.lower() for v in h["info"].values())
            ]
            return FakeResponse(200, kendo_page(rows))
        if params.get("qsr") == "herb_en_name":
            name = params.get("qr")
            if name in self.broken_details:
                return FakeResponse(200, self.broken_details[name])
            for h in self.herbs:
                if h["info"]["herb_en_name"] == name:
                    return FakeResponse(200, kendo_page(h["compounds"], h["targets"], []))
            return FakeResponse(200, kendo_page([], [], []))
        return FakeResponse(200, kendo_page())


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def site() -> FakeTcmspSite:
    return FakeTcmspSite([ASTRAGALUS, ACONITE])


@pytest.fixture
def make_fetcher(clock):
    def _make(handler, interval_sec: float = 2.0, latency: float = 0.0) -> RateLimitedFetcher:
        context = FakeRequestContext(handler, clock=clock, latency=latency)
        return RateLimitedFetcher(
            interval_sec=interval_sec,
            request_context=context,
            sleep=clock.sleep,
            clock=clock,
        )

    return _make


@pytest.fixture
def fetcher(make_fetcher, site) -> RateLimitedFetcher:
    return make_fetcher(site)
