import logging
from pathlib import Path

import pandas as pd
import pytest

from conftest import ASTRAGALUS, FakeRequestContext, FakeTcmspSite
from tcmsp_harvest import cli
from tcmsp_harvest.fetcher import RateLimitedFetcher


@pytest.fixture
def fake_site_fetcher(monkeypatch: pytest.MonkeyPatch, site, clock):
    def _fetcher(interval_sec=2.0):
        return RateLimitedFetcher(
            interval_sec=interval_sec,
            request_context=FakeRequestContext(site, clock=clock),
            sleep=clock.sleep,
            clock=clock,
        )

    monkeypatch.setattr(cli, "RateLimitedFetcher", _fetcher)
    monkeypatch.delenv("TCMSP_TOKEN", raising=False)
    monkeypatch.delenv("TCMSP_INTERVAL", raising=False)


def test_fetch_writes_workbook(fake_site_fetcher, tmp_path: Path):
    out = tmp_path / "herbs.xlsx"
    code = cli.main(["fetch", "黄芪", "附子", "未知药材X", "--token", "0123abcd", "--output", str(out), "--screen"])
    assert code == 0
    sheets = pd.read_excel(out, sheet_name=None)
    assert {"compounds", "targets", "outcomes", "screened_compounds", "summary"} <= set(sheets)
    assert set(sheets["compounds"]["herb_name"]) == {"黄芪", "附子"}
    assert len(sheets["outcomes"]) == 3


def test_fetch_reads_token_from_site_when_missing(fake_site_fetcher, tmp_path: Path):
    out = tmp_path / "herbs.xlsx"
    assert cli.main(["fetch", "附子", "--output", str(out)]) == 0
    assert set(pd.read_excel(out, sheet_name="compounds")["MOL_ID"]) == {"MOL002388", "MOL000359"}


def test_bad_interval_env_fails_cleanly(fake_site_fetcher, monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    monkeypatch.setenv("TCMSP_INTERVAL", "soon")
    assert cli.main(["fetch", "附子", "--token", "t", "--output", str(tmp_path / "x.xlsx")]) == 1


def test_download_command(fake_site_fetcher, tmp_path: Path):
    assert cli.main(["download", "MOL000211", "--save-dir", str(tmp_path)]) == 0
    assert not (tmp_path / "MOL000211.mol2").exists()


def test_screen_is_skipped_when_adme_columns_are_missing(
    monkeypatch: pytest.MonkeyPatch, clock, tmp_path: Path, caplog
):
    bare = {
        "info": ASTRAGALUS["info"],
        "compounds": [{"MOL_ID": "MOL000211", "molecule_name": "Mairin"}],
        "targets": [{"MOL_ID": "MOL000211", "target_ID": "TAR00001"}],
    }
    site = FakeTcmspSite([bare])

    def _fetcher(interval_sec=2.0):
        return RateLimitedFetcher(
            interval_sec=interval_sec,
            request_context=FakeRequestContext(site, clock=clock),
            sleep=clock.sleep,
            clock=clock,
        )

    monkeypatch.setattr(cli, "RateLimitedFetcher", _fetcher)
    out = tmp_path / "bare.xlsx"
    with caplog.at_level(logging.WARNING):
        code = cli.main(["fetch", "黄芪", "--token", "t", "--output", str(out), "--screen"])
    assert code == 0
    sheets = pd.read_excel(out, sheet_name=None)
    assert set(sheets) == {"compounds", "targets", "outcomes"}
    assert "statistics skipped" in caplog.text


def test_match_aliases_flag(fake_site_fetcher, tmp_path: Path):
    out = tmp_path / "alias.xlsx"
    assert cli.main(["fetch", "Huangqi", "--token", "t", "--output", str(out)]) == 0
    assert pd.read_excel(out, sheet_name="compounds").empty
    assert cli.main(["fetch", "Huangqi", "--token", "t", "--output", str(out), "--match-aliases"]) == 0
    assert set(pd.read_excel(out, sheet_name="compounds")["herb_name"]) == {"Huangqi"}
