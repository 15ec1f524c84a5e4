import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

import pandas as pd

from .config import (
    COMPOUND_COLUMNS,
    COMPOUND_KEY,
    DEFAULT_INTERVAL_SEC,
    HERB_COLUMN,
    OUTCOME_COLUMNS,
    TARGET_COLUMNS,
    TARGET_KEY,
)
from .errors import ConfigError
from .fetcher import RateLimitedFetcher
from .herbs import HerbResult, run_herb

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AggregateTables:
    compounds: pd.DataFrame
    targets: pd.DataFrame
    outcomes: pd.DataFrame


def _concat(frames: List[pd.DataFrame], columns: List[str], key: str) -> pd.DataFrame:
    if not frames:
        return pd.DataFrame(columns=columns)
    df = pd.concat(frames, ignore_index=True, sort=False)
    if key not in df.columns:
        return df.iloc[0:0].reset_index(drop=True)
    ids = df[key]
    valid = ids.notna() & (ids.astype(str).str.strip() != "")
    return df[valid].reset_index(drop=True)


def aggregate_results(results: Sequence[HerbResult]) -> AggregateTables:
    """Stack per-herb tables in input order and drop rows without an id."""
    compounds = [r.compounds for r in results if r.compounds is not None]
    targets = [r.targets for r in results if r.targets is not None]
    outcomes = pd.DataFrame(
        [
            {
                HERB_COLUMN: r.herb_name,
                "found": r.found,
                "compounds": 0 if r.compounds is None else len(r.compounds),
                "targets": 0 if r.targets is None else len(r.targets),
                "message": r.message,
            }
            for r in results
        ],
        columns=OUTCOME_COLUMNS,
    )
    return AggregateTables(
        compounds=_concat(compounds, COMPOUND_COLUMNS, COMPOUND_KEY),
        targets=_concat(targets, TARGET_COLUMNS, TARGET_KEY),
        outcomes=outcomes,
    )


def clean_herb_names(herb_names: Iterable[str]) -> List[str]:
    names = []
    for raw in herb_names:
        name = (raw or "").strip()
        if not name:
            logger.warning("[WARN] skipping blank herb name")
            continue
        names.append(name)
    return names


def run_herbs(
    fetcher: RateLimitedFetcher, herb_names: Iterable[str], token: str, match_aliases: bool = False
) -> List[HerbResult]:
    """One herb at a time, each fully processed before the next starts."""
    results = []
    for name in herb_names:
        results.append(run_herb(fetcher, name, token, match_aliases))
    return results


def get_tcmsp_info(
    herb_names: Sequence[str],
    token: str,
    interval_sec: float = DEFAULT_INTERVAL_SEC,
    fetcher: Optional[RateLimitedFetcher] = None,
    match_aliases: bool = False,
) -> AggregateTables:
    """Compounds and targets of every herb in ``herb_names`` from TCMSP.

    Herbs that cannot be found or have no data are left out of the tables
    and reported in ``outcomes``. Only a missing token aborts the run.
    ``match_aliases`` lets pinyin or English names resolve a herb too.
    """
    if not isinstance(token, str) or not token.strip():
        raise ConfigError("a TCMSP token is required")
    token = token.strip()
    names = clean_herb_names(herb_names)

    if fetcher is not None:
        results = run_herbs(fetcher, names, token, match_aliases)
    else:
        with RateLimitedFetcher(interval_sec=interval_sec) as owned:
            results = run_herbs(owned, names, token, match_aliases)

    tables = aggregate_results(results)
    missing = [r.herb_name for r in results if r.compounds is None and r.targets is None]
    logger.info(
        "[OK] %d herbs, %d compounds, %d targets",
        len(results),
        len(tables.compounds),
        len(tables.targets),
    )
    if missing:
        logger.info("[WARN] no data for: %s", ", ".join(missing))
    return tables
