import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import pandas as pd

from .config import (
    COMPOUND_COLUMNS,
    COMPOUND_KEY,
    COMPOUND_NUMERIC,
    COMPOUNDS_BLOCK,
    HERB_COLUMN,
    HERB_NAMES_BLOCK,
    SEARCH_URL,
    TARGET_COLUMNS,
    TARGET_FLAGS,
    TARGET_KEY,
    TARGET_NUMERIC,
    TARGETS_BLOCK,
)
from .errors import ExtractionError, TransportError
from .extractor import Record, extract_records
from .fetcher import RateLimitedFetcher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HerbIdentity:
    display_name: str
    canonical_name: str = ""
    found: bool = False
    pinyin: str = ""


@dataclass(frozen=True)
class HerbResult:
    herb_name: str
    compounds: Optional[pd.DataFrame] = None
    targets: Optional[pd.DataFrame] = None
    found: bool = False
    message: str = ""


def is_chinese_char(char: str) -> bool:
    return "\u4e00" <= char <= "\u9fff"


def _matches(record: Record, name: str, match_aliases: bool = False) -> bool:
    if str(record.get("herb_cn_name", "")).strip() == name:
        return True
    if not match_aliases or is_chinese_char(name[0]):
        return False
    lowered = name.lower()
    return any(
        str(record.get(key, "")).strip().lower() == lowered
        for key in ("herb_pinyin", "herb_en_name")
    )


def resolve_herb(
    fetcher: RateLimitedFetcher, name: str, token: str, match_aliases: bool = False
) -> HerbIdentity:
    """Map a herb name to its TCMSP English name via the name lookup page.

    Only an exact Chinese name match counts unless ``match_aliases`` is set,
    in which case a non-Chinese query may also match the pinyin or English
    name, case-insensitively. If several catalog entries match, the first one
    on the page wins.
    """
    name = name.strip()
    if not name:
        return HerbIdentity(display_name=name)
    params = {"qs": "herb_all_name", "q": name, "token": token}
    try:
        page = fetcher.fetch(SEARCH_URL, params=params)
        records = extract_records(page, HERB_NAMES_BLOCK)
    except (TransportError, ExtractionError) as exc:
        logger.warning("[NOT FOUND] %s: lookup failed (%s)", name, exc)
        return HerbIdentity(display_name=name)

    matches = [r for r in records if _matches(r, name, match_aliases)]
    if not matches:
        logger.info("[NOT FOUND] %s: not in the TCMSP herb catalog", name)
        return HerbIdentity(display_name=name)
    if len(matches) > 1:
        logger.info("[WARN] %s matches %d catalog entries, using the first", name, len(matches))

    first = matches[0]
    canonical = str(first.get("herb_en_name") or "").strip()
    if not canonical:
        logger.info("[NOT FOUND] %s: catalog entry has no English name", name)
        return HerbIdentity(display_name=name)
    return HerbIdentity(
        display_name=name,
        canonical_name=canonical,
        found=True,
        pinyin=str(first.get("herb_pinyin") or ""),
    )


def normalize_records_df(
    records: List[Record],
    herb_name: str,
    columns: List[str],
    numeric: List[str],
    key: str,
    flags: Sequence[str] = (),
) -> pd.DataFrame:
    df = pd.DataFrame(records)
    df = df.replace({"": pd.NA})
    for col in numeric:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors="coerce")
    for col in flags:
        if col in df.columns:
            values = pd.to_numeric(df[col], errors="coerce")
            df[col] = values.ne(0).astype("boolean").mask(values.isna())
    for col in ("MOL_ID", key):
        if col in df.columns:
            df[col] = df[col].map(lambda v: v if pd.isna(v) else str(v).strip())
    df[HERB_COLUMN] = herb_name
    cols = [c for c in columns if c in df.columns]
    extras = [c for c in df.columns if c not in cols]
    return df[cols + extras].reset_index(drop=True)


def _extract_side(page: str, index: int, herb_name: str, label: str) -> Optional[List[Record]]:
    try:
        records = extract_records(page, index)
    except ExtractionError as exc:
        logger.info("[WARN] %s: no %s block (%s)", herb_name, label, exc)
        return None
    if not records:
        logger.info("[WARN] %s: %s block is empty", herb_name, label)
        return None
    return records


def retrieve_herb(
    fetcher: RateLimitedFetcher, identity: HerbIdentity, token: str
) -> Tuple[Optional[pd.DataFrame], Optional[pd.DataFrame]]:
    """Fetch the detail page once and split it into compounds and targets.

    Each side is ``None`` when its block is missing or empty; one side
    failing does not affect the other.
    """
    herb = identity.display_name
    params = {"qr": identity.canonical_name, "qsr": "herb_en_name", "token": token}
    try:
        page = fetcher.fetch(SEARCH_URL, params=params)
    except TransportError as exc:
        logger.warning("[FAIL] %s: detail page unavailable (%s)", herb, exc)
        return None, None

    compounds = targets = None
    rows = _extract_side(page, COMPOUNDS_BLOCK, herb, "compounds")
    if rows is not None:
        compounds = normalize_records_df(rows, herb, COMPOUND_COLUMNS, COMPOUND_NUMERIC, COMPOUND_KEY)
    rows = _extract_side(page, TARGETS_BLOCK, herb, "targets")
    if rows is not None:
        targets = normalize_records_df(rows, herb, TARGET_COLUMNS, TARGET_NUMERIC, TARGET_KEY, TARGET_FLAGS)
    return compounds, targets


def run_herb(
    fetcher: RateLimitedFetcher, name: str, token: str, match_aliases: bool = False
) -> HerbResult:
    identity = resolve_herb(fetcher, name, token, match_aliases)
    if not identity.found:
        return HerbResult(herb_name=identity.display_name, message="not found in TCMSP")

    compounds, targets = retrieve_herb(fetcher, identity, token)
    n_compounds = 0 if compounds is None else len(compounds)
    n_targets = 0 if targets is None else len(targets)
    if compounds is None and targets is None:
        message = f"no data for {identity.canonical_name}"
    else:
        message = f"{n_compounds} compounds, {n_targets} targets"
    logger.info("[OK] %s (%s): %s", identity.display_name, identity.canonical_name, message)
    return HerbResult(
        herb_name=identity.display_name,
        compounds=compounds,
        targets=targets,
        found=True,
        message=message,
    )
