"""Screening and cross-reference statistics over aggregated TCMSP tables."""

from typing import Optional

import pandas as pd

from .config import COMPOUND_KEY, DL_THRESHOLD, HERB_COLUMN, OB_THRESHOLD
from .errors import ExtractionError
from .pipeline import AggregateTables


def _require_columns(df: pd.DataFrame, columns, what: str) -> None:
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise ExtractionError(f"{what} table has no {', '.join(missing)} column")


def screen_compounds(
    compounds: pd.DataFrame,
    ob_min: Optional[float] = OB_THRESHOLD,
    dl_min: Optional[float] = DL_THRESHOLD,
) -> pd.DataFrame:
    """Keep compounds with ob >= ob_min and dl >= dl_min (None skips a test)."""
    required = [c for c, limit in (("ob", ob_min), ("dl", dl_min)) if limit is not None]
    _require_columns(compounds, required, "compound")
    df = compounds
    if ob_min is not None:
        df = df[pd.to_numeric(df["ob"], errors="coerce") >= ob_min]
    if dl_min is not None:
        df = df[pd.to_numeric(df["dl"], errors="coerce") >= dl_min]
    return df.reset_index(drop=True)


def unique_compounds(compounds: pd.DataFrame) -> pd.DataFrame:
    return compounds.drop_duplicates(subset=[COMPOUND_KEY], keep="first").reset_index(drop=True)


def link_targets(compounds: pd.DataFrame, targets: pd.DataFrame) -> pd.DataFrame:
    """Targets of the given compounds, matched per herb on MOL_ID."""
    if targets.empty:
        return targets.reset_index(drop=True)
    _require_columns(compounds, [HERB_COLUMN, COMPOUND_KEY], "compound")
    _require_columns(targets, [HERB_COLUMN, COMPOUND_KEY], "target")
    keys = compounds[[HERB_COLUMN, COMPOUND_KEY]].drop_duplicates()
    return targets.merge(keys, on=[HERB_COLUMN, COMPOUND_KEY], how="inner")


def shared_compounds(compounds: pd.DataFrame) -> pd.DataFrame:
    """Molecules found in more than one herb, most widely shared first."""
    if compounds.empty:
        return pd.DataFrame(columns=[COMPOUND_KEY, "molecule_name", "n_herbs", "herbs"])
    name_col = "molecule_name" if "molecule_name" in compounds.columns else COMPOUND_KEY
    grouped = (
        compounds.groupby(COMPOUND_KEY, sort=False)
        .agg(
            molecule_name=(name_col, "first"),
            n_herbs=(HERB_COLUMN, "nunique"),
            herbs=(HERB_COLUMN, lambda s: ", ".join(dict.fromkeys(s))),
        )
        .reset_index()
    )
    shared = grouped[grouped["n_herbs"] > 1]
    return shared.sort_values("n_herbs", ascending=False, kind="stable").reset_index(drop=True)


def target_frequency(targets: pd.DataFrame) -> pd.DataFrame:
    """How many herbs and molecules hit each target."""
    if targets.empty:
        return pd.DataFrame(columns=["target_name", "n_herbs", "n_molecules"])
    _require_columns(targets, ["target_name", HERB_COLUMN, COMPOUND_KEY], "target")
    freq = (
        targets.dropna(subset=["target_name"])
        .groupby("target_name", sort=False)
        .agg(n_herbs=(HERB_COLUMN, "nunique"), n_molecules=(COMPOUND_KEY, "nunique"))
        .reset_index()
    )
    return freq.sort_values(["n_herbs", "n_molecules"], ascending=False, kind="stable").reset_index(drop=True)


def herb_summary(
    tables: AggregateTables,
    ob_min: Optional[float] = OB_THRESHOLD,
    dl_min: Optional[float] = DL_THRESHOLD,
) -> pd.DataFrame:
    compounds = tables.compounds
    targets = tables.targets
    screened = screen_compounds(compounds, ob_min, dl_min) if not compounds.empty else compounds
    if not targets.empty:
        _require_columns(targets, ["target_name"], "target")
    rows = []
    for herb in tables.outcomes[HERB_COLUMN]:
        herb_targets = targets[targets[HERB_COLUMN] == herb] if not targets.empty else targets
        rows.append(
            {
                HERB_COLUMN: herb,
                "compounds": int((compounds[HERB_COLUMN] == herb).sum()) if not compounds.empty else 0,
                "screened_compounds": int((screened[HERB_COLUMN] == herb).sum()) if not screened.empty else 0,
                "targets": len(herb_targets),
                "unique_targets": int(herb_targets["target_name"].nunique()) if len(herb_targets) else 0,
            }
        )
    return pd.DataFrame(
        rows, columns=[HERB_COLUMN, "compounds", "screened_compounds", "targets", "unique_targets"]
    )
