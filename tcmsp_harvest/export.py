import logging
import re
from pathlib import Path
from typing import Dict, Union

import pandas as pd

from .pipeline import AggregateTables

logger = logging.getLogger(__name__)


def sanitize_filename(name: str) -> str:
    name = re.sub(r"\s+", "_", name.strip())
    name = re.sub(r"[\\/:*?\"<>|]", "_", name)
    name = re.sub(r"[^0-9A-Za-z_\u4e00-\u9fff-]+", "_", name)
    return name.strip("_") or "herbs"


def sheet_name(name: str) -> str:
    # Excel caps sheet names at 31 characters.
    return re.sub(r"[^0-9A-Za-z_]+", "_", name)[:31] or "sheet"


def save_tables_xlsx(sheets: Dict[str, pd.DataFrame], out_path: Union[str, Path]) -> Path:
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(out_path, engine="openpyxl") as writer:
        for name, df in sheets.items():
            df.to_excel(writer, index=False, sheet_name=sheet_name(name))
    logger.info("[SAVED] %s", out_path)
    return out_path


def save_tables_csv(tables: AggregateTables, directory: Union[str, Path], prefix: str = "tcmsp") -> Dict[str, Path]:
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    prefix = sanitize_filename(prefix)
    paths = {}
    for label in ("compounds", "targets", "outcomes"):
        path = directory / f"{prefix}_{label}.csv"
        getattr(tables, label).to_csv(path, index=False, encoding="utf-8-sig")
        logger.info("[SAVED] %s", path)
        paths[label] = path
    return paths
