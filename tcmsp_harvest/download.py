import logging
from pathlib import Path
from typing import Iterable, List, Union

import pandas as pd

from .config import DOWNLOAD_COLUMNS, MOL2_SUFFIX, MOL2_URL
from .errors import DownloadError, TransportError
from .fetcher import RateLimitedFetcher

logger = logging.getLogger(__name__)


def mol2_url(mol_id: str, base_url: str = MOL2_URL) -> str:
    return f"{base_url.rstrip('/')}/{mol_id}{MOL2_SUFFIX}"


def download_one(
    fetcher: RateLimitedFetcher, mol_id: str, save_dir: Path, base_url: str = MOL2_URL
) -> Path:
    url = mol2_url(mol_id, base_url)
    try:
        body = fetcher.get(url)
    except TransportError as exc:
        raise DownloadError(str(exc)) from exc
    out_path = save_dir / f"{mol_id}{MOL2_SUFFIX}"
    try:
        out_path.write_bytes(body)
    except OSError as exc:
        if out_path.is_file():
            out_path.unlink()
        raise DownloadError(f"cannot write {out_path}: {exc}") from exc
    return out_path


def download_mol2(
    mol_ids: Iterable[str],
    save_dir: Union[str, Path],
    fetcher: RateLimitedFetcher,
    base_url: str = MOL2_URL,
) -> pd.DataFrame:
    """Save ``<save_dir>/<MOL_ID>.mol2`` for each id, one row per attempt."""
    save_dir = Path(save_dir)
    save_dir.mkdir(parents=True, exist_ok=True)

    rows: List[dict] = []
    seen = set()
    for raw in mol_ids:
        mol_id = str(raw or "").strip()
        if not mol_id or mol_id in seen:
            continue
        seen.add(mol_id)
        try:
            path = download_one(fetcher, mol_id, save_dir, base_url)
        except DownloadError as exc:
            logger.info("[FAIL] %s: %s", mol_id, exc)
            rows.append({"mol_id": mol_id, "path": None, "success": False, "message": str(exc)})
            continue
        logger.info("[SAVED] %s", path)
        rows.append({"mol_id": mol_id, "path": str(path), "success": True, "message": "ok"})
    return pd.DataFrame(rows, columns=DOWNLOAD_COLUMNS)
