"""Batch conversion of Tripos ``.mol2`` structure files to SMILES."""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Union

import pandas as pd
from rdkit import Chem, RDLogger

from .config import CONVERT_COLUMNS, MOL2_SUFFIX
from .errors import ConversionError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _is_mol2(path: Path) -> bool:
    return path.suffix.lower() == MOL2_SUFFIX


def collect_mol2_files(inputs: Union[PathLike, Iterable[PathLike]], recursive: bool = False) -> List[Path]:
    """Expand files and directories into the ordered list of files to convert.

    Directories contribute their ``.mol2`` files (sorted), descending into
    sub-directories only when ``recursive`` is set. Explicit file paths with
    another extension are skipped; explicit paths that do not exist are kept
    so the conversion records them as failures.
    """
    if isinstance(inputs, (str, Path)):
        inputs = [inputs]
    files: List[Path] = []
    for item in inputs:
        path = Path(item)
        if path.is_dir():
            pattern = "**/*" if recursive else "*"
            files.extend(sorted(p for p in path.glob(pattern) if p.is_file() and _is_mol2(p)))
        elif _is_mol2(path):
            files.append(path)
        else:
            logger.info("[WARN] skipping %s: not a %s file", path, MOL2_SUFFIX)
    return files


def mol2_to_smiles(path: PathLike) -> str:
    path = Path(path)
    if not path.is_file():
        raise ConversionError(f"file not found: {path}")
    RDLogger.DisableLog("rdApp.*")
    try:
        mol = Chem.MolFromMol2File(str(path), sanitize=True, removeHs=True)
    except Exception as exc:
        raise ConversionError(f"RDKit failed on {path.name}: {exc}") from exc
    finally:
        RDLogger.EnableLog("rdApp.*")
    if mol is None:
        raise ConversionError(f"RDKit could not parse {path.name}")
    smiles = Chem.MolToSmiles(mol)
    if not smiles:
        raise ConversionError(f"empty SMILES for {path.name}")
    return smiles


def convert_mol2_to_smiles(
    inputs: Union[PathLike, Iterable[PathLike]],
    recursive: bool = False,
    output_csv: Optional[PathLike] = None,
) -> pd.DataFrame:
    rows = []
    for path in collect_mol2_files(inputs, recursive=recursive):
        try:
            smiles = mol2_to_smiles(path)
        except ConversionError as exc:
            logger.info("[FAIL] %s: %s", path.name, exc)
            rows.append({"file_name": path.name, "smiles": None, "success": False, "message": str(exc)})
            continue
        rows.append({"file_name": path.name, "smiles": smiles, "success": True, "message": "ok"})

    df = pd.DataFrame(rows, columns=CONVERT_COLUMNS)
    if output_csv is not None:
        output_csv = Path(output_csv)
        output_csv.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(output_csv, index=False)
        logger.info("[SAVED] %s", output_csv)
    ok = int(df["success"].sum()) if len(df) else 0
    logger.info("[OK] converted %d/%d files", ok, len(df))
    return df
