import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from .analysis import herb_summary, link_targets, screen_compounds, shared_compounds, target_frequency
from .config import DEFAULT_INTERVAL_SEC, DL_THRESHOLD, INTERVAL_ENV, OB_THRESHOLD, TOKEN_ENV
from .convert import convert_mol2_to_smiles
from .download import download_mol2
from .errors import ConfigError, ExtractionError, TcmspError
from .export import save_tables_xlsx, sanitize_filename
from .fetcher import RateLimitedFetcher
from .pipeline import get_tcmsp_info
from .session_token import fetch_token

logger = logging.getLogger("tcmsp_harvest")


def _default_interval() -> float:
    raw = os.environ.get(INTERVAL_ENV, "").strip()
    if not raw:
        return DEFAULT_INTERVAL_SEC
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{INTERVAL_ENV} must be a number, got {raw!r}") from None


def _resolve_token(args: argparse.Namespace, fetcher: RateLimitedFetcher) -> str:
    token = (args.token or os.environ.get(TOKEN_ENV, "")).strip()
    if token:
        return token
    logger.info("[GET] no token given, reading one from the search page")
    return fetch_token(fetcher)


def _statistics(tables, ob: float, dl: float) -> dict:
    screened = screen_compounds(tables.compounds, ob, dl)
    screened_targets = link_targets(screened, tables.targets)
    return {
        "screened_compounds": screened,
        "screened_targets": screened_targets,
        "summary": herb_summary(tables, ob, dl),
        "shared_compounds": shared_compounds(screened),
        "target_frequency": target_frequency(screened_targets),
    }


def cmd_fetch(args: argparse.Namespace) -> int:
    with RateLimitedFetcher(interval_sec=args.interval) as fetcher:
        token = _resolve_token(args, fetcher)
        tables = get_tcmsp_info(args.herbs, token, fetcher=fetcher, match_aliases=args.match_aliases)

    sheets = {
        "compounds": tables.compounds,
        "targets": tables.targets,
        "outcomes": tables.outcomes,
    }
    if args.screen and not tables.compounds.empty:
        try:
            sheets.update(_statistics(tables, args.ob, args.dl))
        except ExtractionError as exc:
            logger.warning("[WARN] statistics skipped: %s", exc)

    out = args.output or Path(f"{sanitize_filename('_'.join(args.herbs))}_TCMSP.xlsx")
    save_tables_xlsx(sheets, out)
    return 0


def cmd_download(args: argparse.Namespace) -> int:
    with RateLimitedFetcher(interval_sec=args.interval) as fetcher:
        status = download_mol2(args.mol_ids, args.save_dir, fetcher)
    failed = int((~status["success"].astype(bool)).sum())
    logger.info("[OK] %d downloaded, %d failed", len(status) - failed, failed)
    return 0


def cmd_convert(args: argparse.Namespace) -> int:
    convert_mol2_to_smiles(args.paths, recursive=args.recursive, output_csv=args.output)
    return 0


def cmd_token(args: argparse.Namespace) -> int:
    with RateLimitedFetcher(interval_sec=args.interval) as fetcher:
        print(fetch_token(fetcher))
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="tcmsp-harvest",
        description="Fetch herb compounds and targets from TCMSP, download mol2 files, convert mol2 to SMILES.",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Log every request.")
    p.add_argument(
        "--interval",
        type=float,
        default=None,
        help=f"Seconds between requests (default {DEFAULT_INTERVAL_SEC}, or ${INTERVAL_ENV}).",
    )
    sub = p.add_subparsers(dest="command", required=True)

    f = sub.add_parser("fetch", help="Compounds and targets for one or more herbs.")
    f.add_argument("herbs", nargs="+", help="Herb names, e.g. 黄芪 附子")
    f.add_argument("--token", help=f"TCMSP search token (default ${TOKEN_ENV}, else read from the site).")
    f.add_argument("--output", type=Path, help="Excel file to write.")
    f.add_argument(
        "--match-aliases",
        action="store_true",
        help="Also accept pinyin or English herb names (case-insensitive).",
    )
    f.add_argument("--screen", action="store_true", help="Add ADME-screened sheets and statistics.")
    f.add_argument("--ob", type=float, default=OB_THRESHOLD, help="Minimum oral bioavailability (%%).")
    f.add_argument("--dl", type=float, default=DL_THRESHOLD, help="Minimum drug-likeness.")
    f.set_defaults(func=cmd_fetch)

    d = sub.add_parser("download", help="Download mol2 structures by MOL_ID.")
    d.add_argument("mol_ids", nargs="+")
    d.add_argument("--save-dir", type=Path, default=Path("mol2"))
    d.set_defaults(func=cmd_download)

    c = sub.add_parser("convert", help="Convert mol2 files to SMILES.")
    c.add_argument("paths", nargs="+", help="mol2 files or directories.")
    c.add_argument("--recursive", action="store_true", help="Descend into sub-directories.")
    c.add_argument("--output", type=Path, help="CSV file to write.")
    c.set_defaults(func=cmd_convert)

    t = sub.add_parser("token", help="Print a fresh search token.")
    t.set_defaults(func=cmd_token)
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(message)s")
    try:
        if args.interval is None:
            args.interval = _default_interval()
        return args.func(args)
    except TcmspError as exc:
        logger.error("[FAIL] %s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
