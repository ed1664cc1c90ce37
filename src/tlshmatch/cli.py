"""tlshmatch CLI.

This is the entry point used by:
- `python -m tlshmatch`
- the console script `tlshmatch` (installed via pyproject.toml)

Examples
--------
tlshmatch --hash ./sample.exe
tlshmatch --distance T1A4F1... T1B2C3...
tlshmatch --download --db ./data/tlsh_hashes.csv
tlshmatch --check T1A4F1... --db ./data/tlsh_hashes.csv --csv

Note that ``-h`` selects hash mode; help is ``--help`` only.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from .hashing import FuzzyHashError, decode, distance, encode, hash_file
from .io_utils import (
    DEFAULT_DB_PATH,
    DEFAULT_DB_URL,
    DownloadError,
    download_database,
    format_match_csv,
    format_match_text,
)
from .matching import find_best_match
from .records import LoadError, read_database

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="tlshmatch",
        description=(
            "Calculate and compare TLSH fuzzy hashes, and look them up in a "
            "CSV database of known attack-tool hashes."
        ),
        add_help=False,
    )
    modes = p.add_mutually_exclusive_group()
    modes.add_argument(
        "-h",
        "--hash",
        dest="mode",
        action="store_const",
        const="hash",
        help="Calculate the TLSH hash of FILE.",
    )
    modes.add_argument(
        "-d",
        "--distance",
        dest="mode",
        action="store_const",
        const="distance",
        help="Calculate the distance between two TLSH hashes.",
    )
    modes.add_argument(
        "-dl",
        "--download",
        dest="mode",
        action="store_const",
        const="download",
        help="Download the CSV database of TLSH hashes.",
    )
    modes.add_argument(
        "-c",
        "--check",
        dest="mode",
        action="store_const",
        const="check",
        help="Find the closest match for a TLSH hash in the database.",
    )
    p.add_argument(
        "args",
        nargs="*",
        metavar="ARG",
        help="FILE for --hash, HASH1 HASH2 for --distance, HASH for --check.",
    )
    p.add_argument(
        "--db",
        type=Path,
        default=DEFAULT_DB_PATH,
        help=f"Path to the CSV database file (default: {DEFAULT_DB_PATH}).",
    )
    p.add_argument(
        "--url",
        default=DEFAULT_DB_URL,
        help="Where --download fetches the database from.",
    )
    p.add_argument(
        "--max-distance",
        type=int,
        default=None,
        help="With --check: report no match if the closest record is farther than this.",
    )
    p.add_argument(
        "--quiet",
        action="store_true",
        help="Output only the hash, distance, or SHA256 value.",
    )
    p.add_argument(
        "--csv",
        action="store_true",
        help="Output --check results as tool,file,version,sha256,distance.",
    )
    p.add_argument(
        "--verbose",
        action="store_true",
        help="Log debug details (skipped database rows, etc.) to stderr.",
    )
    p.add_argument("--help", action="help", help="Show this help message and exit.")
    return p


_VERBS = {
    "hash": "calculate TLSH hash",
    "distance": "calculate TLSH distance",
    "download": "download CSV database",
    "check": "check TLSH against database",
}


def _usage_error(parser: argparse.ArgumentParser, msg: str) -> int:
    print(f"Error: {msg}\n", file=sys.stderr)
    parser.print_help()
    return 1


def _run_hash(path: Path, quiet: bool) -> None:
    h = hash_file(path)
    if quiet:
        print(encode(h))
    else:
        print(f"TLSH hash of {path}: {encode(h)}")


def _run_distance(text1: str, text2: str, quiet: bool) -> None:
    try:
        h1 = decode(text1)
    except FuzzyHashError as e:
        raise FuzzyHashError(f"error parsing first hash: {e}") from e
    try:
        h2 = decode(text2)
    except FuzzyHashError as e:
        raise FuzzyHashError(f"error parsing second hash: {e}") from e

    d = distance(h1, h2)
    if quiet:
        print(d)
    else:
        print(f"Distance between hashes: {d}")


def _run_download(db: Path, url: str, quiet: bool) -> None:
    download_database(db, url=url, progress=not quiet)
    if not quiet:
        print(f"CSV database downloaded to {db}")


def _run_check(
    text: str,
    db: Path,
    max_distance: Optional[int],
    quiet: bool,
    as_csv: bool,
) -> None:
    if not db.exists():
        raise LoadError(f"database file {db} does not exist; download it first with --download")

    store = read_database(db)
    query = decode(text)
    res = find_best_match(query, store, max_distance=max_distance)

    if res.status != "matched":
        if res.record is not None:
            logger.info(
                "closest record %s/%s at distance %d exceeds --max-distance %d",
                res.record.tool,
                res.record.file_name,
                res.distance,
                max_distance,
            )
        if not quiet:
            print("No matches found in the database")
        return

    if as_csv:
        print(format_match_csv(res))
    elif quiet:
        print(res.record.sha256)
    else:
        print(format_match_text(res))


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run tlshmatch.

    Returns
    -------
    int
        Process exit code (0 success).
    """
    parser = _build_parser()
    args = parser.parse_intermixed_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    rest: List[str] = list(args.args)

    if args.mode is None:
        parser.print_help()
        return 0
    if args.mode == "hash" and len(rest) < 1:
        return _usage_error(parser, "No file path provided for hash calculation")
    if args.mode == "distance" and len(rest) < 2:
        return _usage_error(parser, "Two TLSH hashes are required for distance calculation")
    if args.mode == "check" and len(rest) < 1:
        return _usage_error(parser, "No TLSH hash provided for checking against the database")

    try:
        if args.mode == "hash":
            _run_hash(Path(rest[0]), args.quiet)
        elif args.mode == "distance":
            _run_distance(rest[0], rest[1], args.quiet)
        elif args.mode == "download":
            _run_download(args.db, args.url, args.quiet)
        else:
            _run_check(rest[0], args.db, args.max_distance, args.quiet, args.csv)
    except (FuzzyHashError, LoadError, DownloadError, OSError) as e:
        raise SystemExit(f"Error: failed to {_VERBS[args.mode]}: {e}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
