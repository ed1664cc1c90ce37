"""Dataset loading for tlshmatch.

The hash database is a flat CSV file with a header row, then one row per
known file:

    tool, file, version, tlsh, sha256, imphash, date_added, intel

Rows that can't be used (too few fields, missing or malformed TLSH) are
skipped. Only a missing or short header fails the whole load.
"""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Iterator, Sequence, Tuple

from .hashing import DecodeError, FuzzyHash, decode

logger = logging.getLogger(__name__)

EXPECTED_COLUMNS = 8
NOT_APPLICABLE = "N/A"

# Column positions in the dataset.
COL_TOOL = 0
COL_FILE = 1
COL_VERSION = 2
COL_TLSH = 3
COL_SHA256 = 4
COL_IMPHASH = 5
COL_DATE = 6
COL_INTEL = 7


class LoadError(Exception):
    """Raised when the dataset is structurally unreadable."""


@dataclass(frozen=True)
class HashRecord:
    """One known file from the dataset."""

    tool: str
    file_name: str
    version: str
    fuzzy_hash: FuzzyHash
    sha256: str
    imphash: str
    date_added: str
    intel: str
    row_index: int  # 0-based position among data rows


@dataclass(frozen=True)
class RecordStore:
    """Immutable, ordered collection of usable records."""

    records: Tuple[HashRecord, ...] = ()
    skipped: int = 0

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[HashRecord]:
        return iter(self.records)


def load_records(
    rows: Iterable[Sequence[str]],
    decoder: Callable[[str], FuzzyHash] = decode,
) -> RecordStore:
    """Build a :class:`RecordStore` from raw CSV rows.

    Parameters
    ----------
    rows:
        Header row first, then data rows.
    decoder:
        Turns the TLSH column into a :class:`FuzzyHash`. Must raise
        :class:`DecodeError` on malformed text.

    Returns
    -------
    RecordStore
        Usable records in dataset order.

    Raises
    ------
    LoadError
        If there is no header or it has fewer than 8 columns.
    """

    it = iter(rows)
    header = next(it, None)
    if header is None:
        raise LoadError("dataset is empty (no header row)")
    if len(header) < EXPECTED_COLUMNS:
        raise LoadError(
            f"CSV header has fewer columns than expected: got {len(header)}, "
            f"want at least {EXPECTED_COLUMNS}"
        )

    records = []
    skipped = 0
    for i, row in enumerate(it):
        if len(row) < EXPECTED_COLUMNS:
            logger.debug("row %d: skipped, %d fields", i, len(row))
            skipped += 1
            continue

        text = row[COL_TLSH].strip()
        if not text or text == NOT_APPLICABLE:
            logger.debug("row %d: skipped, no TLSH value", i)
            skipped += 1
            continue

        try:
            h = decoder(text)
        except DecodeError as e:
            logger.debug("row %d: skipped, %s", i, e)
            skipped += 1
            continue

        records.append(
            HashRecord(
                tool=row[COL_TOOL],
                file_name=row[COL_FILE],
                version=row[COL_VERSION],
                fuzzy_hash=h,
                sha256=row[COL_SHA256],
                imphash=row[COL_IMPHASH],
                date_added=row[COL_DATE],
                intel=row[COL_INTEL],
                row_index=i,
            )
        )

    logger.info("loaded %d records (%d rows skipped)", len(records), skipped)
    return RecordStore(records=tuple(records), skipped=skipped)


def read_database(path: Path) -> RecordStore:
    """Load the hash database from a CSV file."""

    path = Path(path)
    try:
        with path.open("r", newline="", encoding="utf-8") as f:
            return load_records(csv.reader(f))
    except csv.Error as e:
        raise LoadError(f"malformed CSV in {path}: {e}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise LoadError(f"cannot read {path}: {e}") from e
