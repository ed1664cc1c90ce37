"""I/O helpers for tlshmatch.

This module handles:
- downloading the hash database (single request, no retries)
- rendering match results as text or as a five-field CSV line
"""

from __future__ import annotations

import csv
import io
import logging
import os
from pathlib import Path
from typing import Optional

import requests
from tqdm import tqdm

from .hashing import encode
from .matching import MatchResult

logger = logging.getLogger(__name__)

DEFAULT_DB_URL = (
    "https://raw.githubusercontent.com/Magonia-Research/CelesTLSH-Hashes/main/"
    "all_attack_tools_hashes.csv"
)
DEFAULT_DB_PATH = Path("tlsh_hashes.csv")
DEFAULT_TIMEOUT = 30  # seconds


class DownloadError(Exception):
    """Raised when the database can't be fetched or saved."""


def _content_length(headers) -> Optional[int]:
    """Return the declared body size, or None if missing or unparseable."""
    try:
        n = int(headers.get("content-length", 0))
    except (TypeError, ValueError):
        return None
    return n if n > 0 else None


def download_database(
    dest: Path,
    url: str = DEFAULT_DB_URL,
    timeout: float = DEFAULT_TIMEOUT,
    progress: bool = True,
) -> Path:
    """Download the hash database CSV to *dest*.

    The body is streamed to ``<dest>.part`` and renamed into place once
    complete, so an interrupted download never leaves a truncated database.

    Parameters
    ----------
    dest:
        Output path. Parent folders are created.
    url:
        Source URL.
    timeout:
        Connect/read timeout in seconds.
    progress:
        Show a tqdm progress bar on stderr.

    Returns
    -------
    Path
        The written file.
    """

    dest = Path(dest)
    dest.parent.mkdir(parents=True, exist_ok=True)
    part = dest.with_name(dest.name + ".part")

    logger.info("downloading %s -> %s", url, dest)
    try:
        with requests.get(url, timeout=timeout, stream=True) as resp:
            resp.raise_for_status()
            total = _content_length(resp.headers)
            with part.open("wb") as f, tqdm(
                total=total,
                unit="B",
                unit_scale=True,
                desc="Downloading",
                disable=not progress,
            ) as bar:
                for chunk in resp.iter_content(chunk_size=8192):
                    if chunk:
                        f.write(chunk)
                        bar.update(len(chunk))
        os.replace(part, dest)
    except requests.RequestException as e:
        part.unlink(missing_ok=True)
        raise DownloadError(f"failed to download {url}: {e}") from e
    except OSError as e:
        part.unlink(missing_ok=True)
        raise DownloadError(f"failed to save {dest}: {e}") from e

    return dest


def format_match_csv(result: MatchResult) -> str:
    """Render a match as ``tool,file,version,sha256,distance``.

    The field order is fixed; downstream scripts depend on it.
    """

    if result.record is None:
        raise ValueError("no record to format")
    r = result.record
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="")
    writer.writerow([r.tool, r.file_name, r.version, r.sha256, result.distance])
    return buf.getvalue()


def format_match_text(result: MatchResult) -> str:
    """Render a match as a short human-readable report."""

    if result.record is None:
        return "No matches found in the database"
    r = result.record
    lines = [
        "Best match found:",
        f"  Tool: {r.tool}",
        f"  File: {r.file_name}",
        f"  SHA256: {r.sha256}",
        f"  Distance: {result.distance}",
    ]
    if r.version:
        lines.insert(3, f"  Version: {r.version}")
    if r.intel:
        lines.append(f"  Intel: {r.intel}")
    lines.append(f"  TLSH: {encode(r.fuzzy_hash)}")
    return "\n".join(lines)
