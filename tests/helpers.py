from __future__ import annotations

import csv
import random
from pathlib import Path
from typing import List, Sequence


HEADER = [
    "Repository Name",
    "File Name",
    "Version",
    "TLSH Hash",
    "SHA256 Hash",
    "Imphash",
    "Date Added",
    "Intel",
]

# Structurally valid digests: "T1" + 70 hex characters.
H1 = "T1" + ("0123456789ABCDEF" * 5)[:70]
H2 = "T1" + ("FEDCBA9876543210" * 5)[:70]
H3 = "T1" + ("00112233445566778899AABBCCDDEEFF" * 3)[:70]


def random_bytes(seed: int, size: int = 4096) -> bytes:
    rng = random.Random(seed)
    return bytes(rng.getrandbits(8) for _ in range(size))


def row(tool: str, tlsh_text: str, sha256: str, file_name: str = "tool.exe") -> List[str]:
    return [tool, file_name, "1.0", tlsh_text, sha256, "", "2024-01-01", ""]


def write_db(path: Path, rows: Sequence[Sequence[str]], header: Sequence[str] = HEADER) -> Path:
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        writer.writerows(rows)
    return path
