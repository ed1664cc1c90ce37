from __future__ import annotations

from pathlib import Path

import pytest

from .helpers import H1, H2, row, write_db


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return write_db(
        tmp_path / "tlsh_hashes.csv",
        [
            row("X", H1, "abc123"),
            row("Y", H2, "def456"),
            row("Z", "N/A", "000000"),
        ],
    )
