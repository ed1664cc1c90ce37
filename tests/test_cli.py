from __future__ import annotations

import logging
from pathlib import Path

import pytest

from tlshmatch import cli
from tlshmatch.hashing import decode, distance, encode, hash_bytes

from .helpers import H1, H2, random_bytes, write_db


def test_no_mode_prints_usage(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main([]) == 0

    assert "--check" in capsys.readouterr().out


def test_hash_mode(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    data = random_bytes(7)
    p = tmp_path / "sample.bin"
    p.write_bytes(data)

    assert cli.main(["-h", str(p)]) == 0

    out = capsys.readouterr().out.strip()
    assert out == f"TLSH hash of {p}: {encode(hash_bytes(data))}"


def test_hash_mode_quiet(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    data = random_bytes(8)
    p = tmp_path / "sample.bin"
    p.write_bytes(data)

    assert cli.main(["--hash", str(p), "--quiet"]) == 0

    assert capsys.readouterr().out.strip() == encode(hash_bytes(data))


def test_hash_mode_without_path(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["-h"]) == 1

    assert "No file path provided" in capsys.readouterr().err


def test_hash_mode_small_file_fails(tmp_path: Path) -> None:
    p = tmp_path / "tiny.txt"
    p.write_bytes(b"hi")

    with pytest.raises(SystemExit) as exc:
        cli.main(["-h", str(p)])

    assert "failed to calculate TLSH hash" in str(exc.value.code)


def test_distance_mode(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["-d", H1, H1]) == 0

    assert capsys.readouterr().out.strip() == "Distance between hashes: 0"


def test_distance_mode_quiet(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["--distance", H1, H2, "--quiet"]) == 0

    assert capsys.readouterr().out.strip() == str(distance(decode(H1), decode(H2)))


def test_distance_mode_bad_hash() -> None:
    with pytest.raises(SystemExit) as exc:
        cli.main(["-d", H1, "N/A"])

    assert "second hash" in str(exc.value.code)


def test_distance_mode_needs_two_hashes() -> None:
    assert cli.main(["-d", H1]) == 1


def test_check_mode(db_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["-c", H1, "--db", str(db_path)]) == 0

    out = capsys.readouterr().out
    assert "Best match found:" in out
    assert "  Tool: X" in out
    assert "  Distance: 0" in out


def test_check_mode_csv(db_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["--check", H1, "--db", str(db_path), "--csv"]) == 0

    assert capsys.readouterr().out.strip() == "X,tool.exe,1.0,abc123,0"


def test_check_mode_quiet(db_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["-c", H2, "--db", str(db_path), "--quiet"]) == 0

    assert capsys.readouterr().out.strip() == "def456"


def test_check_mode_max_distance(db_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    query = "T1" + ("13579BDF02468ACE" * 5)[:70]
    assert cli.main(["-c", query, "--db", str(db_path), "--max-distance", "0"]) == 0

    assert capsys.readouterr().out.strip() == "No matches found in the database"


def test_check_mode_empty_db(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    db = write_db(tmp_path / "db.csv", [])
    assert cli.main(["-c", H1, "--db", str(db)]) == 0
    assert capsys.readouterr().out.strip() == "No matches found in the database"

    assert cli.main(["-c", H1, "--db", str(db), "--quiet"]) == 0
    assert capsys.readouterr().out == ""


def test_check_mode_missing_db(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as exc:
        cli.main(["-c", H1, "--db", str(tmp_path / "nope.csv")])

    assert "download it first with --download" in str(exc.value.code)


def test_check_mode_bad_query(db_path: Path) -> None:
    with pytest.raises(SystemExit) as exc:
        cli.main(["-c", "TNULL", "--db", str(db_path)])

    assert "failed to check TLSH against database" in str(exc.value.code)


def test_download_mode(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    seen = {}

    def fake_download(dest: Path, url: str, progress: bool) -> Path:
        seen.update(dest=dest, url=url, progress=progress)
        return dest

    monkeypatch.setattr(cli, "download_database", fake_download)
    dest = tmp_path / "db.csv"

    assert cli.main(["-dl", "--db", str(dest), "--url", "https://example.test/x.csv"]) == 0

    assert seen == {"dest": dest, "url": "https://example.test/x.csv", "progress": True}
    assert capsys.readouterr().out.strip() == f"CSV database downloaded to {dest}"


def test_options_between_positionals(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["-d", H1, "--quiet", H2]) == 0

    assert capsys.readouterr().out.strip() == str(distance(decode(H1), decode(H2)))


def test_verbose_enables_debug_logging(monkeypatch: pytest.MonkeyPatch, db_path: Path) -> None:
    seen = {}

    def fake_basic_config(**kwargs: object) -> None:
        seen.update(kwargs)

    monkeypatch.setattr(cli.logging, "basicConfig", fake_basic_config)

    assert cli.main(["-c", H1, "--db", str(db_path), "--verbose", "--quiet"]) == 0
    assert seen["level"] == logging.DEBUG

    assert cli.main(["-c", H1, "--db", str(db_path), "--quiet"]) == 0
    assert seen["level"] == logging.WARNING
