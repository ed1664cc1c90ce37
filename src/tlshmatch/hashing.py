"""Hashing utilities for tlshmatch.

tlshmatch represents a file by its **TLSH** (Trend Micro Locality Sensitive
Hash) digest. Unlike a cryptographic hash, small changes to the input give
small changes to the digest, so two digests can be scored for similarity.

Implementation notes
--------------------
The digest itself comes from the ``py-tlsh`` library (``import tlsh``).
This module only wraps it:

1) ``hash_bytes`` / ``hash_file`` build a digest from raw bytes
2) ``decode`` / ``encode`` convert between text and :class:`FuzzyHash`
3) ``distance`` scores two digests (0 = identical, larger = less similar)

The textual form is a ``T1`` header followed by 70 hex characters (the
default 128-bucket, 1-byte checksum layout). The header is optional on
input and always written on output.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

import tlsh


VERSION_TOKEN = "T1"
DIGEST_HEX_LEN = 70

_TLSH_RE = re.compile(r"^(?:[Tt]1)?([0-9A-Fa-f]{%d})$" % DIGEST_HEX_LEN)


class FuzzyHashError(ValueError):
    """Base class for fuzzy hash failures."""


class DecodeError(FuzzyHashError):
    """Raised when text is not a well-formed TLSH digest."""


class DigestError(FuzzyHashError):
    """Raised when TLSH can't produce a digest for the given data."""


@dataclass(frozen=True)
class FuzzyHash:
    """A decoded TLSH digest."""

    version: str
    digest: str  # 70 uppercase hex chars

    def __str__(self) -> str:
        return encode(self)


def decode(text: str) -> FuzzyHash:
    """Parse a TLSH digest from its textual form.

    Parameters
    ----------
    text:
        Digest text, with or without the ``T1`` header. Hex is accepted in
        either case; surrounding whitespace is ignored.

    Returns
    -------
    FuzzyHash
        The decoded digest.

    Raises
    ------
    DecodeError
        If *text* is empty, a placeholder such as ``N/A`` or ``TNULL``,
        truncated, or not hex.
    """

    if not isinstance(text, str):
        raise DecodeError(f"expected a string, got {type(text).__name__}")
    m = _TLSH_RE.match(text.strip())
    if m is None:
        raise DecodeError(f"not a TLSH digest: {text!r}")
    return FuzzyHash(version=VERSION_TOKEN, digest=m.group(1).upper())


def encode(h: FuzzyHash) -> str:
    """Return the canonical text for *h* (``T1`` + uppercase hex)."""

    return f"{h.version}{h.digest}"


def distance(a: FuzzyHash, b: FuzzyHash) -> int:
    """Compute the TLSH distance between two digests.

    The score includes the length component. It is 0 for identical digests,
    symmetric, and has no fixed upper bound; treat it as an ordering key.
    """

    return int(tlsh.diff(encode(a), encode(b)))


def hash_bytes(data: bytes) -> FuzzyHash:
    """Compute the TLSH digest of *data*.

    Raises
    ------
    DigestError
        If the data is too short or lacks the variance TLSH needs.
    """

    text = tlsh.hash(bytes(data))
    if not text or text == "TNULL":
        raise DigestError(
            f"TLSH needs at least 50 bytes with enough variance (got {len(data)} bytes)"
        )
    try:
        return decode(text)
    except DecodeError as e:
        raise DigestError(f"unexpected TLSH output {text!r}") from e


def hash_file(path: Path) -> FuzzyHash:
    """Read a whole file and return its TLSH digest."""

    return hash_bytes(Path(path).read_bytes())
