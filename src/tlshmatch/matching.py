"""Matching logic for tlshmatch.

Given:
- a query TLSH digest, and
- a :class:`RecordStore` loaded from the dataset

We score every record against the query and report the one with the
smallest distance. Ties go to the record that appears first in the dataset.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional

from .hashing import FuzzyHash, distance
from .records import HashRecord, RecordStore

Scorer = Callable[[FuzzyHash, FuzzyHash], int]


@dataclass(frozen=True)
class ScoredRecord:
    """A record paired with its distance to one query."""

    record: HashRecord
    distance: int


@dataclass(frozen=True)
class MatchResult:
    """Result of looking up one query digest in the store."""

    query: FuzzyHash
    record: Optional[HashRecord]
    distance: Optional[int]  # None if the store had nothing to compare
    status: str  # "matched" | "no_match"


def score_records(
    query: FuzzyHash,
    store: RecordStore,
    scorer: Scorer = distance,
) -> List[ScoredRecord]:
    """Score every record against *query*, closest first.

    ``sorted`` is stable, so records at equal distance keep dataset order.
    """

    scored = [ScoredRecord(record=r, distance=scorer(query, r.fuzzy_hash)) for r in store]
    return sorted(scored, key=lambda s: s.distance)


def find_best_match(
    query: FuzzyHash,
    store: RecordStore,
    scorer: Scorer = distance,
    max_distance: Optional[int] = None,
) -> MatchResult:
    """Find the closest record for a query digest.

    Parameters
    ----------
    query:
        The digest to look up.
    store:
        Records to search (full linear scan).
    scorer:
        Distance function; defaults to TLSH distance.
    max_distance:
        Optional threshold. If the best distance is larger, the candidate is
        still reported but with a "no_match" status.

    Returns
    -------
    MatchResult
        The best match information. An empty store gives "no_match" with
        no record.
    """

    scored = score_records(query, store, scorer)
    if not scored:
        return MatchResult(query=query, record=None, distance=None, status="no_match")

    best = scored[0]
    status = "matched"
    if max_distance is not None and best.distance > max_distance:
        status = "no_match"
    return MatchResult(query=query, record=best.record, distance=best.distance, status=status)
