"""tlshmatch package.

A small CLI for computing TLSH fuzzy hashes, scoring two hashes against each
other, and finding the closest known file in a flat CSV hash database.
"""

__all__ = ["cli", "hashing", "records", "matching", "io_utils"]
__version__ = "0.1.0"
