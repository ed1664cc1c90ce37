"""Allow running the package with: `python -m tlshmatch`.

This delegates to :func:`tlshmatch.cli.main`.
"""

from .cli import main


if __name__ == "__main__":
    raise SystemExit(main())
