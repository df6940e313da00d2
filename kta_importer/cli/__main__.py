from __future__ import annotations

from kta_importer.cli import main

if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
