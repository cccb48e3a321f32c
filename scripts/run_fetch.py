"""
Run the fetch pipeline from a source checkout.
"""

from __future__ import annotations

from aqfetch.main import main

if __name__ == "__main__":
    raise SystemExit(main())
