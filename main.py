"""Convenience entry point to run the SealDrop CLI.

Allows starting the server with `python main.py serve` from the project root.
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the src/ directory is on sys.path so `import sealdrop` works
ROOT = Path(__file__).resolve().parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from sealdrop.cli import main


if __name__ == "__main__":
    sys.exit(main())
