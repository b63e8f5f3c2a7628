"""
Test bootstrap: put backend/ on sys.path so its modules import by bare name,
the same way main.py imports them when run from that directory.
"""
import sys
from pathlib import Path

BACKEND = Path(__file__).resolve().parents[1] / "backend"
if str(BACKEND) not in sys.path:
    sys.path.insert(0, str(BACKEND))
