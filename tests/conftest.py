import sys
from pathlib import Path

# (1) Repository root on sys.path so tests can import scripts.run
#     next to the installed allocprep package.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
