import sys
from pathlib import Path

# The flat layout has no installed package; import config/providers/matching/playback from the checkout.
REPO_ROOT = str(Path(__file__).resolve().parent.parent)
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)
