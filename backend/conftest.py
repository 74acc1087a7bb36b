# Ensure '<repo>/backend' is on sys.path so 'import gym_booking' works
# without an editable install, whatever directory pytest is started from.
from pathlib import Path
import sys

_BACKEND_ROOT = Path(__file__).resolve().parent  # <repo>/backend
if str(_BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(_BACKEND_ROOT))
