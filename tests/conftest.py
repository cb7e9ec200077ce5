from __future__ import annotations

import sys
from pathlib import Path


# Ensure the service code (app-dispatch) is importable without installing it
ROOT = Path(__file__).resolve().parent.parent
APP_DISPATCH_DIR = ROOT / "app-dispatch"

if str(APP_DISPATCH_DIR) not in sys.path:
    sys.path.insert(0, str(APP_DISPATCH_DIR))
