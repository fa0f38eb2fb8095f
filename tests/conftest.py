from __future__ import annotations

import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DIRECTUS_API_URL", "https://cms.test")
os.environ.setdefault("DIRECTUS_API_TOKEN", "test-token")
os.environ.setdefault("AUDIT_LOG_ENABLED", "0")
