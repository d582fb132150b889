from __future__ import annotations

OK = 0
ERR_VERIFY = 1
ERR_CONFIG = 2
ERR_INTERNAL = 3
