from __future__ import annotations

CONFIG = "snipctl.config.v1"
DOCUMENT = "snipctl.document.v1"
ERROR = "snipctl.error.v1"
REPORT = "snipctl.report.v1"
