#!/usr/bin/env python3
"""Reconciliation run metrics (counters and timers) written as JSONL.

Metrics are best effort: a failed write is logged and never fails the run
that produced it, since the release PR may already have been rewritten.
"""

from __future__ import annotations

import json
import logging
import os
import time
from pathlib import Path
from typing import Any, Dict, Optional

from configs.config import Config


logger = logging.getLogger(__name__)

MAX_FIELD_CHARS = 200


def _metrics_file() -> Optional[Path]:
    obs = Config.observability()
    if not obs["metrics_enabled"]:
        return None
    return Path(obs["metrics_root"]) / "metrics.log"


def _record(name: str, value: Any, fields: Dict[str, Any]) -> str:
    rec: Dict[str, Any] = {"ts": int(time.time()), "metric": name, "value": value}
    for k, v in fields.items():
        if isinstance(v, str) and len(v) > MAX_FIELD_CHARS:
            rec[k] = v[:MAX_FIELD_CHARS] + "..."
        else:
            rec[k] = v
    return json.dumps(rec, separators=(",", ":"), default=str) + "\n"


def incr(name: str, value: Any = 1, **kw) -> bool:
    """Append one metric line, e.g. incr("release_pr.updated", repo="acme/shop").

    Returns:
        True if the line was written, False if metrics are off or the write failed
    """
    path = _metrics_file()
    if path is None:
        return False
    line = _record(name, value, kw)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "a", encoding="utf-8") as f:
            f.write(line)
            f.flush()
            os.fsync(f.fileno())
    except OSError as e:
        logger.warning(f"Dropping metric {name}: cannot write {path}: {e}")
        return False
    return True


class Timer:
    """Records `<name>.latency_s` on exit, whether or not the block raised."""

    def __init__(self, name: str, **kw):
        self.name = name
        self.kw = kw
        self._t0 = 0.0

    def __enter__(self):
        self._t0 = time.perf_counter()
        return self

    def __exit__(self, *exc):
        incr(f"{self.name}.latency_s", value=time.perf_counter() - self._t0, **self.kw)
        return False
