#!/usr/bin/env python3
"""Checklist codec for the release pull request body.

The body is a newline-separated list of `- [ ] #<n>` / `- [x] #<n>` lines and
nothing else. It is rebuilt in full on every run.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Set

from utils.release_models import ChecklistItem


CHECKED_LINE = re.compile(r"- \[x\] #(\d+)")


def parse_checked_ids(body: Optional[str]) -> Set[str]:
    """Return the digit runs of all checked lines, as strings."""
    if not body:
        return set()
    checked: Set[str] = set()
    for line in body.split("\n"):
        match = CHECKED_LINE.fullmatch(line.rstrip())
        if match:
            checked.add(match.group(1))
    return checked


def build_checklist(merged_ids: Iterable[int], checked: Set[str]) -> List[ChecklistItem]:
    return [ChecklistItem(feature_id=fid, checked=str(fid) in checked) for fid in merged_ids]


def render_checklist(items: Iterable[ChecklistItem]) -> str:
    return "\n".join(item.render() for item in items)


def rebuild_body(merged_ids: Iterable[int], previous_body: Optional[str]) -> str:
    """Rebuild the body from the merge set, keeping prior check marks.

    Any text in previous_body that is not a checklist line is dropped.
    """
    return render_checklist(build_checklist(merged_ids, parse_checked_ids(previous_body)))
