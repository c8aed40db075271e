#!/usr/bin/env python3
"""Release pull request reconciliation.

Keeps exactly one open pull request from the integration branch into the
release target, whose body is a checklist of the current merge set. Check
marks set by reviewers survive every rewrite.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Callable, List, Optional, Sequence

from configs.config import Config
from utils.checklist import build_checklist, rebuild_body, render_checklist
from utils.release_models import ReconcileResult


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReleaseBranches:
    integration: str
    release_target: str
    title_prefix: str = "Release"

    @classmethod
    def from_config(cls) -> "ReleaseBranches":
        cfg = Config.get_branch_config()
        return cls(
            integration=cfg["integration"],
            release_target=cfg["release_target"],
            title_prefix=cfg["title_prefix"],
        )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def release_title(prefix: str, now: datetime) -> str:
    """Title for a new release PR, e.g. 'Release Fri, 16 Oct 2026 12:00:00 GMT'."""
    stamp = format_datetime(now.astimezone(timezone.utc), usegmt=True)
    return f"{prefix} {stamp}"


class ReleasePRReconciler:
    """Creates or rewrites the release pull request for one repository."""

    def __init__(self, client, branches: ReleaseBranches, *, clock: Optional[Callable[[], datetime]] = None):
        """Initialize the reconciler.

        Args:
            client: GitHub client exposing list/get/create/update pull request calls
            branches: Integration and release-target branch names
            clock: Source of the current time for release titles (UTC now by default)
        """
        self.client = client
        self.branches = branches
        self.clock = clock or _utcnow

    def find_open_release_pr(self, owner: str, repo: str) -> Optional[int]:
        pulls = self.client.list_open_pull_requests(
            owner, repo, self.branches.release_target, self.branches.integration
        )
        if not pulls:
            return None
        if len(pulls) > 1:
            others = ", ".join(f"#{p.number}" for p in pulls[1:])
            logger.warning(
                f"{len(pulls)} open release PRs on {owner}/{repo}; reconciling #{pulls[0].number}, ignoring {others}"
            )
        return pulls[0].number

    def reconcile(self, owner: str, repo: str, merged_ids: Sequence[int], *, dry_run: bool = False) -> ReconcileResult:
        """Bring the release PR in line with the merge set.

        Exactly one write (create or update) per call unless dry_run is set.

        Args:
            owner: Repository owner
            repo: Repository name
            merged_ids: Merged feature PR numbers in extraction order
            dry_run: Perform reads only and return the planned body

        Returns:
            ReconcileResult describing the action taken

        Raises:
            GithubApiError: On any remote failure, unmodified
        """
        full_name = f"{owner}/{repo}"
        merged: List[int] = list(merged_ids)
        number = self.find_open_release_pr(owner, repo)

        if number is None:
            body = render_checklist(build_checklist(merged, set()))
            title = release_title(self.branches.title_prefix, self.clock())
            if dry_run:
                logger.info(f"[dry-run] Would create release PR on {full_name}: {title}")
                return ReconcileResult("created", full_name, None, body, merged, dry_run=True)
            created = self.client.create_pull_request(
                owner,
                repo,
                title=title,
                head=self.branches.integration,
                base=self.branches.release_target,
                body=body,
            )
            logger.info(f"Created release PR {full_name}#{created.number} with {len(merged)} items")
            return ReconcileResult("created", full_name, created.number, body, merged)

        current = self.client.get_pull_request(owner, repo, number)
        body = rebuild_body(merged, current.body)
        if dry_run:
            logger.info(f"[dry-run] Would update release PR {full_name}#{number}")
            return ReconcileResult("updated", full_name, number, body, merged, dry_run=True)
        self.client.update_pull_request(owner, repo, number, body=body)
        if body == (current.body or ""):
            logger.info(f"Release PR {full_name}#{number} already up to date")
        else:
            logger.info(f"Rewrote release PR {full_name}#{number} checklist with {len(merged)} items")
        return ReconcileResult("updated", full_name, number, body, merged)
