#!/usr/bin/env python3
"""Merge-set extraction from the commit range between two branches.

A feature pull request counts as merged into the integration branch when a
commit in the compared range carries GitHub's merge-commit message
("Merge pull request #<n> from ...").
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, List

from utils.release_models import CommitRecord


logger = logging.getLogger(__name__)

MERGE_COMMIT_PATTERN = re.compile(r"Merge pull request #(\w+) from")


class MalformedMergeCommitError(Exception):
    """Raised when a merge-commit message carries an unparsable PR number."""
    def __init__(self, sha: str, capture: str) -> None:
        super().__init__(f"Merge commit {sha or '<unknown>'} references invalid pull request number '#{capture}'")
        self.sha = sha
        self.capture = capture
        self.code = "MALFORMED_MERGE_COMMIT"


def _parse_feature_id(commit: CommitRecord, capture: str) -> int:
    if not (capture.isascii() and capture.isdigit()):
        raise MalformedMergeCommitError(commit.sha, capture)
    feature_id = int(capture, 10)
    if feature_id <= 0:
        raise MalformedMergeCommitError(commit.sha, capture)
    return feature_id


def extract_merged_ids(commits: Iterable[CommitRecord]) -> List[int]:
    """Extract merged feature PR numbers in commit order.

    Duplicates are kept and nothing is re-sorted.

    Raises:
        MalformedMergeCommitError: If a matching message has a non-numeric capture
    """
    merged: List[int] = []
    for commit in commits:
        match = MERGE_COMMIT_PATTERN.search(commit.message or "")
        if match is None:
            continue
        merged.append(_parse_feature_id(commit, match.group(1)))
    return merged


class MergeSetExtractor:
    """Computes the merge set of the integration branch relative to the release target."""

    def __init__(self, client):
        self.client = client

    def extract(self, owner: str, repo: str, release_target: str, integration: str) -> List[int]:
        """Fetch the commit comparison and extract merged feature ids.

        Args:
            owner: Repository owner
            repo: Repository name
            release_target: Base of the comparison (e.g. main)
            integration: Head of the comparison (e.g. develop)

        Returns:
            Merged feature PR numbers in the order the comparison returned them

        Raises:
            GithubApiError: If the comparison call fails (not retried here)
            MalformedMergeCommitError: If a merge commit is corrupt
        """
        commits = self.client.compare_commits(owner, repo, release_target, integration)
        merged = extract_merged_ids(commits)
        logger.info(
            f"Merge set for {owner}/{repo} {release_target}...{integration}: "
            f"{len(merged)} merged PRs in {len(commits)} commits"
        )
        return merged
