#!/usr/bin/env python3
"""Pydantic models for push events, commits and the release pull request.

This module defines the data models shared by the event filter, the
merge-set extractor and the release PR reconciler.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, ValidationError


ReconcileAction = Literal["created", "updated", "skipped"]


class RepositoryRef(BaseModel):
    """Repository coordinates taken from a push payload."""

    owner: str = Field(..., min_length=1, description="Owner login (user or organization)")
    name: str = Field(..., min_length=1, description="Repository name")

    model_config = {"extra": "ignore"}

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


class PushEvent(BaseModel):
    """A verified push notification. Commit data is fetched separately."""

    ref: str = Field(..., description="Pushed ref, e.g. refs/heads/develop")
    repository: RepositoryRef = Field(..., description="Repository the push went to")

    model_config = {"extra": "ignore"}

    @classmethod
    def from_payload(cls, payload: Any) -> Optional["PushEvent"]:
        """Build a PushEvent from a raw GitHub push payload.

        Args:
            payload: Decoded webhook JSON

        Returns:
            PushEvent, or None when the payload is absent or differently shaped
        """
        if not isinstance(payload, dict):
            return None
        owner = safe_extract(payload, "repository", "owner", "login")
        if owner is None:
            # Push payloads of some older deliveries carry owner.name only
            owner = safe_extract(payload, "repository", "owner", "name")
        try:
            return cls(
                ref=payload.get("ref"),
                repository=RepositoryRef(
                    owner=owner,
                    name=safe_extract(payload, "repository", "name"),
                ),
            )
        except ValidationError:
            return None


class CommitRecord(BaseModel):
    """One commit of the compared range."""

    sha: str = Field("", description="Commit SHA")
    message: str = Field("", description="Full commit message")

    model_config = {"extra": "ignore"}


class ReleasePullRequest(BaseModel):
    """The open pull request from the integration branch into the release target."""

    number: int = Field(..., description="Pull request number")
    title: str = Field("", description="Pull request title")
    body: Optional[str] = Field(None, description="Checklist body")
    state: str = Field("open", description="Pull request state")
    html_url: Optional[str] = Field(None, description="GitHub URL for the PR")

    model_config = {"extra": "ignore"}


class ChecklistItem(BaseModel):
    """One checkbox line of the release PR body."""

    feature_id: int = Field(..., gt=0, description="Merged feature pull request number")
    checked: bool = Field(False, description="Whether a reviewer ticked the box")

    model_config = {"extra": "ignore"}

    def render(self) -> str:
        mark = "x" if self.checked else " "
        return f"- [{mark}] #{self.feature_id}"


@dataclass
class ReconcileResult:
    action: ReconcileAction
    repo: str
    pr_number: Optional[int] = None
    body: Optional[str] = None
    merged_ids: List[int] = field(default_factory=list)
    dry_run: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action,
            "repo": self.repo,
            "pr_number": self.pr_number,
            "body": self.body,
            "merged_ids": list(self.merged_ids),
            "dry_run": self.dry_run,
        }


def safe_extract(data: Dict, *keys, default=None):
    """Safely extract nested dictionary values.

    Args:
        data: Dictionary to extract from
        *keys: Sequence of keys to traverse
        default: Default value if path doesn't exist

    Returns:
        Value at the nested path or default

    Example:
        safe_extract(payload, "repository", "owner", "login")
    """
    current = data
    for key in keys:
        if not isinstance(current, dict) or key not in current:
            return default
        current = current[key]
    return current
