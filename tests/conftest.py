from __future__ import annotations

from typing import Dict, List, Optional

import pytest

from configs.config import Config
from utils.release_models import CommitRecord, ReleasePullRequest


@pytest.fixture(autouse=True)
def _metrics_to_tmp(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.setattr(Config, "METRICS_ROOT", str(tmp_path / "metrics"))


class FakeGithubClient:
    """In-memory stand-in for GithubClient that records every call."""

    def __init__(self, messages: Optional[List[str]] = None, open_prs: Optional[Dict[int, str]] = None) -> None:
        self.commits = [CommitRecord(sha=f"sha{i}", message=m) for i, m in enumerate(messages or [])]
        self.prs: Dict[int, ReleasePullRequest] = {
            number: ReleasePullRequest(number=number, title="Release", body=body)
            for number, body in (open_prs or {}).items()
        }
        self.calls: List[tuple] = []
        self.next_number = 100
        self.closed = False

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)

    def list_open_pull_requests(self, owner: str, repo: str, base: str, head: str) -> List[ReleasePullRequest]:
        self.calls.append(("list", owner, repo, base, head))
        return list(self.prs.values())

    def compare_commits(self, owner: str, repo: str, base: str, head: str) -> List[CommitRecord]:
        self.calls.append(("compare", owner, repo, base, head))
        return list(self.commits)

    def get_pull_request(self, owner: str, repo: str, number: int) -> ReleasePullRequest:
        self.calls.append(("get", owner, repo, number))
        return self.prs[number]

    def create_pull_request(self, owner: str, repo: str, *, title: str, head: str, base: str, body: str) -> ReleasePullRequest:
        self.calls.append(("create", owner, repo, title, head, base, body))
        pr = ReleasePullRequest(number=self.next_number, title=title, body=body)
        self.prs[pr.number] = pr
        self.next_number += 1
        return pr

    def update_pull_request(self, owner: str, repo: str, number: int, *, body: str) -> ReleasePullRequest:
        self.calls.append(("update", owner, repo, number, body))
        pr = self.prs[number].model_copy(update={"body": body})
        self.prs[number] = pr
        return pr

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_client_factory():
    return FakeGithubClient
