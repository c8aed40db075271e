from __future__ import annotations

import pytest

from utils.merge_set import MalformedMergeCommitError, MergeSetExtractor, extract_merged_ids
from utils.release_models import CommitRecord


def _commits(*messages: str) -> list[CommitRecord]:
    return [CommitRecord(sha=f"c{i}", message=m) for i, m in enumerate(messages)]


def test_extract_keeps_source_order_and_skips_other_commits() -> None:
    commits = _commits(
        "Merge pull request #12 from x",
        "fix typo",
        "Merge pull request #15 from y",
    )
    assert extract_merged_ids(commits) == [12, 15]


def test_extract_does_not_sort() -> None:
    commits = _commits("Merge pull request #30 from a/b", "Merge pull request #4 from c/d")
    assert extract_merged_ids(commits) == [30, 4]


def test_extract_passes_duplicates_through() -> None:
    commits = _commits("Merge pull request #7 from a", "Merge pull request #7 from a")
    assert extract_merged_ids(commits) == [7, 7]


def test_extract_matches_anywhere_in_message() -> None:
    commits = _commits("chore: sync\n\nMerge pull request #21 from org/feature\n\nAdd cart")
    assert extract_merged_ids(commits) == [21]


def test_extract_uses_first_occurrence_per_message() -> None:
    commits = _commits("Merge pull request #1 from a\nMerge pull request #2 from b")
    assert extract_merged_ids(commits) == [1]


def test_extract_is_case_sensitive() -> None:
    commits = _commits("merge pull request #3 from a", "MERGE PULL REQUEST #4 FROM b")
    assert extract_merged_ids(commits) == []


def test_extract_ignores_other_merge_styles() -> None:
    commits = _commits("Feature (#9)", "Merge branch 'main' into develop", "Merge pull request 12 from x")
    assert extract_merged_ids(commits) == []


def test_extract_empty_range() -> None:
    assert extract_merged_ids([]) == []


@pytest.mark.parametrize("capture", ["abc", "12abc", "0", "٣"])
def test_extract_reports_malformed_capture(capture: str) -> None:
    commits = [CommitRecord(sha="deadbeef", message=f"Merge pull request #{capture} from x")]
    with pytest.raises(MalformedMergeCommitError) as exc_info:
        extract_merged_ids(commits)
    assert exc_info.value.sha == "deadbeef"
    assert exc_info.value.capture == capture
    assert exc_info.value.code == "MALFORMED_MERGE_COMMIT"


def test_extractor_calls_compare_once_with_release_target_as_base(fake_client_factory) -> None:
    client = fake_client_factory(messages=["Merge pull request #12 from x", "fix", "Merge pull request #15 from y"])
    merged = MergeSetExtractor(client).extract("acme", "shop", "main", "develop")
    assert merged == [12, 15]
    assert client.calls == [("compare", "acme", "shop", "main", "develop")]


def test_extractor_propagates_remote_failure() -> None:
    class Boom(Exception):
        pass

    class FailingClient:
        def compare_commits(self, owner, repo, base, head):
            raise Boom("rate limited")

    with pytest.raises(Boom):
        MergeSetExtractor(FailingClient()).extract("acme", "shop", "main", "develop")
