#!/usr/bin/env python3
"""GitHub REST API client for the release PR agent.

This module wraps the handful of pull request and compare endpoints the
reconciler needs behind a single requests session. Failures surface as
GithubApiError with a typed code; writes are never retried here.
"""

import logging
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from configs.config import Config
from utils.release_models import CommitRecord, ReleasePullRequest, safe_extract

# Set up logging
logger = logging.getLogger(__name__)

PER_PAGE = 100


class GithubApiError(Exception):
    """Raised when GitHub API operations fail with a typed code."""
    def __init__(self, message: str, code: str = "UNKNOWN") -> None:
        super().__init__(message)
        self.code = code


class GithubAuthError(GithubApiError):
    """Raised when GitHub API authentication fails."""
    def __init__(self, message: str) -> None:
        super().__init__(message, code="UNAUTHORIZED")


def _raise_for_status(response: requests.Response, what: str) -> None:
    sc = response.status_code
    if sc < 400:
        return
    if sc == 401:
        raise GithubAuthError("Invalid GitHub token or insufficient permissions")
    if sc == 403:
        # Primary limits exhaust the quota; secondary limits send Retry-After
        if response.headers.get("X-RateLimit-Remaining") == "0" or response.headers.get("Retry-After"):
            raise GithubApiError(f"Rate limit exceeded while {what}", code="RATE_LIMIT")
        raise GithubAuthError(f"Forbidden while {what}")
    if sc == 404:
        raise GithubApiError(f"Not found while {what}", code="NOT_FOUND")
    if sc == 422:
        raise GithubApiError(f"Validation failed while {what}: {_error_detail(response)}", code="VALIDATION")
    if sc == 429:
        raise GithubApiError(f"Rate limit exceeded while {what}", code="RATE_LIMIT")
    if sc >= 500:
        raise GithubApiError(f"GitHub server error while {what}: HTTP {sc}", code="NETWORK")
    raise GithubApiError(f"GitHub API error while {what}: HTTP {sc}")


def _error_detail(response: requests.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(data, dict):
        return str(data.get("message", ""))[:200]
    return ""


def _to_pull_request(data: Dict[str, Any]) -> ReleasePullRequest:
    return ReleasePullRequest(
        number=data.get("number", 0),
        title=data.get("title") or "",
        body=data.get("body"),
        state=data.get("state") or "open",
        html_url=data.get("html_url"),
    )


def _to_commit(data: Dict[str, Any]) -> CommitRecord:
    return CommitRecord(
        sha=data.get("sha") or "",
        message=safe_extract(data, "commit", "message", default="") or "",
    )


class GithubClient:
    """Client for the GitHub REST endpoints used by the release PR agent."""

    def __init__(
        self,
        token: Optional[str] = None,
        timeout_s: Optional[int] = None,
        base_url: Optional[str] = None,
        compare_max_pages: Optional[int] = None,
    ):
        """Initialize GitHub client.

        Args:
            token: GitHub token (defaults to Config.GITHUB_TOKEN)
            timeout_s: Request timeout in seconds (defaults to Config.HTTP_TIMEOUT_S)
            base_url: REST API root (defaults to Config.GITHUB_API_URL)
            compare_max_pages: Pagination cap for compare_commits

        Raises:
            GithubAuthError: If no valid token is provided
        """
        github_config = Config.get_github_config()
        self.token = token or github_config["token"]
        self.timeout_s = timeout_s or github_config["timeout_s"]
        self.base_url = (base_url or github_config["base_url"]).rstrip("/")
        self.compare_max_pages = compare_max_pages or github_config["compare_max_pages"]

        if not self.token:
            raise GithubAuthError("GitHub token is required (GITHUB_TOKEN or GITHUB_PAT env var)")

        self.session = requests.Session()
        self.session.headers.update({
            'Authorization': f'token {self.token}',
            'Accept': 'application/vnd.github+json',
            'X-GitHub-Api-Version': '2022-11-28',
            'User-Agent': 'release-pr-agent/1.0'
        })

        # Transient failures on reads only; POST/PATCH are issued exactly once
        retry_strategy = Retry(
            total=3,
            status_forcelist=[429, 500, 502, 503, 504],
            backoff_factor=1,
            allowed_methods=["HEAD", "GET", "OPTIONS"],
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("https://", adapter)

        logger.info("GitHub client initialized")

    def _request(self, method: str, path: str, what: str, *, params=None, payload=None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, params=params, json=payload, timeout=self.timeout_s)
        except requests.Timeout as e:
            raise GithubApiError(f"Timeout while {what}: {e}", code="TIMEOUT") from e
        except requests.RequestException as e:
            raise GithubApiError(f"Network error while {what}: {e}", code="NETWORK") from e
        _raise_for_status(response, what)
        try:
            return response.json()
        except ValueError as e:
            raise GithubApiError(f"Invalid JSON from GitHub while {what}") from e

    def list_open_pull_requests(self, owner: str, repo: str, base: str, head: str) -> List[ReleasePullRequest]:
        """List open pull requests from head into base.

        Args:
            owner: Repository owner
            repo: Repository name
            base: Base branch name
            head: Head branch name (qualified with the owner for the query)

        Returns:
            Pull requests in the order GitHub returned them
        """
        what = f"listing pull requests {owner}/{repo} {base}<-{head}"
        params = {"state": "open", "base": base, "head": f"{owner}:{head}", "per_page": PER_PAGE}
        logger.info(f"Listing open pull requests: {owner}/{repo} base={base} head={head}")
        data = self._request("GET", f"/repos/{owner}/{repo}/pulls", what, params=params)
        if not isinstance(data, list):
            raise GithubApiError(f"Unexpected GitHub response while {what}: expected list")
        pulls = [_to_pull_request(item) for item in data if isinstance(item, dict)]
        logger.debug(f"✓ Found {len(pulls)} open pull requests")
        return pulls

    def compare_commits(self, owner: str, repo: str, base: str, head: str) -> List[CommitRecord]:
        """Fetch the ordered commits reachable from head but not from base.

        Handles pagination; GitHub returns the range oldest first.
        """
        what = f"comparing {owner}/{repo} {base}...{head}"
        path = f"/repos/{owner}/{repo}/compare/{base}...{head}"
        logger.info(f"Comparing commits: {owner}/{repo} {base}...{head}")

        all_commits: List[CommitRecord] = []
        page = 1
        while True:
            params = {"page": page, "per_page": PER_PAGE}
            data = self._request("GET", path, what, params=params)
            if not isinstance(data, dict):
                raise GithubApiError(f"Unexpected GitHub response while {what}: expected object")
            page_commits = data.get("commits") or []
            all_commits.extend(_to_commit(c) for c in page_commits if isinstance(c, dict))

            total = data.get("total_commits")
            if not page_commits or len(page_commits) < PER_PAGE:
                break
            if isinstance(total, int) and len(all_commits) >= total:
                break
            page += 1

            # Safety limit to prevent infinite loops
            if page > self.compare_max_pages:
                logger.warning(f"Comparison {base}...{head} exceeds {self.compare_max_pages} pages, truncating")
                break

        logger.debug(f"✓ Retrieved {len(all_commits)} commits for {base}...{head}")
        return all_commits

    def get_pull_request(self, owner: str, repo: str, number: int) -> ReleasePullRequest:
        what = f"fetching pull request {owner}/{repo}#{number}"
        logger.info(f"Fetching PR: {owner}/{repo}#{number}")
        data = self._request("GET", f"/repos/{owner}/{repo}/pulls/{number}", what)
        if not isinstance(data, dict):
            raise GithubApiError(f"Unexpected GitHub response while {what}: expected object")
        return _to_pull_request(data)

    def create_pull_request(self, owner: str, repo: str, *, title: str, head: str, base: str, body: str) -> ReleasePullRequest:
        what = f"creating pull request {owner}/{repo} {base}<-{head}"
        payload = {"title": title, "head": head, "base": base, "body": body}
        data = self._request("POST", f"/repos/{owner}/{repo}/pulls", what, payload=payload)
        if not isinstance(data, dict):
            raise GithubApiError(f"Unexpected GitHub response while {what}: expected object")
        pr = _to_pull_request(data)
        logger.info(f"✓ Created PR {owner}/{repo}#{pr.number}")
        return pr

    def update_pull_request(self, owner: str, repo: str, number: int, *, body: str) -> ReleasePullRequest:
        what = f"updating pull request {owner}/{repo}#{number}"
        data = self._request("PATCH", f"/repos/{owner}/{repo}/pulls/{number}", what, payload={"body": body})
        if not isinstance(data, dict):
            raise GithubApiError(f"Unexpected GitHub response while {what}: expected object")
        logger.info(f"✓ Updated PR {owner}/{repo}#{number}")
        return _to_pull_request(data)

    def close(self) -> None:
        """Close the GitHub client session."""
        if self.session:
            self.session.close()
            logger.debug("GitHub client session closed")
