#!/usr/bin/env python3
"""Release PR agent: keeps the integration -> release-target pull request current.

On each push to the integration branch the agent extracts the merged feature
pull requests between the two branches and rewrites the release PR checklist,
creating the release PR when none is open.
"""

import json
import logging
import sys
from typing import Any, Optional

from dotenv import load_dotenv

# Config reads the environment at import time
load_dotenv()

from utils.event_filter import filter_push_event  # noqa: E402
from utils.github_client import GithubApiError, GithubClient  # noqa: E402
from utils.merge_set import MalformedMergeCommitError, MergeSetExtractor  # noqa: E402
from utils.metrics import Timer, incr  # noqa: E402
from utils.release_models import ReconcileResult  # noqa: E402
from utils.release_pr_reconciler import ReleaseBranches, ReleasePRReconciler  # noqa: E402

# Set up logging
logger = logging.getLogger(__name__)


class ReleasePRAgent:
	"""Runs Event Filter -> Merge-Set Extractor -> Release PR Reconciler."""
	
	def __init__(self, client, branches: Optional[ReleaseBranches] = None, *, reconciler: Optional[ReleasePRReconciler] = None):
		"""Initialize the release PR agent.
		
		Args:
			client: Long-lived GitHub client shared by every run
			branches: Branch configuration. If None, read from Config.
			reconciler: Optional reconciler override (e.g. with a fixed clock)
		"""
		self.client = client
		self.branches = branches or ReleaseBranches.from_config()
		self.extractor = MergeSetExtractor(client)
		self.reconciler = reconciler or ReleasePRReconciler(client, self.branches)
	
	def run(self, owner: str, repo: str, *, dry_run: bool = False) -> ReconcileResult:
		"""Reconcile the release PR of one repository.
		
		Extraction happens before any write, so a failed extraction leaves the
		release PR untouched.
		
		Raises:
			GithubApiError: On remote failures
			MalformedMergeCommitError: If a merge commit carries a corrupt PR number
		"""
		logger.info(f"Reconciling release PR for {owner}/{repo} "
				   f"({self.branches.integration} -> {self.branches.release_target})")
		with Timer("release_pr.reconcile", repo=f"{owner}/{repo}"):
			merged = self.extractor.extract(
				owner, repo, self.branches.release_target, self.branches.integration
			)
			result = self.reconciler.reconcile(owner, repo, merged, dry_run=dry_run)
		incr(f"release_pr.{result.action}", repo=result.repo, pr=result.pr_number, dry_run=dry_run)
		return result
	
	def handle_push(self, payload: Any, *, dry_run: bool = False) -> ReconcileResult:
		"""Run reconciliation for a verified push payload, if it targets the integration branch."""
		event = filter_push_event(payload, self.branches.integration)
		if event is None:
			repo = ""
			if isinstance(payload, dict) and isinstance(payload.get("repository"), dict):
				repo = str(payload["repository"].get("full_name") or "")
			incr("release_pr.skipped", repo=repo)
			return ReconcileResult("skipped", repo)
		return self.run(event.repository.owner, event.repository.name, dry_run=dry_run)
	
	def close(self) -> None:
		"""Close the agent and cleanup resources."""
		if self.client is not None and hasattr(self.client, "close"):
			self.client.close()
		logger.info("Release PR agent closed")


def print_result_summary(result: ReconcileResult) -> None:
	"""Print a compact summary of a reconciliation run."""
	if result.action == "skipped":
		print("Nothing to do: push is not on the integration branch")
		return
	prefix = "[dry-run] " if result.dry_run else ""
	target = f"#{result.pr_number}" if result.pr_number is not None else "(new)"
	print(f"{prefix}{result.action.capitalize()} release PR {result.repo}{target}")
	print(f"Merged PRs: {len(result.merged_ids)}")
	if result.body:
		print(result.body)


def _friendly_message(exc: Exception) -> str:
	code = getattr(exc, "code", "UNKNOWN")
	mapping = {
		"TIMEOUT": "Timeout while contacting GitHub. Please retry or increase HTTP_TIMEOUT_S.",
		"NOT_FOUND": "Repository or branch not found. Please check owner, repo and branch names.",
		"UNAUTHORIZED": "Access denied. Please check your GitHub token and its scopes.",
		"RATE_LIMIT": "Rate limit exceeded. Please wait a few minutes and retry.",
		"NETWORK": "Network error while contacting GitHub. Please retry.",
		"MALFORMED_MERGE_COMMIT": f"Corrupt merge commit in history: {exc}",
	}
	return mapping.get(code, str(exc))


def main(argv=None):
	"""CLI entry point for the release PR agent."""
	import argparse
	
	parser = argparse.ArgumentParser(
		description="Release PR Agent - Maintain the release pull request checklist",
		formatter_class=argparse.RawDescriptionHelpFormatter,
		epilog="""
Examples:
  python -m agents.release_pr_agent reconcile --owner acme --repo shop --dry-run
  python -m agents.release_pr_agent handle-event --payload "$GITHUB_EVENT_PATH"
  python -m agents.release_pr_agent serve --port 8787
		"""
	)
	parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
	sub = parser.add_subparsers(dest="command", required=True)
	
	rec = sub.add_parser("reconcile", help="Reconcile the release PR of a repository")
	rec.add_argument("--owner", required=True, help="Repository owner (user or organization)")
	rec.add_argument("--repo", required=True, help="Repository name")
	rec.add_argument("--dry-run", action="store_true", help="Read only; print the planned body")
	rec.add_argument("--json", action="store_true", help="Output JSON instead of summary")
	
	ev = sub.add_parser("handle-event", help="Handle a saved push event payload")
	ev.add_argument("--payload", required=True, help="Path to push event JSON")
	ev.add_argument("--dry-run", action="store_true")
	ev.add_argument("--json", action="store_true")
	
	srv = sub.add_parser("serve", help="Run the webhook receiver")
	srv.add_argument("--host", required=False)
	srv.add_argument("--port", type=int, required=False)
	
	args = parser.parse_args(argv)
	
	# Set up logging
	log_level = logging.DEBUG if args.verbose else logging.INFO
	logging.basicConfig(
		level=log_level,
		format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
	)
	
	# Suppress verbose logs from libraries unless in debug mode
	if not args.verbose:
		logging.getLogger("utils.github_client").setLevel(logging.WARNING)
		logging.getLogger("urllib3").setLevel(logging.WARNING)
	
	agent = None
	try:
		agent = ReleasePRAgent(GithubClient())
		
		if args.command == "serve":
			from configs.config import Config
			from utils.webhook_server import serve
			webhook_config = Config.get_webhook_config()
			serve(
				agent,
				host=args.host or webhook_config["host"],
				port=args.port or webhook_config["port"],
				secret=webhook_config["secret"],
			)
			sys.exit(0)
		
		if args.command == "reconcile":
			result = agent.run(args.owner, args.repo, dry_run=args.dry_run)
		else:
			try:
				with open(args.payload, "r", encoding="utf-8") as f:
					payload = json.load(f)
			except (OSError, ValueError) as e:
				print(f"Error: Could not read event payload: {e}", file=sys.stderr)
				sys.exit(1)
			result = agent.handle_push(payload, dry_run=args.dry_run)
		
		if args.json:
			print(json.dumps(result.to_dict(), indent=2))
		else:
			print_result_summary(result)
		sys.exit(0)
	
	except (GithubApiError, MalformedMergeCommitError) as e:
		print(f"Error: {_friendly_message(e)}", file=sys.stderr)
		sys.exit(1)
	finally:
		if agent:
			agent.close()


if __name__ == "__main__":
	main()
