import os
from typing import Dict, Any

class Config:
	"""Configuration for the release PR agent."""
	
	# Branches
	INTEGRATION_BRANCH = os.getenv("INTEGRATION_BRANCH", "develop")
	RELEASE_BRANCH = os.getenv("RELEASE_BRANCH", "main")
	RELEASE_TITLE_PREFIX = os.getenv("RELEASE_TITLE_PREFIX", "Release")
	
	# GitHub REST Configuration
	GITHUB_API_URL = os.getenv("GITHUB_API_URL", "https://api.github.com").rstrip('/')
	GITHUB_TOKEN = os.getenv("GITHUB_TOKEN") or os.getenv("GITHUB_PAT")
	HTTP_TIMEOUT_S = int(os.getenv("HTTP_TIMEOUT_S", "30"))
	# Compare pagination (100 commits per page)
	COMPARE_MAX_PAGES = int(os.getenv("COMPARE_MAX_PAGES", "50"))
	
	# Webhook receiver
	GITHUB_WEBHOOK_SECRET = os.getenv("GITHUB_WEBHOOK_SECRET", "")
	WEBHOOK_HOST = os.getenv("WEBHOOK_HOST", "127.0.0.1")
	WEBHOOK_PORT = int(os.getenv("WEBHOOK_PORT", "8787"))
	
	# Observability
	METRICS_ROOT = os.getenv("METRICS_ROOT", ".cache/release_pr/metrics")
	METRICS_ENABLED = bool(int(os.getenv("METRICS_ENABLED", "1")))

	@classmethod
	def get_branch_config(cls) -> Dict[str, str]:
		return {
			"integration": cls.INTEGRATION_BRANCH,
			"release_target": cls.RELEASE_BRANCH,
			"title_prefix": cls.RELEASE_TITLE_PREFIX,
		}
	
	@classmethod
	def get_github_config(cls) -> Dict[str, Any]:
		"""Get GitHub configuration for the REST client."""
		return {
			"base_url": cls.GITHUB_API_URL,
			"token": cls.GITHUB_TOKEN,
			"timeout_s": cls.HTTP_TIMEOUT_S,
			"compare_max_pages": cls.COMPARE_MAX_PAGES,
		}

	@classmethod
	def get_webhook_config(cls) -> Dict[str, Any]:
		"""Get webhook listener configuration.
		
		Returns:
			Mapping with bind host, port and the shared HMAC secret.
		"""
		return {
			"host": cls.WEBHOOK_HOST,
			"port": cls.WEBHOOK_PORT,
			"secret": cls.GITHUB_WEBHOOK_SECRET,
		}

	@classmethod
	def observability(cls) -> Dict[str, Any]:
		return {
			"metrics_root": cls.METRICS_ROOT,
			"metrics_enabled": cls.METRICS_ENABLED,
		}
