"""PullRequestClient - Reads pull request review status from GitHub."""

from __future__ import annotations

import logging
import re
from typing import Any

import httpx

from sprintbot.logging import sanitize_for_log, truncate_output
from sprintbot.tickets.exceptions import InvalidPullRequestUrlError, PullRequestError
from sprintbot.tickets.models import CheckRun, PullRequestInfo

logger = logging.getLogger("sprintbot.tickets.github")

PR_URL_PATTERN = re.compile(
    r"github\.com/(?P<owner>[^/]+)/(?P<repo>[^/]+)/pull/(?P<number>\d+)"
)


def parse_pr_url(url: str) -> tuple[str, str, int]:
    """Split a pull request URL into owner, repo and number.

    Raises:
        InvalidPullRequestUrlError: If the URL is not a GitHub PR URL.
    """
    match = PR_URL_PATTERN.search(url)
    if match is None:
        raise InvalidPullRequestUrlError(f"Not a GitHub pull request URL: {url}")
    return match["owner"], match["repo"], int(match["number"])


def split_check_runs(check_runs: list[dict[str, Any]]) -> tuple[list[CheckRun], list[CheckRun]]:
    """Sort check runs into failing and action-required groups.

    A run with no conclusion yet is still pending and counts as action
    required. Other conclusions are ignored.

    Returns:
        Tuple of (failing, action_required).
    """
    failing: list[CheckRun] = []
    action_required: list[CheckRun] = []
    for run in check_runs:
        check = CheckRun(name=run.get("name", ""), details_url=run.get("details_url") or "")
        match run.get("conclusion"):
            case "failure":
                failing.append(check)
            case "action_required" | None:
                action_required.append(check)
            case _:
                pass
    return failing, action_required


class PullRequestClient:
    """Fetches pull request and check-run status from the GitHub REST API."""

    def __init__(self, token: str, base_url: str = "https://api.github.com") -> None:
        """Initialize the client.

        Args:
            token: GitHub personal access token
            base_url: GitHub API base URL (for testing/enterprise)
        """
        self.token = token
        self.base_url = base_url.rstrip("/")
        self._client: httpx.Client | None = None

    @property
    def client(self) -> httpx.Client:
        """Get or create HTTP client for GitHub API."""
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.base_url,
                headers={
                    "Authorization": f"Bearer {self.token}",
                    "Accept": "application/vnd.github+json",
                    "X-GitHub-Api-Version": "2022-11-28",
                    "User-Agent": "sprintbot",
                },
                timeout=30.0,
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def _request(self, path: str) -> httpx.Response:
        try:
            return self.client.get(path)
        except httpx.HTTPError as e:
            raise PullRequestError(
                f"GitHub request to {path} failed: {sanitize_for_log(str(e))}"
            ) from e

    def fetch(self, url: str) -> PullRequestInfo:
        """Get the review status of a pull request.

        Args:
            url: Web URL of the pull request

        Returns:
            PullRequestInfo with draft/merge state and grouped check runs

        Raises:
            InvalidPullRequestUrlError: If the URL is malformed.
            PullRequestError: If GitHub cannot be read.
        """
        owner, repo, number = parse_pr_url(url)
        logger.debug("Fetching PR %s/%s#%d", owner, repo, number)

        pr_response = self._request(f"/repos/{owner}/{repo}/pulls/{number}")
        if pr_response.status_code != 200:
            raise PullRequestError(
                f"Failed to get PR {owner}/{repo}#{number}: {pr_response.status_code} - "
                f"{truncate_output(pr_response.text, 500)}"
            )
        try:
            pr_data = pr_response.json()
            head_sha = pr_data["head"]["sha"]
        except (ValueError, KeyError) as e:
            raise PullRequestError(f"Malformed PR response for {url}") from e

        checks_response = self._request(f"/repos/{owner}/{repo}/commits/{head_sha}/check-runs")
        if checks_response.status_code == 403:
            # Token may lack checks scope; report the PR without checks.
            logger.warning("No access to check runs for %s, treating as passing", url)
            failing, action_required = [], []
        elif checks_response.status_code != 200:
            raise PullRequestError(
                f"Failed to get check runs for {url}: {checks_response.status_code} - "
                f"{truncate_output(checks_response.text, 500)}"
            )
        else:
            try:
                check_runs = checks_response.json().get("check_runs", [])
            except ValueError as e:
                raise PullRequestError(f"Malformed check-runs response for {url}") from e
            failing, action_required = split_check_runs(check_runs)

        info = PullRequestInfo(
            url=url,
            is_draft=bool(pr_data.get("draft", False)),
            merged=bool(pr_data.get("merged", False)),
            mergeable=pr_data.get("mergeable"),
            comment_count=int(pr_data.get("comments", 0)),
            failing_checks=failing,
            action_required_checks=action_required,
        )
        logger.info("PR %s/%s#%d state: %s", owner, repo, number, info.state)
        return info
