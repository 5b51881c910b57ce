from typing import Any, Dict, Mapping, Optional

import httpx

from core.contracts.models import RepoInfo
from utils.errors import GitHubError
from utils.logger import logger

GITHUB_API_URL = "https://api.github.com"


class GitHubClient:
    """
    Opens and updates pull requests through the GitHub REST API.
    """

    def __init__(self, token: Optional[str], base_url: str = GITHUB_API_URL):
        if not token:
            raise GitHubError("Missing GitHub token. Set github.token in your config or the GITHUB_TOKEN variable.")
        self.client = httpx.Client(
            base_url=base_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "User-Agent": "aipr",
            },
            timeout=30,
        )

    def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = self.client.request(method, url, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.RequestError as e:
            raise GitHubError(f"Failed to request GitHub API: {e}") from e
        except httpx.HTTPStatusError as e:
            try:
                message = e.response.json().get("message", e.response.text)
            except ValueError:
                message = e.response.text
            raise GitHubError(f"GitHub API returned error: {e.response.status_code} {message}") from e

    def find_open_pull_request(self, repo: RepoInfo, head: str) -> Optional[Mapping[str, Any]]:
        pulls = self._request(
            "GET",
            f"/repos/{repo.owner}/{repo.repo}/pulls",
            params={"head": f"{repo.owner}:{head}", "state": "open"},
        )
        return pulls[0] if pulls else None

    def create_pull_request(
        self,
        repo: RepoInfo,
        title: str,
        body: str,
        head: str,
        base: str,
        draft: bool = False,
    ) -> Mapping[str, Any]:
        """
        Opens a pull request from ``head`` into ``base``.

        Returns:
            The created pull request as returned by the API (``html_url``, ``number``...).

        Raises:
            GitHubError: If the request fails.
        """
        payload: Dict[str, Any] = {"title": title, "body": body, "head": head, "base": base, "draft": draft}
        pull = self._request("POST", f"/repos/{repo.owner}/{repo.repo}/pulls", json=payload)
        logger.info(f"Created pull request #{pull.get('number')}: {pull.get('html_url')}")
        return pull

    def update_pull_request(self, repo: RepoInfo, number: int, title: str, body: str) -> Mapping[str, Any]:
        pull = self._request(
            "PATCH",
            f"/repos/{repo.owner}/{repo.repo}/pulls/{number}",
            json={"title": title, "body": body},
        )
        logger.info(f"Updated pull request #{number}: {pull.get('html_url')}")
        return pull

    def close(self) -> None:
        self.client.close()
