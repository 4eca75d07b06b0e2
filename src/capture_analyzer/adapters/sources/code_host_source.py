"""GitHub repository adapter."""

from typing import Optional

import httpx

from capture_analyzer.core import ContentType, PartialMetadata, SourceAdapter
from capture_analyzer.core.urls import path_segments

# First path segments that are GitHub pages, not repository owners
RESERVED_OWNERS = {
    "about", "apps", "collections", "enterprise", "explore", "features", "issues",
    "login", "marketplace", "notifications", "orgs", "pricing", "pulls", "search",
    "settings", "sponsors", "topics", "trending",
}


class CodeHostAdapter(SourceAdapter):
    """Repository stars, forks, language and description from the GitHub API."""

    emoji = "🐙"
    name = "GitHub"
    content_types = frozenset({ContentType.GITHUB})

    def __init__(
        self,
        token: Optional[str] = None,
        timeout: float = 10.0,
        api_base: str = "https://api.github.com",
    ) -> None:
        self.token = token
        self.timeout = timeout
        self.api_base = api_base.rstrip("/")

    def handles(self, url: str, content_type: ContentType) -> bool:
        return content_type in self.content_types and repo_slug(url) is not None

    async def fetch(self, url: str) -> Optional[PartialMetadata]:
        """Look up the repository the URL points into."""
        slug = repo_slug(url)
        if not slug:
            return None

        owner, repo = slug
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.get(
                    f"{self.api_base}/repos/{owner}/{repo}",
                    headers=self._get_headers(),
                )
            except httpx.HTTPError as e:
                print(f"  └─ ⚠️  GitHub request failed: {e}")
                return None

        if response.status_code != 200:
            print(f"  └─ ⚠️  GitHub API error: {response.status_code}")
            if response.status_code == 403:
                print(f"      Rate limit or authentication required")
            return None

        try:
            repo = response.json()
        except ValueError as e:
            print(f"  └─ ⚠️  GitHub returned invalid JSON: {e}")
            return None

        if not isinstance(repo, dict):
            print(f"  └─ ⚠️  GitHub returned unexpected payload")
            return None

        return self._create_metadata(repo)

    def _create_metadata(self, repo: dict) -> PartialMetadata:
        """Map a repository API object to partial metadata."""
        owner = repo.get("owner") or {}
        md = PartialMetadata(
            title=repo.get("full_name"),
            author=owner.get("login"),
            profile_image=owner.get("avatar_url"),
            stars=repo.get("stargazers_count"),
            forks=repo.get("forks_count"),
            language=repo.get("language"),
            published_date=repo.get("created_at"),
            domain="github.com",
        )

        # Keep page description when the repository has none
        if repo.get("description"):
            md.description = repo["description"]

        license_info = repo.get("license") or {}
        github = {
            "topics": repo.get("topics") or None,
            "license": license_info.get("spdx_id"),
            "default_branch": repo.get("default_branch"),
            "open_issues": repo.get("open_issues_count"),
            "homepage": repo.get("homepage") or None,
            "archived": repo.get("archived"),
            "updated_at": repo.get("pushed_at"),
        }
        md.extra_data["github"] = {key: value for key, value in github.items() if value is not None}

        return md

    def _get_headers(self) -> dict[str, str]:
        """Get headers for GitHub API requests."""
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        return headers


def repo_slug(url: str) -> Optional[tuple[str, str]]:
    """(owner, repo) for repository URLs, None for other GitHub pages."""
    segments = path_segments(url)
    if len(segments) < 2 or segments[0].lower() in RESERVED_OWNERS:
        return None
    return segments[0], segments[1].removesuffix(".git")
