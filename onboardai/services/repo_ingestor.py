"""Repository Ingestor - reads a GitHub repository into a RepositoryContext."""

import base64
import re
from typing import Any, Optional
from urllib.parse import unquote, urlparse

import requests

from onboardai.core.config import Settings
from onboardai.core.exceptions import InvalidLocatorError, OnboardAIError, RepositoryNotFoundError
from onboardai.models.schemas import RepositoryContext, RepositoryFile, RepositoryIdentity, RepositoryRef
from onboardai.utils.text_utils import truncate_text

SHORT_LOCATOR = re.compile(r"^[\w-]+/[\w.-]+$")

BINARY_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".webp", ".pdf", ".zip", ".exe")

TOP_PRIORITY_PATHS = [
    "README.md",
    "README.MD",
    "readme.md",
    "package.json",
    "pnpm-lock.yaml",
    "yarn.lock",
    "requirements.txt",
    "manage.py",
    "pyproject.toml",
    "poetry.lock",
    "setup.py",
    "Dockerfile",
    "docker-compose.yml",
    ".env.example",
    ".nvmrc",
    "tsconfig.json",
    "next.config.js",
    "next.config.ts",
]

ENTRY_POINT_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"^app/page\.(t|j)sx?$",
        r"^app/layout\.(t|j)sx?$",
        r"^src/index\.(t|j)sx?$",
        r"^src/main\.(t|j)sx?$",
        r"^index\.(t|j)sx?$",
        r"^main\.(t|j)sx?$",
        r"^server\.(t|j)s$",
        r"^app\.(t|j)s$",
        r"^cmd/[^/]+/main\.go$",
        r"^main\.py$",
        r"^app\.py$",
    )
]

CORE_FOLDER_PREFIXES = ["src/", "app/", "server/", "backend/", "api/", "packages/"]
CORE_KEYWORDS = ["routes", "controllers", "services", "components", "lib", "utils", "models"]
PYTHON_PREFIXES = ["src/", ""]
PYTHON_MODULE_NAMES = ["settings.py", "urls.py", "views.py", "models.py", "forms.py", "admin.py", "wsgi.py", "asgi.py"]
FILES_PER_PREFIX = 12


def parse_github_repo_url(locator: str) -> RepositoryRef:
    """
    Parse a repository locator.

    Accepts ``owner/repo``, ``https://github.com/owner/repo[.git]`` and
    ``https://github.com/owner/repo/tree/<ref>``.

    Raises:
        InvalidLocatorError: If the locator is not one of those forms
    """
    trimmed = (locator or "").strip()

    if SHORT_LOCATOR.match(trimmed):
        owner, repo = trimmed.split("/")
        return RepositoryRef(owner=owner, repo=repo)

    parsed = urlparse(trimmed)
    parts = [part for part in parsed.path.split("/") if part]
    if parsed.scheme not in ("http", "https") or parsed.hostname != "github.com" or len(parts) < 2:
        raise InvalidLocatorError("Invalid GitHub repository URL. Use https://github.com/owner/repo")

    owner = parts[0]
    repo = re.sub(r"\.git$", "", parts[1])
    ref = unquote(parts[3]) if len(parts) > 3 and parts[2] == "tree" else None
    return RepositoryRef(owner=owner, repo=repo, ref=ref)


def is_likely_text_file(path: str) -> bool:
    return not path.lower().endswith(BINARY_EXTENSIONS)


def pick_important_paths(all_paths: list[str], limit: int = 40) -> list[str]:
    """
    Choose the files most useful for explaining a repository.

    Order: top-level docs and config, common entry points, up to 12 files
    per core folder, then Python/Django module files. Capped at ``limit``.
    """
    paths = [p for p in all_paths if p]
    path_set = set(paths)
    picked: dict[str, None] = {}

    for path in TOP_PRIORITY_PATHS:
        if path in path_set:
            picked[path] = None

    for path in paths:
        if any(pattern.match(path) for pattern in ENTRY_POINT_PATTERNS):
            picked[path] = None

    for prefix in CORE_FOLDER_PREFIXES:
        candidates = [
            p
            for p in paths
            if p.startswith(prefix)
            and any(f"/{k}/" in p.lower() or p.lower().endswith(f"/{k}.ts") for k in CORE_KEYWORDS)
        ]
        for path in candidates[:FILES_PER_PREFIX]:
            picked[path] = None

    for prefix in PYTHON_PREFIXES:
        candidates = [
            p
            for p in paths
            if p.startswith(prefix) and any(p.lower().endswith(name) for name in PYTHON_MODULE_NAMES)
        ]
        for path in candidates[:FILES_PER_PREFIX]:
            picked[path] = None

    return list(picked)[:limit]


class RepositoryIngestor:
    """Fetches README, tree and important files over the GitHub REST API."""

    def __init__(self, settings: Settings, logger: Any, session: Optional[requests.Session] = None):
        """
        Initialize the ingestor.

        Args:
            settings: Application settings
            logger: Logger instance
            session: HTTP session (created if omitted)
        """
        self.settings = settings
        self.logger = logger
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/vnd.github+json"})
        if settings.github_token:
            self.session.headers["Authorization"] = f"Bearer {settings.github_token}"

    def _get(self, path: str, params: Optional[dict[str, Any]] = None) -> requests.Response:
        url = f"{self.settings.github_api_url.rstrip('/')}/{path.lstrip('/')}"
        try:
            return self.session.get(url, params=params, timeout=self.settings.http_timeout_seconds)
        except requests.exceptions.RequestException as e:
            raise OnboardAIError(f"GitHub request failed: {e}", reason="github_unreachable", retryable=True) from e

    def fetch_readme(self, ref: RepositoryRef) -> Optional[RepositoryFile]:
        """README decoded from base64, or None when missing."""
        params = {"ref": ref.ref} if ref.ref else None
        try:
            response = self._get(f"repos/{ref.owner}/{ref.repo}/readme", params=params)
        except OnboardAIError as e:
            self.logger.warning(f"README fetch failed: {e.message}")
            return None
        if response.status_code != 200:
            self.logger.info(f"No README for {ref.owner}/{ref.repo} (status {response.status_code})")
            return None

        try:
            data = response.json()
            content = base64.b64decode(data.get("content", "")).decode("utf-8", errors="replace")
        except (ValueError, TypeError, AttributeError) as e:
            self.logger.warning(f"README of {ref.owner}/{ref.repo} is malformed: {e}")
            return None
        return RepositoryFile(path=data.get("path", "README.md"), content=content)

    def fetch_tree(self, ref: RepositoryRef) -> tuple[str, str, list[dict[str, Any]]]:
        """
        Resolve the branch and list the recursive tree.

        Returns:
            (branch, default_branch, tree entries)

        Raises:
            RepositoryNotFoundError: If the repository or branch cannot be read
        """
        response = self._get(f"repos/{ref.owner}/{ref.repo}")
        if response.status_code != 200:
            raise RepositoryNotFoundError(
                f"Repository {ref.owner}/{ref.repo} not found or not accessible (status {response.status_code})"
            )
        default_branch = response.json().get("default_branch", "main")
        branch = ref.ref or default_branch

        response = self._get(f"repos/{ref.owner}/{ref.repo}/git/trees/{branch}", params={"recursive": "true"})
        if response.status_code != 200:
            raise RepositoryNotFoundError(f"Could not read tree for {ref.owner}/{ref.repo}@{branch}")
        tree = response.json().get("tree", [])
        if response.json().get("truncated"):
            self.logger.warning(f"GitHub truncated the tree listing of {ref.owner}/{ref.repo}")
        return branch, default_branch, tree

    def fetch_text_file(self, ref: RepositoryRef, path: str) -> Optional[RepositoryFile]:
        """UTF-8 content of a file; None for binaries, directories and failures."""
        if not is_likely_text_file(path):
            return None

        params = {"ref": ref.ref} if ref.ref else None
        try:
            response = self._get(f"repos/{ref.owner}/{ref.repo}/contents/{path}", params=params)
        except OnboardAIError as e:
            self.logger.warning(f"Skipping {path}: {e.message}")
            return None
        if response.status_code != 200:
            self.logger.warning(f"Skipping {path}: status {response.status_code}")
            return None

        try:
            data = response.json()
        except ValueError as e:
            self.logger.warning(f"Skipping {path}: malformed response ({e})")
            return None
        # Directory listings come back as arrays
        if not isinstance(data, dict) or not data.get("content"):
            return None
        try:
            content = base64.b64decode(data["content"]).decode("utf-8", errors="replace")
        except (ValueError, TypeError) as e:
            self.logger.warning(f"Skipping {path}: content is not valid base64 ({e})")
            return None
        return RepositoryFile(path=path, content=content)

    def ingest(self, locator: str) -> RepositoryContext:
        """
        Build the repository context for a locator.

        Raises:
            InvalidLocatorError: If the locator cannot be parsed
            RepositoryNotFoundError: If the repository cannot be read
        """
        ref = parse_github_repo_url(locator)
        self.logger.info(f"Ingesting {ref.owner}/{ref.repo}" + (f"@{ref.ref}" if ref.ref else ""))

        readme = self.fetch_readme(ref)
        branch, default_branch, tree = self.fetch_tree(ref)

        all_paths = [entry["path"] for entry in tree if entry.get("type") == "blob" and entry.get("path")]
        picked = pick_important_paths(all_paths, limit=self.settings.max_picked_files)

        files = []
        for path in picked:
            fetched = self.fetch_text_file(ref, path)
            if fetched is not None:
                files.append(
                    RepositoryFile(path=fetched.path, content=truncate_text(fetched.content, self.settings.max_file_chars))
                )

        if readme is not None:
            readme = RepositoryFile(path=readme.path, content=truncate_text(readme.content, self.settings.max_readme_chars))

        self.logger.info(f"Ingested {len(files)}/{len(picked)} picked files of {len(all_paths)} in tree")
        return RepositoryContext(
            repo=RepositoryIdentity(
                owner=ref.owner, repo=ref.repo, ref=ref.ref, branch=branch, default_branch=default_branch
            ),
            readme=readme,
            files=files,
            folder_tree=all_paths[: self.settings.max_tree_paths],
            picked=picked,
            total_files=len(all_paths),
        )
