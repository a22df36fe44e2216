"""GitHub REST access: the commit gateway and the repository file listing."""

import base64
import logging
import posixpath
from typing import Any, Callable, Dict, List, Optional, TypeVar
from urllib.parse import quote

import httpx

from .config import Settings
from .errors import CommitFailed, InvalidRequest, MissingCredential, UpstreamError
from .models import CREATED, UPDATED, CommitRequest, CommitResult, RepoCoordinates

logger = logging.getLogger(__name__)

T = TypeVar("T")

GITHUB = "github"
API_VERSION = "2022-11-28"
IGNORED_DIRS = ("node_modules",)
LOCK_FILES = {
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "poetry.lock",
    "Pipfile.lock",
    "uv.lock",
}


class GitHubClient:
    """Thin wrapper over the GitHub REST endpoints this package needs.

    Every non-success status is raised as UpstreamError carrying the status and
    GitHub's message; transport failures are raised the same way with no status.
    """

    def __init__(self, http: httpx.Client):
        self.http = http

    def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = self.http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise UpstreamError(GITHUB, str(e) or type(e).__name__) from e
        if response.is_error:
            raise UpstreamError(GITHUB, _error_message(response), response.status_code)
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(
                GITHUB, "Invalid JSON in response", response.status_code
            ) from e

    @staticmethod
    def _contents_url(owner: str, repo: str, path: str) -> str:
        return f"/repos/{owner}/{repo}/contents/{quote(path.lstrip('/'), safe='/')}"

    def get_file_sha(
        self, owner: str, repo: str, path: str, branch: str
    ) -> Optional[str]:
        """Returns the blob sha of a file, or None when the path is a directory."""
        data = self._request(
            "GET", self._contents_url(owner, repo, path), params={"ref": branch}
        )
        if isinstance(data, dict):
            return data.get("sha")
        return None

    def put_file(
        self,
        owner: str,
        repo: str,
        path: str,
        message: str,
        content: str,
        branch: str,
        sha: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Creates a file, or updates it when `sha` names the current blob."""
        payload = {
            "message": message,
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            "branch": branch,
        }
        if sha:
            payload["sha"] = sha
        return self._request("PUT", self._contents_url(owner, repo, path), json=payload)

    def get_branch_sha(self, owner: str, repo: str, branch: str) -> str:
        data = self._request("GET", f"/repos/{owner}/{repo}/git/ref/heads/{branch}")
        target = data.get("object") if isinstance(data, dict) else None
        sha = target.get("sha") if isinstance(target, dict) else None
        if not isinstance(sha, str):
            raise UpstreamError(GITHUB, "Unexpected ref payload")
        return sha

    def get_tree(self, owner: str, repo: str, tree_sha: str) -> List[Dict[str, Any]]:
        data = self._request(
            "GET",
            f"/repos/{owner}/{repo}/git/trees/{tree_sha}",
            params={"recursive": "true"},
        )
        tree = data.get("tree") if isinstance(data, dict) else None
        if not isinstance(tree, list):
            raise UpstreamError(GITHUB, "Unexpected tree payload")
        return [item for item in tree if isinstance(item, dict)]


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return body["message"]
    return response.reason_phrase or f"HTTP {response.status_code}"


class BestEffortProbe:
    """Runs a read whose failures are tolerated rather than aborting the caller.

    A not-found answer is an expected outcome and is returned as None quietly.
    Any other UpstreamError is logged as a warning and also returned as None.
    """

    def __init__(self, name: str):
        self.name = name

    def run(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> Optional[T]:
        try:
            return func(*args, **kwargs)
        except UpstreamError as e:
            if e.status == 404:
                logger.debug("%s: not found", self.name)
            else:
                logger.warning("%s failed, continuing without it: %s", self.name, e)
            return None


def is_context_file(path: Optional[str]) -> bool:
    """Filters out version-control metadata, vendored dependencies and lock files."""
    if not isinstance(path, str) or not path or path.startswith(".git"):
        return False
    if any(part in IGNORED_DIRS for part in path.split("/")):
        return False
    return posixpath.basename(path) not in LOCK_FILES


class CommitGateway:
    """Validates a change and performs a create-or-update file write on GitHub."""

    def __init__(
        self, settings: Settings, transport: Optional[httpx.BaseTransport] = None
    ):
        self.settings = settings
        self.transport = transport
        self.probe = BestEffortProbe("Existing file lookup")

    def _http(self, token: str) -> httpx.Client:
        return httpx.Client(
            base_url=self.settings.GITHUB_API_URL,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": API_VERSION,
            },
            timeout=self.settings.REQUEST_TIMEOUT,
            transport=self.transport,
        )

    def resolve_token(self, coordinates: RepoCoordinates) -> str:
        token = coordinates.token or self.settings.GITHUB_TOKEN
        if not token:
            raise MissingCredential("GITHUB_TOKEN")
        return token

    def validate(self, request: CommitRequest, coordinates: RepoCoordinates) -> str:
        """Checks every required field before any remote call; returns the token."""
        missing = [
            name
            for name in ("file_path", "new_content", "commit_message")
            if not getattr(request, name)
        ]
        missing += [
            name for name in ("owner", "repo") if not getattr(coordinates, name)
        ]
        if missing:
            raise InvalidRequest(
                f"Missing required fields: {', '.join(missing)}", missing=missing
            )
        return self.resolve_token(coordinates)

    def commit(
        self, request: CommitRequest, coordinates: RepoCoordinates
    ) -> CommitResult:
        """Creates or updates `request.file_path` on the coordinates' branch.

        The current blob sha is read first; when found it is sent with the write
        so GitHub rejects the update if the file changed in between. Callers
        recover from such a conflict by calling commit() again.

        Raises
        ------
        InvalidRequest
            If a request field or the owner/repo is missing.
        MissingCredential
            If neither the coordinates nor the settings carry a token.
        CommitFailed
            If GitHub rejects the write.
        """
        token = self.validate(request, coordinates)
        owner, repo, branch = coordinates.owner, coordinates.repo, coordinates.branch

        with self._http(token) as http:
            client = GitHubClient(http)
            sha = self.probe.run(
                client.get_file_sha, owner, repo, request.file_path, branch
            )
            try:
                data = client.put_file(
                    owner,
                    repo,
                    request.file_path,
                    request.commit_message,
                    request.new_content,
                    branch,
                    sha=sha,
                )
            except UpstreamError as e:
                logger.error(
                    "Commit of %s to %s/%s failed: %s",
                    request.file_path,
                    owner,
                    repo,
                    e,
                )
                raise CommitFailed(e.upstream_message, e.status) from e

        if not isinstance(data, dict):
            logger.error(
                "Unexpected commit response for %s: %r", request.file_path, data
            )
            raise CommitFailed("Unexpected response payload from GitHub")
        commit = data.get("commit")
        html_url = commit.get("html_url") if isinstance(commit, dict) else None
        result = CommitResult(operation=UPDATED if sha else CREATED, html_url=html_url)
        logger.info(
            "%s %s in %s/%s@%s",
            result.operation.capitalize(),
            request.file_path,
            owner,
            repo,
            branch,
        )
        return result

    def get_file_tree(self, coordinates: RepoCoordinates) -> List[str]:
        """Lists the repository's file paths for model context.

        Best-effort: any failure yields an empty list.
        """
        try:
            token = self.resolve_token(coordinates)
            if not coordinates.owner or not coordinates.repo:
                return []
            with self._http(token) as http:
                client = GitHubClient(http)
                sha = client.get_branch_sha(
                    coordinates.owner, coordinates.repo, coordinates.branch
                )
                tree = client.get_tree(coordinates.owner, coordinates.repo, sha)
            return [
                item["path"]
                for item in tree
                if item.get("type") == "blob" and is_context_file(item.get("path"))
            ]
        except (MissingCredential, UpstreamError) as e:
            logger.warning("Failed to fetch repo tree: %s", e)
            return []
