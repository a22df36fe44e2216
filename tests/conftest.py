"""
Core pytest configuration and fixtures for Chatcommit testing.

This module provides shared settings, an in-process fake of the GitHub REST
API, and mock provider backends so no test touches the network.
"""

import base64
import hashlib
import json
from typing import Any, Callable, Dict, List, Optional
from unittest.mock import MagicMock

import httpx
import pytest
from chatcommit.config import Settings
from chatcommit.github import CommitGateway
from chatcommit.llm import ProviderClient
from chatcommit.models import (
    MODEL_ROLE,
    USER_ROLE,
    ConversationTurn,
    ModelConfig,
    RepoCoordinates,
)
from chatcommit.orchestrator import Orchestrator

OWNER = "octo"
REPO = "site"

# ===== SETTINGS =====


def make_settings(**overrides: Any) -> Settings:
    """Settings isolated from the host environment and any .env file."""
    values = {
        "GEMINI_API_KEY": "gemini-key",
        "GROQ_API_KEY": "groq-key",
        "OPENAI_API_KEY": "openai-key",
        "GITHUB_TOKEN": "gh-token",
        "GITHUB_OWNER": OWNER,
        "GITHUB_REPO": REPO,
        "GITHUB_BRANCH": "main",
        "GITHUB_API_URL": "https://api.github.com",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def coordinates() -> RepoCoordinates:
    return RepoCoordinates(owner=OWNER, repo=REPO, branch="main", token="gh-token")


# ===== FAKE GITHUB =====


class FakeGitHub:
    """In-memory GitHub contents API.

    Every write issues a fresh sha; an update whose sha does not match the
    current blob is answered with 409, like the real API.
    """

    def __init__(self, files: Optional[Dict[str, str]] = None):
        self.files: Dict[str, Dict[str, str]] = {}
        self.requests: List[httpx.Request] = []
        self.writes = 0
        self.probe_status: Optional[int] = None
        self.before_put: Optional[Callable[["FakeGitHub", str], None]] = None
        for path, content in (files or {}).items():
            self.store(path, content)

    # --- state helpers ---

    def store(self, path: str, content: str) -> str:
        self.writes += 1
        sha = hashlib.sha1(f"{path}:{content}:{self.writes}".encode()).hexdigest()
        self.files[path] = {"content": content, "sha": sha}
        return sha

    def content(self, path: str) -> str:
        return self.files[path]["content"]

    def sha(self, path: str) -> str:
        return self.files[path]["sha"]

    @property
    def methods(self) -> List[str]:
        return [r.method for r in self.requests]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    # --- request handling ---

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        prefix = f"/repos/{OWNER}/{REPO}/"
        path = request.url.path
        if not path.startswith(prefix):
            return httpx.Response(404, json={"message": "Not Found"})
        rest = path[len(prefix) :]

        if rest.startswith("contents/"):
            file_path = rest[len("contents/") :]
            if request.method == "GET":
                return self._get_contents(file_path)
            if request.method == "PUT":
                return self._put_contents(file_path, json.loads(request.content))
        if rest.startswith("git/ref/heads/"):
            return httpx.Response(200, json={"object": {"sha": "head-sha"}})
        if rest.startswith("git/trees/"):
            return self._get_tree()
        return httpx.Response(404, json={"message": "Not Found"})

    def _get_contents(self, file_path: str) -> httpx.Response:
        if self.probe_status is not None:
            return httpx.Response(self.probe_status, json={"message": "Server Error"})
        if file_path not in self.files:
            return httpx.Response(404, json={"message": "Not Found"})
        return httpx.Response(
            200,
            json={"type": "file", "path": file_path, "sha": self.sha(file_path)},
        )

    def _put_contents(self, file_path: str, payload: Dict[str, Any]) -> httpx.Response:
        if self.before_put is not None:
            hook, self.before_put = self.before_put, None
            hook(self, file_path)

        existing = self.files.get(file_path)
        sent_sha = payload.get("sha")
        if existing and not sent_sha:
            return httpx.Response(
                422, json={"message": 'Invalid request.\n\n"sha" wasn\'t supplied.'}
            )
        if existing and sent_sha != existing["sha"]:
            return httpx.Response(
                409,
                json={"message": f"{file_path} does not match {sent_sha}"},
            )
        if not existing and sent_sha:
            return httpx.Response(404, json={"message": "Not Found"})

        content = base64.b64decode(payload["content"]).decode("utf-8")
        sha = self.store(file_path, content)
        commit_sha = hashlib.sha1(f"commit:{sha}".encode()).hexdigest()
        return httpx.Response(
            200 if existing else 201,
            json={
                "content": {"path": file_path, "sha": sha},
                "commit": {
                    "sha": commit_sha,
                    "message": payload["message"],
                    "html_url": f"https://github.com/{OWNER}/{REPO}/commit/{commit_sha}",
                },
            },
        )

    def _get_tree(self) -> httpx.Response:
        tree = [{"path": path, "type": "blob"} for path in self.files]
        tree.append({"path": "app", "type": "tree"})
        return httpx.Response(200, json={"sha": "head-sha", "tree": tree})


@pytest.fixture
def github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
def gateway(settings, github) -> CommitGateway:
    return CommitGateway(settings, transport=github.transport)


# ===== PROVIDER FIXTURES =====


@pytest.fixture
def openai_model() -> ModelConfig:
    return ModelConfig(id="gpt-4o", display_name="GPT-4o", provider_kind="openai")


@pytest.fixture
def google_model() -> ModelConfig:
    return ModelConfig(
        id="gemini-2.0-flash", display_name="Gemini 2.0 Flash", provider_kind="google"
    )


@pytest.fixture
def mock_backend():
    """Mock LLM backend returning whatever `extract_content` is set to."""
    mock = MagicMock()
    mock.generate_response.return_value = MagicMock()
    mock.extract_content.return_value = json.dumps(
        {"text": "Mock LLM response", "structuredData": None}
    )
    return mock


@pytest.fixture
def provider(settings, mock_backend) -> ProviderClient:
    return ProviderClient(
        settings,
        backends={"openai": mock_backend, "google": mock_backend, "groq": mock_backend},
    )


@pytest.fixture
def orchestrator(provider, gateway) -> Orchestrator:
    return Orchestrator(provider, gateway)


@pytest.fixture
def sample_history() -> List[ConversationTurn]:
    return [
        ConversationTurn(role=USER_ROLE, text="Build a landing page"),
        ConversationTurn(role=MODEL_ROLE, text="Which framework do you use?"),
    ]


def commit_reply(**proposal: Any) -> str:
    """A provider reply carrying a COMMIT proposal."""
    structured = {
        "action": "COMMIT",
        "file_path": "app/page.tsx",
        "commit_message": "Add landing page",
        "new_content": "export default function Page() { return null }",
    }
    structured.update(proposal)
    return json.dumps({"text": "Here is your page.", "structuredData": structured})


@pytest.fixture
def make_commit_reply():
    return commit_reply


@pytest.fixture
def settings_factory():
    return make_settings


# ===== CONFIGURATION =====


def pytest_configure(config):
    """Pytest configuration."""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on location."""
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
