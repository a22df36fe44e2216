"""Server-side commit endpoint mounted on the app's Flask server."""

import logging

from flask import Flask, jsonify, request

from .config import Settings, resolve_coordinates
from .errors import ChatCommitError
from .github import CommitGateway
from .models import CommitRequest

logger = logging.getLogger(__name__)

COMMIT_PATH = "/api/commit"
REQUIRED_FIELDS = ("file_path", "new_content", "commit_message")


def register_commit_route(
    server: Flask, gateway: CommitGateway, settings: Settings, path: str = COMMIT_PATH
) -> None:
    """Adds `POST <path>`, which commits one file with the server's GitHub token."""

    @server.route(
        path,
        methods=["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        endpoint="commit_file",
        provide_automatic_options=False,
    )
    def commit_file():
        if request.method != "POST":
            return jsonify(error="Method Not Allowed"), 405

        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            body = {}
        fields = {name: body.get(name) for name in REQUIRED_FIELDS}
        if not all(isinstance(value, str) and value for value in fields.values()):
            return (
                jsonify(
                    error="Missing required fields: file_path, new_content, commit_message"
                ),
                400,
            )

        if not settings.has_github_config:
            logger.error("Commit endpoint called without GitHub configuration")
            return (
                jsonify(error="Server configuration error: Missing GitHub credentials."),
                500,
            )

        try:
            result = gateway.commit(
                CommitRequest(**fields), resolve_coordinates(settings)
            )
        except ChatCommitError as e:
            logger.error("GitHub Commit API Error: %s", e)
            return jsonify(e.to_dict()), e.status_code

        return (
            jsonify(success=True, message=result.message, html_url=result.html_url),
            200,
        )
