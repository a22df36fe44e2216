"""
Integration tests for the callback handlers behind the chat UI.

The app runs with mock provider backends and the fake GitHub API, so a full
turn (message, proposal, confirmed commit) is exercised end to end.
"""

import json
from unittest.mock import MagicMock

import pytest
from chatcommit import ChatCommit
from chatcommit.callbacks import handle_commit, handle_message, handle_submit
from dash import no_update


@pytest.fixture
def app(settings, provider, gateway):
    return ChatCommit(settings=settings, provider=provider, gateway=gateway)


class TestHandleMessage:
    def test_first_message_starts_a_session(self, app, mock_backend):
        result = handle_message(app, "  Hello  ", [], None, "gpt-4o")

        assert result["session_id"]
        assert result["proposal"] is None
        assert result["messages"] == [
            {"role": "user", "text": "Hello"},
            {"role": "model", "text": "Mock LLM response", "structured_data": None},
        ]
        saved = app.store.get_session_messages(result["session_id"])
        assert [(m.role, m.content) for m in saved] == [
            ("user", "Hello"),
            ("model", "Mock LLM response"),
        ]
        assert app.store.list_sessions()[0].title == "Hello"

    def test_history_is_sent_and_session_reused(self, app, mock_backend):
        first = handle_message(app, "Hello", [], None, "gpt-4o")
        second = handle_message(
            app, "Again", first["messages"], first["session_id"], "gpt-4o"
        )

        assert second["session_id"] == first["session_id"]
        assert len(second["messages"]) == 4
        history = mock_backend.generate_response.call_args.args[1]
        assert [t.text for t in history] == ["Hello", "Mock LLM response"]
        assert len(app.store.get_session_messages(first["session_id"])) == 4

    def test_commit_proposal_is_returned(self, app, mock_backend, make_commit_reply):
        mock_backend.extract_content.return_value = make_commit_reply()

        result = handle_message(app, "Build a page", [], None, "gpt-4o")

        assert result["proposal"]["action"] == "COMMIT"
        assert result["proposal"]["file_path"] == "app/page.tsx"
        assert result["messages"][-1]["structured_data"] == result["proposal"]
        saved = app.store.get_session_messages(result["session_id"])
        assert saved[-1].structured_data.file_path == "app/page.tsx"

    def test_provider_failure_is_shown_in_chat(self, settings_factory, gateway):
        app = ChatCommit(settings=settings_factory(GROQ_API_KEY=None), gateway=gateway)

        result = handle_message(app, "Hi", [], None, "llama-3.3-70b-versatile")

        reply = result["messages"][-1]["text"]
        assert reply.startswith("Error (groq): GROQ_API_KEY is missing")

    def test_store_failure_keeps_the_reply(self, settings, provider, gateway):
        store = MagicMock()
        store.create_session.side_effect = RuntimeError("database down")
        app = ChatCommit(
            settings=settings, provider=provider, gateway=gateway, store=store
        )

        result = handle_message(app, "Hi", [], None, "gpt-4o")

        assert result["messages"][-1]["text"] == "Mock LLM response"
        assert result["session_id"] is None

    def test_file_tree_included_when_enabled(
        self, settings, provider, gateway, github, mock_backend
    ):
        github.store("app/page.tsx", "x")
        app = ChatCommit(
            settings=settings,
            provider=provider,
            gateway=gateway,
            include_file_tree=True,
        )

        handle_message(app, "Hi", [], None, "gpt-4o")

        instruction = mock_backend.generate_response.call_args.args[0]
        assert "- app/page.tsx" in instruction


class TestHandleSubmit:
    def test_blank_input_changes_nothing(self, app, mock_backend):
        assert handle_submit(app, 1, "   ", [], None, "gpt-4o") == (no_update,) * 5
        mock_backend.generate_response.assert_not_called()

    def test_reply_clears_input(self, app):
        messages, session_id, proposal, text, status = handle_submit(
            app, 1, "Hi", [], None, "gpt-4o"
        )
        assert len(messages) == 2
        assert session_id
        assert proposal is None
        assert (text, status) == ("", "")

    def test_chat_reply_clears_previous_proposal(
        self, app, mock_backend, make_commit_reply
    ):
        mock_backend.extract_content.return_value = make_commit_reply()
        messages, session_id, proposal, _, _ = handle_submit(
            app, 1, "Build a page", [], None, "gpt-4o"
        )
        assert proposal["file_path"] == "app/page.tsx"

        mock_backend.extract_content.return_value = json.dumps(
            {"text": "Anything else?", "structuredData": None}
        )
        _, _, proposal, _, _ = handle_submit(
            app, 2, "Thanks", messages, session_id, "gpt-4o"
        )

        assert proposal is None


class TestHandleCommit:
    def test_confirmed_proposal_is_committed(
        self, app, github, mock_backend, make_commit_reply
    ):
        mock_backend.extract_content.return_value = make_commit_reply()
        proposal = handle_message(app, "Build a page", [], None, "gpt-4o")["proposal"]
        assert github.requests == []

        alert = handle_commit(app, proposal)

        assert alert.color == "success"
        assert alert.children[0] == "File created successfully"
        assert github.content("app/page.tsx") == proposal["new_content"]

    def test_failure_is_shown_as_danger(self, app, github):
        github.store("a.txt", "old")
        github.before_put = lambda fake, path: fake.store(path, "theirs")
        proposal = {
            "action": "COMMIT",
            "file_path": "a.txt",
            "commit_message": "m",
            "new_content": "hello",
        }

        alert = handle_commit(app, proposal)

        assert alert.color == "danger"
        assert alert.children.startswith("Commit failed:")

    def test_incomplete_proposal_is_rejected(self, app, github):
        alert = handle_commit(app, {"action": "COMMIT"})
        assert alert.color == "danger"
        assert github.requests == []
