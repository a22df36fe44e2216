"""Tests for the chat history store."""

import pytest
from chatcommit.models import MODEL_ROLE, USER_ROLE, ChangeProposal
from chatcommit.store import InMemory, Store, session_title


class TestSessionTitle:
    def test_short_message_is_kept(self):
        assert session_title("Build a navbar") == "Build a navbar"

    def test_exactly_thirty_characters_is_kept(self):
        message = "x" * 30
        assert session_title(message) == message

    def test_long_message_is_truncated(self):
        message = "Create a landing page with a hero section and pricing"
        assert session_title(message) == message[:30] + "..."


class TestInMemory:
    @pytest.fixture
    def store(self):
        return InMemory()

    def test_is_a_store(self, store):
        assert isinstance(store, Store)

    def test_create_session(self, store):
        session = store.create_session("Build a navbar")
        assert session.id
        assert session.title == "Build a navbar"
        assert store.get_session_messages(session.id) == []

    def test_save_and_load_messages(self, store):
        session = store.create_session("Hi")
        proposal = ChangeProposal(action="COMMIT", file_path="a.txt", new_content="x")

        store.save_message(session.id, USER_ROLE, "Hi")
        store.save_message(session.id, MODEL_ROLE, "Here you go", proposal)

        messages = store.get_session_messages(session.id)
        assert [m.role for m in messages] == [USER_ROLE, MODEL_ROLE]
        assert messages[0].structured_data is None
        assert messages[1].structured_data == proposal
        assert [m.to_turn().text for m in messages] == ["Hi", "Here you go"]

    def test_save_to_unknown_session(self, store):
        with pytest.raises(KeyError):
            store.save_message("missing", USER_ROLE, "Hi")

    def test_unknown_session_has_no_messages(self, store):
        assert store.get_session_messages("missing") == []

    def test_list_sessions_newest_first(self, store):
        first = store.create_session("first")
        second = store.create_session("second")
        third = store.create_session("third")

        ids = [s.id for s in store.list_sessions()]

        assert ids == [third.id, second.id, first.id]

    def test_returned_objects_are_copies(self, store):
        session = store.create_session("Hi")
        store.save_message(session.id, USER_ROLE, "Hi")

        store.get_session_messages(session.id)[0].content = "changed"
        store.list_sessions()[0].title = "changed"

        assert store.get_session_messages(session.id)[0].content == "Hi"
        assert store.list_sessions()[0].title == "Hi"
