"""Concrete implementations for chat history stores."""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from .models import ChangeProposal, ChatSession, Role, SavedMessage

TITLE_LENGTH = 30


def session_title(first_message: str) -> str:
    """Truncates the opening message into a sidebar title."""
    if len(first_message) > TITLE_LENGTH:
        return first_message[:TITLE_LENGTH] + "..."
    return first_message


class Store(ABC):
    """Interface for saving and loading chat sessions and their messages."""

    @abstractmethod
    def create_session(self, first_message: str) -> ChatSession:
        """Creates a session titled after its first message."""
        pass

    @abstractmethod
    def save_message(
        self,
        session_id: str,
        role: Role,
        content: str,
        structured_data: Optional[ChangeProposal] = None,
    ) -> SavedMessage:
        """Appends a message to a session."""
        pass

    @abstractmethod
    def list_sessions(self) -> List[ChatSession]:
        """Lists all sessions, newest first."""
        pass

    @abstractmethod
    def get_session_messages(self, session_id: str) -> List[SavedMessage]:
        """Returns a session's messages, oldest first."""
        pass


class InMemory(Store):
    """Keeps sessions and messages in in-memory dictionaries."""

    def __init__(self):
        self._sessions: Dict[str, ChatSession] = {}
        self._messages: Dict[str, List[SavedMessage]] = {}

    def create_session(self, first_message: str) -> ChatSession:
        session = ChatSession(title=session_title(first_message))
        self._sessions[session.id] = session
        self._messages[session.id] = []
        return session.model_copy(deep=True)

    def save_message(self, session_id, role, content, structured_data=None):
        if session_id not in self._sessions:
            raise KeyError(session_id)
        message = SavedMessage(
            session_id=session_id,
            role=role,
            content=content,
            structured_data=structured_data,
        )
        self._messages[session_id].append(message.model_copy(deep=True))
        return message

    def list_sessions(self) -> List[ChatSession]:
        # Insertion order breaks ties between sessions created in the same tick.
        sessions = list(self._sessions.values())[::-1]
        sessions.sort(key=lambda s: s.created_at, reverse=True)
        return [s.model_copy(deep=True) for s in sessions]

    def get_session_messages(self, session_id: str) -> List[SavedMessage]:
        return [m.model_copy(deep=True) for m in self._messages.get(session_id, [])]
