"""
Defines the core Pydantic data models for the application.

These models serve as the formal, validated data contract between the provider
client, the response parser, the commit gateway and the orchestrator.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

# --- Constants ---
USER_ROLE = "user"
MODEL_ROLE = "model"
Role = Literal[USER_ROLE, MODEL_ROLE]

COMMIT_ACTION = "COMMIT"
CHAT_ACTION = "CHAT"
Action = Literal[COMMIT_ACTION, CHAT_ACTION]

GOOGLE = "google"
GROQ = "groq"
OPENAI = "openai"
ECHO = "echo"
ProviderKind = Literal[GOOGLE, GROQ, OPENAI, ECHO]

CREATED = "created"
UPDATED = "updated"
Operation = Literal[CREATED, UPDATED]


# --- Conversation ---
class ConversationTurn(BaseModel):
    """A single turn of a session transcript."""

    role: Role
    text: str


class ModelConfig(BaseModel):
    """Immutable catalog entry describing a selectable model."""

    model_config = ConfigDict(frozen=True)

    id: str
    display_name: str
    provider_kind: ProviderKind
    description: str = ""


# --- AI response contract ---
class ChangeProposal(BaseModel):
    """A structured suggestion to change one file.

    Field names match the JSON keys the model is instructed to emit.
    """

    action: Action
    file_path: Optional[str] = None
    commit_message: Optional[str] = None
    new_content: Optional[str] = None
    preview_content: Optional[str] = None

    @property
    def is_commit(self) -> bool:
        return self.action == COMMIT_ACTION

    @property
    def is_committable(self) -> bool:
        """True when the proposal carries everything a commit needs."""
        return self.is_commit and bool(self.file_path) and bool(self.new_content)


class AIResponse(BaseModel):
    """Result of one provider exchange."""

    model_config = ConfigDict(populate_by_name=True)

    text: str
    structured_data: Optional[ChangeProposal] = Field(
        default=None, alias="structuredData"
    )


# --- Commit contract ---
class CommitRequest(BaseModel):
    file_path: str
    new_content: str
    commit_message: str


class CommitResult(BaseModel):
    """Outcome of a successful create-or-update file operation."""

    success: bool = True
    operation: Operation
    html_url: Optional[str] = None

    @property
    def message(self) -> str:
        return f"File {self.operation} successfully"


class RepoCoordinates(BaseModel):
    """Identifies the target repository for one request."""

    model_config = ConfigDict(frozen=True)

    owner: Optional[str] = None
    repo: Optional[str] = None
    branch: str = "main"
    token: Optional[str] = Field(default=None, repr=False)


# --- Chat history ---
class ChatSession(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class SavedMessage(BaseModel):
    """A transcript message as persisted by the history store."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    session_id: str
    role: Role
    content: str
    structured_data: Optional[ChangeProposal] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_turn(self) -> ConversationTurn:
        return ConversationTurn(role=self.role, text=self.content)


# --- Model catalog ---
AVAILABLE_MODELS: List[ModelConfig] = [
    ModelConfig(
        id="gemini-2.0-flash",
        display_name="Gemini 2.0 Flash",
        provider_kind=GOOGLE,
        description="Fast multimodal model from Google.",
    ),
    ModelConfig(
        id="gemini-1.5-pro",
        display_name="Gemini 1.5 Pro",
        provider_kind=GOOGLE,
        description="Google model with a long context window.",
    ),
    ModelConfig(
        id="llama-3.3-70b-versatile",
        display_name="Llama 3.3 70B (Groq)",
        provider_kind=GROQ,
        description="Open-weight Llama served on Groq hardware.",
    ),
    ModelConfig(
        id="mixtral-8x7b-32768",
        display_name="Mixtral 8x7B (Groq)",
        provider_kind=GROQ,
        description="Mixture-of-experts model served on Groq hardware.",
    ),
    ModelConfig(
        id="gpt-4o",
        display_name="GPT-4o",
        provider_kind=OPENAI,
        description="OpenAI flagship model.",
    ),
    ModelConfig(
        id="gpt-4o-mini",
        display_name="GPT-4o mini",
        provider_kind=OPENAI,
        description="Small, inexpensive OpenAI model.",
    ),
]


def get_model(model_id: str) -> ModelConfig:
    """Looks up a catalog entry by id, raising KeyError when unknown."""
    for model in AVAILABLE_MODELS:
        if model.id == model_id:
            return model
    raise KeyError(model_id)
