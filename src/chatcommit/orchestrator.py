"""Sequences one chat turn and the separate, user-confirmed commit."""

import logging
from typing import List, Optional, Sequence

from . import parser, prompts
from .errors import ChatCommitError, InvalidRequest, UpstreamError
from .github import CommitGateway
from .llm import ProviderClient
from .models import (
    AVAILABLE_MODELS,
    AIResponse,
    ChangeProposal,
    CommitRequest,
    CommitResult,
    ConversationTurn,
    ModelConfig,
    RepoCoordinates,
)

logger = logging.getLogger(__name__)


class Orchestrator:
    """Builds prompts, calls the provider client, parses replies and commits.

    `converse` always returns a reply, turning provider failures into an
    in-chat diagnostic. `confirm_and_commit` lets every commit error reach the
    caller unchanged.
    """

    def __init__(
        self,
        provider: ProviderClient,
        gateway: CommitGateway,
        system_instruction: str = prompts.SYSTEM_INSTRUCTION,
        default_model: ModelConfig = AVAILABLE_MODELS[0],
    ):
        self.provider = provider
        self.gateway = gateway
        self.system_instruction = system_instruction
        self.default_model = default_model

    def converse(
        self,
        history: Sequence[ConversationTurn],
        new_message: str,
        model_config: Optional[ModelConfig] = None,
        file_tree: Sequence[str] = (),
    ) -> AIResponse:
        """Runs one chat turn and returns the parsed reply."""
        model_config = model_config or self.default_model
        provider_kind = model_config.provider_kind
        instruction = prompts.with_file_tree(self.system_instruction, file_tree)
        try:
            raw_text = self.provider.send(
                instruction, history, new_message, model_config
            )
            if not raw_text:
                raise UpstreamError(provider_kind, "No response from AI")
        except ChatCommitError as e:
            logger.error("AI Service Error (%s): %s", provider_kind, e)
            return self._error_response(provider_kind, e)
        except Exception as e:
            logger.exception("Unexpected AI Service Error (%s)", provider_kind)
            return self._error_response(provider_kind, e)
        return parser.parse(raw_text)

    @staticmethod
    def _error_response(provider_kind: str, error: Exception) -> AIResponse:
        return AIResponse(
            text=(
                f"Error ({provider_kind}): {error}. "
                "Please check your API keys and configuration."
            ),
            structured_data=None,
        )

    def confirm_and_commit(
        self, proposal: ChangeProposal, coordinates: RepoCoordinates
    ) -> CommitResult:
        """Commits a proposal the user has confirmed.

        Raises
        ------
        InvalidRequest
            If the proposal is not a commit or lacks a path or content.
        MissingCredential
            If no GitHub token is available.
        CommitFailed
            If GitHub rejects the write; call again to retry with a fresh read.
        """
        if not proposal.is_commit:
            raise InvalidRequest(f"Cannot commit a {proposal.action} proposal")
        if not proposal.is_committable:
            missing = [
                name
                for name in ("file_path", "new_content")
                if not getattr(proposal, name)
            ]
            raise InvalidRequest(
                f"Missing required fields: {', '.join(missing)}", missing=missing
            )
        request = CommitRequest(
            file_path=proposal.file_path,
            new_content=proposal.new_content,
            commit_message=proposal.commit_message or f"Update {proposal.file_path}",
        )
        return self.gateway.commit(request, coordinates)

    def gather_context(self, coordinates: RepoCoordinates) -> List[str]:
        """Best-effort list of repository files to show the model."""
        return self.gateway.get_file_tree(coordinates)

    def refine_code(
        self, code: str, instruction: str, model_config: Optional[ModelConfig] = None
    ) -> str:
        """Asks the model to rewrite `code` according to `instruction`."""
        message = prompts.REFINE_TEMPLATE.format(code=code, instruction=instruction)
        text = self.provider.send(
            prompts.ASSISTANT_INSTRUCTION,
            [],
            message,
            model_config or self.default_model,
            json_mode=False,
        )
        return parser.strip_fences(text)

    def explain_code(
        self, code: str, question: str, model_config: Optional[ModelConfig] = None
    ) -> str:
        message = prompts.EXPLAIN_TEMPLATE.format(code=code, question=question)
        text = self.provider.send(
            prompts.ASSISTANT_INSTRUCTION,
            [],
            message,
            model_config or self.default_model,
            json_mode=False,
        )
        return text or "No response."
