"""System instructions and prompt builders shared by every provider backend."""

from typing import Dict, List, Sequence

from .models import MODEL_ROLE, ConversationTurn

SYSTEM_INSTRUCTION = """
You are an expert AI Fullstack Developer using Next.js, React, and Tailwind CSS.

Your goal is to help the user write code and prepare it for automated GitHub commits.

RESPONSE FORMAT:
You MUST respond with a generic JSON object containing two fields:
1. "text": A conversational response explaining what you did or answering the question.
2. "structuredData": A JSON object (OR null if just chatting) with:
   - "action": "COMMIT" (if proposing code changes) or "CHAT".
   - "file_path": The path of the file to change (e.g., "app/page.tsx").
   - "commit_message": A concise git commit message.
   - "new_content": The FULL source code for the file.
   - "preview_content": (Optional) A minimal, self-contained React component string
     using 'export default function App() {}' that can be rendered in a live preview.

IMPORTANT:
- Always provide valid JSON in your response.
- Do not wrap the JSON in markdown code blocks. Return pure JSON string.
""".strip()

ASSISTANT_INSTRUCTION = "You are an expert developer."

REFINE_TEMPLATE = """
EXISTING CODE:
{code}

INSTRUCTION: {instruction}

Output the full modified code based on the instruction.
Ensure the code is complete and functional.
Return ONLY the code. Do not wrap in markdown code blocks (no ```).
""".strip()

EXPLAIN_TEMPLATE = """
CODE CONTEXT:
{code}

QUESTION: {question}

Provide a clear and concise explanation.
""".strip()


def with_file_tree(system_instruction: str, file_tree: Sequence[str]) -> str:
    """Appends the repository layout to a system instruction."""
    if not file_tree:
        return system_instruction
    listing = "\n".join(f"- {path}" for path in file_tree)
    return f"{system_instruction}\n\nPROJECT FILES:\n{listing}"


def serialize_history(history: Sequence[ConversationTurn]) -> str:
    return "\n".join(f"{turn.role.upper()}: {turn.text}" for turn in history)


def build_flat_prompt(
    system_instruction: str, history: Sequence[ConversationTurn], new_message: str
) -> str:
    """Builds a single-string prompt for providers without a chat message format."""
    return (
        f"{system_instruction}\n\n"
        f"Current Conversation History:\n{serialize_history(history)}\n\n"
        f"USER: {new_message}"
    )


def build_chat_messages(
    system_instruction: str, history: Sequence[ConversationTurn], new_message: str
) -> List[Dict[str, str]]:
    """Builds an OpenAI-style message list; the `model` role becomes `assistant`."""
    messages = [{"role": "system", "content": system_instruction}]
    for turn in history:
        role = "assistant" if turn.role == MODEL_ROLE else "user"
        messages.append({"role": role, "content": turn.text})
    messages.append({"role": "user", "content": new_message})
    return messages
