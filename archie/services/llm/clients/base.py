"""
Base LLM Client - Abstract interface for multi-provider support.

Defines a chat-style interface (conversation history + new prompt) and the
shared JSON extraction used by the knowledge extractor.
Provider-specific implementations in anthropic.py and openai.py.
"""
import json
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Sequence

from archie.domain.exceptions import LLMResponseError

Message = Mapping[str, str]

ROLE_ALIASES = {
    "agent": "assistant",
    "assistant": "assistant",
    "user": "user",
    "system": "system",
}


def to_chat_messages(history: Sequence[Message], prompt: str) -> List[Dict[str, str]]:
    """
    Convert workflow history into provider chat messages.

    Workflow history uses ``agent`` for model turns; providers expect
    ``assistant``. Unknown roles are sent as ``user``. The new prompt is
    appended as the final user message.
    """
    messages = [
        {"role": ROLE_ALIASES.get(m.get("role", "user"), "user"), "content": m.get("content", "")}
        for m in history
    ]
    messages.append({"role": "user", "content": prompt})
    return messages


class BaseLLMClient(ABC):
    """
    Abstract base class for LLM clients.

    Separates infrastructure (API calls) from domain logic (prompts).
    """

    model: str

    @abstractmethod
    async def complete(
        self,
        history: Sequence[Message],
        prompt: str,
        model: str | None = None,
    ) -> str:
        """
        Async chat completion.

        Args:
            history: Prior turns as {role, content} (role: user/agent/system)
            prompt: New user prompt
            model: Per-call model override

        Returns:
            Response text (never empty)

        Raises:
            LLMResponseError: Empty response
            Provider-specific exceptions (after retries are exhausted)
        """
        pass

    @staticmethod
    def ensure_content(content: str | None) -> str:
        if not content or not content.strip():
            raise LLMResponseError("LLM returned an empty response")
        return content

    def parse_json_response(self, response_text: str) -> Any:
        """
        Parse LLM response into structured data.

        Extraction priority:
        1. Raw JSON (response is already valid JSON)
        2. Markdown code blocks (```json ... ``` or ``` ... ```)
        3. First JSON object or array found in the text

        Raises:
            ValueError: If no valid JSON can be extracted
        """
        text = response_text.strip()

        try:
            return json.loads(text)
        except json.JSONDecodeError:
            pass

        if "```json" in text:
            block = text.split("```json")[1].split("```")[0]
            try:
                return json.loads(block.strip())
            except json.JSONDecodeError:
                pass
        elif "```" in text:
            block = text.split("```")[1].split("```")[0]
            try:
                return json.loads(block.strip())
            except json.JSONDecodeError:
                pass

        match = re.search(r'[\[{]', text)
        if match:
            candidate = text[match.start():]
            close_char = ']' if candidate[0] == '[' else '}'
            last_close = candidate.rfind(close_char)
            if last_close != -1:
                try:
                    return json.loads(candidate[:last_close + 1])
                except json.JSONDecodeError:
                    pass

        raise ValueError(
            f"Failed to parse LLM response as JSON.\n\nResponse:\n{response_text}"
        )
