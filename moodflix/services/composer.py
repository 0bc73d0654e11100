"""Language composer: turns a short prompt into the assistant's reply text."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from moodflix.core.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 1024

_MESSAGE_TYPES = {
    "system": SystemMessage,
    "user": HumanMessage,
    "assistant": AIMessage,
}


class ComposerError(Exception):
    """Raised when the language model call fails."""


@dataclass(frozen=True, slots=True)
class ComposerReply:
    content: str
    role: str = "assistant"


class LanguageComposer:
    """Chat-completion wrapper around a LangChain chat model."""

    def __init__(
        self,
        llm: BaseChatModel,
        *,
        model_name: str,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ) -> None:
        self._llm = llm
        self.model_name = model_name
        self.temperature = temperature
        self.max_tokens = max_tokens

    @classmethod
    def from_settings(cls, settings: Settings) -> LanguageComposer:
        llm = ChatOpenAI(
            model=settings.openai_model,
            api_key=settings.openai_api_key,
            temperature=settings.llm_temperature,
            top_p=0.9,
        )
        return cls(
            llm,
            model_name=settings.openai_model,
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
        )

    def chat(
        self,
        messages: Sequence[Mapping[str, str]],
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> ComposerReply:
        lc_messages = [_to_langchain_message(message) for message in messages]
        bound = self._llm.bind(
            temperature=self.temperature if temperature is None else temperature,
            max_tokens=max_tokens or self.max_tokens,
        )
        try:
            ai_message = bound.invoke(lc_messages)
        except Exception as exc:
            logger.warning("Chat model call failed: %s", exc)
            raise ComposerError(f"Failed to generate response: {exc}") from exc
        return ComposerReply(content=_extract_text(ai_message).strip())

    def is_available(self) -> bool:
        """Ping the provider's model listing; any failure means unavailable."""

        client = getattr(self._llm, "root_client", None)
        if client is None:
            return True
        try:
            client.models.list()
        except Exception as exc:
            logger.warning("OpenAI availability check failed: %s", exc)
            return False
        return True


def _to_langchain_message(message: Mapping[str, str]) -> BaseMessage:
    role = message.get("role", "user")
    message_type = _MESSAGE_TYPES.get(role)
    if message_type is None:
        raise ValueError(f"unsupported chat role: {role!r}")
    return message_type(content=message.get("content", ""))


def _extract_text(message: Any) -> str:
    content = getattr(message, "content", "")
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for chunk in content:
            if isinstance(chunk, dict) and chunk.get("type") == "text":
                parts.append(str(chunk.get("text", "")))
            elif isinstance(chunk, str):
                parts.append(chunk)
        return "".join(parts)
    return str(content)
