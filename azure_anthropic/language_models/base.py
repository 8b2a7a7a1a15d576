"""
Abstract base class for language model backends.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
import asyncio

from azure_anthropic.config.config import GenerationSettings
from .messages import AIMessage, ConversationMessage, ToolDefinition


class BaseChatModel(ABC):
    """Abstract base class for chat models."""

    def __init__(self, settings: GenerationSettings):
        self.settings = settings

    @abstractmethod
    def chat(
        self,
        messages: Sequence[ConversationMessage],
        tools: Sequence[ToolDefinition] | None = None,
    ) -> AIMessage:
        """
        Get the next message from the model synchronously.

        Args:
            messages: The conversation history.
            tools: Optional list of tools the model can call.

        Returns:
            The model's response (which may contain text content or
            tool calls).
        """
        pass

    async def achat(
        self,
        messages: Sequence[ConversationMessage],
        tools: Sequence[ToolDefinition] | None = None,
    ) -> AIMessage:
        """
        Get the next message from the model asynchronously.

        Default implementation delegates to the synchronous chat method
        in a thread pool.
        """
        return await asyncio.to_thread(self.chat, messages, tools)
