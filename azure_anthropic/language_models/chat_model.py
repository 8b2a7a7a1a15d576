"""
Chat model calling an Anthropic deployment on Azure.
"""

from collections.abc import Sequence

from azure_anthropic.config.config import Credentials, GenerationSettings
from .base import BaseChatModel
from .client import (
    ClientSettings,
    asend_request,
    async_client,
    create_client,
    send_request,
)
from .messages import AIMessage, ConversationMessage, ToolDefinition
from .translation import build_request, from_response
from .wire import InferenceRequest


class AzureAnthropicChatModel(BaseChatModel):
    """
    Chat model for an Azure Anthropic deployment.

    The client settings are built once, when the model is created;
    the credentials are checked at that point. `chat` uses the
    memoized synchronous client of the settings; `achat` opens a
    client for the call and closes it before returning.

    Example:
        ```python
        model = AzureAnthropicChatModel(
            GenerationSettings(deployment_name="claude-haiku-4-5"),
            Credentials(),  # from the environment
        )
        reply = model.chat([HumanMessage(content="Hello")])
        ```

    Raises:
        CredentialMissingError on creation; TransportError,
        UpstreamError on chat.
    """

    def __init__(
        self, settings: GenerationSettings, credentials: Credentials
    ):
        super().__init__(settings)
        self.client_settings = ClientSettings.from_credentials(
            credentials, settings.api_version
        )

    def build_request(
        self,
        messages: Sequence[ConversationMessage],
        tools: Sequence[ToolDefinition] | None = None,
    ) -> InferenceRequest:
        return build_request(
            messages,
            deployment_name=self.settings.deployment_name,
            max_tokens=self.settings.max_tokens,
            temperature=self.settings.temperature,
            tools=tools,
            system=self.settings.system,
        )

    def chat(
        self,
        messages: Sequence[ConversationMessage],
        tools: Sequence[ToolDefinition] | None = None,
    ) -> AIMessage:
        request = self.build_request(messages, tools)
        response = send_request(
            create_client(self.client_settings), request
        )
        return from_response(response)

    async def achat(
        self,
        messages: Sequence[ConversationMessage],
        tools: Sequence[ToolDefinition] | None = None,
    ) -> AIMessage:
        request = self.build_request(messages, tools)
        # the client is bound to the running loop and closed with it
        async with async_client(self.client_settings) as client:
            response = await asend_request(client, request)
        return from_response(response)
