"""
LangChain chat model for Anthropic deployments on Azure.

ChatAzureAnthropic implements the BaseChatModel interface of
langchain_core, so that it can be used in chains and agents like any
other LangChain model. The LangChain messages are converted to the
generic conversation messages of this package, and the call is
delegated to AzureAnthropicChatModel.

Example:
    ```python
    from azure_anthropic.language_models.langchain import (
        ChatAzureAnthropic,
    )

    model = ChatAzureAnthropic(
        deployment_name="claude-haiku-4-5",
        api_key="...",
        base_url="https://RESOURCE.services.ai.azure.com/anthropic/",
    )
    response = model.invoke("Why is the sky blue?")

    # with tools
    def get_weather(city: str) -> str:
        "Weather in a city."
        ...

    response = model.bind_tools([get_weather]).invoke(
        "What is the weather in Paris?"
    )
    response.tool_calls
    ```
"""

from collections.abc import Callable, Sequence
from typing import Any, Self

from langchain_core.callbacks import (
    AsyncCallbackManagerForLLMRun,
    CallbackManagerForLLMRun,
)
from langchain_core.language_models import LanguageModelInput
from langchain_core.language_models.chat_models import BaseChatModel
import langchain_core.messages as lcm
from langchain_core.messages.tool import tool_call
from langchain_core.outputs import ChatGeneration, ChatResult
from langchain_core.runnables import Runnable
from langchain_core.tools import BaseTool
from langchain_core.utils.function_calling import convert_to_openai_tool
from pydantic import Field, PrivateAttr, SecretStr, model_validator

from azure_anthropic.config.config import (
    DEFAULT_API_VERSION,
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    Credentials,
    GenerationSettings,
)
from ..chat_model import AzureAnthropicChatModel
from ..messages import (
    AIMessage,
    AIToolCallMessage,
    AITextMessage,
    ConversationMessage,
    HumanMessage,
    SystemMessage,
    ToolCall,
    ToolDefinition,
    ToolResultMessage,
    empty_schema,
)


def _text(content: str | list[str | dict[str, Any]]) -> str:
    """The text of a LangChain message content."""
    if isinstance(content, str):
        return content
    parts: list[str] = []
    for part in content:
        match part:
            case str():
                parts.append(part)
            case {'type': 'text', 'text': str(text)}:
                parts.append(text)
    return "".join(parts)


def convert_message(message: lcm.BaseMessage) -> ConversationMessage:
    """Convert a LangChain message to a conversation message.

    Raises:
        ValueError: for message types without a counterpart.
    """
    match message:
        case lcm.SystemMessage():
            return SystemMessage(content=_text(message.content))
        case lcm.HumanMessage():
            return HumanMessage(content=_text(message.content))
        case lcm.AIMessage() if message.tool_calls:
            return AIToolCallMessage(
                content=_text(message.content),
                tool_calls=[
                    ToolCall(
                        id=call.get('id') or "",
                        name=call['name'],
                        args=call['args'],
                    )
                    for call in message.tool_calls
                ],
            )
        case lcm.AIMessage():
            return AITextMessage(content=_text(message.content))
        case lcm.ToolMessage():
            return ToolResultMessage(
                tool_call_id=message.tool_call_id,
                content=message.content,
            )
        case _:
            raise ValueError(
                f"Unsupported message type: {type(message).__name__}"
            )


def convert_reply(reply: AIMessage) -> lcm.AIMessage:
    """Convert the reply of the model to a LangChain message."""
    match reply:
        case AIToolCallMessage():
            return lcm.AIMessage(
                content=reply.content,
                tool_calls=[
                    tool_call(name=call.name, args=call.args, id=call.id)
                    for call in reply.tool_calls
                ],
            )
        case AITextMessage():
            return lcm.AIMessage(content=reply.content)


def to_tool_definition(
    tool: ToolDefinition
    | dict[str, Any]
    | type
    | Callable[..., Any]
    | BaseTool,
) -> ToolDefinition:
    """Convert a tool given in any of the formats accepted by
    LangChain (or in the Anthropic format) to a ToolDefinition."""
    if isinstance(tool, ToolDefinition):
        return tool
    if isinstance(tool, dict) and 'input_schema' in tool:
        return ToolDefinition(
            name=tool['name'],
            description=tool.get('description', ""),
            parameters=tool['input_schema'],
        )
    function: dict[str, Any] = convert_to_openai_tool(tool)['function']
    return ToolDefinition(
        name=function['name'],
        description=function.get('description', ""),
        parameters=function.get('parameters') or empty_schema(),
    )


class ChatAzureAnthropic(BaseChatModel):
    """LangChain chat model for an Anthropic deployment on Azure."""

    deployment_name: str = Field(
        description="Name of the Azure Anthropic deployment"
    )
    api_key: SecretStr
    base_url: str
    api_version: str = DEFAULT_API_VERSION
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE
    system: str | None = None

    _delegate: AzureAnthropicChatModel = PrivateAttr()

    @model_validator(mode='after')
    def create_delegate(self) -> Self:
        self._delegate = AzureAnthropicChatModel(
            GenerationSettings(
                deployment_name=self.deployment_name,
                api_version=self.api_version,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                system=self.system,
            ),
            Credentials(api_key=self.api_key, base_url=self.base_url),
        )
        return self

    @property
    def model_name(self) -> str:
        return self.deployment_name

    @property
    def _llm_type(self) -> str:
        return "azure-anthropic"

    @property
    def _identifying_params(self) -> dict[str, Any]:
        return {
            'deployment_name': self.deployment_name,
            'base_url': self.base_url,
            'api_version': self.api_version,
            'max_tokens': self.max_tokens,
            'temperature': self.temperature,
        }

    def bind_tools(
        self,
        tools: Sequence[
            dict[str, Any] | type | Callable[..., Any] | BaseTool
        ],
        *,
        tool_choice: str | None = None,
        **kwargs: Any,
    ) -> Runnable[LanguageModelInput, lcm.BaseMessage]:
        if tool_choice is not None:
            raise ValueError("tool_choice is not supported")
        definitions = [to_tool_definition(tool) for tool in tools]
        return self.bind(tools=definitions, **kwargs)

    def _chat_args(
        self,
        messages: list[lcm.BaseMessage],
        stop: list[str] | None,
        kwargs: dict[str, Any],
    ) -> tuple[list[ConversationMessage], list[ToolDefinition] | None]:
        if stop:
            raise ValueError("Stop sequences are not supported")
        conversation = [convert_message(m) for m in messages]
        return conversation, kwargs.get('tools')

    def _generate(
        self,
        messages: list[lcm.BaseMessage],
        stop: list[str] | None = None,
        run_manager: CallbackManagerForLLMRun | None = None,
        **kwargs: Any,
    ) -> ChatResult:
        conversation, tools = self._chat_args(messages, stop, kwargs)
        reply = self._delegate.chat(conversation, tools)
        return ChatResult(
            generations=[ChatGeneration(message=convert_reply(reply))]
        )

    async def _agenerate(
        self,
        messages: list[lcm.BaseMessage],
        stop: list[str] | None = None,
        run_manager: AsyncCallbackManagerForLLMRun | None = None,
        **kwargs: Any,
    ) -> ChatResult:
        conversation, tools = self._chat_args(messages, stop, kwargs)
        reply = await self._delegate.achat(conversation, tools)
        return ChatResult(
            generations=[ChatGeneration(message=convert_reply(reply))]
        )
