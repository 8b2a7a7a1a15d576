"""
Generic data structures for language model interactions.

A conversation is a list of ConversationMessage, a union of six
message kinds told apart by the `kind` field:

    - SystemMessage: the system prompt
    - HumanMessage: a user turn
    - AITextMessage: an assistant turn with text only
    - AIToolCallMessage: an assistant turn requesting tool calls,
        optionally with some leading text
    - ToolResultMessage: the result of a tool call, referencing the
        call id
    - BlocksMessage: a user or assistant turn given as a list of
        Anthropic content blocks, sent as is
"""

from typing import Annotated, Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter

from .wire import ContentBlock


class ToolCall(BaseModel):
    """Represents a tool call requested by the model."""

    id: str
    name: str
    args: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices('args', 'arguments', 'input'),
    )

    model_config = ConfigDict(frozen=True)


def empty_schema() -> dict[str, Any]:
    """JSON schema of a tool without arguments."""
    return {"type": "object", "properties": {}}


class ToolDefinition(BaseModel):
    """A tool the model may call: its name, a description, and the
    JSON schema of its arguments."""

    name: str = Field(min_length=1)
    description: str = ""
    parameters: dict[str, Any] = Field(default_factory=empty_schema)

    model_config = ConfigDict(extra='forbid')


class SystemMessage(BaseModel):
    kind: Literal['system'] = 'system'
    content: str


class HumanMessage(BaseModel):
    kind: Literal['human'] = 'human'
    content: str


class AITextMessage(BaseModel):
    kind: Literal['ai_text'] = 'ai_text'
    content: str


class AIToolCallMessage(BaseModel):
    kind: Literal['ai_tool_call'] = 'ai_tool_call'
    content: str = ""
    tool_calls: list[ToolCall] = Field(min_length=1)


class ToolResultMessage(BaseModel):
    kind: Literal['tool_result'] = 'tool_result'
    tool_call_id: str
    content: Any = Field(
        description="Result of the call, a string or any JSON value"
    )


class BlocksMessage(BaseModel):
    kind: Literal['blocks'] = 'blocks'
    role: Literal['user', 'assistant']
    content: list[ContentBlock] = Field(min_length=1)


ConversationMessage = Annotated[
    SystemMessage
    | HumanMessage
    | AITextMessage
    | AIToolCallMessage
    | ToolResultMessage
    | BlocksMessage,
    Field(discriminator='kind'),
]

AIMessage = AITextMessage | AIToolCallMessage

conversation_adapter: TypeAdapter[list[ConversationMessage]] = TypeAdapter(
    list[ConversationMessage]
)
