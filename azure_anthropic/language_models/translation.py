"""
Translation between generic conversations and the Anthropic messages
wire format.

Request side:

    - `parse_messages` reads a payload of {role, content} objects (or
      its JSON text) into a list of ConversationMessage
    - `build_request` converts a conversation, the generation
      parameters, and optional tools into an InferenceRequest. The
      system message is taken out of the message list and sent in the
      `system` field.

Response side:

    - `from_response` converts the content blocks of a response into
      one assistant message: AITextMessage, or AIToolCallMessage if the
      model requested tool calls.

Example:
    ```python
    messages = parse_messages('[{"role": "user", "content": "Hello"}]')
    request = build_request(
        messages, deployment_name="claude-haiku-4-5",
        max_tokens=100, temperature=0.7,
    )
    body = request.to_params()
    ```

Behaviour:
    Raises ParseError on malformed payloads; everything else is
    forwarded unchanged, including out-of-range numeric parameters.
"""

import json
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from pydantic import BaseModel, ValidationError

from azure_anthropic.config.config import format_pydantic_error_message
from azure_anthropic.errors import ParseError
from .messages import (
    AIMessage,
    AITextMessage,
    AIToolCallMessage,
    BlocksMessage,
    ConversationMessage,
    HumanMessage,
    SystemMessage,
    ToolCall,
    ToolDefinition,
    ToolResultMessage,
)
from .wire import (
    ContentBlock,
    InferenceRequest,
    InferenceResponse,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
    WireMessage,
    WireTool,
)


# Payload parsing-------------------------------------------------
def message_from_dict(entry: Mapping[str, Any]) -> ConversationMessage:
    """
    Read one {role, content} object into a conversation message.

    Recognized roles are 'system', 'user', 'assistant' and 'tool'.
    An assistant entry with a non-empty 'tool_calls' list becomes an
    AIToolCallMessage; a tool entry requires 'tool_call_id'. A user or
    assistant entry whose content is a list of Anthropic content
    blocks becomes a BlocksMessage, forwarded as is.

    Raises:
        ParseError, ValidationError
    """
    if not isinstance(entry, Mapping):
        raise ParseError(
            f"Message must be an object, got {type(entry).__name__}"
        )
    content: Any = entry.get('content')
    match entry.get('role'):
        case 'system':
            return SystemMessage(content=content)
        case 'assistant' if entry.get('tool_calls'):
            return AIToolCallMessage(
                content=content or "",
                tool_calls=entry['tool_calls'],
            )
        case 'user' | 'assistant' as role if isinstance(content, list):
            return BlocksMessage(role=role, content=content)
        case 'user':
            return HumanMessage(content=content)
        case 'assistant':
            return AITextMessage(content=content)
        case 'tool':
            return ToolResultMessage(
                tool_call_id=entry.get('tool_call_id'),  # type: ignore
                content=content,
            )
        case role:
            raise ParseError(f"Invalid message role: {role!r}")


def parse_messages(
    payload: str | Sequence[Mapping[str, Any]],
) -> list[ConversationMessage]:
    """
    Parse a message payload into a conversation.

    Args:
        payload: a list of {role, content} objects, or the JSON text
            of such a list.

    Returns:
        the list of conversation messages, in order.

    Raises:
        ParseError: if the text is not valid JSON, is not a list, or
            contains an invalid message.
    """
    data: Any = payload
    if isinstance(payload, str):
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            raise ParseError(f"Messages are not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise ParseError(
            f"Messages must be a list, got {type(data).__name__}"
        )

    messages: list[ConversationMessage] = []
    for index, entry in enumerate(data):  # type: ignore
        try:
            messages.append(message_from_dict(entry))  # type: ignore
        except ValidationError as e:
            raise ParseError(
                f"Invalid message at position {index}: "
                + format_pydantic_error_message(str(e))
            ) from e
    return messages


# Request---------------------------------------------------------
def _stringify(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, BaseModel):
        return content.model_dump_json()
    return json.dumps(content)


def to_wire_message(message: ConversationMessage) -> WireMessage | None:
    """Convert a conversation message to the wire format. Returns
    None for system messages, which are not sent inline."""
    match message:
        case SystemMessage():
            return None
        case HumanMessage(content=text):
            return WireMessage(role='user', content=text)
        case AITextMessage(content=text):
            return WireMessage(role='assistant', content=text)
        case AIToolCallMessage(content=text, tool_calls=calls):
            blocks: list[ContentBlock] = []
            if text:
                blocks.append(TextBlock(text=text))
            blocks.extend(
                ToolUseBlock(id=call.id, name=call.name, input=call.args)
                for call in calls
            )
            return WireMessage(role='assistant', content=blocks)
        case ToolResultMessage(tool_call_id=call_id, content=result):
            return WireMessage(
                role='user',
                content=[
                    ToolResultBlock(
                        tool_use_id=call_id, content=_stringify(result)
                    )
                ],
            )
        case BlocksMessage(role=role, content=blocks):
            return WireMessage(role=role, content=blocks)


def to_wire_messages(
    messages: Iterable[ConversationMessage],
) -> tuple[str | None, list[WireMessage]]:
    """
    Convert a conversation to the wire format.

    Returns:
        a tuple with the content of the first system message (None if
        there is none) and the list of the other messages converted.
    """
    system: str | None = None
    wire_messages: list[WireMessage] = []
    for message in messages:
        if isinstance(message, SystemMessage):
            # first system message wins
            if system is None:
                system = message.content
            continue
        wire = to_wire_message(message)
        if wire is not None:
            wire_messages.append(wire)
    return system, wire_messages


def to_wire_tool(tool: ToolDefinition) -> WireTool:
    return WireTool(
        name=tool.name,
        description=tool.description,
        input_schema=tool.parameters,
    )


def build_request(
    messages: Iterable[ConversationMessage],
    *,
    deployment_name: str,
    max_tokens: int,
    temperature: float,
    tools: Sequence[ToolDefinition] | None = None,
    system: str | None = None,
) -> InferenceRequest:
    """
    Build the request body for a conversation.

    Args:
        messages: the conversation, in order.
        deployment_name: the deployment, sent as the model name.
        max_tokens: max number of generated tokens.
        temperature: forwarded as given.
        tools: optional tools the model may call.
        system: a system prompt that takes precedence over a system
            message in the conversation, if not empty.

    Returns:
        an InferenceRequest object.
    """
    conversation_system, wire_messages = to_wire_messages(messages)
    return InferenceRequest(
        model=deployment_name,
        messages=wire_messages,
        max_tokens=max_tokens,
        temperature=temperature,
        system=system or conversation_system,
        tools=[to_wire_tool(t) for t in tools] if tools else None,
    )


# Response--------------------------------------------------------
def from_response(
    response: InferenceResponse | Mapping[str, Any] | BaseModel,
) -> AIMessage:
    """
    Convert a response into an assistant message.

    The text blocks are concatenated in order, and the tool_use blocks
    collected into tool calls. Blocks of other types are ignored.

    Args:
        response: an InferenceResponse, the JSON dictionary of a
            response, or the response object of the Anthropic SDK.

    Returns:
        AIToolCallMessage if the model requested tool calls,
        AITextMessage otherwise.
    """
    match response:
        case InferenceResponse():
            parsed = response
        case BaseModel():
            parsed = InferenceResponse.model_validate(
                response.model_dump(mode='json')
            )
        case _:
            parsed = InferenceResponse.model_validate(response)

    text: str = ""
    calls: list[ToolCall] = []
    for block in parsed.content:
        match block:
            case TextBlock():
                text += block.text
            case ToolUseBlock():
                calls.append(
                    ToolCall(id=block.id, name=block.name, args=block.input)
                )

    if calls:
        return AIToolCallMessage(content=text, tool_calls=calls)
    return AITextMessage(content=text)
