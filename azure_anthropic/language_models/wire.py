"""
Anthropic messages wire format.

These models describe the JSON body sent to the messages endpoint
(InferenceRequest) and the part of the answer that is read back
(InferenceResponse). Message content is either a plain string or a
list of content blocks: text, image, document, tool_use, or
tool_result. Block fields not modelled here (cache_control,
citations...) are kept and sent back unchanged.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _Block(BaseModel):
    model_config = ConfigDict(extra='allow')


class TextBlock(_Block):
    type: Literal['text'] = 'text'
    text: str


class ImageBlock(_Block):
    type: Literal['image'] = 'image'
    source: dict[str, Any]


class DocumentBlock(_Block):
    type: Literal['document'] = 'document'
    source: dict[str, Any]


class ToolUseBlock(_Block):
    type: Literal['tool_use'] = 'tool_use'
    id: str
    name: str
    input: dict[str, Any] = Field(default_factory=dict)


class ToolResultBlock(_Block):
    type: Literal['tool_result'] = 'tool_result'
    tool_use_id: str
    content: str | list[dict[str, Any]]


ContentBlock = Annotated[
    TextBlock | ImageBlock | DocumentBlock | ToolUseBlock | ToolResultBlock,
    Field(discriminator='type'),
]

ResponseBlock = Annotated[
    TextBlock | ToolUseBlock,
    Field(discriminator='type'),
]

# block types read back from a response; others are dropped
RESPONSE_BLOCK_TYPES = ('text', 'tool_use')


class WireMessage(BaseModel):
    role: Literal['user', 'assistant']
    content: str | list[ContentBlock]


class WireTool(BaseModel):
    name: str
    description: str = ""
    input_schema: dict[str, Any]


class InferenceRequest(BaseModel):
    """The body of a messages request.

    `system` and `tools` are left out of the body when not set, and
    the numeric parameters are passed through unchecked.
    """

    model: str
    messages: list[WireMessage]
    max_tokens: int
    temperature: float
    system: str | None = None
    tools: list[WireTool] | None = None

    model_config = ConfigDict(extra='forbid')

    def to_params(self) -> dict[str, Any]:
        """Return the JSON body as a dictionary."""
        params: dict[str, Any] = self.model_dump(
            mode='json', exclude={'system', 'tools'}
        )
        if self.system is not None:
            params['system'] = self.system
        if self.tools:
            params['tools'] = [
                tool.model_dump(mode='json') for tool in self.tools
            ]
        return params


class InferenceResponse(BaseModel):
    """The content blocks of a messages response. Other fields of
    the response (id, usage, stop_reason...) are ignored."""

    content: list[ResponseBlock] = Field(default_factory=list)

    model_config = ConfigDict(extra='ignore')

    @field_validator('content', mode='before')
    @classmethod
    def drop_unknown_blocks(cls, blocks: Any) -> Any:
        if not isinstance(blocks, list):
            return blocks
        return [
            block
            for block in blocks  # type: ignore
            if _block_type(block) in RESPONSE_BLOCK_TYPES
        ]


def _block_type(block: Any) -> Any:
    if isinstance(block, dict):
        return block.get('type')  # type: ignore
    return getattr(block, 'type', None)
