# pyright: reportUnusedImport=false
# flake8: noqa

from .lazy_dict import LazyLoadingDict

from .messages import (
    ConversationMessage,
    SystemMessage,
    HumanMessage,
    AITextMessage,
    AIToolCallMessage,
    ToolResultMessage,
    BlocksMessage,
    ToolCall,
    ToolDefinition,
)
from .wire import InferenceRequest, InferenceResponse, WireMessage
from .translation import build_request, from_response, parse_messages
from .client import ClientSettings, async_client, create_client
from .chat_model import AzureAnthropicChatModel
