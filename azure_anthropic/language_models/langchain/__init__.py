""" LangChain interface to Azure Anthropic deployments

The chat model ChatAzureAnthropic implements the BaseChatModel
interface of langchain_core, and can be used wherever LangChain
expects a chat model: it accepts a message list and a tool list, and
returns one generated message. Model objects are created directly or
through the memoizing factory functions of the models module.
"""

# pyright: reportUnusedImport=false
# flake8: noqa

from .chat_models import ChatAzureAnthropic, convert_message, to_tool_definition
from .models import (
    langchain_models,
    create_model_from_settings,
    create_model_from_spec,
)
