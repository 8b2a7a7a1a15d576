# pyright: reportUnusedImport=false
# flake8: noqa

from .azure_anthropic import (
    AzureAnthropicNode,
    NodeParameters,
    NodeExecutionData,
    SupplyData,
    NODE_DESCRIPTION,
)
