"""
Exceptions raised by the package.

The translators raise ParseError on malformed message payloads; the
client layer maps Anthropic SDK exceptions onto TransportError and
UpstreamError. The node adapter wraps per-item failures into a
NodeOperationError when the batch is aborted.
"""


class AzureAnthropicError(Exception):
    """Base class of all errors raised by the package."""


class CredentialMissingError(AzureAnthropicError):
    """The API key or the base URL of the endpoint is missing."""


class ParseError(AzureAnthropicError, ValueError):
    """A message payload could not be parsed into a conversation."""


class TransportError(AzureAnthropicError):
    """Network failure while calling the inference endpoint."""


class UpstreamError(AzureAnthropicError):
    """The inference endpoint answered with a non-2xx status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class NodeOperationError(AzureAnthropicError):
    """
    A work item failed and the node was not configured to continue
    on failure. The original exception is chained as __cause__.
    """

    def __init__(self, message: str, item_index: int):
        super().__init__(f"[item {item_index}] {message}")
        self.item_index = item_index
