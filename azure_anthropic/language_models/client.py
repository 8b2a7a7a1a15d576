"""
Configuration of the HTTP clients that call the Azure endpoint.

A ClientSettings object holds the API key, the base URL and the API
version. The clients are Anthropic SDK clients targeting the base URL,
authenticating with the key, and sending the API version as the
`api-version` query parameter on every call. The SDK retry policy is
turned off; timeouts are the SDK defaults.

Synchronous clients are memoized in the module-level dictionary
`clients`, keyed by the (frozen) settings, so that all requests issued
with the same settings share one client. Asynchronous clients hold a
connection pool bound to the event loop that first used them, so they
are not memoized: `new_async_client` creates one, and the caller
closes it before its loop ends (see `async_client`).

The request body is posted as built by InferenceRequest, rather than
through the keyword arguments of `messages.create`, so that every
field of the body reaches the endpoint whatever the SDK signature.

Example:
    ```python
    settings = ClientSettings(
        api_key="...",
        base_url="https://RESOURCE.services.ai.azure.com/anthropic/",
    )
    client = create_client(settings)
    response = send_request(client, request)

    async with async_client(settings) as aclient:
        response = await asend_request(aclient, request)
    ```
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import anthropic
from pydantic import BaseModel, ConfigDict, SecretStr, field_validator

from azure_anthropic.config.config import Credentials, DEFAULT_API_VERSION
from azure_anthropic.errors import TransportError, UpstreamError
from azure_anthropic.utils.logging import LoggerBase, get_logger
from .lazy_dict import LazyLoadingDict
from .wire import InferenceRequest

logger: LoggerBase = get_logger(__name__)

API_VERSION_QUERY_PARAM = "api-version"
MESSAGES_PATH = "/v1/messages"


class ClientSettings(BaseModel):
    """
    Immutable configuration of a client.

    Attributes:
        api_key: the key of the Azure resource
        base_url: the endpoint root
        api_version: value of the api-version query parameter
    """

    api_key: SecretStr
    base_url: str
    api_version: str = DEFAULT_API_VERSION

    model_config = ConfigDict(frozen=True, extra='forbid')

    def __hash__(self) -> int:
        return hash(
            (
                self.api_key.get_secret_value(),
                self.base_url,
                self.api_version,
            )
        )

    @field_validator('base_url', 'api_version', mode='after')
    @classmethod
    def validate_not_empty(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Value is empty")
        return cleaned

    @classmethod
    def from_credentials(
        cls,
        credentials: Credentials,
        api_version: str = DEFAULT_API_VERSION,
    ) -> 'ClientSettings':
        """Client settings from checked credentials.

        Raises:
            CredentialMissingError
        """
        credentials.check()
        return cls(
            api_key=credentials.api_key,
            base_url=credentials.base_url,
            api_version=api_version,
        )

    def client_kwargs(self) -> dict[str, Any]:
        """Arguments to the constructor of the SDK clients."""
        return {
            'api_key': self.api_key.get_secret_value(),
            'base_url': self.base_url,
            'default_query': {API_VERSION_QUERY_PARAM: self.api_version},
            'max_retries': 0,
        }


def _create_client(settings: ClientSettings) -> anthropic.Anthropic:
    logger.info(
        f"Creating client for {settings.base_url} "
        f"(api-version {settings.api_version})"
    )
    return anthropic.Anthropic(**settings.client_kwargs())


# Public interface----------------------------------------------
clients: LazyLoadingDict[ClientSettings, anthropic.Anthropic] = \
    LazyLoadingDict(_create_client)


def create_client(settings: ClientSettings) -> anthropic.Anthropic:
    """Return the (memoized) synchronous client for the settings."""
    return clients[settings]


def new_async_client(
    settings: ClientSettings,
) -> anthropic.AsyncAnthropic:
    """Create an asynchronous client, not memoized. The caller
    closes it."""
    logger.info(
        f"Creating async client for {settings.base_url} "
        f"(api-version {settings.api_version})"
    )
    return anthropic.AsyncAnthropic(**settings.client_kwargs())


@asynccontextmanager
async def async_client(
    settings: ClientSettings,
) -> AsyncIterator[anthropic.AsyncAnthropic]:
    """An asynchronous client for the duration of a block, closed on
    exit."""
    client = new_async_client(settings)
    try:
        yield client
    finally:
        await client.close()


def _response_body(response: object) -> dict[str, Any]:
    if not isinstance(response, dict):
        raise UpstreamError(
            "The endpoint did not answer with a JSON object"
        )
    return response  # type: ignore


def send_request(
    client: anthropic.Anthropic, request: InferenceRequest
) -> dict[str, Any]:
    """
    POST the request to the messages endpoint.

    Returns:
        the JSON dictionary of the response, as sent by the endpoint.

    Raises:
        UpstreamError: the endpoint answered with an error status
        TransportError: the endpoint could not be reached
    """
    try:
        response = client.post(
            MESSAGES_PATH, body=request.to_params(), cast_to=object
        )
    except anthropic.APIStatusError as e:
        raise UpstreamError(str(e), status_code=e.status_code) from e
    except anthropic.APIConnectionError as e:
        raise TransportError(str(e)) from e
    return _response_body(response)


async def asend_request(
    client: anthropic.AsyncAnthropic, request: InferenceRequest
) -> dict[str, Any]:
    """Asynchronous version of send_request."""
    try:
        response = await client.post(
            MESSAGES_PATH, body=request.to_params(), cast_to=object
        )
    except anthropic.APIStatusError as e:
        raise UpstreamError(str(e), status_code=e.status_code) from e
    except anthropic.APIConnectionError as e:
        raise TransportError(str(e)) from e
    return _response_body(response)
