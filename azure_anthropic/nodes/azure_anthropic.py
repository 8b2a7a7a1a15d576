"""
Workflow node for Azure Anthropic deployments.

The node has two uses in a host workflow platform:

    - as an action: `execute` sends one messages request per input
      item, and returns the raw response of the endpoint for each
      item, paired with the index of the item.
    - as a language model provider: `supply_data` returns a LangChain
      chat model configured from the node parameters, to be consumed
      by an agent or chain node of the host.

The host data are passed in as plain objects: the credential record
({apiKey, baseUrl}), and for each item a mapping of the node
parameters as named in the host interface (deploymentName,
apiVersion, messages, system, maxTokens, temperature).

Example:
    ```python
    node = AzureAnthropicNode()
    results = await node.execute(
        [{
            'deploymentName': "claude-haiku-4-5",
            'messages': '[{"role": "user", "content": "Hello"}]',
        }],
        {'apiKey': "...", 'baseUrl': "https://.../anthropic/"},
        continue_on_fail=True,
    )
    results[0].json_data
    ```
"""

from collections.abc import Mapping, Sequence
from typing import Any

import anthropic
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from azure_anthropic.config.config import (
    DEFAULT_API_VERSION,
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    Credentials,
    GenerationSettings,
    format_pydantic_error_message,
)
from azure_anthropic.errors import NodeOperationError
from azure_anthropic.language_models.client import (
    ClientSettings,
    asend_request,
    new_async_client,
)
from azure_anthropic.language_models.lazy_dict import LazyLoadingDict
from azure_anthropic.language_models.langchain import (
    ChatAzureAnthropic,
    create_model_from_settings,
)
from azure_anthropic.language_models.translation import (
    build_request,
    parse_messages,
)
from azure_anthropic.utils.logging import LoggerBase, get_logger

logger: LoggerBase = get_logger(__name__)

CREDENTIAL_NAME = "azureAnthropicApi"


# Host interface descriptions-------------------------------------
class NodeProperty(BaseModel):
    """A parameter of the node as shown in the host interface."""

    display_name: str
    name: str
    type: str
    default: Any
    required: bool = False
    description: str = ""
    type_options: dict[str, Any] | None = None


class NodeDescription(BaseModel):
    display_name: str
    name: str
    description: str
    version: int = 1
    credentials: list[str]
    properties: list[NodeProperty]


NODE_DESCRIPTION = NodeDescription(
    display_name="Azure Anthropic",
    name="azureAnthropic",
    description="Interact with Azure Anthropic models",
    credentials=[CREDENTIAL_NAME],
    properties=[
        NodeProperty(
            display_name="Deployment Name",
            name="deploymentName",
            type="string",
            default="",
            required=True,
            description="The name of your Azure Anthropic deployment "
            "(e.g., claude-haiku-4-5)",
        ),
        NodeProperty(
            display_name="API Version",
            name="apiVersion",
            type="string",
            default=DEFAULT_API_VERSION,
            description="The API version to use (e.g., 2023-06-01)",
        ),
        NodeProperty(
            display_name="Messages",
            name="messages",
            type="json",
            default="[]",
            required=True,
            description="The messages to send to the model. "
            'Format: [{"role": "user", "content": "Hello"}]',
        ),
        NodeProperty(
            display_name="System Message",
            name="system",
            type="string",
            default="",
            description="System message to prompt the model",
        ),
        NodeProperty(
            display_name="Max Tokens",
            name="maxTokens",
            type="number",
            default=DEFAULT_MAX_TOKENS,
            description="The maximum number of tokens to generate",
        ),
        NodeProperty(
            display_name="Temperature",
            name="temperature",
            type="number",
            default=DEFAULT_TEMPERATURE,
            type_options={'minValue': 0, 'maxValue': 1},
            description="Amount of randomness injected into the response",
        ),
    ],
)


# Node data--------------------------------------------------------
class NodeParameters(GenerationSettings):
    """The parameters of the node for one item."""

    messages: str | list[dict[str, Any]] = "[]"


class PairedItem(BaseModel):
    item: int


class NodeExecutionData(BaseModel):
    """An output record of the node, paired with its input item."""

    json_data: dict[str, Any] = Field(alias='json')
    paired_item: PairedItem

    model_config = ConfigDict(populate_by_name=True)


class SupplyData(BaseModel):
    """The object supplied to the host by a provider node."""

    response: ChatAzureAnthropic


def _credentials(credentials: Credentials | Mapping[str, Any]) -> Credentials:
    if isinstance(credentials, Credentials):
        return credentials
    return Credentials.from_mapping(credentials)


def _error_message(error: Exception) -> str:
    if isinstance(error, ValidationError):
        return format_pydantic_error_message(str(error)).strip()
    return str(error)


class AzureAnthropicNode:
    """Action and model provider node for Azure Anthropic."""

    description: NodeDescription = NODE_DESCRIPTION

    async def execute(
        self,
        items: Sequence[Mapping[str, Any]],
        credentials: Credentials | Mapping[str, Any],
        *,
        continue_on_fail: bool = False,
        logger: LoggerBase = logger,
    ) -> list[NodeExecutionData]:
        """
        Send one messages request per item.

        Args:
            items: the node parameters of each item.
            credentials: the credential record of the node.
            continue_on_fail: if True, a failing item produces an
                output record with the error message and the next
                item is processed; otherwise the batch is aborted.
            logger: a logger object (defaults to console logging)

        Returns:
            one output record per item, in order, holding the JSON
            response of the endpoint or {'error': message}.

        Raises:
            NodeOperationError: an item failed and continue_on_fail
                is False. The original error is the __cause__.
        """
        # one client per configuration, for the duration of the batch
        batch_clients: LazyLoadingDict[
            ClientSettings, anthropic.AsyncAnthropic
        ] = LazyLoadingDict(new_async_client)
        results: list[NodeExecutionData] = []
        try:
            for index, item in enumerate(items):
                try:
                    data = await self._execute_item(
                        item, credentials, batch_clients
                    )
                except Exception as e:
                    message = _error_message(e)
                    if not continue_on_fail:
                        raise NodeOperationError(
                            message, item_index=index
                        ) from e
                    logger.warning(f"Item {index} failed: {message}")
                    data = {'error': message}
                results.append(
                    NodeExecutionData(
                        json_data=data, paired_item=PairedItem(item=index)
                    )
                )
        finally:
            for client in batch_clients.values():
                await client.close()
        return results

    async def _execute_item(
        self,
        item: Mapping[str, Any],
        credentials: Credentials | Mapping[str, Any],
        batch_clients: LazyLoadingDict[
            ClientSettings, anthropic.AsyncAnthropic
        ],
    ) -> dict[str, Any]:
        parameters = NodeParameters.model_validate(item)
        client_settings = ClientSettings.from_credentials(
            _credentials(credentials), parameters.api_version
        )
        request = build_request(
            parse_messages(parameters.messages),
            deployment_name=parameters.deployment_name,
            max_tokens=parameters.max_tokens,
            temperature=parameters.temperature,
            system=parameters.system,
        )
        return await asend_request(batch_clients[client_settings], request)

    def supply_data(
        self,
        credentials: Credentials | Mapping[str, Any],
        parameters: Mapping[str, Any],
    ) -> SupplyData:
        """
        Supply a LangChain chat model configured from the node
        parameters. The messages parameter, if present, is ignored.

        Raises:
            CredentialMissingError, ValidationError
        """
        settings = GenerationSettings.model_validate(
            {k: v for k, v in parameters.items() if k != 'messages'}
        )
        model = create_model_from_settings(
            settings, _credentials(credentials)
        )
        return SupplyData(response=model)
