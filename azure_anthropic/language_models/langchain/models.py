"""
This module implements creation of LangChain chat models for Azure
Anthropic deployments from settings objects. The models are stored in
the global repository `langchain_models`, so that the same settings
return the same model object.

The settings are given as a GenerationSettings object with a
Credentials object, which is read from the environment if not given,
or as a Settings object holding both. Without arguments, the Settings
object is read from config.toml and the environment.

Examples:

```python
from azure_anthropic.config import (
    Credentials,
    GenerationSettings,
    load_settings,
)
from azure_anthropic.language_models.langchain.models import (
    create_model_from_settings,
    create_model_from_spec,
)

# Method 1: settings objects
model = create_model_from_settings(
    GenerationSettings(deployment_name="claude-haiku-4-5"),
    Credentials(),
)

# Method 2: settings from config.toml and the environment
model = create_model_from_settings()
model = create_model_from_settings(load_settings("other.toml"))

# Method 3: keyword arguments
model = create_model_from_spec("claude-haiku-4-5", temperature=0.7)
```

Behaviour:
    Raises CredentialMissingError if the credentials are incomplete,
    ValidationError if the settings are invalid.
"""

from pydantic import BaseModel, ConfigDict

from azure_anthropic.config.config import (
    DEFAULT_API_VERSION,
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    Credentials,
    GenerationSettings,
    Settings,
)
from ..client import ClientSettings
from ..lazy_dict import LazyLoadingDict
from .chat_models import ChatAzureAnthropic


class ProviderSettings(BaseModel):
    """Generation settings and client settings of a model. Used as
    the key of the model repository."""

    model: GenerationSettings
    client: ClientSettings

    model_config = ConfigDict(frozen=True)


def _create_model_instance(spec: ProviderSettings) -> ChatAzureAnthropic:
    return ChatAzureAnthropic(
        deployment_name=spec.model.deployment_name,
        api_key=spec.client.api_key,
        base_url=spec.client.base_url,
        api_version=spec.client.api_version,
        max_tokens=spec.model.max_tokens,
        temperature=spec.model.temperature,
        system=spec.model.system,
    )


# Public interface----------------------------------------------
langchain_models: LazyLoadingDict[ProviderSettings, ChatAzureAnthropic] = \
    LazyLoadingDict(_create_model_instance)


def create_model_from_settings(
    settings: Settings | GenerationSettings | None = None,
    credentials: Credentials | None = None,
) -> ChatAzureAnthropic:
    """
    Create LangChain model from a settings object.

    Args:
        settings: a GenerationSettings object, or a Settings object
            carrying both the generation settings and the credentials.
            If None, a Settings object is read from config.toml and
            the environment.
        credentials: the endpoint credentials. If None, they are taken
            from the Settings object, or read from the environment.

    Returns:
        a ChatAzureAnthropic object.

    Raises CredentialMissingError, ValidationError
    """
    if settings is None:
        settings = Settings()
    match settings:
        case Settings():
            generation = settings.model
            if credentials is None:
                credentials = settings.credentials
        case GenerationSettings():
            generation = settings
            if credentials is None:
                credentials = Credentials()

    spec = ProviderSettings(
        model=generation,
        client=ClientSettings.from_credentials(
            credentials, generation.api_version
        ),
    )
    return langchain_models[spec]


def create_model_from_spec(
    deployment_name: str,
    *,
    api_version: str = DEFAULT_API_VERSION,
    max_tokens: int = DEFAULT_MAX_TOKENS,
    temperature: float = DEFAULT_TEMPERATURE,
    system: str | None = None,
    credentials: Credentials | None = None,
) -> ChatAzureAnthropic:
    """
    Create LangChain model from specifications.

    Example:
        ```python
        spec = {'deployment_name': "claude-haiku-4-5"}
        model = create_model_from_spec(**spec)
        ```
    """
    settings = GenerationSettings(
        deployment_name=deployment_name,
        api_version=api_version,
        max_tokens=max_tokens,
        temperature=temperature,
        system=system,
    )
    return create_model_from_settings(settings, credentials)
