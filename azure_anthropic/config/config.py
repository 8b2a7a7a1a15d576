"""
Read and write configuration file.

Configuration has two parts. The credentials of the Azure endpoint
(API key and base URL) are read from the environment, with prefix
AZURE_ANTHROPIC_, or given in code; they are never written to the
configuration file. The generation settings (deployment name, API
version, max tokens, temperature, system prompt) may be given in code
or loaded from config.toml in the project folder.

Example:
    ```python
    from azure_anthropic.config import Settings, GenerationSettings

    # loads config.toml, then the environment
    settings = Settings()
    settings.model.deployment_name

    # given in code, with the host's parameter names
    model = GenerationSettings(deploymentName="claude-haiku-4-5")
    ```
"""

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import tomlkit

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    field_validator,
)
from pydantic.alias_generators import to_camel
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

from azure_anthropic.errors import CredentialMissingError

# Defaults
DEFAULT_CONFIG_FILE = "config.toml"
DEFAULT_DEPLOYMENT_NAME = "claude-haiku-4-5"
DEFAULT_API_VERSION = "2023-06-01"
DEFAULT_MAX_TOKENS = 1024
DEFAULT_TEMPERATURE = 1.0
ENV_PREFIX = "AZURE_ANTHROPIC_"


class Credentials(BaseSettings):
    """
    Credentials of the Azure Anthropic endpoint.

    Attributes:
        api_key: the key of the Azure resource
        base_url: the endpoint root, e.g.
            https://RESOURCE.services.ai.azure.com/anthropic/
    """

    api_key: SecretStr = Field(
        default=SecretStr(""), description="API key of the resource"
    )
    base_url: str = Field(
        default="", description="Endpoint URL of the deployment"
    )

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX, frozen=True, extra='ignore'
    )

    @field_validator('base_url', mode='after')
    @classmethod
    def strip_base_url(cls, url: str) -> str:
        return url.strip()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> 'Credentials':
        """Build credentials from a host credential record, which
        uses the names apiKey and baseUrl."""
        return cls(
            api_key=data.get('apiKey', data.get('api_key', "")),
            base_url=data.get('baseUrl', data.get('base_url', "")),
        )

    def check(self) -> 'Credentials':
        """Raise CredentialMissingError if a field is empty, return
        self otherwise."""
        missing: list[str] = []
        if not self.api_key.get_secret_value():
            missing.append("apiKey")
        if not self.base_url:
            missing.append("baseUrl")
        if missing:
            raise CredentialMissingError(
                "Missing Azure Anthropic credentials: "
                + ", ".join(missing)
            )
        return self


class GenerationSettings(BaseModel):
    """
    Generation parameters of a request to a deployment.

    Fields may be given with their python names or with the camelCase
    names used by the host platform (deploymentName, maxTokens, ...).

    Attributes:
        deployment_name: the model deployment on the Azure endpoint
        api_version: sent as the api-version query parameter
        max_tokens: max number of generated tokens
        temperature: randomness of the response. The advised range
            is 0.0-1.0, but values are forwarded to the endpoint
            without checks.
        system: optional system prompt
    """

    deployment_name: str = Field(
        min_length=1,
        description="Name of the Azure Anthropic deployment "
        + "(e.g., claude-haiku-4-5)",
    )
    api_version: str = Field(
        default=DEFAULT_API_VERSION,
        description="The API version to use (e.g., 2023-06-01)",
    )
    max_tokens: int = Field(
        default=DEFAULT_MAX_TOKENS,
        description="The maximum number of tokens to generate",
    )
    temperature: float = Field(
        default=DEFAULT_TEMPERATURE,
        description="Amount of randomness injected into the response",
    )
    system: str | None = Field(
        default=None, description="System message to prompt the model"
    )

    model_config = ConfigDict(
        frozen=True,
        extra='forbid',
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @field_validator('deployment_name', 'api_version', mode='after')
    @classmethod
    def strip_names(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Value is empty")
        return cleaned

    @field_validator('system', mode='after')
    @classmethod
    def empty_system_is_none(cls, value: str | None) -> str | None:
        # The host sends an empty string when no system message is set
        return value if value else None


def _settings_config(toml_file: str | Path) -> SettingsConfigDict:
    return SettingsConfigDict(
        toml_file=toml_file,
        env_prefix=ENV_PREFIX,
        env_nested_delimiter="__",
        frozen=True,
        extra='ignore',
    )


class Settings(BaseSettings):
    """
    Default deployment of the package, with the credentials of its
    endpoint.

    Attributes:
        model: generation settings of the default deployment
        credentials: endpoint credentials, read from the environment

    Note:
        The Settings object reads from config.toml in the project
        folder, then from the environment. The credentials are not
        serialized to file. A Settings object read this way is the
        default configuration of create_model_from_settings.
    """

    model: GenerationSettings = Field(
        default_factory=lambda: GenerationSettings(
            deployment_name=DEFAULT_DEPLOYMENT_NAME
        ),
        description="Default deployment and generation parameters",
    )
    credentials: Credentials = Field(
        default_factory=Credentials,
        description="Endpoint credentials",
        exclude=True,
    )

    model_config = _settings_config(DEFAULT_CONFIG_FILE)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize the order of settings sources."""
        return (
            init_settings,
            TomlConfigSettingsSource(settings_cls),
            env_settings,
        )


def serialize_settings(sets: Settings) -> str:
    """Render the settings as the text of a config.toml file.

    The credentials are left out (they are excluded from the dump),
    as are unset optional values, which TOML cannot represent.
    """
    doc = tomlkit.document()
    doc.add(tomlkit.comment("Azure Anthropic configuration"))
    doc.add(
        tomlkit.comment(
            f"Credentials: set {ENV_PREFIX}API_KEY and "
            f"{ENV_PREFIX}BASE_URL in the environment"
        )
    )
    doc.add(tomlkit.nl())
    for key, value in sets.model_dump(mode='json', exclude_none=True).items():
        doc[key] = value
    return tomlkit.dumps(doc)


def export_settings(
    settings: Settings, file_path: str | Path | None = None
) -> Path:
    """Write the settings to a TOML file, creating its folder if
    needed. Returns the path of the file.

    Raises:
        OSError: the file cannot be written
    """
    path = Path(file_path or DEFAULT_CONFIG_FILE)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(serialize_settings(settings), encoding="utf-8")
    return path


def create_default_config_file(
    file_path: str | Path | None = None,
) -> Path:
    """Write a configuration file with the default generation
    settings, replacing an existing one."""
    # init arguments take precedence over an existing file
    defaults = Settings(
        model=GenerationSettings(deployment_name=DEFAULT_DEPLOYMENT_NAME)
    )
    return export_settings(defaults, file_path)


def load_settings(file_path: str | Path | None = None) -> Settings:
    """Read the settings from a TOML file other than the default one.
    The environment still overrides the values of the file.

    Raises:
        FileNotFoundError: the file does not exist
        ValueError: the file is not valid TOML, or holds invalid
            settings
    """
    path = Path(file_path or DEFAULT_CONFIG_FILE)
    if not path.exists():
        raise FileNotFoundError(f"Settings file not found: {path}")

    class FileSettings(Settings):
        model_config = _settings_config(path)

    try:
        return FileSettings()
    except ValueError as e:
        # ValidationError and TOMLDecodeError are both ValueErrors
        raise ValueError(
            f"Invalid settings in {path}: "
            + format_pydantic_error_message(str(e))
        ) from e


def format_pydantic_error_message(error_message: str) -> str:
    """Filter out verbose lines from pydantic error messages.

    Args:
        error_message: Raw pydantic error message

    Returns:
        Cleaned error message without verbose help text
    """
    lines = error_message.split('\n')
    filtered_lines = [
        line
        for line in lines
        if "For further information visit" not in line
    ]
    return '\n'.join(filtered_lines)
