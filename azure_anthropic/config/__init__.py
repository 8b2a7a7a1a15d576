# pyright: reportUnusedImport=false
# flake8: noqa

from .config import (
    Settings,
    Credentials,
    GenerationSettings,
    serialize_settings,
    export_settings,
    create_default_config_file,
    load_settings,
    format_pydantic_error_message,
    DEFAULT_API_VERSION,
)
