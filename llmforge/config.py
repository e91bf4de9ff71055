import json
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from llmforge.exceptions import ConfigurationError
from llmforge.mapping.languages import TargetLanguage

DEFAULT_FILENAMES = ['llmforge.yaml', 'llmforge.yml']


class DocumentConfig(BaseModel):
    """Represents a single provider document to be processed."""

    source: str = Field(..., description='Path or URL to the provider document.')

    provider: str = Field(
        'openapi',
        description='Provider id selecting the frontend; unknown ids are parsed as OpenAPI.',
    )

    provider_name: str | None = Field(
        None, description='Display name of the provider. Defaults from the provider id.'
    )

    output: str | None = Field(
        None, description='Output directory for the canonical schema and type catalogs.'
    )

    include_deprecated: bool = Field(
        False, description='Whether to keep deprecated endpoints of dialect documents.'
    )

    resolve_external_refs: bool = Field(
        True, description='Whether to bundle external $ref references before parsing.'
    )

    strict: bool = Field(False, description='Whether any warning fails the parse.')


class ForgeConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix='LLMFORGE_')

    documents: list[DocumentConfig] = Field(
        ..., description='List of provider documents to process.'
    )

    targets: list[TargetLanguage] = Field(
        default_factory=list,
        description='Target languages to write type catalogs for.',
    )

    indent: int = Field(2, description='Indentation of the written canonical JSON.')


def load_yaml(path: str | Path) -> Any:
    return yaml.safe_load(Path(path).read_text(encoding='utf-8'))


def _load_file(path: Path) -> Any:
    try:
        if path.suffix.lower() == '.json':
            return json.loads(path.read_text(encoding='utf-8'))
        return load_yaml(path)
    except OSError as e:
        raise ConfigurationError(f'Cannot read configuration: {e}', str(path))
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f'Malformed configuration: {e}', str(path))


def _validate(data: Any, source: Path) -> ForgeConfig:
    if not isinstance(data, dict):
        raise ConfigurationError('Configuration must be a mapping', str(source))
    try:
        return ForgeConfig.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        raise ConfigurationError(
            f'Invalid configuration: {first["msg"]}',
            str(source),
            field='.'.join(str(part) for part in first['loc']),
        )


def get_config(path: str | None = None) -> ForgeConfig:
    """Load configuration from a file, the working directory or pyproject.toml.

    Raises:
        ConfigurationError: If no configuration exists or it is invalid.
    """
    if path:
        config_path = Path(path)
        if not config_path.exists():
            raise ConfigurationError('Configuration file not found', path)
        return _validate(_load_file(config_path), config_path)

    cwd = Path(os.getcwd())

    for filename in DEFAULT_FILENAMES:
        config_path = cwd / filename
        if config_path.exists():
            return _validate(_load_file(config_path), config_path)

    config_path = cwd / 'pyproject.toml'

    if config_path.exists():
        import tomllib

        pyproject = tomllib.loads(config_path.read_text(encoding='utf-8'))
        tools = pyproject.get('tool', {})

        if 'llmforge' in tools:
            return _validate(tools['llmforge'], config_path)

    raise ConfigurationError(
        f'No configuration found (looked for {", ".join(DEFAULT_FILENAMES)} '
        f'and [tool.llmforge] in pyproject.toml)',
        str(cwd),
    )
