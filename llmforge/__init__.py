"""LLM-Forge - Canonical schemas for LLM provider APIs.

LLM-Forge reads provider API descriptions (OpenAPI 3.x documents and the
Anthropic-style JSON dialect) and converts them into one provider-agnostic
canonical schema. A type mapper then projects the schema's types onto seven
target languages for SDK generators.

Quick Start:
    >>> from llmforge import parse, TypeMapper, TargetLanguage
    >>>
    >>> result = parse('openapi.yaml', provider='openai', provider_name='OpenAI')
    >>> if result.success:
    ...     mapper = TypeMapper(result.schema, TargetLanguage.RUST)
    ...     print(mapper.type_name(result.schema.types[0].id))

CLI Usage:
    $ llmforge parse ./openapi.yaml --provider openai -o schema.json
    $ llmforge generate --config llmforge.yaml
    $ llmforge types ./anthropic.json -p anthropic -l go
"""

from llmforge.canonical import CanonicalSchema, SchemaValidator, TypeReference
from llmforge.config import DocumentConfig, ForgeConfig, get_config
from llmforge.exceptions import (
    AmbiguousArrayItemsError,
    ConfigurationError,
    LLMForgeError,
    OutputError,
    SchemaError,
    SchemaIssue,
    SchemaLoadError,
    SchemaValidationError,
    TypeMappingError,
    UnknownTypeKindError,
    UnresolvedReferenceError,
    UnsupportedAuthSchemeError,
    UnsupportedProviderError,
)
from llmforge.mapping import MappedType, MappingContext, TargetLanguage, TypeMapper, map_type
from llmforge.parsers import ParseResult, get_parser, parse, register_parser

__all__ = [
    # Parsing
    'parse',
    'get_parser',
    'register_parser',
    'ParseResult',
    # Canonical schema
    'CanonicalSchema',
    'TypeReference',
    'SchemaValidator',
    # Type mapping
    'TargetLanguage',
    'TypeMapper',
    'MappingContext',
    'MappedType',
    'map_type',
    # Configuration
    'DocumentConfig',
    'ForgeConfig',
    'get_config',
    # Exceptions
    'LLMForgeError',
    'SchemaError',
    'SchemaLoadError',
    'SchemaValidationError',
    'SchemaIssue',
    'UnresolvedReferenceError',
    'UnknownTypeKindError',
    'UnsupportedAuthSchemeError',
    'AmbiguousArrayItemsError',
    'UnsupportedProviderError',
    'TypeMappingError',
    'ConfigurationError',
    'OutputError',
]

from llmforge._version import version as __version__  # noqa: E402
