"""Provider frontends producing canonical schemas."""

from llmforge.parsers.anthropic import AnthropicParser
from llmforge.parsers.base import ParseResult, ParserOptions, ProviderParser
from llmforge.parsers.loader import DocumentLoader
from llmforge.parsers.openapi import OpenAPIParser
from llmforge.parsers.registry import (
    available_providers,
    get_parser,
    parse,
    register_parser,
    unregister_parser,
)
from llmforge.parsers.resolver import ConversionContext, ReferenceResolver

__all__ = [
    'AnthropicParser',
    'ConversionContext',
    'DocumentLoader',
    'OpenAPIParser',
    'ParseResult',
    'ParserOptions',
    'ProviderParser',
    'ReferenceResolver',
    'available_providers',
    'get_parser',
    'parse',
    'register_parser',
    'unregister_parser',
]
