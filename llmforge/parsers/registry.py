"""Provider frontend registry.

Frontends are looked up by provider id. Providers without a dedicated
frontend (``openai``, ``cohere``, ...) publish OpenAPI documents, so any
unknown id falls back to the OpenAPI frontend under that provider id.
"""

import logging
from pathlib import Path
from typing import Any

from llmforge.exceptions import UnsupportedProviderError
from llmforge.parsers.anthropic import AnthropicParser
from llmforge.parsers.base import ParserOptions, ParseResult, ProviderParser
from llmforge.parsers.openapi import OpenAPIParser

__all__ = [
    'register_parser',
    'unregister_parser',
    'get_parser',
    'available_providers',
    'parse',
]

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER = OpenAPIParser.provider_id

_PARSERS: dict[str, type[ProviderParser]] = {
    OpenAPIParser.provider_id: OpenAPIParser,
    AnthropicParser.provider_id: AnthropicParser,
}


def register_parser(provider_id: str, parser_class: type[ProviderParser]) -> None:
    """Register a frontend for ``provider_id``, replacing any existing one."""
    if not issubclass(parser_class, ProviderParser):
        raise TypeError(f'{parser_class!r} is not a ProviderParser subclass')
    _PARSERS[provider_id] = parser_class


def unregister_parser(provider_id: str) -> None:
    if provider_id not in _PARSERS:
        raise UnsupportedProviderError(provider_id, available_providers())
    del _PARSERS[provider_id]


def available_providers() -> list[str]:
    return sorted(_PARSERS)


def get_parser(
    provider_id: str = DEFAULT_PROVIDER,
    provider_name: str | None = None,
    **options: Any,
) -> ProviderParser:
    """Instantiate the frontend for ``provider_id``.

    Args:
        provider_id: Provider id; unknown ids use the OpenAPI frontend.
        provider_name: Display name, defaulting to the frontend's own name
            or, for fallback providers, the capitalized provider id.
        **options: Remaining ``ParserOptions`` fields.
    """
    parser_class = _PARSERS.get(provider_id)
    if parser_class is None:
        logger.debug(f'No dedicated parser for {provider_id}, using OpenAPI')
        parser_class = _PARSERS[DEFAULT_PROVIDER]
        default_name = provider_id.capitalize()
    else:
        default_name = parser_class.default_provider_name

    return parser_class(
        ParserOptions(
            provider_id=provider_id,
            provider_name=provider_name or default_name,
            **options,
        )
    )


def parse(
    source: str | Path | dict[str, Any],
    provider: str = DEFAULT_PROVIDER,
    provider_name: str | None = None,
    **options: Any,
) -> ParseResult:
    """Parse a provider document into a canonical schema.

    Never raises for document problems; every failure is reported on the
    returned ``ParseResult``.

    Example:
        >>> result = parse('openapi.yaml', provider='openai', provider_name='OpenAI')
        >>> if result.success:
        ...     schema = result.schema
    """
    return get_parser(provider, provider_name, **options).parse(source)
