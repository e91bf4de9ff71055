import re
import unicodedata
from urllib.parse import urlparse

__all__ = (
    'is_url',
    'sanitize_identifier',
    'to_pascal_case',
    'to_snake_case',
    'operation_name',
)


def capitalize(input_string):
    if not input_string:
        return ''
    return input_string[0].upper() + input_string[1:]


def is_url(text):
    try:
        result = urlparse(text)
        return result.scheme in ('http', 'https') and bool(result.netloc)
    except (ValueError, TypeError, AttributeError):
        return False


def remove_accents(input_str):
    nfkd_form = unicodedata.normalize('NFKD', input_str)
    return ''.join(c for c in nfkd_form if not unicodedata.combining(c))


def _words(name: str) -> list[str]:
    return [part for part in re.split(r'[^A-Za-z0-9]+', remove_accents(name)) if part]


def sanitize_identifier(name: str) -> str:
    """Convert a string into an identifier safe in every target language.

    - Replace spaces, hyphens and other separators
    - Remove other invalid characters
    - Ensure it doesn't start with a digit
    - Join multi-part names in PascalCase
    """
    if not name:
        return 'UnnamedType'

    parts = _words(name)

    if len(parts) == 1:
        sanitized = parts[0]
    else:
        sanitized = ''.join(capitalize(part) for part in parts)

    if sanitized and sanitized[0].isdigit():
        sanitized = '_' + sanitized

    return sanitized or 'UnnamedType'


def to_pascal_case(name: str) -> str:
    """Convert a canonical type name into a PascalCase type name.

    Existing inner capitals are kept, so ``chatMessage`` and ``chat_message``
    both become ``ChatMessage``.
    """
    return capitalize(sanitize_identifier(name))


def to_snake_case(name: str) -> str:
    parts = _words(name)
    words: list[str] = []
    for part in parts:
        words.extend(
            w.lower() for w in re.findall(r'[A-Z]+(?=[A-Z][a-z]|\d|$)|[A-Z]?[a-z]+|\d+', part)
        )
    sanitized = '_'.join(words)
    if sanitized and sanitized[0].isdigit():
        sanitized = '_' + sanitized
    return sanitized or 'unnamed'


def operation_name(method: str, path: str) -> str:
    """Fallback operation id for operations that declare none."""
    return f'{method.lower()}_{re.sub(r"[/{}]", "_", path)}'
