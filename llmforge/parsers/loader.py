"""Document loading for provider API descriptions.

This module loads provider documents from URLs, local JSON/YAML files or
already-parsed dictionaries, and bundles external ``$ref`` references so the
frontends only ever see one self-contained document.
"""

import json
import logging
from pathlib import Path
from typing import Any
from urllib.parse import urljoin

import httpx
import yaml

from llmforge.exceptions import SchemaLoadError
from llmforge.utils import is_url

__all__ = ['DocumentLoader', 'resolve_json_pointer']

logger = logging.getLogger(__name__)


def resolve_json_pointer(obj: Any, pointer: str) -> Any:
    """Resolve a JSON pointer (without the leading ``#``) within an object.

    Raises:
        KeyError: If any segment of the pointer does not exist.
    """
    if not pointer or pointer == '/':
        return obj

    current = obj
    for part in pointer.lstrip('/').split('/'):
        part = part.replace('~1', '/').replace('~0', '~')
        if isinstance(current, dict):
            if part not in current:
                raise KeyError(f'JSON pointer path not found: {pointer}')
            current = current[part]
        elif isinstance(current, list):
            try:
                current = current[int(part)]
            except (ValueError, IndexError):
                raise KeyError(f'JSON pointer path not found: {pointer}')
        else:
            raise KeyError(f'JSON pointer path not found: {pointer}')

    return current


class DocumentLoader:
    """Loads provider documents from URLs, file paths or dictionaries.

    External references (``other.yaml#/Foo``, ``https://.../schemas.json``)
    are inlined while loading. A target reached through several references
    is inlined once and shared, and a cycle between files becomes a cyclic
    structure rather than an endless expansion. Local references (``#/...``)
    of the root document are left alone for the frontends to resolve.

    Example:
        >>> loader = DocumentLoader()
        >>> document = loader.load('https://api.example.com/openapi.json')
        >>> # or
        >>> document = loader.load('/path/to/openapi.yaml')
    """

    def __init__(
        self,
        http_client: httpx.Client | None = None,
        resolve_external_refs: bool = True,
        base_path: str | Path | None = None,
    ):
        """Initialize the document loader.

        Args:
            http_client: Optional HTTP client to use for URL requests.
            resolve_external_refs: Whether to inline external $ref references.
            base_path: Base path for resolving relative file references.
                      Defaults to current working directory.
        """
        self._http_client = http_client
        self._resolve_external_refs = resolve_external_refs
        self._base_path = Path(base_path) if base_path else Path.cwd()
        self._external_cache: dict[str, Any] = {}

    def load(self, source: str | Path | dict[str, Any]) -> dict[str, Any]:
        """Load a document and bundle its external references.

        Args:
            source: URL, file path, or an already-parsed document.

        Returns:
            The document as a dictionary.

        Raises:
            SchemaLoadError: If the document or one of its external
                references cannot be loaded.
        """
        if isinstance(source, dict):
            location = str(self._base_path / '__document__')
            content = source
            label = '<in-memory document>'
        else:
            label = str(source)
            location = self._locate(label, None)
            content = self._fetch(location, label)

        if not isinstance(content, dict):
            raise SchemaLoadError(
                label, cause=ValueError('Document root must be a mapping')
            )

        if not self._resolve_external_refs:
            return content

        return self._bundle(content, location, root=True, memo={})

    def _locate(self, ref_location: str, base: str | None) -> str:
        if is_url(ref_location):
            return ref_location
        if base is not None and is_url(base):
            return urljoin(base, ref_location)
        path = Path(ref_location)
        if not path.is_absolute():
            parent = Path(base).parent if base is not None else self._base_path
            path = parent / path
        return str(path)

    def _fetch(self, location: str, label: str | None = None) -> Any:
        if location not in self._external_cache:
            if is_url(location):
                self._external_cache[location] = self._load_from_url(location)
            else:
                self._external_cache[location] = self._load_from_file(
                    location, label or location
                )
        return self._external_cache[location]

    def _load_from_url(self, url: str) -> Any:
        """Load document content from a URL."""
        try:
            if self._http_client:
                response = self._http_client.get(url)
            else:
                response = httpx.get(url, follow_redirects=True)
            response.raise_for_status()

            content_type = response.headers.get('content-type', '')
            if 'yaml' in content_type or url.endswith(('.yaml', '.yml')):
                return yaml.safe_load(response.text)
            return json.loads(response.text)

        except httpx.HTTPError as e:
            raise SchemaLoadError(url, cause=e)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise SchemaLoadError(url, cause=e)

    def _load_from_file(self, location: str, label: str) -> Any:
        """Load document content from a file."""
        path = Path(location)
        if not path.exists():
            raise SchemaLoadError(
                label, cause=FileNotFoundError(f'File not found: {path}')
            )

        try:
            content = path.read_text(encoding='utf-8')
            if path.suffix.lower() in ('.yaml', '.yml'):
                return yaml.safe_load(content)
            return json.loads(content)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise SchemaLoadError(label, cause=e)
        except OSError as e:
            raise SchemaLoadError(label, cause=e)

    def _bundle(
        self, obj: Any, location: str, root: bool, memo: dict[Any, Any]
    ) -> Any:
        """Rebuild ``obj`` with every external reference inlined.

        ``memo`` maps already visited nodes (by identity) and external
        targets (by ``location#pointer``) to their bundled copies, which
        keeps shared nodes shared.
        """
        if isinstance(obj, dict):
            ref = obj.get('$ref')
            if isinstance(ref, str) and (not root or not ref.startswith('#')):
                return self._inline(ref, location, memo)

            key = ('node', id(obj))
            if key in memo:
                return memo[key][1]
            bundled: dict[str, Any] = {}
            # the source node stays referenced so its id() cannot be reused
            memo[key] = (obj, bundled)
            for k, v in obj.items():
                bundled[k] = self._bundle(v, location, root, memo)
            return bundled

        if isinstance(obj, list):
            key = ('node', id(obj))
            if key in memo:
                return memo[key][1]
            bundled_list: list[Any] = []
            memo[key] = (obj, bundled_list)
            bundled_list.extend(self._bundle(item, location, root, memo) for item in obj)
            return bundled_list

        return obj

    def _inline(self, ref: str, base: str, memo: dict[Any, Any]) -> Any:
        file_part, _, pointer = ref.partition('#')
        target_location = self._locate(file_part, base) if file_part else base

        key = ('ref', f'{target_location}#{pointer}')
        if key in memo:
            return memo[key]

        logger.debug(f'Inlining external reference {ref} from {target_location}')
        document = self._fetch(target_location)
        try:
            target = resolve_json_pointer(document, pointer)
        except KeyError as e:
            raise SchemaLoadError(ref, cause=e)

        if isinstance(target, dict):
            # registered before recursing so a cycle closes on this dict
            placeholder: dict[str, Any] = {}
            memo[key] = placeholder
            bundled = self._bundle(target, target_location, root=False, memo=memo)
            if isinstance(bundled, dict):
                placeholder.update(bundled)
            else:
                memo[key] = bundled
                return bundled
            return placeholder

        bundled = self._bundle(target, target_location, root=False, memo=memo)
        memo[key] = bundled
        return bundled
