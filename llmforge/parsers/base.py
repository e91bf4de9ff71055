"""Common frontend machinery.

Every provider frontend subclasses ``ProviderParser`` and implements two
capabilities: ``validation_errors`` (top-level checks on the raw document)
and ``convert`` (raw document to canonical schema, driven through a
``ConversionContext``). Loading, per-parse state and the never-raising
``parse`` boundary live here and are shared by all of them.
"""

import dataclasses
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, ClassVar

from llmforge.canonical.models import CanonicalSchema
from llmforge.exceptions import SchemaIssue, SchemaLoadError, SchemaValidationError
from llmforge.parsers.loader import DocumentLoader
from llmforge.parsers.resolver import ConversionContext

__all__ = ['ParserOptions', 'ParseResult', 'ProviderParser', 'STREAM_KEYWORD', 'looks_streaming']

logger = logging.getLogger(__name__)

STREAM_KEYWORD = 'stream'


def looks_streaming(*texts: str | None) -> bool:
    """Best-effort streaming signal: the word "stream" in free text."""
    return any(text and STREAM_KEYWORD in text.lower() for text in texts)


@dataclasses.dataclass(frozen=True)
class ParserOptions:
    provider_id: str
    provider_name: str
    include_deprecated: bool = False
    resolve_external_refs: bool = True
    # treat any warning as a failed parse
    strict: bool = False


@dataclasses.dataclass
class ParseResult:
    """Outcome of one ``parse`` call.

    ``schema`` is ``None`` when the document could not be loaded or failed
    top-level validation. When node-level errors occurred ``success`` is
    false but the partial schema is still attached for inspection.
    """

    success: bool
    schema: CanonicalSchema | None = None
    errors: list[str] = dataclasses.field(default_factory=list)
    warnings: list[str] = dataclasses.field(default_factory=list)
    issues: list[Exception] = dataclasses.field(default_factory=list)


class ProviderParser(ABC):
    """Base class for provider frontends.

    Example:
        >>> parser = OpenAPIParser(ParserOptions('openai', 'OpenAI'))
        >>> result = parser.parse('openapi.yaml')
        >>> if result.success:
        ...     print(len(result.schema.types))
    """

    provider_id: ClassVar[str]
    default_provider_name: ClassVar[str]

    def __init__(self, options: ParserOptions | None = None):
        self.options = options or ParserOptions(
            provider_id=self.provider_id, provider_name=self.default_provider_name
        )

    @abstractmethod
    def validation_errors(self, document: dict[str, Any]) -> list[str]:
        """Return the problems that make ``document`` unconvertible."""

    @abstractmethod
    def convert(
        self, document: dict[str, Any], context: ConversionContext
    ) -> CanonicalSchema:
        """Convert a validated document, collecting issues on ``context``."""

    def validate(self, document: dict[str, Any]) -> bool:
        return not self.validation_errors(document)

    def load(self, source: str | Path | dict[str, Any]) -> dict[str, Any]:
        loader = DocumentLoader(resolve_external_refs=self.options.resolve_external_refs)
        return loader.load(source)

    def parse(self, source: str | Path | dict[str, Any]) -> ParseResult:
        """Load, validate and convert ``source``. Never raises.

        Args:
            source: URL, file path, or an already-parsed document.

        Returns:
            The parse result with the canonical schema when one was produced.
        """
        context = ConversionContext()
        try:
            document = self.load(source)
            errors = self.validation_errors(document)
            if errors:
                raise SchemaValidationError(self._describe(source), errors)
            schema = self.convert(document, context)
        except SchemaValidationError as e:
            logger.error(str(e))
            return ParseResult(
                success=False,
                errors=list(e.errors),
                warnings=context.warnings,
                issues=[e],
            )
        except SchemaLoadError as e:
            logger.error(str(e))
            return ParseResult(
                success=False, errors=[str(e)], warnings=context.warnings, issues=[e]
            )
        except SchemaIssue as e:
            context.record(e)
            return self._failed(context, e)
        except Exception as e:
            logger.exception(f'Unexpected failure while parsing {self._describe(source)}')
            return self._failed(context, e)

        success = not context.errors
        if self.options.strict and context.warnings:
            success = False
        return ParseResult(
            success=success,
            schema=schema,
            errors=context.errors,
            warnings=context.warnings,
            issues=list(context.issues),
        )

    def _failed(self, context: ConversionContext, error: Exception) -> ParseResult:
        errors = list(context.errors)
        issues: list[Exception] = list(context.issues)
        if not isinstance(error, SchemaIssue):
            errors.append(f'Parse error: {error}')
            issues.append(error)
        return ParseResult(
            success=False, errors=errors, warnings=context.warnings, issues=issues
        )

    @staticmethod
    def _describe(source: str | Path | dict[str, Any]) -> str:
        return '<in-memory document>' if isinstance(source, dict) else str(source)
