"""Custom exceptions for LLM-Forge.

This module defines the exception hierarchy used throughout LLM-Forge. Two
families matter to callers:

- Document-level errors (``SchemaLoadError``, ``SchemaValidationError``) stop
  a parse before any canonical schema exists.
- Node-level issues (subclasses of ``SchemaIssue``) are raised while a single
  schema node is converted. The parsers never let them escape: each one is
  recorded on the parse result as a warning or an error according to its
  ``severity``, and conversion continues with a placeholder type.

``TypeMappingError`` is different from both: it signals that the type mapper
was handed a reference the canonical schema cannot satisfy, which means an
earlier stage broke an invariant. It is always raised.
"""

from typing import ClassVar, Literal

Severity = Literal['warning', 'error']


class LLMForgeError(Exception):
    """Base exception for all LLM-Forge errors.

    Example:
        try:
            mapper.map_type(reference)
        except LLMForgeError as e:
            print(f"LLM-Forge error: {e}")
    """

    def __init__(self, message: str, *args, **kwargs):
        self.message = message
        super().__init__(message, *args, **kwargs)


class SchemaError(LLMForgeError):
    """Base exception for schema-related errors."""

    pass


class SchemaLoadError(SchemaError):
    """Failed to load a provider document from a source.

    Attributes:
        source: The source path or URL that failed to load.
        cause: The underlying exception that caused the failure.
    """

    def __init__(self, source: str, cause: Exception | None = None):
        self.source = source
        self.cause = cause
        message = f"Failed to load document from '{source}'"
        if cause:
            message += f': {cause}'
        super().__init__(message)


class SchemaValidationError(SchemaError):
    """A provider document is missing required top-level fields.

    Attributes:
        source: Description of the document that failed validation.
        errors: List of validation error messages.
    """

    def __init__(self, source: str, errors: list[str] | None = None):
        self.source = source
        self.errors = errors or []
        message = f"Schema validation failed for '{source}'"
        if errors:
            message += f': {"; ".join(errors)}'
        super().__init__(message)


class SchemaIssue(SchemaError):
    """A problem confined to one schema node.

    Subclasses fix the ``severity`` used when the issue is collected on a
    parse result and a stable ``code`` for programmatic inspection.
    """

    severity: ClassVar[Severity] = 'warning'
    code: ClassVar[str] = 'schema_issue'


class UnresolvedReferenceError(SchemaIssue):
    """A reference could not be matched to any known component.

    Attributes:
        reference: The reference string that could not be resolved.
        reason: Explanation of why the reference couldn't be resolved.
    """

    code = 'unresolved_reference'

    def __init__(self, reference: str, reason: str | None = None):
        self.reference = reference
        self.reason = reason
        message = f"Failed to resolve reference '{reference}'"
        if reason:
            message += f': {reason}'
        super().__init__(message)


class UnknownTypeKindError(SchemaIssue):
    """A node carries a type discriminator the frontend does not know.

    Attributes:
        kind: The unrecognised discriminator value.
        type_name: Name of the type being converted.
    """

    code = 'unknown_type_kind'

    def __init__(self, kind: str | None, type_name: str):
        self.kind = kind
        self.type_name = type_name
        super().__init__(f"Unknown type kind '{kind}' for type '{type_name}'")


class UnsupportedAuthSchemeError(SchemaIssue):
    """A security scheme has no canonical counterpart and was dropped.

    Attributes:
        scheme_id: The id of the security scheme in the source document.
        scheme_type: The scheme's declared type.
    """

    code = 'unsupported_auth_scheme'

    def __init__(self, scheme_id: str, scheme_type: str | None):
        self.scheme_id = scheme_id
        self.scheme_type = scheme_type
        super().__init__(
            f"Unsupported security scheme type: {scheme_type} (scheme '{scheme_id}')"
        )


class AmbiguousArrayItemsError(SchemaIssue):
    """An array schema has no items definition.

    There is no safe default for an unknown item type, so this issue fails
    the parse even though the rest of the document is still converted.

    Attributes:
        type_name: Name of the array type.
    """

    severity = 'error'
    code = 'ambiguous_array_items'

    def __init__(self, type_name: str):
        self.type_name = type_name
        super().__init__(f"Array schema '{type_name}' has no items definition")


class UnsupportedProviderError(LLMForgeError):
    """No frontend is registered for a provider.

    Attributes:
        provider: The requested provider id.
        available: Provider ids that are registered.
    """

    def __init__(self, provider: str, available: list[str] | None = None):
        self.provider = provider
        self.available = available or []
        message = f"No parser registered for provider '{provider}'"
        if self.available:
            message += f'. Available: {", ".join(self.available)}'
        super().__init__(message)


class TypeMappingError(LLMForgeError):
    """A type reference could not be projected onto a target language.

    Raised when the referenced type id is absent from the canonical schema,
    which can only happen when an earlier stage broke referential closure.

    Attributes:
        type_id: The unresolvable type id.
        language: The target language being mapped to.
        reason: Optional explanation.
    """

    def __init__(self, type_id: str, language: str, reason: str | None = None):
        self.type_id = type_id
        self.language = language
        self.reason = reason
        message = f"Cannot map type '{type_id}' to {language}"
        if reason:
            message += f': {reason}'
        super().__init__(message)


class ConfigurationError(LLMForgeError):
    """Error in configuration.

    Attributes:
        config_path: The path to the configuration file, if applicable.
        field: The specific configuration field that is invalid.
    """

    def __init__(
        self, message: str, config_path: str | None = None, field: str | None = None
    ):
        self.config_path = config_path
        self.field = field
        full_message = message
        if config_path:
            full_message = f"{message} in '{config_path}'"
        if field:
            full_message += f' (field: {field})'
        super().__init__(full_message)


class OutputError(LLMForgeError):
    """Error writing a canonical schema to its output location.

    Attributes:
        output_path: The path where output was being written.
        cause: The underlying exception that caused the failure.
    """

    def __init__(self, output_path: str, cause: Exception | None = None):
        self.output_path = output_path
        self.cause = cause
        message = f"Failed to write output to '{output_path}'"
        if cause:
            message += f': {cause}'
        super().__init__(message)
