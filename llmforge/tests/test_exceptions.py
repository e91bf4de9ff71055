"""Test suite for the LLM-Forge exception hierarchy."""

import pytest

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


class TestLLMForgeError:
    """Tests for the base LLMForgeError exception."""

    def test_basic_message(self):
        """Test that the error stores the message."""
        error = LLMForgeError('Something went wrong')
        assert error.message == 'Something went wrong'
        assert str(error) == 'Something went wrong'

    def test_can_be_caught_as_exception(self):
        with pytest.raises(Exception):
            raise LLMForgeError('Test error')


class TestDocumentErrors:
    """Tests for errors that stop a parse before conversion."""

    def test_schema_load_error_with_source(self):
        error = SchemaLoadError('https://api.example.com/openapi.json')
        assert isinstance(error, SchemaError)
        assert error.source == 'https://api.example.com/openapi.json'
        assert error.cause is None
        assert 'https://api.example.com/openapi.json' in str(error)

    def test_schema_load_error_with_cause(self):
        cause = ConnectionError('Network unavailable')
        error = SchemaLoadError('openapi.json', cause=cause)
        assert error.cause is cause
        assert 'Network unavailable' in str(error)

    def test_schema_validation_error_lists_errors(self):
        error = SchemaValidationError(
            'anthropic.yaml', ['Base URL is required', 'Schema version is required']
        )
        assert error.errors == ['Base URL is required', 'Schema version is required']
        assert 'Base URL is required; Schema version is required' in str(error)

    def test_schema_validation_error_without_errors(self):
        error = SchemaValidationError('spec.yaml')
        assert error.errors == []
        assert str(error) == "Schema validation failed for 'spec.yaml'"


class TestSchemaIssues:
    """Tests for node-level issues and their severities."""

    def test_issues_are_schema_errors(self):
        for issue in (
            UnresolvedReferenceError('#/components/schemas/Missing'),
            UnknownTypeKindError('tuple', 'Pair'),
            UnsupportedAuthSchemeError('oidc', 'openIdConnect'),
            AmbiguousArrayItemsError('Things'),
        ):
            assert isinstance(issue, SchemaIssue)
            assert isinstance(issue, SchemaError)

    def test_severities(self):
        assert UnresolvedReferenceError('#/x').severity == 'warning'
        assert UnknownTypeKindError('tuple', 'Pair').severity == 'warning'
        assert UnsupportedAuthSchemeError('oidc', 'openIdConnect').severity == 'warning'
        assert AmbiguousArrayItemsError('Things').severity == 'error'

    def test_codes_are_distinct(self):
        codes = {
            UnresolvedReferenceError.code,
            UnknownTypeKindError.code,
            UnsupportedAuthSchemeError.code,
            AmbiguousArrayItemsError.code,
        }
        assert len(codes) == 4

    def test_unresolved_reference_with_reason(self):
        error = UnresolvedReferenceError('#/components/schemas/Foo', 'no such component')
        assert error.reference == '#/components/schemas/Foo'
        assert error.reason == 'no such component'
        assert str(error) == (
            "Failed to resolve reference '#/components/schemas/Foo': no such component"
        )

    def test_unknown_type_kind_message(self):
        error = UnknownTypeKindError('tuple', 'Pair')
        assert error.kind == 'tuple'
        assert error.type_name == 'Pair'
        assert "'tuple'" in str(error)
        assert "'Pair'" in str(error)

    def test_unsupported_auth_scheme_message(self):
        error = UnsupportedAuthSchemeError('oidc', 'openIdConnect')
        assert str(error).startswith('Unsupported security scheme type: openIdConnect')

    def test_ambiguous_array_items_message(self):
        error = AmbiguousArrayItemsError('Things')
        assert 'Things' in str(error)
        assert 'no items definition' in str(error)


class TestOtherErrors:
    """Tests for provider, mapping, configuration and output errors."""

    def test_unsupported_provider_lists_available(self):
        error = UnsupportedProviderError('gemini', ['anthropic', 'openapi'])
        assert error.provider == 'gemini'
        assert 'Available: anthropic, openapi' in str(error)

    def test_type_mapping_error(self):
        error = TypeMappingError('type_99', 'rust', 'type is not defined in the schema')
        assert error.type_id == 'type_99'
        assert error.language == 'rust'
        assert str(error) == (
            "Cannot map type 'type_99' to rust: type is not defined in the schema"
        )

    def test_configuration_error_with_path_and_field(self):
        error = ConfigurationError('Invalid value', 'llmforge.yaml', field='documents')
        assert error.config_path == 'llmforge.yaml'
        assert error.field == 'documents'
        assert str(error) == "Invalid value in 'llmforge.yaml' (field: documents)"

    def test_configuration_error_message_only(self):
        assert str(ConfigurationError('Missing')) == 'Missing'

    def test_output_error_with_cause(self):
        error = OutputError('/tmp/out/schema.json', cause=PermissionError('denied'))
        assert error.output_path == '/tmp/out/schema.json'
        assert 'denied' in str(error)
