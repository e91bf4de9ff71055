"""Test utility functions."""

from llmforge.utils import (
    is_url,
    operation_name,
    sanitize_identifier,
    to_pascal_case,
    to_snake_case,
)


class TestIsUrl:
    """Test is_url function."""

    def test_valid_urls(self):
        assert is_url('http://example.com') is True
        assert is_url('https://api.example.com/v1/openapi.json') is True
        assert is_url('https://example.com:443/path?query=value') is True

    def test_invalid_urls(self):
        assert is_url('example.com') is False
        assert is_url('http://') is False
        assert is_url('') is False
        assert is_url('/path/to/file.yaml') is False
        assert is_url('./relative/openapi.json') is False

    def test_other_schemes_are_not_fetched(self):
        """Only HTTP(S) sources are loaded over the network."""
        assert is_url('ftp://ftp.example.com/spec.json') is False
        assert is_url('file:///path/to/spec.json') is False


class TestSanitizeIdentifier:
    """Test sanitize_identifier function."""

    def test_simple_names(self):
        assert sanitize_identifier('Message') == 'Message'
        assert sanitize_identifier('chatMessage') == 'chatMessage'

    def test_separators_are_joined(self):
        assert sanitize_identifier('chat-message') == 'ChatMessage'
        assert sanitize_identifier('chat message') == 'ChatMessage'
        assert sanitize_identifier('Message_content') == 'MessageContent'

    def test_leading_digit(self):
        assert sanitize_identifier('2fa') == '_2fa'

    def test_accents_removed(self):
        assert sanitize_identifier('café') == 'cafe'

    def test_empty(self):
        assert sanitize_identifier('') == 'UnnamedType'
        assert sanitize_identifier('---') == 'UnnamedType'


class TestCaseConversion:
    """Test PascalCase and snake_case helpers."""

    def test_to_pascal_case(self):
        assert to_pascal_case('message') == 'Message'
        assert to_pascal_case('chat_message') == 'ChatMessage'
        assert to_pascal_case('chatMessage') == 'ChatMessage'
        assert to_pascal_case('createMessage_anthropic-version') == (
            'CreateMessageAnthropicVersion'
        )

    def test_to_snake_case(self):
        assert to_snake_case('Too Many Requests') == 'too_many_requests'
        assert to_snake_case('chatMessage') == 'chat_message'
        assert to_snake_case('HTTPStatus') == 'http_status'
        assert to_snake_case('Internal Server Error') == 'internal_server_error'

    def test_to_snake_case_empty(self):
        assert to_snake_case('') == 'unnamed'


class TestOperationName:
    def test_fallback_operation_id(self):
        assert operation_name('GET', '/models/{model}') == 'get__models__model_'
