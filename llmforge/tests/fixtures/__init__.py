"""Test fixtures for LLM-Forge tests.

This module provides sample provider documents in both supported input
formats: OpenAPI 3.x and the Anthropic dialect.
"""

import copy

# Minimal OpenAPI 3.0 document
MINIMAL_OPENAPI_SPEC = {
    'openapi': '3.0.0',
    'info': {'title': 'Minimal API', 'version': '1.0.0'},
    'paths': {},
}

# Chat-completion style API with shared, nullable and recursive schemas
CHAT_OPENAPI_SPEC = {
    'openapi': '3.0.3',
    'info': {
        'title': 'Chat API',
        'version': '2.1.0',
        'description': 'A chat completion API for testing',
        'license': {'name': 'MIT'},
    },
    'servers': [
        {'url': 'https://api.example.com/v1'},
        {'url': 'https://eu.api.example.com/v1'},
    ],
    'security': [{'bearerAuth': []}],
    'paths': {
        '/chat/completions': {
            'post': {
                'operationId': 'createChatCompletion',
                'summary': 'Create a chat completion',
                'description': 'Creates a model response. Supports streaming.',
                'tags': ['Chat'],
                'requestBody': {
                    'required': True,
                    'content': {
                        'application/json': {
                            'schema': {'$ref': '#/components/schemas/ChatRequest'}
                        }
                    },
                },
                'responses': {
                    '200': {
                        'description': 'OK',
                        'headers': {
                            'x-request-id': {
                                'required': True,
                                'schema': {'type': 'string'},
                            }
                        },
                        'content': {
                            'application/json': {
                                'schema': {'$ref': '#/components/schemas/ChatResponse'}
                            }
                        },
                    },
                    '429': {
                        'description': 'Rate limit exceeded',
                        'content': {
                            'application/json': {
                                'schema': {'$ref': '#/components/schemas/Error'}
                            }
                        },
                    },
                    '500': {
                        'description': 'Server error',
                        'content': {
                            'application/json': {
                                'schema': {'$ref': '#/components/schemas/Error'}
                            }
                        },
                    },
                },
            }
        },
        '/models/{model}': {
            'parameters': [
                {'name': 'model', 'in': 'path', 'schema': {'type': 'string'}}
            ],
            'get': {
                'operationId': 'retrieveModel',
                'summary': 'Retrieve a model',
                'parameters': [
                    {
                        'name': 'include',
                        'in': 'query',
                        'schema': {'type': 'string', 'enum': ['owner', 'permissions']},
                    }
                ],
                'responses': {
                    '200': {
                        'description': 'The model',
                        'content': {
                            'application/json': {
                                'schema': {
                                    'type': 'object',
                                    'properties': {
                                        'id': {'type': 'string'},
                                        'created': {'type': 'integer'},
                                    },
                                }
                            }
                        },
                    }
                },
            },
        },
    },
    'components': {
        'schemas': {
            'Role': {'type': 'string', 'enum': ['system', 'user', 'assistant']},
            'Message': {
                'type': 'object',
                'required': ['role', 'content'],
                'properties': {
                    'role': {'$ref': '#/components/schemas/Role'},
                    'content': {'type': 'string', 'nullable': True},
                    'name': {'type': 'string', 'maxLength': 64},
                },
            },
            'TreeNode': {
                'type': 'object',
                'properties': {
                    'value': {'type': 'string'},
                    'children': {
                        'type': 'array',
                        'items': {'$ref': '#/components/schemas/TreeNode'},
                    },
                },
            },
            'ChatRequest': {
                'type': 'object',
                'required': ['model', 'messages'],
                'properties': {
                    'model': {'type': 'string'},
                    'messages': {
                        'type': 'array',
                        'items': {'$ref': '#/components/schemas/Message'},
                    },
                    'temperature': {'type': 'number', 'minimum': 0, 'maximum': 2},
                    'stream': {'type': 'boolean'},
                    'metadata': {
                        'type': 'object',
                        'additionalProperties': {'type': 'string'},
                    },
                },
            },
            'ChatResponse': {
                'type': 'object',
                'properties': {
                    'id': {'type': 'string'},
                    'choices': {
                        'type': 'array',
                        'items': {
                            'type': 'object',
                            'properties': {
                                'index': {'type': 'integer'},
                                'message': {'$ref': '#/components/schemas/Message'},
                            },
                        },
                    },
                },
            },
            'Error': {
                'type': 'object',
                'properties': {'message': {'type': 'string'}},
            },
        },
        'securitySchemes': {
            'bearerAuth': {'type': 'http', 'scheme': 'bearer', 'bearerFormat': 'JWT'},
        },
    },
}

# Compact Anthropic dialect document
ANTHROPIC_DIALECT_SPEC = {
    'version': '2023-06-01',
    'baseUrl': 'https://api.anthropic.com',
    'description': 'Anthropic Messages API',
    'models': [{'id': 'claude-3-opus', 'name': 'Claude 3 Opus'}],
    'types': [
        {
            'name': 'Role',
            'kind': 'enum',
            'values': [{'value': 'user'}, {'value': 'assistant'}],
        },
        {
            'name': 'Message',
            'kind': 'object',
            'properties': [
                {'name': 'role', 'type': 'Role', 'required': True},
                {'name': 'content', 'type': 'string', 'required': True},
            ],
        },
        {
            'name': 'MessageRequest',
            'kind': 'object',
            'properties': [
                {'name': 'model', 'type': 'string', 'required': True},
                {
                    'name': 'messages',
                    'type': {'name': 'MessageList', 'kind': 'array', 'items': 'Message'},
                    'required': True,
                },
                {'name': 'max_tokens', 'type': 'integer', 'required': True},
                {'name': 'stream', 'type': 'boolean'},
            ],
        },
        {
            'name': 'ContentBlock',
            'kind': 'union',
            'variants': [
                {
                    'name': 'TextBlock',
                    'kind': 'object',
                    'properties': [{'name': 'text', 'type': 'string', 'required': True}],
                },
                'Message',
            ],
        },
    ],
    'endpoints': [
        {
            'id': 'createMessage',
            'method': 'POST',
            'path': '/v1/messages',
            'description': 'Create a message',
            'parameters': [
                {
                    'name': 'anthropic-version',
                    'in': 'header',
                    'type': 'string',
                    'required': True,
                    'enum': ['2023-01-01', '2023-06-01'],
                }
            ],
            'requestBody': {'contentType': 'application/json', 'schema': 'MessageRequest'},
            'responses': [{'statusCode': 200, 'schema': 'Message'}],
            'streaming': True,
        },
        {
            'id': 'countTokens',
            'method': 'POST',
            'path': '/v1/messages/count_tokens',
            'requestBody': {'schema': 'MessageRequest'},
            'responses': [{'statusCode': 200, 'schema': 'integer'}],
            'requiresAuth': False,
        },
        {
            'id': 'legacyComplete',
            'method': 'POST',
            'path': '/v1/complete',
            'deprecated': True,
            'responses': [{'statusCode': 200}],
        },
    ],
    'errors': [
        {
            'code': 'rate_limit_error',
            'statusCode': 429,
            'description': 'Rate limited',
            'type': 'RateLimitError',
        },
        {'code': 'invalid_request_error', 'statusCode': 400, 'description': 'Bad request'},
        {
            'code': 'overloaded_error',
            'statusCode': 529,
            'description': 'Overloaded',
            'retryable': False,
        },
    ],
}


def openapi_with_schemas(schemas: dict, paths: dict | None = None) -> dict:
    """A minimal OpenAPI document carrying the given component schemas."""
    document = copy.deepcopy(MINIMAL_OPENAPI_SPEC)
    document['components'] = {'schemas': schemas}
    if paths:
        document['paths'] = paths
    return document


def dialect_with(**overrides) -> dict:
    """A copy of the dialect document with top-level fields replaced."""
    document = copy.deepcopy(ANTHROPIC_DIALECT_SPEC)
    document.update(overrides)
    return document
