"""Canonical schema models and validation."""

from llmforge.canonical.models import (
    CANONICAL_SCHEMA_VERSION,
    ApiKeyAuthScheme,
    ArrayType,
    AuthScheme,
    AuthSchemeType,
    BasicAuthScheme,
    BearerAuthScheme,
    CanonicalSchema,
    EndpointDefinition,
    EnumType,
    EnumValue,
    ErrorDefinition,
    HeaderDefinition,
    HTTPMethod,
    OAuth2AuthScheme,
    OAuth2Flow,
    OAuth2FlowType,
    ObjectType,
    ParameterDefinition,
    ParameterLocation,
    PrimitiveConstraints,
    PrimitiveKind,
    PrimitiveType,
    PropertyDefinition,
    RateLimitSpec,
    RequestBodyDefinition,
    ResponseDefinition,
    SchemaMetadata,
    TypeDefinition,
    TypeKind,
    TypeReference,
    UnionType,
)
from llmforge.canonical.validator import (
    SchemaValidator,
    ValidationIssue,
    ValidationResult,
    collect_type_references,
)

__all__ = [
    'CANONICAL_SCHEMA_VERSION',
    'ApiKeyAuthScheme',
    'ArrayType',
    'AuthScheme',
    'AuthSchemeType',
    'BasicAuthScheme',
    'BearerAuthScheme',
    'CanonicalSchema',
    'EndpointDefinition',
    'EnumType',
    'EnumValue',
    'ErrorDefinition',
    'HeaderDefinition',
    'HTTPMethod',
    'OAuth2AuthScheme',
    'OAuth2Flow',
    'OAuth2FlowType',
    'ObjectType',
    'ParameterDefinition',
    'ParameterLocation',
    'PrimitiveConstraints',
    'PrimitiveKind',
    'PrimitiveType',
    'PropertyDefinition',
    'RateLimitSpec',
    'RequestBodyDefinition',
    'ResponseDefinition',
    'SchemaMetadata',
    'TypeDefinition',
    'TypeKind',
    'TypeReference',
    'UnionType',
    'SchemaValidator',
    'ValidationIssue',
    'ValidationResult',
    'collect_type_references',
]
