"""Canonical schema: the provider-agnostic intermediate representation.

Every frontend produces a ``CanonicalSchema`` and every generator consumes
one. The models are plain data: frozen pydantic models whose collections are
tuples, so a schema handed out by a parser cannot be edited afterwards.

Types never embed each other. Object properties, array items, union variants,
parameters, bodies and responses all hold a ``TypeReference`` whose
``type_id`` points into ``CanonicalSchema.types``.

The JSON form uses camelCase keys and omits unset optional fields. A
property or parameter that declares ``default: null`` keeps it::

    {
      "metadata": {"version": "1.0.0", "providerId": "openai", ...},
      "types": [{"id": "type_0", "name": "Role", "kind": "enum", ...}],
      "endpoints": [...],
      "authentication": [{"id": "apiKey", "type": "apiKey", "in": "header", ...}],
      "errors": [...]
    }
"""

from collections.abc import Iterable
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_serializer
from pydantic.alias_generators import to_camel

__all__ = [
    'CANONICAL_SCHEMA_VERSION',
    'TypeKind',
    'PrimitiveKind',
    'HTTPMethod',
    'ParameterLocation',
    'AuthSchemeType',
    'OAuth2FlowType',
    'PrimitiveConstraints',
    'TypeReference',
    'PrimitiveType',
    'PropertyDefinition',
    'ObjectType',
    'ArrayType',
    'UnionType',
    'EnumValue',
    'EnumType',
    'TypeDefinition',
    'ParameterDefinition',
    'RequestBodyDefinition',
    'HeaderDefinition',
    'ResponseDefinition',
    'RateLimitSpec',
    'EndpointDefinition',
    'ApiKeyAuthScheme',
    'BearerAuthScheme',
    'OAuth2Flow',
    'OAuth2AuthScheme',
    'BasicAuthScheme',
    'AuthScheme',
    'ErrorDefinition',
    'SchemaMetadata',
    'CanonicalSchema',
]

CANONICAL_SCHEMA_VERSION = '1.0.0'


class CanonicalModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class TypeKind(str, Enum):
    PRIMITIVE = 'primitive'
    OBJECT = 'object'
    ARRAY = 'array'
    UNION = 'union'
    ENUM = 'enum'


class PrimitiveKind(str, Enum):
    STRING = 'string'
    INTEGER = 'integer'
    FLOAT = 'float'
    BOOLEAN = 'boolean'
    NULL = 'null'


class HTTPMethod(str, Enum):
    GET = 'GET'
    POST = 'POST'
    PUT = 'PUT'
    PATCH = 'PATCH'
    DELETE = 'DELETE'
    HEAD = 'HEAD'
    OPTIONS = 'OPTIONS'


class ParameterLocation(str, Enum):
    PATH = 'path'
    QUERY = 'query'
    HEADER = 'header'
    COOKIE = 'cookie'


class AuthSchemeType(str, Enum):
    API_KEY = 'apiKey'
    BEARER = 'bearer'
    OAUTH2 = 'oauth2'
    BASIC = 'basic'


class OAuth2FlowType(str, Enum):
    AUTHORIZATION_CODE = 'authorizationCode'
    CLIENT_CREDENTIALS = 'clientCredentials'
    IMPLICIT = 'implicit'
    PASSWORD = 'password'


class PrimitiveConstraints(CanonicalModel):
    """Validation constraints a target type system may not express itself."""

    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None
    format: str | None = None
    minimum: float | None = None
    maximum: float | None = None
    # bool in OpenAPI 3.0, a bound in 3.1
    exclusive_minimum: bool | float | None = None
    exclusive_maximum: bool | float | None = None
    multiple_of: float | None = None
    enum: tuple[str | int | float, ...] | None = None

    def is_empty(self) -> bool:
        return all(value is None for value in self.__dict__.values())


class TypeReference(CanonicalModel):
    """Foreign key to a ``TypeDefinition`` in the owning schema."""

    type_id: str
    nullable: bool = False


class BaseTypeDefinition(CanonicalModel):
    id: str
    name: str
    description: str | None = None
    deprecated: bool | None = None
    deprecation_message: str | None = None
    metadata: dict[str, Any] | None = None

    @property
    def is_placeholder(self) -> bool:
        return bool(self.metadata and self.metadata.get('placeholder'))


class PrimitiveType(BaseTypeDefinition):
    kind: Literal['primitive'] = 'primitive'
    primitive_kind: PrimitiveKind
    constraints: PrimitiveConstraints | None = None


class _HasDefault(CanonicalModel):
    """A definition whose explicit ``default: null`` survives the dump."""

    default: Any = None

    @model_serializer(mode='wrap')
    def _keep_null_default(self, handler):
        data = handler(self)
        if self.default is None and 'default' in self.model_fields_set:
            data['default'] = None
        return data


class PropertyDefinition(_HasDefault):
    name: str
    type: TypeReference
    required: bool
    description: str | None = None
    constraints: PrimitiveConstraints | None = None
    deprecated: bool | None = None
    metadata: dict[str, Any] | None = None


class ObjectType(BaseTypeDefinition):
    kind: Literal['object'] = 'object'
    properties: tuple[PropertyDefinition, ...] = ()
    required: tuple[str, ...] = ()
    additional_properties: TypeReference | bool | None = None
    discriminator: str | None = None

    @classmethod
    def create(
        cls,
        id: str,
        name: str,
        properties: Iterable[PropertyDefinition],
        required: Iterable[str] = (),
        **kwargs: Any,
    ) -> 'ObjectType':
        """Build an object whose required list and property flags agree.

        The required set is the union of the declared names and every
        property individually marked required. Each property's own flag is
        then rewritten from that set.
        """
        properties = list(properties)
        names = list(dict.fromkeys(required))
        for prop in properties:
            if prop.required and prop.name not in names:
                names.append(prop.name)
        required_set = set(names)
        synced = tuple(
            prop
            if prop.required == (prop.name in required_set)
            else prop.model_copy(update={'required': prop.name in required_set})
            for prop in properties
        )
        return cls(id=id, name=name, properties=synced, required=tuple(names), **kwargs)

    def get_property(self, name: str) -> PropertyDefinition | None:
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None


class ArrayType(BaseTypeDefinition):
    kind: Literal['array'] = 'array'
    items: TypeReference
    min_items: int | None = None
    max_items: int | None = None
    unique_items: bool | None = None


class UnionType(BaseTypeDefinition):
    kind: Literal['union'] = 'union'
    variants: tuple[TypeReference, ...] = ()
    discriminator: str | None = None
    # discriminator value -> type id
    discriminator_mapping: dict[str, str] | None = None


class EnumValue(CanonicalModel):
    value: str | int | float
    name: str
    description: str | None = None
    deprecated: bool | None = None


class EnumType(BaseTypeDefinition):
    kind: Literal['enum'] = 'enum'
    values: tuple[EnumValue, ...] = ()
    value_type: Literal['string', 'number'] = 'string'


TypeDefinition = Annotated[
    Union[PrimitiveType, ObjectType, ArrayType, UnionType, EnumType],
    Field(discriminator='kind'),
]


class ParameterDefinition(_HasDefault):
    name: str
    location: ParameterLocation = Field(alias='in')
    type: TypeReference
    required: bool = False
    description: str | None = None
    deprecated: bool | None = None


class RequestBodyDefinition(CanonicalModel):
    type: TypeReference
    required: bool = False
    content_type: str = 'application/json'
    description: str | None = None


class HeaderDefinition(CanonicalModel):
    name: str
    type: TypeReference
    required: bool = False
    description: str | None = None


class ResponseDefinition(CanonicalModel):
    # 'default' or a range such as '2XX' when the document uses one
    status_code: int | str
    type: TypeReference | None = None
    description: str | None = None
    headers: tuple[HeaderDefinition, ...] | None = None
    content_type: str | None = None


class RateLimitSpec(CanonicalModel):
    requests: int
    window_seconds: int
    scope: str | None = None


class EndpointDefinition(CanonicalModel):
    id: str
    operation_id: str
    path: str
    method: HTTPMethod
    summary: str | None = None
    description: str | None = None
    parameters: tuple[ParameterDefinition, ...] = ()
    request_body: RequestBodyDefinition | None = None
    responses: tuple[ResponseDefinition, ...] = ()
    streaming: bool = False
    # AuthScheme ids, resolved by name
    authentication: tuple[str, ...] = ()
    rate_limit: RateLimitSpec | None = None
    tags: tuple[str, ...] | None = None
    deprecated: bool | None = None
    metadata: dict[str, Any] | None = None


class ApiKeyAuthScheme(CanonicalModel):
    id: str
    type: Literal['apiKey'] = 'apiKey'
    location: Literal['header', 'query', 'cookie'] = Field(alias='in')
    name: str
    description: str | None = None


class BearerAuthScheme(CanonicalModel):
    id: str
    type: Literal['bearer'] = 'bearer'
    scheme: str = 'bearer'
    bearer_format: str | None = None
    description: str | None = None


class OAuth2Flow(CanonicalModel):
    type: OAuth2FlowType
    authorization_url: str | None = None
    token_url: str | None = None
    refresh_url: str | None = None
    scopes: dict[str, str] | None = None


class OAuth2AuthScheme(CanonicalModel):
    id: str
    type: Literal['oauth2'] = 'oauth2'
    flows: tuple[OAuth2Flow, ...] = ()
    description: str | None = None


class BasicAuthScheme(CanonicalModel):
    id: str
    type: Literal['basic'] = 'basic'
    description: str | None = None


AuthScheme = Annotated[
    Union[ApiKeyAuthScheme, BearerAuthScheme, OAuth2AuthScheme, BasicAuthScheme],
    Field(discriminator='type'),
]


class ErrorDefinition(CanonicalModel):
    code: str
    status_code: int
    message: str
    name: str | None = None
    description: str | None = None
    type: TypeReference | None = None
    retryable: bool | None = None


class SchemaMetadata(CanonicalModel):
    version: str = CANONICAL_SCHEMA_VERSION
    provider_id: str
    provider_name: str
    api_version: str
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: dict[str, Any] | None = None


class CanonicalSchema(CanonicalModel):
    """Root aggregate owning every definition produced by one parse."""

    metadata: SchemaMetadata
    types: tuple[TypeDefinition, ...] = ()
    endpoints: tuple[EndpointDefinition, ...] = ()
    authentication: tuple[AuthScheme, ...] = ()
    errors: tuple[ErrorDefinition, ...] = ()
    config: dict[str, Any] | None = None

    def type_index(self) -> dict[str, TypeDefinition]:
        """Map every type id to its definition."""
        return {definition.id: definition for definition in self.types}

    def get_type(self, type_id: str) -> TypeDefinition | None:
        for definition in self.types:
            if definition.id == type_id:
                return definition
        return None

    def get_types_by_name(self, name: str) -> list[TypeDefinition]:
        return [definition for definition in self.types if definition.name == name]

    def get_endpoint(self, operation_id: str) -> EndpointDefinition | None:
        for endpoint in self.endpoints:
            if endpoint.operation_id == operation_id:
                return endpoint
        return None

    def get_auth_scheme(self, scheme_id: str) -> AuthScheme | None:
        for scheme in self.authentication:
            if scheme.id == scheme_id:
                return scheme
        return None

    def to_dict(self) -> dict[str, Any]:
        """Dump to the documented JSON-compatible shape."""
        return self.model_dump(mode='json', by_alias=True, exclude_none=True)

    def to_json(self, indent: int | None = 2) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=indent)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'CanonicalSchema':
        return cls.model_validate(data)

    @classmethod
    def from_json(cls, text: str | bytes) -> 'CanonicalSchema':
        return cls.model_validate_json(text)
