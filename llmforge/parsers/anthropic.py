"""Frontend for the Anthropic schema dialect.

The dialect is a compact JSON/YAML description of the Anthropic API::

    version: '2023-06-01'
    baseUrl: https://api.anthropic.com
    models: [{id: claude-3-opus, name: Claude 3 Opus, ...}]
    types:
      - name: Role
        kind: enum
        values: [{value: user}, {value: assistant}]
      - name: Message
        kind: object
        properties:
          - {name: role, type: Role, required: true}
          - {name: content, type: string, required: true}
    endpoints:
      - id: createMessage
        method: POST
        path: /v1/messages
        requestBody: {contentType: application/json, schema: MessageRequest}
        responses: [{statusCode: 200, schema: Message}]
    errors:
      - {code: rate_limit_error, statusCode: 429, description: Rate limited}

Types are referenced by name. A name may point at a top-level type, at a
named inline definition anywhere in the document, or at one of the
primitive keywords (``string``, ``number``, ``integer``, ``boolean``,
``null``).
"""

import logging
from collections.abc import Iterator
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from llmforge.canonical.models import (
    ApiKeyAuthScheme,
    ArrayType,
    CanonicalSchema,
    EndpointDefinition,
    EnumType,
    EnumValue,
    ErrorDefinition,
    HTTPMethod,
    ObjectType,
    ParameterDefinition,
    PrimitiveKind,
    PrimitiveType,
    PropertyDefinition,
    RequestBodyDefinition,
    ResponseDefinition,
    SchemaMetadata,
    TypeDefinition,
    TypeReference,
    UnionType,
)
from llmforge.exceptions import (
    AmbiguousArrayItemsError,
    UnknownTypeKindError,
    UnresolvedReferenceError,
)
from llmforge.parsers.base import ParserOptions, ProviderParser, looks_streaming
from llmforge.parsers.resolver import ConversionContext, ReferenceResolver

__all__ = [
    'AnthropicParser',
    'DialectDocument',
    'DialectEndpoint',
    'DialectTypeDefinition',
    'API_KEY_SCHEME_ID',
]

logger = logging.getLogger(__name__)

API_KEY_SCHEME_ID = 'apiKey'
API_KEY_HEADER = 'x-api-key'

# 529: Anthropic's "overloaded"
RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504, 529})

PRIMITIVE_KINDS = {
    'string': PrimitiveKind.STRING,
    'number': PrimitiveKind.FLOAT,
    'integer': PrimitiveKind.INTEGER,
    'boolean': PrimitiveKind.BOOLEAN,
    'null': PrimitiveKind.NULL,
}

KNOWN_KINDS = frozenset({'object', 'enum', 'array', 'union', 'primitive'})


class DialectModel(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        alias_generator=to_camel,
        extra='allow',
    )


class DialectEnumValue(DialectModel):
    value: str | int | float
    description: str | None = None


class DialectProperty(DialectModel):
    name: str
    type: Union[str, 'DialectTypeDefinition']
    description: str | None = None
    required: bool | None = None
    default: Any = None


class DialectTypeDefinition(DialectModel):
    name: str
    kind: str
    description: str | None = None
    properties: list[DialectProperty] | None = None
    required: list[str] | None = None
    values: list[DialectEnumValue] | None = None
    items: Union[str, 'DialectTypeDefinition', None] = None
    variants: list[Union[str, 'DialectTypeDefinition']] | None = None
    primitive_type: str | None = None
    deprecated: bool | None = None


class DialectParameter(DialectModel):
    name: str
    location: Literal['query', 'header', 'path'] = Field(alias='in')
    type: str = 'string'
    required: bool | None = None
    description: str | None = None
    default: Any = None
    enum: list[str | int | float] | None = None


class DialectRequestBody(DialectModel):
    content_type: str = 'application/json'
    body_schema: Union[str, DialectTypeDefinition] = Field(alias='schema')
    required: bool = True
    description: str | None = None


class DialectResponse(DialectModel):
    status_code: int | Literal['default']
    description: str | None = None
    content_type: str | None = None
    body_schema: Union[str, DialectTypeDefinition, None] = Field(
        default=None, alias='schema'
    )


class DialectEndpoint(DialectModel):
    id: str
    method: str
    path: str
    summary: str | None = None
    description: str | None = None
    parameters: list[DialectParameter] = []
    request_body: DialectRequestBody | None = None
    responses: list[DialectResponse] = []
    streaming: bool | None = None
    requires_auth: bool | None = None
    deprecated: bool | None = None
    tags: list[str] | None = None


class DialectError(DialectModel):
    code: str
    status_code: int
    description: str
    type: str | None = None
    retryable: bool | None = None


class DialectDocument(DialectModel):
    version: str
    base_url: str
    description: str | None = None
    models: list[dict[str, Any]] = []
    endpoints: list[DialectEndpoint]
    types: list[DialectTypeDefinition] = []
    errors: list[DialectError] = []

    @field_validator('version', mode='before')
    @classmethod
    def stringify_version(cls, value: Any) -> Any:
        # YAML reads an unquoted 2023-06-01 as a date
        return value if isinstance(value, str) else str(value)


DialectProperty.model_rebuild()
DialectTypeDefinition.model_rebuild()

TypeSource = Union[str, DialectTypeDefinition]


def _default(model: DialectProperty | DialectParameter) -> dict[str, Any]:
    if 'default' in model.model_fields_set:
        return {'default': model.default}
    return {}


def _type_ref(name: str) -> str:
    return f'#/types/{name}'


def _inline_definitions(document: DialectDocument) -> Iterator[DialectTypeDefinition]:
    """Every type definition in the document, top-level ones first."""

    def walk(source: TypeSource | None) -> Iterator[DialectTypeDefinition]:
        if not isinstance(source, DialectTypeDefinition):
            return
        yield source
        for prop in source.properties or ():
            yield from walk(prop.type)
        yield from walk(source.items)
        for variant in source.variants or ():
            yield from walk(variant)

    for definition in document.types:
        yield definition
    for definition in document.types:
        for prop in definition.properties or ():
            yield from walk(prop.type)
        yield from walk(definition.items)
        for variant in definition.variants or ():
            yield from walk(variant)
    for endpoint in document.endpoints:
        if endpoint.request_body is not None:
            yield from walk(endpoint.request_body.body_schema)
        for response in endpoint.responses:
            yield from walk(response.body_schema)


class _Conversion:
    """Converts one dialect document into a canonical schema."""

    def __init__(
        self,
        document: DialectDocument,
        context: ConversionContext,
        options: ParserOptions,
    ):
        self.document = document
        self.context = context
        self.options = options
        self.resolver = ReferenceResolver(context)
        self.named: dict[str, DialectTypeDefinition] = {}
        for definition in _inline_definitions(document):
            self.named.setdefault(definition.name, definition)

    def run(self) -> CanonicalSchema:
        for definition in self.document.types:
            self.definition_id(definition)

        endpoints = []
        for endpoint in self.document.endpoints:
            if endpoint.deprecated and not self.options.include_deprecated:
                logger.debug(f'Skipping deprecated endpoint {endpoint.id}')
                continue
            converted = self.convert_endpoint(endpoint)
            if converted is not None:
                endpoints.append(converted)

        authentication = ApiKeyAuthScheme(
            id=API_KEY_SCHEME_ID,
            location='header',
            name=API_KEY_HEADER,
            description='Anthropic API key authentication',
        )

        return CanonicalSchema(
            metadata=self.convert_metadata(),
            types=self.context.types,
            endpoints=tuple(endpoints),
            authentication=(authentication,),
            errors=tuple(self.convert_error(error) for error in self.document.errors),
        )

    # Types

    def type_id(self, source: TypeSource) -> str:
        if isinstance(source, DialectTypeDefinition):
            return self.definition_id(source)
        return self.named_id(source)

    def definition_id(self, definition: DialectTypeDefinition) -> str:
        ref = (
            _type_ref(definition.name)
            if self.named.get(definition.name) is definition
            else None
        )
        return self.resolver.resolve(
            definition,
            definition.name,
            lambda type_id: self.build(type_id, definition),
            ref=ref,
        )

    def named_id(self, name: str) -> str:
        if name in self.named:
            return self.definition_id(self.named[name])

        keyword = name.lower()
        if keyword in PRIMITIVE_KINDS:
            return self.resolver.resolve(
                None,
                keyword,
                lambda type_id: PrimitiveType(
                    id=type_id, name=keyword, primitive_kind=PRIMITIVE_KINDS[keyword]
                ),
                pointer=f'primitive:{keyword}',
            )

        return self.resolver.placeholder(
            name,
            UnresolvedReferenceError(name, 'no type with this name'),
            ref=_type_ref(name),
        )

    def build(self, type_id: str, definition: DialectTypeDefinition) -> TypeDefinition:
        if definition.kind not in KNOWN_KINDS:
            raise UnknownTypeKindError(definition.kind, definition.name)
        if definition.kind == 'enum' or definition.values is not None:
            return self.build_enum(type_id, definition)
        if definition.kind == 'object' or definition.properties is not None:
            return self.build_object(type_id, definition)
        if definition.kind == 'array':
            return self.build_array(type_id, definition)
        if definition.kind == 'union' or definition.variants is not None:
            return self.build_union(type_id, definition)
        return self.build_primitive(type_id, definition)

    def build_enum(self, type_id: str, definition: DialectTypeDefinition) -> EnumType:
        values = tuple(
            EnumValue(value=v.value, name=str(v.value), description=v.description)
            for v in definition.values or ()
        )
        numeric = bool(values) and not isinstance(values[0].value, str)
        return EnumType(
            id=type_id,
            name=definition.name,
            description=definition.description,
            deprecated=definition.deprecated,
            values=values,
            value_type='number' if numeric else 'string',
        )

    def build_object(self, type_id: str, definition: DialectTypeDefinition) -> ObjectType:
        properties = [
            PropertyDefinition(
                name=prop.name,
                type=TypeReference(type_id=self.type_id(prop.type)),
                required=bool(prop.required),
                description=prop.description,
                **_default(prop),
            )
            for prop in definition.properties or ()
        ]
        return ObjectType.create(
            id=type_id,
            name=definition.name,
            properties=properties,
            required=definition.required or (),
            description=definition.description,
            deprecated=definition.deprecated,
        )

    def build_array(self, type_id: str, definition: DialectTypeDefinition) -> ArrayType:
        if definition.items is None:
            raise AmbiguousArrayItemsError(definition.name)
        return ArrayType(
            id=type_id,
            name=definition.name,
            description=definition.description,
            deprecated=definition.deprecated,
            items=TypeReference(type_id=self.type_id(definition.items)),
        )

    def build_union(self, type_id: str, definition: DialectTypeDefinition) -> UnionType:
        return UnionType(
            id=type_id,
            name=definition.name,
            description=definition.description,
            deprecated=definition.deprecated,
            variants=tuple(
                TypeReference(type_id=self.type_id(variant))
                for variant in definition.variants or ()
            ),
        )

    def build_primitive(
        self, type_id: str, definition: DialectTypeDefinition
    ) -> PrimitiveType:
        keyword = (definition.primitive_type or 'string').lower()
        kind = PRIMITIVE_KINDS.get(keyword)
        if kind is None:
            self.context.record(UnknownTypeKindError(keyword, definition.name))
            kind = PrimitiveKind.STRING
        return PrimitiveType(
            id=type_id,
            name=definition.name,
            description=definition.description,
            deprecated=definition.deprecated,
            primitive_kind=kind,
        )

    # Endpoints

    def convert_endpoint(self, endpoint: DialectEndpoint) -> EndpointDefinition | None:
        try:
            method = HTTPMethod(endpoint.method.upper())
        except ValueError:
            self.context.warn(
                f"Endpoint '{endpoint.id}' has unsupported method '{endpoint.method}'"
            )
            return None

        parameters = tuple(
            ParameterDefinition(
                name=param.name,
                location=param.location,
                type=TypeReference(type_id=self.parameter_type(endpoint, param)),
                required=bool(param.required) or param.location == 'path',
                description=param.description,
                **_default(param),
            )
            for param in endpoint.parameters
        )

        request_body = None
        if endpoint.request_body is not None:
            body = endpoint.request_body
            request_body = RequestBodyDefinition(
                type=TypeReference(type_id=self.type_id(body.body_schema)),
                required=body.required,
                content_type=body.content_type,
                description=body.description,
            )

        responses = tuple(
            ResponseDefinition(
                status_code=response.status_code,
                type=(
                    TypeReference(type_id=self.type_id(response.body_schema))
                    if response.body_schema is not None
                    else None
                ),
                description=response.description,
                content_type=response.content_type or 'application/json',
            )
            for response in endpoint.responses
        )

        streaming = endpoint.streaming
        if streaming is None:
            streaming = looks_streaming(endpoint.description, endpoint.summary)

        return EndpointDefinition(
            id=endpoint.id,
            operation_id=endpoint.id,
            path=endpoint.path,
            method=method,
            summary=endpoint.summary,
            description=endpoint.description,
            parameters=parameters,
            request_body=request_body,
            responses=responses,
            streaming=streaming,
            authentication=(
                () if endpoint.requires_auth is False else (API_KEY_SCHEME_ID,)
            ),
            tags=tuple(endpoint.tags) if endpoint.tags else None,
            deprecated=endpoint.deprecated,
        )

    def parameter_type(self, endpoint: DialectEndpoint, param: DialectParameter) -> str:
        if not param.enum:
            return self.named_id(param.type)
        name = f'{endpoint.id}_{param.name}'
        values = tuple(EnumValue(value=value, name=str(value)) for value in param.enum)
        return self.resolver.resolve(
            param,
            name,
            lambda type_id: EnumType(
                id=type_id,
                name=name,
                values=values,
                value_type='string' if isinstance(values[0].value, str) else 'number',
            ),
        )

    # Errors and metadata

    def convert_error(self, error: DialectError) -> ErrorDefinition:
        retryable = error.retryable
        if retryable is None:
            retryable = error.status_code in RETRYABLE_STATUS_CODES
        return ErrorDefinition(
            code=error.code,
            status_code=error.status_code,
            message=error.description,
            name=error.type,
            description=error.description,
            retryable=retryable,
        )

    def convert_metadata(self) -> SchemaMetadata:
        extra = {
            'baseUrl': self.document.base_url,
            'description': self.document.description,
            'models': self.document.models or None,
        }
        return SchemaMetadata(
            provider_id=self.options.provider_id,
            provider_name=self.options.provider_name,
            api_version=self.document.version,
            metadata={key: value for key, value in extra.items() if value is not None},
        )


class AnthropicParser(ProviderParser):
    """Frontend for the Anthropic schema dialect.

    Example:
        >>> parser = AnthropicParser()
        >>> result = parser.parse('anthropic.yaml')
        >>> if result.success:
        ...     print(result.schema.metadata.metadata['baseUrl'])
    """

    provider_id = 'anthropic'
    default_provider_name = 'Anthropic'

    def validation_errors(self, document: dict[str, Any]) -> list[str]:
        if not document.get('version'):
            return ['Schema version is required']
        if not document.get('baseUrl') and not document.get('base_url'):
            return ['Base URL is required']
        if not document.get('endpoints'):
            return ['At least one endpoint is required']
        try:
            DialectDocument.model_validate(document)
        except ValidationError as e:
            return [
                f'{".".join(str(part) for part in error["loc"])}: {error["msg"]}'
                for error in e.errors()
            ]
        return []

    def convert(
        self, document: dict[str, Any], context: ConversionContext
    ) -> CanonicalSchema:
        dialect = DialectDocument.model_validate(document)
        logger.debug(
            f'Converting Anthropic dialect {dialect.version} with '
            f'{len(dialect.endpoints)} endpoints'
        )
        return _Conversion(dialect, context, self.options).run()
