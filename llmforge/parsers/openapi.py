"""OpenAPI 3.0/3.1 frontend.

Components are converted first, in declaration order, then the security
schemes, then every operation of every path. Operations only name schemes
that converted. Schema nodes are classified with a
fixed precedence because one node can satisfy several signals at once:

1. ``enum``/``const`` present: enum (even next to ``type`` or ``allOf``)
2. ``properties``, ``allOf``, ``anyOf`` or ``type: object``: object
3. ``type: array`` or ``items``: array
4. ``oneOf``: union
5. anything else: primitive
"""

import logging
from http import HTTPStatus
from typing import Any

from pydantic import BaseModel, ValidationError, field_validator

from llmforge.canonical.models import (
    ApiKeyAuthScheme,
    ArrayType,
    AuthScheme,
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
    UnsupportedAuthSchemeError,
)
from llmforge.parsers.base import ParserOptions, ProviderParser, looks_streaming
from llmforge.parsers.loader import resolve_json_pointer
from llmforge.parsers.resolver import ConversionContext, ReferenceResolver
from llmforge.utils import operation_name, to_snake_case

__all__ = ['OpenAPIParser']

logger = logging.getLogger(__name__)

HTTP_METHODS = ('get', 'put', 'post', 'delete', 'options', 'head', 'patch')

PRIMITIVE_KINDS = {
    'string': PrimitiveKind.STRING,
    'integer': PrimitiveKind.INTEGER,
    'number': PrimitiveKind.FLOAT,
    'boolean': PrimitiveKind.BOOLEAN,
    'null': PrimitiveKind.NULL,
}

OAUTH2_FLOW_TYPES = {flow.value: flow for flow in OAuth2FlowType}

RETRYABLE_STATUS_CODES = frozenset({408, 409, 429})

CONSTRAINT_KEYS = {
    'minLength': 'min_length',
    'maxLength': 'max_length',
    'pattern': 'pattern',
    'format': 'format',
    'minimum': 'minimum',
    'maximum': 'maximum',
    'exclusiveMinimum': 'exclusive_minimum',
    'exclusiveMaximum': 'exclusive_maximum',
    'multipleOf': 'multiple_of',
}


class _Info(BaseModel):
    title: str | None = None
    # YAML reads an unquoted 1.0 as a float
    version: str | int | float


class _DocumentHeader(BaseModel):
    """The top-level fields a document needs before conversion can start."""

    openapi: str
    info: _Info
    paths: dict[str, Any]

    @field_validator('openapi')
    @classmethod
    def check_version(cls, value: str) -> str:
        if not value.startswith('3.'):
            raise ValueError('Only OpenAPI 3.0.x and 3.1.x are supported')
        return value


def _escape(name: str) -> str:
    return name.replace('~', '~0').replace('/', '~1')


def _ref_name(ref: str) -> str:
    return ref.rsplit('/', 1)[-1].replace('~1', '/').replace('~0', '~') or ref


def _schema_type(node: dict[str, Any]) -> str | None:
    declared = node.get('type')
    if isinstance(declared, list):
        concrete = [t for t in declared if t != 'null']
        if concrete:
            return concrete[0]
        return 'null' if declared else None
    return declared


def _status_code(status: str) -> int | str:
    return int(status) if status.isdigit() else status


def _default(node: Any) -> dict[str, Any]:
    """The ``default`` keyword of ``node``, only when it is declared."""
    if isinstance(node, dict) and 'default' in node:
        return {'default': node['default']}
    return {}


def _pick_media(content: dict[str, Any] | None) -> tuple[str | None, dict[str, Any] | None]:
    """Prefer ``application/json`` and fall back to the first media type."""
    if not content:
        return None, None
    if 'application/json' in content:
        return 'application/json', content['application/json']
    media_type, media = next(iter(content.items()))
    return media_type, media


class _Conversion:
    """Converts one OpenAPI document into a canonical schema."""

    def __init__(
        self,
        document: dict[str, Any],
        context: ConversionContext,
        options: ParserOptions,
    ):
        self.document = document
        self.context = context
        self.options = options
        self.resolver = ReferenceResolver(context)
        self.errors: dict[int, ErrorDefinition] = {}
        # ids of the security schemes that survived conversion
        self.scheme_ids: set[str] = set()
        self._following: set[str] = set()

    def run(self) -> CanonicalSchema:
        components = self.document.get('components') or {}

        for name, node in (components.get('schemas') or {}).items():
            self.type_id(node, name, ref=f'#/components/schemas/{_escape(name)}')

        authentication = self.convert_security_schemes(
            components.get('securitySchemes') or {}
        )
        self.scheme_ids = {scheme.id for scheme in authentication}
        endpoints = self.convert_paths(self.document.get('paths') or {})

        return CanonicalSchema(
            metadata=self.convert_metadata(),
            types=self.context.types,
            endpoints=tuple(endpoints),
            authentication=tuple(authentication),
            errors=tuple(self.errors[status] for status in sorted(self.errors)),
        )

    # Local references

    def deref(self, node: Any) -> Any:
        """Follow local ``$ref`` chains, returning ``None`` when broken."""
        seen: set[str] = set()
        while isinstance(node, dict) and isinstance(node.get('$ref'), str):
            ref = node['$ref']
            if ref in seen or not ref.startswith('#'):
                return None
            seen.add(ref)
            try:
                node = resolve_json_pointer(self.document, ref[1:])
            except KeyError:
                return None
        return node

    def _deref_component(self, node: Any, kind: str) -> dict[str, Any] | None:
        target = self.deref(node)
        if isinstance(target, dict):
            return target
        ref = node.get('$ref') if isinstance(node, dict) else None
        self.context.record(
            UnresolvedReferenceError(str(ref), f'{kind} not found')
        )
        return None

    # Schemas

    def reference(self, node: Any, name: str, pointer: str | None = None) -> TypeReference:
        target = self.deref(node)
        nullable = self._is_nullable(node) or (
            target is not node and self._is_nullable(target)
        )
        return TypeReference(
            type_id=self.type_id(node, name, pointer=pointer), nullable=nullable
        )

    @staticmethod
    def _is_nullable(node: Any) -> bool:
        if not isinstance(node, dict):
            return False
        declared = node.get('type')
        return node.get('nullable') is True or (
            isinstance(declared, list) and 'null' in declared
        )

    def type_id(
        self,
        node: Any,
        name: str,
        ref: str | None = None,
        pointer: str | None = None,
    ) -> str:
        if isinstance(node, dict) and isinstance(node.get('$ref'), str):
            return self._follow(node['$ref'])

        if not isinstance(node, dict):
            return self.resolver.placeholder(
                name,
                UnknownTypeKindError(type(node).__name__, name),
                ref=ref,
                pointer=pointer,
            )

        return self.resolver.resolve(
            node,
            name,
            lambda type_id: self.build(type_id, node, name),
            ref=ref,
            pointer=pointer,
        )

    def _follow(self, ref: str) -> str:
        cached = self.resolver.lookup(ref=ref)
        if cached is not None:
            return cached

        name = _ref_name(ref)
        if not ref.startswith('#'):
            return self.resolver.placeholder(
                name,
                UnresolvedReferenceError(ref, 'external reference was not bundled'),
                ref=ref,
            )
        if ref in self._following:
            return self.resolver.placeholder(
                name, UnresolvedReferenceError(ref, 'circular reference chain'), ref=ref
            )

        try:
            target = resolve_json_pointer(self.document, ref[1:])
        except KeyError:
            return self.resolver.placeholder(
                name, UnresolvedReferenceError(ref, 'no such component'), ref=ref
            )

        self._following.add(ref)
        try:
            if isinstance(target, dict) and isinstance(target.get('$ref'), str):
                type_id = self._follow(target['$ref'])
                self.context.references.setdefault(ref, type_id)
                return type_id
            return self.type_id(target, name, ref=ref)
        finally:
            self._following.discard(ref)

    def build(self, type_id: str, node: dict[str, Any], name: str) -> TypeDefinition:
        if 'enum' in node or 'const' in node:
            return self.build_enum(type_id, node, name)
        schema_type = _schema_type(node)
        if schema_type == 'object' or any(
            key in node for key in ('properties', 'allOf', 'anyOf')
        ):
            return self.build_object(type_id, node, name)
        if schema_type == 'array' or 'items' in node:
            return self.build_array(type_id, node, name)
        if 'oneOf' in node:
            return self.build_union(type_id, node, name)
        return self.build_primitive(type_id, node, name)

    def _common(self, node: dict[str, Any]) -> dict[str, Any]:
        return {
            'description': node.get('description'),
            'deprecated': node.get('deprecated'),
        }

    def constraints(self, node: dict[str, Any], name: str) -> PrimitiveConstraints | None:
        """Collect the validation keywords of ``node``, dropping malformed ones."""
        values = {}
        for key, field in CONSTRAINT_KEYS.items():
            if node.get(key) is None:
                continue
            try:
                PrimitiveConstraints(**{field: node[key]})
            except ValidationError:
                self.context.warn(f"Ignoring invalid '{key}' on '{name}': {node[key]!r}")
                continue
            values[field] = node[key]
        if not values:
            return None
        return PrimitiveConstraints(**values)

    def discriminator(self, node: dict[str, Any], name: str) -> dict[str, Any]:
        raw = node.get('discriminator')
        if raw is None:
            return {}
        if not isinstance(raw, dict):
            self.context.warn(f"Ignoring malformed discriminator on '{name}': {raw!r}")
            return {}
        return raw

    def build_enum(self, type_id: str, node: dict[str, Any], name: str) -> EnumType:
        raw = node['enum'] if 'enum' in node else [node['const']]
        values = []
        for value in raw or ():
            if value is None:
                continue
            if isinstance(value, bool):
                value = str(value).lower()
            elif not isinstance(value, (str, int, float)):
                value = str(value)
            values.append(EnumValue(value=value, name=str(value)))

        numeric = bool(values) and not isinstance(values[0].value, str)
        return EnumType(
            id=type_id,
            name=name,
            values=tuple(values),
            value_type='number' if numeric else 'string',
            **self._common(node),
        )

    def build_object(self, type_id: str, node: dict[str, Any], name: str) -> ObjectType:
        properties: dict[str, PropertyDefinition] = {}
        required: list[str] = []
        discriminator = self._collect(node, name, properties, required, False, set())

        additional = node.get('additionalProperties')
        if isinstance(additional, dict):
            additional = (
                True
                if not additional
                else self.reference(additional, f'{name}_value', pointer=f'{name}.*')
            )
        elif not isinstance(additional, bool):
            additional = None

        return ObjectType.create(
            id=type_id,
            name=name,
            properties=properties.values(),
            required=required,
            additional_properties=additional,
            discriminator=discriminator,
            **self._common(node),
        )

    def _collect(
        self,
        node: dict[str, Any],
        owner: str,
        properties: dict[str, PropertyDefinition],
        required: list[str],
        optional: bool,
        seen: set[int],
    ) -> str | None:
        """Gather the properties of ``node`` and of its composition members.

        ``allOf`` members are merged as if declared on the object itself.
        ``anyOf`` members contribute their properties as optional ones. The
        object's own properties win over inherited ones of the same name.
        Returns the first discriminator property name found.
        """
        if id(node) in seen:
            return None
        seen.add(id(node))

        discriminator = None
        for composition, member_optional in (('allOf', optional), ('anyOf', True)):
            for index, member in enumerate(node.get(composition) or ()):
                target = self.deref(member)
                if not isinstance(target, dict):
                    ref = member.get('$ref') if isinstance(member, dict) else member
                    self.context.record(
                        UnresolvedReferenceError(str(ref), f'{composition} member not found')
                    )
                    continue
                member_owner = (
                    _ref_name(member['$ref'])
                    if '$ref' in member
                    else f'{owner}.{composition}[{index}]'
                )
                found = self._collect(
                    target, member_owner, properties, required, member_optional, seen
                )
                discriminator = discriminator or found

        for prop_name, prop_schema in (node.get('properties') or {}).items():
            prop_node = prop_schema if isinstance(prop_schema, dict) else {}
            properties[prop_name] = PropertyDefinition(
                name=prop_name,
                type=self.reference(
                    prop_schema,
                    f'{owner.split(".", 1)[0]}_{prop_name}',
                    pointer=f'{owner}.{prop_name}',
                ),
                required=False,
                description=prop_node.get('description'),
                constraints=self.constraints(prop_node, f'{owner}.{prop_name}'),
                deprecated=prop_node.get('deprecated'),
                **_default(prop_node),
            )

        if not optional:
            required.extend(
                r for r in node.get('required') or () if r not in required
            )

        own = self.discriminator(node, owner).get('propertyName')
        if own and isinstance(own, str):
            discriminator = own
        return discriminator

    def build_array(self, type_id: str, node: dict[str, Any], name: str) -> ArrayType:
        items = node.get('items')
        if items is None:
            raise AmbiguousArrayItemsError(name)
        return ArrayType(
            id=type_id,
            name=name,
            items=self.reference(items, f'{name}_item', pointer=f'{name}[]'),
            min_items=node.get('minItems'),
            max_items=node.get('maxItems'),
            unique_items=node.get('uniqueItems'),
            **self._common(node),
        )

    def build_union(self, type_id: str, node: dict[str, Any], name: str) -> UnionType:
        members = node['oneOf'] if isinstance(node['oneOf'], list) else ()
        variants = tuple(
            self.reference(variant, f'{name}_variant{index}')
            for index, variant in enumerate(members)
        )
        discriminator = self.discriminator(node, name)
        property_name = discriminator.get('propertyName')
        mapping = None
        if isinstance(discriminator.get('mapping'), dict):
            mapping = {
                str(value): self._follow(
                    target if target.startswith('#') else f'#/components/schemas/{target}'
                )
                for value, target in discriminator['mapping'].items()
                if isinstance(target, str)
            }
        return UnionType(
            id=type_id,
            name=name,
            variants=variants,
            discriminator=property_name if isinstance(property_name, str) else None,
            discriminator_mapping=mapping or None,
            **self._common(node),
        )

    def build_primitive(
        self, type_id: str, node: dict[str, Any], name: str
    ) -> PrimitiveType:
        schema_type = _schema_type(node)
        kind = PRIMITIVE_KINDS.get(schema_type) if schema_type else None
        if kind is None:
            self.context.record(UnknownTypeKindError(schema_type, name))
            kind = PrimitiveKind.STRING
        return PrimitiveType(
            id=type_id,
            name=name,
            primitive_kind=kind,
            constraints=self.constraints(node, name),
            **self._common(node),
        )

    # Endpoints

    def convert_paths(self, paths: dict[str, Any]) -> list[EndpointDefinition]:
        endpoints = []
        for path, path_item in paths.items():
            path_item = self.deref(path_item)
            if not isinstance(path_item, dict):
                continue
            shared = path_item.get('parameters') or []
            for method, operation in path_item.items():
                if method.lower() not in HTTP_METHODS or not isinstance(operation, dict):
                    continue
                endpoints.append(
                    self.convert_operation(
                        path, HTTPMethod(method.upper()), operation, shared
                    )
                )
        return endpoints

    def convert_operation(
        self,
        path: str,
        method: HTTPMethod,
        operation: dict[str, Any],
        shared_parameters: list[Any],
    ) -> EndpointDefinition:
        operation_id = operation.get('operationId') or operation_name(method.value, path)

        merged: dict[tuple[str, str], dict[str, Any]] = {}
        for raw in [*shared_parameters, *(operation.get('parameters') or [])]:
            param = self._deref_component(raw, 'parameter')
            if param is not None and 'name' in param:
                merged[(param['name'], param.get('in', 'query'))] = param
        parameters = [
            definition
            for definition in (
                self.convert_parameter(operation_id, param) for param in merged.values()
            )
            if definition is not None
        ]

        request_body = None
        if operation.get('requestBody') is not None:
            request_body = self.convert_request_body(
                operation_id, operation['requestBody']
            )

        responses = []
        for status, raw in (operation.get('responses') or {}).items():
            response = self.convert_response(operation_id, str(status), raw)
            if response is not None:
                responses.append(response)

        security = operation.get('security', self.document.get('security')) or []
        authentication: list[str] = []
        for requirement in security:
            for scheme_id in requirement or {}:
                if scheme_id in authentication:
                    continue
                if scheme_id not in self.scheme_ids:
                    logger.debug(
                        f"Operation '{operation_id}' drops unknown security scheme '{scheme_id}'"
                    )
                    continue
                authentication.append(scheme_id)

        tags = operation.get('tags')
        return EndpointDefinition(
            id=f'{method.value}_{path}',
            operation_id=operation_id,
            path=path,
            method=method,
            summary=operation.get('summary'),
            description=operation.get('description'),
            parameters=tuple(parameters),
            request_body=request_body,
            responses=tuple(responses),
            streaming=looks_streaming(
                operation.get('description'), operation.get('summary')
            ),
            authentication=tuple(authentication),
            tags=tuple(tags) if tags else None,
            deprecated=operation.get('deprecated'),
        )

    def convert_parameter(
        self, operation_id: str, param: dict[str, Any]
    ) -> ParameterDefinition | None:
        name = param['name']
        schema = param.get('schema')
        if schema is None:
            _, media = _pick_media(param.get('content'))
            schema = (media or {}).get('schema')
        if schema is None:
            self.context.warn(f'Could not convert parameter: {name}')
            return None

        try:
            location = ParameterLocation(param.get('in', 'query'))
        except ValueError:
            self.context.warn(
                f"Parameter '{name}' has unsupported location '{param.get('in')}'"
            )
            return None

        target = self.deref(schema)
        return ParameterDefinition(
            name=name,
            location=location,
            type=self.reference(schema, f'{operation_id}_{name}'),
            required=bool(param.get('required')) or location is ParameterLocation.PATH,
            description=param.get('description'),
            deprecated=param.get('deprecated'),
            **_default(target),
        )

    def convert_request_body(
        self, operation_id: str, raw: Any
    ) -> RequestBodyDefinition | None:
        body = self._deref_component(raw, 'request body')
        if body is None:
            return None
        content_type, media = _pick_media(body.get('content'))
        if not media or media.get('schema') is None:
            self.context.warn(f"Request body of '{operation_id}' has no schema")
            return None
        return RequestBodyDefinition(
            type=self.reference(media['schema'], f'{operation_id}_request'),
            required=bool(body.get('required')),
            content_type=content_type,
            description=body.get('description'),
        )

    def convert_response(
        self, operation_id: str, status: str, raw: Any
    ) -> ResponseDefinition | None:
        response = self._deref_component(raw, 'response')
        if response is None:
            return None

        content_type, media = _pick_media(response.get('content'))
        type_ref = None
        if media and media.get('schema') is not None:
            type_ref = self.reference(
                media['schema'], f'{operation_id}_response_{status}'
            )

        headers = []
        for header_name, raw_header in (response.get('headers') or {}).items():
            header = self._deref_component(raw_header, 'header')
            if header is None or header.get('schema') is None:
                continue
            headers.append(
                HeaderDefinition(
                    name=header_name,
                    type=self.reference(
                        header['schema'], f'{operation_id}_{header_name}_header'
                    ),
                    required=bool(header.get('required')),
                    description=header.get('description'),
                )
            )

        status_code = _status_code(status)
        if isinstance(status_code, int) and status_code >= 400:
            self._register_error(status_code, response, type_ref)

        return ResponseDefinition(
            status_code=status_code,
            type=type_ref,
            description=response.get('description'),
            headers=tuple(headers) or None,
            content_type=content_type,
        )

    def _register_error(
        self,
        status_code: int,
        response: dict[str, Any],
        type_ref: TypeReference | None,
    ) -> None:
        if status_code in self.errors:
            return
        try:
            phrase = HTTPStatus(status_code).phrase
        except ValueError:
            phrase = f'HTTP {status_code}'
        self.errors[status_code] = ErrorDefinition(
            code=to_snake_case(phrase),
            status_code=status_code,
            message=response.get('description') or phrase,
            name=phrase,
            type=type_ref,
            retryable=status_code in RETRYABLE_STATUS_CODES or status_code >= 500,
        )

    # Security

    def convert_security_schemes(self, schemes: dict[str, Any]) -> list[AuthScheme]:
        authentication = []
        for scheme_id, raw in schemes.items():
            scheme = self._deref_component(raw, 'security scheme')
            if scheme is None:
                continue
            converted = self.convert_security_scheme(scheme_id, scheme)
            if converted is not None:
                authentication.append(converted)
        return authentication

    def convert_security_scheme(
        self, scheme_id: str, scheme: dict[str, Any]
    ) -> AuthScheme | None:
        scheme_type = scheme.get('type')
        http_scheme = str(scheme.get('scheme', '')).lower()
        description = scheme.get('description')

        if scheme_type == 'apiKey' and scheme.get('in') in ('header', 'query', 'cookie'):
            return ApiKeyAuthScheme(
                id=scheme_id,
                location=scheme['in'],
                name=scheme.get('name', scheme_id),
                description=description,
            )
        if scheme_type == 'http' and http_scheme == 'bearer':
            return BearerAuthScheme(
                id=scheme_id,
                scheme=http_scheme,
                bearer_format=scheme.get('bearerFormat'),
                description=description,
            )
        if scheme_type == 'http' and http_scheme == 'basic':
            return BasicAuthScheme(id=scheme_id, description=description)
        if scheme_type == 'oauth2' and scheme.get('flows'):
            flows = tuple(
                OAuth2Flow(
                    type=OAUTH2_FLOW_TYPES[flow_type],
                    authorization_url=flow.get('authorizationUrl'),
                    token_url=flow.get('tokenUrl'),
                    refresh_url=flow.get('refreshUrl'),
                    scopes=flow.get('scopes'),
                )
                for flow_type, flow in scheme['flows'].items()
                if flow_type in OAUTH2_FLOW_TYPES and isinstance(flow, dict)
            )
            return OAuth2AuthScheme(id=scheme_id, flows=flows, description=description)

        label = f'{scheme_type} {http_scheme}'.strip() if scheme_type == 'http' else scheme_type
        self.context.record(UnsupportedAuthSchemeError(scheme_id, label))
        return None

    # Metadata

    def convert_metadata(self) -> SchemaMetadata:
        info = self.document['info']
        servers = [
            server['url']
            for server in self.document.get('servers') or ()
            if isinstance(server, dict) and server.get('url')
        ]
        extra = {
            'title': info.get('title'),
            'description': info.get('description'),
            'termsOfService': info.get('termsOfService'),
            'contact': info.get('contact'),
            'license': info.get('license'),
            'servers': servers or None,
            'baseUrl': servers[0] if servers else None,
        }
        return SchemaMetadata(
            provider_id=self.options.provider_id,
            provider_name=self.options.provider_name,
            api_version=str(info['version']),
            metadata={key: value for key, value in extra.items() if value is not None},
        )


class OpenAPIParser(ProviderParser):
    """Frontend for OpenAPI 3.0 and 3.1 documents.

    Example:
        >>> parser = OpenAPIParser(ParserOptions('openai', 'OpenAI'))
        >>> result = parser.parse('openapi.yaml')
    """

    provider_id = 'openapi'
    default_provider_name = 'OpenAPI'

    def validation_errors(self, document: dict[str, Any]) -> list[str]:
        if 'swagger' in document:
            return ['Only OpenAPI 3.0.x and 3.1.x are supported']
        try:
            _DocumentHeader.model_validate(document)
        except ValidationError as e:
            return [
                f'{".".join(str(part) for part in error["loc"])}: {error["msg"]}'
                for error in e.errors()
            ]
        return []

    def convert(
        self, document: dict[str, Any], context: ConversionContext
    ) -> CanonicalSchema:
        logger.debug(
            f'Converting OpenAPI {document.get("openapi")} document '
            f'for provider {self.options.provider_id}'
        )
        return _Conversion(document, context, self.options).run()
