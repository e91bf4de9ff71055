"""Type catalog generator.

Writes one JSON file per target language listing how every nominal type,
field and endpoint signature of a schema renders in that language. It is
the cheapest way to inspect the type mapper's decisions for a real document
before a full SDK generator consumes them.
"""

import json
from collections.abc import Mapping
from typing import Any

from llmforge.canonical.models import CanonicalSchema, EnumType, ObjectType, UnionType
from llmforge.generators.base import (
    BaseGenerator,
    GeneratedFile,
    GenerationOptions,
    GenerationResult,
)
from llmforge.mapping.languages import TargetLanguage
from llmforge.mapping.type_mapper import MappedType, MappingContext

__all__ = ['TypeCatalogGenerator']


def _describe(mapped: MappedType) -> dict[str, Any]:
    entry: dict[str, Any] = {
        'expression': mapped.expression,
        'imports': list(mapped.imports),
    }
    if mapped.nullable:
        entry['nullable'] = True
    if mapped.presence_flag:
        entry['presenceFlag'] = True
    if mapped.constraints is not None:
        entry['constraints'] = mapped.constraints.model_dump(
            mode='json', by_alias=True, exclude_none=True
        )
    if mapped.metadata:
        entry['metadata'] = dict(mapped.metadata)
    return entry


class TypeCatalogGenerator(BaseGenerator):
    """Renders the type catalog of a schema for one language.

    Example:
        >>> generator = TypeCatalogGenerator(schema, options, TargetLanguage.GO)
        >>> result = generator.generate()
        >>> result.files[0].path
        'types.go.json'
    """

    def __init__(
        self,
        schema: CanonicalSchema,
        options: GenerationOptions,
        language: TargetLanguage | str,
        custom_mappings: Mapping[str, str] | None = None,
    ):
        self.language = TargetLanguage(language)
        super().__init__(schema, options, custom_mappings)

    def generate(self) -> GenerationResult:
        catalog = {
            'language': self.language.value,
            'package': self.formatted_package_name,
            'version': self.options.package_version,
            'types': [self._type_entry(definition) for definition in self._nominal_types()],
            'endpoints': [self._endpoint_entry(endpoint) for endpoint in self.schema.endpoints],
        }
        content = json.dumps(catalog, indent=2, default=str) + '\n'
        return GenerationResult(
            files=[GeneratedFile(path=f'types.{self.language.value}.json', content=content)]
        )

    def _nominal_types(self):
        for definition in self.schema.types:
            if isinstance(definition, (EnumType, UnionType)) or (
                isinstance(definition, ObjectType)
                and definition.properties
                and not definition.is_placeholder
            ):
                yield definition

    def _type_entry(self, definition) -> dict[str, Any]:
        entry: dict[str, Any] = {
            'id': definition.id,
            'name': definition.name,
            'kind': definition.kind,
            'typeName': self.mapper.type_name(definition.id),
        }
        if isinstance(definition, ObjectType):
            entry['fields'] = {
                prop.name: _describe(self.mapper.map_property(prop))
                for prop in definition.properties
            }
        elif isinstance(definition, EnumType):
            entry['values'] = [value.value for value in definition.values]
        return entry

    def _endpoint_entry(self, endpoint) -> dict[str, Any]:
        entry: dict[str, Any] = {
            'operationId': endpoint.operation_id,
            'method': endpoint.method.value,
            'path': endpoint.path,
            'parameters': {
                param.name: _describe(
                    self.mapper.map_type(param.type, MappingContext(required=param.required))
                )
                for param in endpoint.parameters
            },
            'responses': {
                str(response.status_code): _describe(self.mapper.map_type(response.type))
                for response in endpoint.responses
                if response.type is not None
            },
        }
        if endpoint.request_body is not None:
            entry['requestBody'] = _describe(
                self.mapper.map_type(
                    endpoint.request_body.type,
                    MappingContext(required=endpoint.request_body.required),
                )
            )
        return entry
