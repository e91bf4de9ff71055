"""Projection of canonical type references onto target-language types.

A ``TypeMapper`` is bound to one schema and one target language for the
duration of a generation run. It owns the run's ``NameRegistry``, which
gives every nominal type (objects, enums, named unions) one collision-free
name up front, in type-list order, so the name a type receives never
depends on the order in which a generator happens to ask for it.

Mapping is otherwise pure: the same reference and context always produce
the same expression and the same, duplicate-free, import tuple.
"""

import dataclasses
import logging
from collections.abc import Iterable, Mapping
from typing import Any, assert_never

from llmforge.canonical.models import (
    ArrayType,
    CanonicalSchema,
    EnumType,
    ObjectType,
    PrimitiveConstraints,
    PrimitiveKind,
    PrimitiveType,
    PropertyDefinition,
    TypeDefinition,
    TypeReference,
    UnionType,
)
from llmforge.exceptions import TypeMappingError
from llmforge.mapping.languages import (
    EnumStrategy,
    LanguageCapabilities,
    OptionalStrategy,
    TargetLanguage,
    UnionStrategy,
    get_capabilities,
)
from llmforge.utils import to_pascal_case, to_snake_case

__all__ = [
    'MappingContext',
    'MappedType',
    'NameRegistry',
    'TypeMapper',
    'map_type',
]

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class MappingContext:
    """Where a reference is used.

    Attributes:
        nullable: The usage site accepts null.
        required: The usage site is a required field.
        nested: The usage site is inside a generic or container position.
    """

    nullable: bool = False
    required: bool = True
    nested: bool = False


NESTED = MappingContext(nested=True)


@dataclasses.dataclass(frozen=True)
class MappedType:
    expression: str
    imports: tuple[str, ...] = ()
    nullable: bool = False
    # the field is plain and absence is tracked by a separate flag
    presence_flag: bool = False
    constraints: PrimitiveConstraints | None = None
    metadata: Mapping[str, Any] | None = None


def _merge_imports(*groups: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(imp for group in groups for imp in group))


class NameRegistry:
    """Hands out unique type names for one language run.

    Names are cached per type id; a name already taken by another type, or
    reserved by the language, gets a suffix.
    """

    def __init__(self, reserved: Iterable[str] = ()):
        self._reserved = frozenset(reserved)
        self._by_id: dict[str, str] = {}
        self._taken: set[str] = set()

    def __contains__(self, type_id: str) -> bool:
        return type_id in self._by_id

    def name_for(self, type_id: str, base_name: str) -> str:
        if type_id in self._by_id:
            return self._by_id[type_id]

        base = f'{base_name}Model' if base_name in self._reserved else base_name
        candidate = base
        counter = 2
        while candidate in self._taken:
            candidate = f'{base}{counter}'
            counter += 1

        self._by_id[type_id] = candidate
        self._taken.add(candidate)
        return candidate

    def names(self) -> dict[str, str]:
        return dict(self._by_id)


class TypeMapper:
    """Maps canonical type references to one target language.

    Example:
        >>> mapper = TypeMapper(schema, TargetLanguage.PYTHON)
        >>> mapped = mapper.map_type(prop.type, MappingContext(required=False))
        >>> mapped.expression
        'Optional[List[Message]]'
        >>> mapped.imports
        ('from typing import List', 'from typing import Optional')
    """

    def __init__(
        self,
        schema: CanonicalSchema,
        language: TargetLanguage | str,
        custom_mappings: Mapping[str, str] | None = None,
    ):
        self.schema = schema
        self.language = TargetLanguage(language)
        self.capabilities: LanguageCapabilities = get_capabilities(self.language)
        self.custom_mappings = dict(custom_mappings or {})
        self.registry = NameRegistry(self.capabilities.reserved_names)
        self._definitions = schema.type_index()
        self._in_progress: list[str] = []

        for definition in schema.types:
            if self._is_nominal(definition):
                self.type_name(definition.id)

    def type_name(self, type_id: str) -> str:
        """The disambiguated nominal name of a type in this language."""
        definition = self._get(type_id)
        return self.registry.name_for(type_id, to_pascal_case(definition.name))

    def map_type(
        self, reference: TypeReference, context: MappingContext | None = None
    ) -> MappedType:
        context = context or MappingContext()
        definition = self._get(reference.type_id)
        mapped = self._map_definition(definition, context)
        if reference.nullable or context.nullable or not context.required:
            return self._optional(mapped, context)
        if context.nested:
            return self._boxed(mapped)
        return mapped

    def map_property(self, prop: PropertyDefinition) -> MappedType:
        return self.map_type(prop.type, MappingContext(required=prop.required))

    def _get(self, type_id: str) -> TypeDefinition:
        definition = self._definitions.get(type_id)
        if definition is None:
            raise TypeMappingError(
                type_id, self.language.value, 'type is not defined in the schema'
            )
        return definition

    def _is_nominal(self, definition: TypeDefinition) -> bool:
        if isinstance(definition, EnumType):
            return True
        if isinstance(definition, ObjectType):
            return not definition.is_placeholder and not self._is_free_form(definition)
        if isinstance(definition, UnionType):
            return self.capabilities.union_strategy is not UnionStrategy.INLINE
        return False

    @staticmethod
    def _is_free_form(definition: ObjectType) -> bool:
        return not definition.properties and definition.additional_properties is not False

    def _map_definition(
        self, definition: TypeDefinition, context: MappingContext
    ) -> MappedType:
        custom = self.custom_mappings.get(definition.name) or self.custom_mappings.get(
            definition.id
        )
        if custom is not None:
            return MappedType(expression=custom)

        if definition.id in self._in_progress:
            # a structural type reached itself again
            logger.debug(f'Recursive type {definition.id} mapped by name')
            return MappedType(expression=self.type_name(definition.id))

        self._in_progress.append(definition.id)
        try:
            if isinstance(definition, PrimitiveType):
                return self._map_primitive(definition)
            elif isinstance(definition, ObjectType):
                return self._map_object(definition)
            elif isinstance(definition, ArrayType):
                return self._map_array(definition)
            elif isinstance(definition, UnionType):
                return self._map_union(definition)
            elif isinstance(definition, EnumType):
                return self._map_enum(definition)
            else:
                assert_never(definition)
        finally:
            self._in_progress.pop()

    def _map_primitive(self, definition: PrimitiveType) -> MappedType:
        caps = self.capabilities
        constraints = definition.constraints
        if constraints is not None and constraints.is_empty():
            constraints = None

        if (
            definition.primitive_kind is PrimitiveKind.STRING
            and constraints is not None
            and constraints.format in caps.format_overrides
        ):
            expression, imports = caps.format_overrides[constraints.format]
            return MappedType(expression, imports, constraints=constraints)

        return MappedType(
            expression=caps.primitives[definition.primitive_kind],
            constraints=constraints,
        )

    def _map_object(self, definition: ObjectType) -> MappedType:
        caps = self.capabilities
        if definition.is_placeholder:
            return MappedType(
                caps.any_type,
                caps.any_imports,
                metadata={'placeholder': True, **(definition.metadata or {})},
            )

        if not self._is_free_form(definition):
            return MappedType(self.type_name(definition.id))

        if isinstance(definition.additional_properties, TypeReference):
            value = self.map_type(definition.additional_properties, NESTED)
        else:
            value = MappedType(caps.any_type, caps.any_imports)
        return MappedType(
            expression=caps.map.format(value=value.expression),
            imports=_merge_imports(value.imports, caps.map_imports),
        )

    def _map_array(self, definition: ArrayType) -> MappedType:
        caps = self.capabilities
        item = self.map_type(definition.items, NESTED)
        expression = item.expression
        if caps.sequence.startswith('{item}') and caps.union_separator.strip() in expression:
            expression = f'({expression})'
        return MappedType(
            expression=caps.sequence.format(item=expression),
            imports=_merge_imports(item.imports, caps.sequence_imports),
        )

    def _map_union(self, definition: UnionType) -> MappedType:
        caps = self.capabilities
        variants = [self.map_type(variant, NESTED) for variant in definition.variants]
        expressions = list(dict.fromkeys(variant.expression for variant in variants))
        imports = _merge_imports(*(variant.imports for variant in variants))

        if caps.union_strategy is not UnionStrategy.INLINE:
            return MappedType(
                expression=self.type_name(definition.id),
                metadata={
                    'union_strategy': caps.union_strategy.value,
                    'variants': tuple(expressions),
                    'variant_imports': imports,
                    'discriminator': definition.discriminator,
                },
            )

        if not expressions:
            return MappedType(caps.any_type, caps.any_imports)
        if len(expressions) == 1:
            return MappedType(expressions[0], imports)
        return MappedType(
            expression=caps.union.format(
                variants=caps.union_separator.join(expressions)
            ),
            imports=_merge_imports(imports, caps.union_imports),
        )

    def _map_enum(self, definition: EnumType) -> MappedType:
        name = self.type_name(definition.id)
        if self.capabilities.enum_strategy is EnumStrategy.NATIVE:
            return MappedType(name)

        if self.language is TargetLanguage.GO:
            constants = tuple(
                (f'{name}{to_pascal_case(str(value.value))}', value.value)
                for value in definition.values
            )
            predicate = f'{name}.IsValid'
        else:
            constants = tuple(
                (to_snake_case(str(value.value)).upper(), value.value)
                for value in definition.values
            )
            predicate = f'is{name}'

        if definition.value_type == 'string':
            base_kind = PrimitiveKind.STRING
        elif all(isinstance(value.value, int) for value in definition.values):
            base_kind = PrimitiveKind.INTEGER
        else:
            base_kind = PrimitiveKind.FLOAT
        return MappedType(
            expression=name,
            metadata={
                'enum_strategy': EnumStrategy.CONSTANTS.value,
                'base_type': self.capabilities.primitives[base_kind],
                'constants': constants,
                'predicate': predicate,
            },
        )

    def _boxed(self, mapped: MappedType) -> MappedType:
        boxed = self.capabilities.boxed.get(mapped.expression)
        if boxed is None:
            return mapped
        return dataclasses.replace(mapped, expression=boxed)

    def _optional(self, mapped: MappedType, context: MappingContext) -> MappedType:
        caps = self.capabilities
        if caps.optional_strategy is OptionalStrategy.PRESENCE_FLAG:
            if not context.nested:
                return dataclasses.replace(mapped, nullable=True, presence_flag=True)
            if caps.pointer is None or mapped.expression.startswith(
                ('[]', 'map[', '*', caps.any_type)
            ):
                return dataclasses.replace(mapped, nullable=True)
            return dataclasses.replace(
                mapped, expression=caps.pointer.format(type=mapped.expression), nullable=True
            )

        inner = self._boxed(mapped)
        return dataclasses.replace(
            inner,
            expression=caps.optional.format(type=inner.expression),
            imports=_merge_imports(inner.imports, caps.optional_imports),
            nullable=True,
        )


def map_type(
    schema: CanonicalSchema,
    reference: TypeReference,
    language: TargetLanguage | str,
    context: MappingContext | None = None,
    custom_mappings: Mapping[str, str] | None = None,
) -> MappedType:
    """One-off mapping with a fresh mapper.

    Generators mapping many references should keep one ``TypeMapper`` per
    run instead, so its name registry is built once.
    """
    return TypeMapper(schema, language, custom_mappings).map_type(reference, context)
