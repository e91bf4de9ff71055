"""Per-language capability table used by the type mapper.

Each target language gets one frozen ``LanguageCapabilities`` entry that
fixes how every canonical construct is rendered. The mapper never decides a
representation at call time; it only reads this table.
"""

import dataclasses
from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType

from llmforge.canonical.models import PrimitiveKind

__all__ = [
    'TargetLanguage',
    'OptionalStrategy',
    'EnumStrategy',
    'UnionStrategy',
    'LanguageCapabilities',
    'CAPABILITIES',
    'get_capabilities',
]


class TargetLanguage(str, Enum):
    RUST = 'rust'
    TYPESCRIPT = 'typescript'
    PYTHON = 'python'
    JAVASCRIPT = 'javascript'
    CSHARP = 'csharp'
    GO = 'go'
    JAVA = 'java'


class OptionalStrategy(str, Enum):
    # Option<T>, Optional[T], T?, T | undefined
    WRAP = 'wrap'
    # plain field plus a "was it set" flag; pointers inside containers
    PRESENCE_FLAG = 'presence_flag'


class EnumStrategy(str, Enum):
    NATIVE = 'native'
    # named constants plus a validity predicate
    CONSTANTS = 'constants'


class UnionStrategy(str, Enum):
    # the union is spelled out where it is used: A | B, Union[A, B]
    INLINE = 'inline'
    # a named sum type: Rust enum, Java sealed interface
    TAGGED = 'tagged'
    # a named struct with one optional field per variant
    OPTIONAL_FIELDS = 'optional_fields'


@dataclasses.dataclass(frozen=True)
class LanguageCapabilities:
    """How one target language renders canonical types.

    Templates use ``{item}``, ``{value}``, ``{type}`` and ``{variants}``
    placeholders. Import strings are emitted verbatim.
    """

    language: TargetLanguage
    primitives: Mapping[PrimitiveKind, str]
    sequence: str
    map: str
    any_type: str
    optional: str
    optional_strategy: OptionalStrategy
    enum_strategy: EnumStrategy
    union_strategy: UnionStrategy
    sequence_imports: tuple[str, ...] = ()
    map_imports: tuple[str, ...] = ()
    any_imports: tuple[str, ...] = ()
    optional_imports: tuple[str, ...] = ()
    union: str = '{variants}'
    union_separator: str = ' | '
    union_imports: tuple[str, ...] = ()
    # string format -> (expression, imports)
    format_overrides: Mapping[str, tuple[str, tuple[str, ...]]] = dataclasses.field(
        default_factory=lambda: MappingProxyType({})
    )
    # primitive -> wrapper class in generic positions
    boxed: Mapping[str, str] = dataclasses.field(
        default_factory=lambda: MappingProxyType({})
    )
    # pointer form for nullable values inside containers
    pointer: str | None = None
    reserved_names: frozenset[str] = frozenset()


def _table(**entries: str) -> Mapping[PrimitiveKind, str]:
    return MappingProxyType({PrimitiveKind(kind): value for kind, value in entries.items()})


CAPABILITIES: Mapping[TargetLanguage, LanguageCapabilities] = MappingProxyType(
    {
        TargetLanguage.RUST: LanguageCapabilities(
            language=TargetLanguage.RUST,
            primitives=_table(
                string='String', integer='i64', float='f64', boolean='bool', null='()'
            ),
            sequence='Vec<{item}>',
            map='HashMap<String, {value}>',
            map_imports=('use std::collections::HashMap;',),
            any_type='serde_json::Value',
            optional='Option<{type}>',
            optional_strategy=OptionalStrategy.WRAP,
            enum_strategy=EnumStrategy.NATIVE,
            union_strategy=UnionStrategy.TAGGED,
            reserved_names=frozenset(
                {'Self', 'String', 'Vec', 'Option', 'Result', 'Box', 'HashMap', 'Value'}
            ),
        ),
        TargetLanguage.TYPESCRIPT: LanguageCapabilities(
            language=TargetLanguage.TYPESCRIPT,
            primitives=_table(
                string='string',
                integer='number',
                float='number',
                boolean='boolean',
                null='null',
            ),
            sequence='{item}[]',
            map='Record<string, {value}>',
            any_type='unknown',
            optional='{type} | undefined',
            optional_strategy=OptionalStrategy.WRAP,
            enum_strategy=EnumStrategy.NATIVE,
            union_strategy=UnionStrategy.INLINE,
            reserved_names=frozenset(
                {
                    'Array',
                    'Boolean',
                    'Date',
                    'Error',
                    'Map',
                    'Number',
                    'Object',
                    'Promise',
                    'Record',
                    'Set',
                    'String',
                    'Symbol',
                }
            ),
        ),
        TargetLanguage.PYTHON: LanguageCapabilities(
            language=TargetLanguage.PYTHON,
            primitives=_table(
                string='str', integer='int', float='float', boolean='bool', null='None'
            ),
            sequence='List[{item}]',
            sequence_imports=('from typing import List',),
            map='Dict[str, {value}]',
            map_imports=('from typing import Dict',),
            any_type='Any',
            any_imports=('from typing import Any',),
            optional='Optional[{type}]',
            optional_imports=('from typing import Optional',),
            optional_strategy=OptionalStrategy.WRAP,
            enum_strategy=EnumStrategy.NATIVE,
            union_strategy=UnionStrategy.INLINE,
            union='Union[{variants}]',
            union_separator=', ',
            union_imports=('from typing import Union',),
            format_overrides=MappingProxyType(
                {
                    'date-time': ('datetime', ('from datetime import datetime',)),
                    'date': ('date', ('from datetime import date',)),
                    'uuid': ('UUID', ('from uuid import UUID',)),
                }
            ),
            reserved_names=frozenset(
                {
                    'Any',
                    'BaseModel',
                    'Dict',
                    'Enum',
                    'False',
                    'Field',
                    'List',
                    'None',
                    'Optional',
                    'True',
                    'Union',
                }
            ),
        ),
        TargetLanguage.JAVASCRIPT: LanguageCapabilities(
            language=TargetLanguage.JAVASCRIPT,
            primitives=_table(
                string='string',
                integer='number',
                float='number',
                boolean='boolean',
                null='null',
            ),
            sequence='{item}[]',
            map='Object<string, {value}>',
            any_type='*',
            optional='{type} | undefined',
            optional_strategy=OptionalStrategy.WRAP,
            enum_strategy=EnumStrategy.CONSTANTS,
            union_strategy=UnionStrategy.INLINE,
            reserved_names=frozenset(
                {'Array', 'Boolean', 'Date', 'Error', 'Map', 'Number', 'Object', 'Promise', 'String'}
            ),
        ),
        TargetLanguage.CSHARP: LanguageCapabilities(
            language=TargetLanguage.CSHARP,
            primitives=_table(
                string='string',
                integer='long',
                float='double',
                boolean='bool',
                null='object',
            ),
            sequence='List<{item}>',
            sequence_imports=('using System.Collections.Generic;',),
            map='Dictionary<string, {value}>',
            map_imports=('using System.Collections.Generic;',),
            any_type='object',
            optional='{type}?',
            optional_strategy=OptionalStrategy.WRAP,
            enum_strategy=EnumStrategy.NATIVE,
            union_strategy=UnionStrategy.OPTIONAL_FIELDS,
            reserved_names=frozenset(
                {'Object', 'String', 'Task', 'List', 'Dictionary', 'Exception', 'Type'}
            ),
        ),
        TargetLanguage.GO: LanguageCapabilities(
            language=TargetLanguage.GO,
            primitives=_table(
                string='string',
                integer='int64',
                float='float64',
                boolean='bool',
                null='interface{}',
            ),
            sequence='[]{item}',
            map='map[string]{value}',
            any_type='interface{}',
            optional='{type}',
            optional_strategy=OptionalStrategy.PRESENCE_FLAG,
            enum_strategy=EnumStrategy.CONSTANTS,
            union_strategy=UnionStrategy.OPTIONAL_FIELDS,
            pointer='*{type}',
            reserved_names=frozenset({'Error', 'Context', 'Client', 'Time'}),
        ),
        TargetLanguage.JAVA: LanguageCapabilities(
            language=TargetLanguage.JAVA,
            primitives=_table(
                string='String',
                integer='long',
                float='double',
                boolean='boolean',
                null='Object',
            ),
            sequence='List<{item}>',
            sequence_imports=('import java.util.List;',),
            map='Map<String, {value}>',
            map_imports=('import java.util.Map;',),
            any_type='Object',
            optional='Optional<{type}>',
            optional_imports=('import java.util.Optional;',),
            optional_strategy=OptionalStrategy.WRAP,
            enum_strategy=EnumStrategy.NATIVE,
            union_strategy=UnionStrategy.TAGGED,
            boxed=MappingProxyType({'long': 'Long', 'double': 'Double', 'boolean': 'Boolean'}),
            reserved_names=frozenset(
                {
                    'Boolean',
                    'Class',
                    'Double',
                    'Exception',
                    'Integer',
                    'List',
                    'Long',
                    'Map',
                    'Object',
                    'Optional',
                    'Override',
                    'Record',
                    'String',
                }
            ),
        ),
    }
)


def get_capabilities(language: TargetLanguage | str) -> LanguageCapabilities:
    return CAPABILITIES[TargetLanguage(language)]
