"""Type mapping from canonical references to target-language types."""

from llmforge.mapping.languages import (
    CAPABILITIES,
    EnumStrategy,
    LanguageCapabilities,
    OptionalStrategy,
    TargetLanguage,
    UnionStrategy,
    get_capabilities,
)
from llmforge.mapping.type_mapper import (
    MappedType,
    MappingContext,
    NameRegistry,
    TypeMapper,
    map_type,
)

__all__ = [
    'CAPABILITIES',
    'EnumStrategy',
    'LanguageCapabilities',
    'MappedType',
    'MappingContext',
    'NameRegistry',
    'OptionalStrategy',
    'TargetLanguage',
    'TypeMapper',
    'UnionStrategy',
    'get_capabilities',
    'map_type',
]
