"""Generator contract and the built-in type catalog generator."""

from llmforge.generators.base import (
    BaseGenerator,
    GeneratedFile,
    GenerationOptions,
    GenerationResult,
    write_files,
)
from llmforge.generators.catalog import TypeCatalogGenerator

__all__ = [
    'BaseGenerator',
    'GeneratedFile',
    'GenerationOptions',
    'GenerationResult',
    'TypeCatalogGenerator',
    'write_files',
]
