"""Contract between the canonical schema and per-language generators.

Generators consume an immutable ``CanonicalSchema`` and produce a list of
``GeneratedFile`` objects. Each generator instance allocates its own
``TypeMapper``, so name disambiguation never leaks from one language run
into another.
"""

import dataclasses
import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field
from upath import UPath

from llmforge.canonical.models import CanonicalSchema
from llmforge.exceptions import OutputError
from llmforge.mapping.languages import TargetLanguage
from llmforge.mapping.type_mapper import TypeMapper

__all__ = [
    'GenerationOptions',
    'GeneratedFile',
    'GenerationResult',
    'BaseGenerator',
    'write_files',
]

logger = logging.getLogger(__name__)


class GenerationOptions(BaseModel):
    """Options shared by every generator."""

    model_config = ConfigDict(populate_by_name=True)

    output_dir: str = Field(..., alias='outputDir')
    package_name: str = Field(..., alias='packageName')
    package_version: str = Field('0.1.0', alias='packageVersion')
    license: str = 'Apache-2.0'
    include_examples: bool = Field(True, alias='includeExamples')
    include_tests: bool = Field(True, alias='includeTests')


@dataclasses.dataclass(frozen=True)
class GeneratedFile:
    # relative to the output directory
    path: str
    content: str
    executable: bool = False


@dataclasses.dataclass
class GenerationResult:
    files: list[GeneratedFile] = dataclasses.field(default_factory=list)
    warnings: list[str] = dataclasses.field(default_factory=list)
    errors: list[str] = dataclasses.field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


class BaseGenerator(ABC):
    """Base class for language generators.

    Subclasses set ``language`` and implement ``generate``; the mapper in
    ``self.mapper`` is private to the instance.
    """

    language: ClassVar[TargetLanguage]

    def __init__(
        self,
        schema: CanonicalSchema,
        options: GenerationOptions,
        custom_mappings: Mapping[str, str] | None = None,
    ):
        self.schema = schema
        self.options = options
        self.mapper = TypeMapper(schema, self.language, custom_mappings)

    @property
    def formatted_package_name(self) -> str:
        """The package name formatted for the target ecosystem."""
        return re.sub(r'[^a-z0-9-]', '-', self.options.package_name.lower())

    @abstractmethod
    def generate(self) -> GenerationResult:
        """Produce every file for this language."""


def write_files(files: Iterable[GeneratedFile], output_dir: str | Path | UPath) -> list[str]:
    """Write generated files below ``output_dir``.

    Returns:
        The paths that were written.

    Raises:
        OutputError: If a file cannot be written.
    """
    directory = UPath(output_dir)
    written = []
    for generated in files:
        path = directory / generated.path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(generated.content, encoding='utf-8')
            # local paths only; remote filesystems have no mode bits
            if generated.executable and isinstance(path, Path):
                path.chmod(0o755)
        except OSError as e:
            raise OutputError(str(path), cause=e)
        logger.debug(f'Wrote {path}')
        written.append(str(path))
    return written
