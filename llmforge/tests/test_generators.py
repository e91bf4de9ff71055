"""Tests for the generator contract and the type catalog generator."""

import copy
import json

import pytest

from llmforge.exceptions import OutputError
from llmforge.generators import (
    BaseGenerator,
    GeneratedFile,
    GenerationOptions,
    GenerationResult,
    TypeCatalogGenerator,
    write_files,
)
from llmforge.mapping import TargetLanguage
from llmforge.parsers import parse
from llmforge.tests.fixtures import ANTHROPIC_DIALECT_SPEC


@pytest.fixture(scope='module')
def schema():
    result = parse(copy.deepcopy(ANTHROPIC_DIALECT_SPEC), provider='anthropic')
    assert result.success, result.errors
    return result.schema


@pytest.fixture
def options(tmp_path):
    return GenerationOptions(output_dir=str(tmp_path), package_name='My_SDK')


def _catalog(schema, options, language):
    result = TypeCatalogGenerator(schema, options, language).generate()
    assert result.success
    (generated,) = result.files
    return generated, json.loads(generated.content)


class TestGenerationOptions:
    def test_defaults(self):
        options = GenerationOptions(output_dir='out', package_name='sdk')
        assert options.package_version == '0.1.0'
        assert options.license == 'Apache-2.0'
        assert options.include_examples is True
        assert options.include_tests is True

    def test_aliases(self):
        options = GenerationOptions.model_validate(
            {'outputDir': 'out', 'packageName': 'sdk', 'packageVersion': '2.0.0'}
        )
        assert options.output_dir == 'out'
        assert options.package_version == '2.0.0'

    def test_required_fields(self):
        with pytest.raises(ValueError):
            GenerationOptions(output_dir='out')


class TestGenerationResult:
    def test_success_depends_on_errors(self):
        assert GenerationResult().success is True
        assert GenerationResult(warnings=['w']).success is True
        assert GenerationResult(errors=['e']).success is False


class TestBaseGenerator:
    def test_each_generator_owns_its_mapper(self, schema, options):
        class RustGenerator(BaseGenerator):
            language = TargetLanguage.RUST

            def generate(self):
                return GenerationResult()

        first = RustGenerator(schema, options)
        second = RustGenerator(schema, options)
        assert first.mapper is not second.mapper
        assert first.mapper.language is TargetLanguage.RUST

    def test_formatted_package_name(self, schema, options):
        generator = TypeCatalogGenerator(schema, options, 'python')
        assert generator.formatted_package_name == 'my-sdk'

    def test_generate_is_abstract(self, schema, options):
        with pytest.raises(TypeError):
            BaseGenerator(schema, options)


class TestTypeCatalogGenerator:
    def test_file_name_and_header(self, schema, options):
        generated, catalog = _catalog(schema, options, TargetLanguage.GO)
        assert generated.path == 'types.go.json'
        assert generated.content.endswith('\n')
        assert catalog['language'] == 'go'
        assert catalog['package'] == 'my-sdk'
        assert catalog['version'] == '0.1.0'

    def test_only_nominal_types_are_listed(self, schema, options):
        _, catalog = _catalog(schema, options, 'python')
        names = [entry['name'] for entry in catalog['types']]
        assert names[:5] == ['Role', 'Message', 'MessageRequest', 'ContentBlock', 'TextBlock']
        assert 'string' not in names
        assert 'MessageList' not in names

    def test_enum_entry(self, schema, options):
        _, catalog = _catalog(schema, options, 'rust')
        role = catalog['types'][0]
        assert role['kind'] == 'enum'
        assert role['typeName'] == 'Role'
        assert role['values'] == ['user', 'assistant']

    def test_object_fields(self, schema, options):
        _, catalog = _catalog(schema, options, 'python')
        request = catalog['types'][2]
        assert request['kind'] == 'object'
        fields = request['fields']
        assert fields['model']['expression'] == 'str'
        assert fields['messages'] == {
            'expression': 'List[Message]',
            'imports': ['from typing import List'],
        }
        assert fields['stream']['expression'] == 'Optional[bool]'
        assert fields['stream']['nullable'] is True

    def test_go_presence_flags(self, schema, options):
        _, catalog = _catalog(schema, options, 'go')
        stream = catalog['types'][2]['fields']['stream']
        assert stream['expression'] == 'bool'
        assert stream['presenceFlag'] is True

    def test_go_enum_constants(self, schema, options):
        _, catalog = _catalog(schema, options, 'go')
        role_field = catalog['types'][1]['fields']['role']
        assert role_field['metadata']['constants'] == [
            ['RoleUser', 'user'],
            ['RoleAssistant', 'assistant'],
        ]

    def test_union_entry(self, schema, options):
        _, catalog = _catalog(schema, options, 'rust')
        content = catalog['types'][3]
        assert content['kind'] == 'union'
        assert content['typeName'] == 'ContentBlock'
        assert 'fields' not in content

    def test_endpoints(self, schema, options):
        _, catalog = _catalog(schema, options, 'typescript')
        create, count = catalog['endpoints']
        assert create['operationId'] == 'createMessage'
        assert create['method'] == 'POST'
        assert create['path'] == '/v1/messages'
        assert create['requestBody']['expression'] == 'MessageRequest'
        assert create['responses']['200']['expression'] == 'Message'
        assert 'anthropic-version' in create['parameters']
        assert count['responses']['200']['expression'] == 'number'
        assert count['parameters'] == {}

    def test_custom_mappings(self, schema, options):
        generator = TypeCatalogGenerator(
            schema, options, 'typescript', custom_mappings={'Message': 'ChatMessage'}
        )
        catalog = json.loads(generator.generate().files[0].content)
        assert catalog['endpoints'][0]['responses']['200']['expression'] == 'ChatMessage'

    def test_languages_do_not_share_names(self, schema, options):
        _, rust = _catalog(schema, options, 'rust')
        _, python = _catalog(schema, options, 'python')
        assert rust['types'][1]['fields']['content']['expression'] == 'String'
        assert python['types'][1]['fields']['content']['expression'] == 'str'


class TestWriteFiles:
    def test_writes_nested_files(self, tmp_path):
        files = [
            GeneratedFile(path='types.rust.json', content='{}\n'),
            GeneratedFile(path='nested/dir/readme.txt', content='hello'),
        ]
        written = write_files(files, tmp_path / 'out')
        assert written == [
            str(tmp_path / 'out' / 'types.rust.json'),
            str(tmp_path / 'out' / 'nested' / 'dir' / 'readme.txt'),
        ]
        assert (tmp_path / 'out' / 'nested' / 'dir' / 'readme.txt').read_text() == 'hello'

    def test_accepts_string_directory(self, tmp_path):
        write_files([GeneratedFile(path='a.txt', content='a')], str(tmp_path))
        assert (tmp_path / 'a.txt').read_text() == 'a'

    def test_unwritable_location(self, tmp_path):
        blocker = tmp_path / 'blocker'
        blocker.write_text('not a directory')

        with pytest.raises(OutputError) as exc_info:
            write_files([GeneratedFile(path='x/y.json', content='{}')], blocker)
        assert exc_info.value.output_path.endswith('y.json')
        assert isinstance(exc_info.value.cause, OSError)
