"""Tests for document loading and external reference bundling."""

import json
from unittest.mock import MagicMock

import httpx
import pytest
import yaml

from llmforge.exceptions import SchemaLoadError
from llmforge.parsers.loader import DocumentLoader, resolve_json_pointer


class TestResolveJsonPointer:
    def test_nested_path(self):
        document = {'components': {'schemas': {'Message': {'type': 'object'}}}}
        assert resolve_json_pointer(document, '/components/schemas/Message') == {
            'type': 'object'
        }

    def test_escaped_segments(self):
        document = {'paths': {'/chat/completions': {'post': {}}}}
        assert resolve_json_pointer(document, '/paths/~1chat~1completions/post') == {}

    def test_list_index(self):
        assert resolve_json_pointer({'servers': [{'url': 'a'}, {'url': 'b'}]}, '/servers/1/url') == 'b'

    def test_empty_pointer_is_root(self):
        document = {'a': 1}
        assert resolve_json_pointer(document, '') is document

    def test_missing_segment(self):
        with pytest.raises(KeyError):
            resolve_json_pointer({'a': {}}, '/a/b')


class TestDocumentLoader:
    def test_load_dict_keeps_local_refs(self):
        document = {
            'openapi': '3.0.0',
            'paths': {'/x': {'$ref': '#/components/pathItems/X'}},
        }
        loaded = DocumentLoader().load(document)
        assert loaded == document

    def test_load_dict_keeps_shared_nodes_shared(self):
        shared = {'type': 'string'}
        loaded = DocumentLoader().load({'a': shared, 'b': shared})
        assert loaded['a'] is loaded['b']

    def test_load_yaml_file(self, tmp_path):
        path = tmp_path / 'api.yaml'
        path.write_text(yaml.safe_dump({'openapi': '3.0.0', 'paths': {}}))
        assert DocumentLoader().load(path)['openapi'] == '3.0.0'

    def test_load_json_file(self, tmp_path):
        path = tmp_path / 'api.json'
        path.write_text(json.dumps({'version': '2023-06-01'}))
        assert DocumentLoader().load(str(path)) == {'version': '2023-06-01'}

    def test_missing_file(self, tmp_path):
        with pytest.raises(SchemaLoadError) as exc_info:
            DocumentLoader().load(tmp_path / 'missing.yaml')
        assert isinstance(exc_info.value.cause, FileNotFoundError)

    def test_malformed_json(self, tmp_path):
        path = tmp_path / 'broken.json'
        path.write_text('{"openapi": ')
        with pytest.raises(SchemaLoadError):
            DocumentLoader().load(path)

    def test_non_mapping_root(self, tmp_path):
        path = tmp_path / 'list.yaml'
        path.write_text('- a\n- b\n')
        with pytest.raises(SchemaLoadError) as exc_info:
            DocumentLoader().load(path)
        assert 'mapping' in str(exc_info.value)

    def test_external_reference_is_inlined(self, tmp_path):
        (tmp_path / 'schemas.yaml').write_text(
            yaml.safe_dump(
                {
                    'Message': {
                        'type': 'object',
                        'properties': {'role': {'$ref': '#/Role'}},
                    },
                    'Role': {'type': 'string', 'enum': ['user', 'assistant']},
                }
            )
        )
        root = tmp_path / 'api.yaml'
        root.write_text(
            yaml.safe_dump(
                {
                    'components': {
                        'schemas': {
                            'Message': {'$ref': 'schemas.yaml#/Message'},
                            'Local': {'$ref': '#/components/schemas/Message'},
                        }
                    }
                }
            )
        )
        loaded = DocumentLoader().load(root)
        message = loaded['components']['schemas']['Message']
        assert message['type'] == 'object'
        # refs local to the external file resolve against that file
        assert message['properties']['role']['enum'] == ['user', 'assistant']
        # refs local to the root document are left alone
        assert loaded['components']['schemas']['Local'] == {
            '$ref': '#/components/schemas/Message'
        }

    def test_external_target_is_shared(self, tmp_path):
        (tmp_path / 'common.json').write_text(json.dumps({'Id': {'type': 'string'}}))
        root = tmp_path / 'api.json'
        root.write_text(
            json.dumps(
                {
                    'a': {'$ref': 'common.json#/Id'},
                    'b': {'$ref': './common.json#/Id'},
                }
            )
        )
        loaded = DocumentLoader().load(root)
        assert loaded['a'] is loaded['b']

    def test_cycle_between_files_terminates(self, tmp_path):
        (tmp_path / 'node.yaml').write_text(
            yaml.safe_dump(
                {
                    'Node': {
                        'type': 'object',
                        'properties': {'next': {'$ref': '#/Node'}},
                    }
                }
            )
        )
        root = tmp_path / 'api.yaml'
        root.write_text(yaml.safe_dump({'Node': {'$ref': 'node.yaml#/Node'}}))
        loaded = DocumentLoader().load(root)
        node = loaded['Node']
        assert node['properties']['next'] is node

    def test_external_refs_can_be_disabled(self, tmp_path):
        root = tmp_path / 'api.yaml'
        root.write_text(yaml.safe_dump({'a': {'$ref': 'missing.yaml#/X'}}))
        loaded = DocumentLoader(resolve_external_refs=False).load(root)
        assert loaded == {'a': {'$ref': 'missing.yaml#/X'}}

    def test_missing_external_pointer(self, tmp_path):
        (tmp_path / 'common.yaml').write_text(yaml.safe_dump({'Id': {'type': 'string'}}))
        root = tmp_path / 'api.yaml'
        root.write_text(yaml.safe_dump({'a': {'$ref': 'common.yaml#/Nope'}}))
        with pytest.raises(SchemaLoadError):
            DocumentLoader().load(root)

    def test_load_from_url(self):
        response = httpx.Response(
            200,
            text='openapi: 3.1.0\npaths: {}\n',
            headers={'content-type': 'application/yaml'},
            request=httpx.Request('GET', 'https://api.example.com/openapi.yaml'),
        )
        client = MagicMock(spec=httpx.Client)
        client.get.return_value = response

        loaded = DocumentLoader(http_client=client).load(
            'https://api.example.com/openapi.yaml'
        )
        assert loaded == {'openapi': '3.1.0', 'paths': {}}
        client.get.assert_called_once_with('https://api.example.com/openapi.yaml')

    def test_http_error(self):
        response = httpx.Response(
            404, request=httpx.Request('GET', 'https://api.example.com/openapi.json')
        )
        client = MagicMock(spec=httpx.Client)
        client.get.return_value = response

        with pytest.raises(SchemaLoadError) as exc_info:
            DocumentLoader(http_client=client).load('https://api.example.com/openapi.json')
        assert isinstance(exc_info.value.cause, httpx.HTTPStatusError)
