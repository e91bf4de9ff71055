"""Tests for the per-parse conversion context and reference resolver."""

import pytest

from llmforge.canonical import PrimitiveKind, PrimitiveType
from llmforge.exceptions import AmbiguousArrayItemsError, UnresolvedReferenceError
from llmforge.parsers.resolver import ConversionContext, ReferenceResolver, placeholder_type


def _string(type_id: str, name: str = 'string') -> PrimitiveType:
    return PrimitiveType(id=type_id, name=name, primitive_kind=PrimitiveKind.STRING)


@pytest.fixture
def context():
    return ConversionContext()


@pytest.fixture
def resolver(context):
    return ReferenceResolver(context)


class TestConversionContext:
    def test_allocates_sequential_ids(self, context):
        assert context.allocate() == 'type_0'
        assert context.allocate() == 'type_1'
        assert context.type_count == 2

    def test_types_keep_allocation_order(self, context):
        first = context.allocate()
        second = context.allocate()
        # filled out of order, listed in id order
        context.fill(second, _string(second))
        context.fill(first, _string(first))
        assert [t.id for t in context.types] == ['type_0', 'type_1']

    def test_unfilled_slot_is_an_error(self, context):
        context.allocate()
        with pytest.raises(RuntimeError):
            context.types

    def test_fill_twice_is_rejected(self, context):
        type_id = context.allocate()
        context.fill(type_id, _string(type_id))
        with pytest.raises(ValueError):
            context.fill(type_id, _string(type_id))

    def test_fill_with_mismatched_id_is_rejected(self, context):
        type_id = context.allocate()
        with pytest.raises(ValueError):
            context.fill(type_id, _string('type_5'))

    def test_record_routes_by_severity(self, context):
        context.record(UnresolvedReferenceError('#/x'))
        context.record(AmbiguousArrayItemsError('Things'))
        assert len(context.warnings) == 1
        assert len(context.errors) == 1
        assert len(context.issues) == 2

    def test_contexts_are_independent(self):
        one = ConversionContext()
        two = ConversionContext()
        one.allocate()
        assert two.allocate() == 'type_0'


class TestReferenceResolver:
    def test_same_reference_resolves_once(self, context, resolver):
        calls = []

        def build(type_id):
            calls.append(type_id)
            return _string(type_id, 'Name')

        first = resolver.resolve({'type': 'string'}, 'Name', build, ref='#/components/schemas/Name')
        second = resolver.resolve({'type': 'string'}, 'Name', build, ref='#/components/schemas/Name')
        assert first == second == 'type_0'
        assert calls == ['type_0']

    def test_same_node_resolves_once(self, resolver):
        node = {'type': 'string'}
        first = resolver.resolve(node, 'A', lambda tid: _string(tid, 'A'), pointer='X.a')
        second = resolver.resolve(node, 'B', lambda tid: _string(tid, 'B'), pointer='Y.b')
        assert first == second

    def test_equal_but_distinct_nodes_are_distinct_types(self, resolver):
        first = resolver.resolve({'type': 'string'}, 'A', lambda tid: _string(tid, 'A'))
        second = resolver.resolve({'type': 'string'}, 'B', lambda tid: _string(tid, 'B'))
        assert first != second

    def test_pointer_tier(self, resolver):
        first = resolver.resolve(None, 'string', lambda tid: _string(tid), pointer='primitive:string')
        second = resolver.resolve(None, 'string', lambda tid: _string(tid), pointer='primitive:string')
        assert first == second

    def test_shared_pointer_does_not_merge_containers(self, context, resolver):
        first = resolver.resolve({'type': 'string'}, 'A', lambda tid: _string(tid, 'A'), pointer='Foo.bar')
        second = resolver.resolve({'type': 'integer'}, 'B', lambda tid: _string(tid, 'B'), pointer='Foo.bar')
        assert first != second
        assert context.pointers == {}

    def test_lookup_order(self, context, resolver):
        node = {'type': 'string'}
        by_ref = resolver.resolve({}, 'R', lambda tid: _string(tid, 'R'), ref='#/r')
        by_node = resolver.resolve(node, 'N', lambda tid: _string(tid, 'N'))
        assert resolver.lookup(node, ref='#/r') == by_ref
        assert resolver.lookup(node) == by_node
        assert resolver.lookup({'other': True}) is None

    def test_id_registered_before_build(self, context, resolver):
        """A self-referencing node finds its own id while it is being built."""
        node = {'type': 'object'}
        seen = []

        def build(type_id):
            seen.append(resolver.lookup(node))
            return _string(type_id, 'Tree')

        type_id = resolver.resolve(node, 'Tree', build, ref='#/components/schemas/Tree')
        assert seen == [type_id]

    def test_issue_in_build_becomes_placeholder(self, context, resolver):
        def build(type_id):
            raise AmbiguousArrayItemsError('Things')

        type_id = resolver.resolve({'type': 'array'}, 'Things', build)
        definition = context.get(type_id)
        assert definition.is_placeholder
        assert definition.name == 'Things'
        assert len(context.errors) == 1

    def test_placeholder_is_shared_per_reference(self, context, resolver):
        issue = UnresolvedReferenceError('#/components/schemas/Missing', 'no such component')
        first = resolver.placeholder('Missing', issue, ref='#/components/schemas/Missing')
        second = resolver.placeholder('Missing', issue, ref='#/components/schemas/Missing')
        assert first == second
        assert context.type_count == 1
        assert len(context.warnings) == 1


def test_placeholder_type_shape():
    placeholder = placeholder_type('type_3', 'Missing', 'not found')
    assert placeholder.kind == 'object'
    assert placeholder.additional_properties is True
    assert placeholder.metadata == {'placeholder': True, 'reason': 'not found'}
