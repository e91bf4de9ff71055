"""Per-parse memoization engine shared by every frontend.

A ``ConversionContext`` holds all mutable state of one ``parse`` call: the
type id counter, the three lookup caches, the growing type list and the
collected issues. Nothing here is global, so two parses never interfere.

The ``ReferenceResolver`` turns one raw schema node into exactly one
canonical type id. Lookups go through three tiers in order:

1. reference cache, keyed by the literal reference string (``$ref``);
2. identity cache, keyed by the in-memory identity of the node;
3. pointer cache, keyed by a structural path such as ``Message.content``.

The pointer tier only serves nodes without an identity of their own (a
primitive keyword, a missing or non-container schema). Pointers are built
from type names, and two different containers can end up with the same one.

On a miss a new id is allocated and registered in every applicable tier
*before* the node's children are converted, so a type that refers back to
itself (directly or through a chain) finds its own id instead of recursing
forever.
"""

import logging
from collections.abc import Callable
from typing import Any

from llmforge.canonical.models import ObjectType, TypeDefinition
from llmforge.exceptions import SchemaIssue

__all__ = ['ConversionContext', 'ReferenceResolver', 'placeholder_type']

logger = logging.getLogger(__name__)

TypeBuilder = Callable[[str], TypeDefinition]


def _has_identity(node: Any) -> bool:
    """Whether ``node`` is a container whose object identity is meaningful."""
    return node is not None and not isinstance(node, (str, bytes, int, float, bool))


def placeholder_type(type_id: str, name: str, reason: str) -> ObjectType:
    """An open object standing in for a type that could not be converted."""
    return ObjectType(
        id=type_id,
        name=name,
        additional_properties=True,
        metadata={'placeholder': True, 'reason': reason},
    )


class ConversionContext:
    """State owned by a single parse invocation.

    Type ids are allocated as ``type_<n>`` in first-encounter order and the
    type list keeps that order: slot ``n`` is reserved when ``type_<n>`` is
    allocated and filled once its definition is built.
    """

    def __init__(self):
        self.references: dict[str, str] = {}
        self.identities: dict[int, str] = {}
        self.pointers: dict[str, str] = {}
        self.warnings: list[str] = []
        self.errors: list[str] = []
        self.issues: list[SchemaIssue] = []
        self._slots: list[TypeDefinition | None] = []
        # keeps every identity-keyed node alive so its id() is not reused
        self._pinned: list[Any] = []

    @property
    def type_count(self) -> int:
        return len(self._slots)

    def allocate(self) -> str:
        type_id = f'type_{len(self._slots)}'
        self._slots.append(None)
        return type_id

    def fill(self, type_id: str, definition: TypeDefinition) -> None:
        index = self._index(type_id)
        if self._slots[index] is not None:
            raise ValueError(f"Type '{type_id}' is already defined")
        if definition.id != type_id:
            raise ValueError(
                f"Definition id '{definition.id}' does not match slot '{type_id}'"
            )
        self._slots[index] = definition

    def get(self, type_id: str) -> TypeDefinition | None:
        return self._slots[self._index(type_id)]

    def pin(self, node: Any) -> int:
        self._pinned.append(node)
        return id(node)

    @property
    def types(self) -> tuple[TypeDefinition, ...]:
        """Every completed definition, in id order."""
        pending = [f'type_{i}' for i, slot in enumerate(self._slots) if slot is None]
        if pending:
            raise RuntimeError(f'Types still being built: {", ".join(pending)}')
        return tuple(self._slots)

    def warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)

    def error(self, message: str) -> None:
        logger.error(message)
        self.errors.append(message)

    def record(self, issue: SchemaIssue) -> None:
        """Collect a node-level issue under its own severity."""
        self.issues.append(issue)
        if issue.severity == 'error':
            self.error(str(issue))
        else:
            self.warn(str(issue))

    @staticmethod
    def _index(type_id: str) -> int:
        return int(type_id.removeprefix('type_'))


class ReferenceResolver:
    """Converts raw nodes into canonical type ids, at most once per node.

    Example:
        >>> context = ConversionContext()
        >>> resolver = ReferenceResolver(context)
        >>> type_id = resolver.resolve(
        ...     node, 'Message', lambda tid: build_message(tid, node),
        ...     ref='#/components/schemas/Message',
        ... )
    """

    def __init__(self, context: ConversionContext):
        self.context = context

    def lookup(
        self, node: Any = None, ref: str | None = None, pointer: str | None = None
    ) -> str | None:
        if ref is not None and ref in self.context.references:
            return self.context.references[ref]
        if _has_identity(node):
            return self.context.identities.get(id(node))
        if pointer is not None and pointer in self.context.pointers:
            return self.context.pointers[pointer]
        return None

    def resolve(
        self,
        node: Any,
        name: str,
        build: TypeBuilder,
        ref: str | None = None,
        pointer: str | None = None,
    ) -> str:
        """Return the id for ``node``, building its definition on first sight.

        ``build`` receives the freshly allocated id and returns the finished
        definition. If it raises a ``SchemaIssue`` the issue is recorded and a
        placeholder with the same id takes the definition's place.
        """
        existing = self.lookup(node, ref=ref, pointer=pointer)
        if existing is not None:
            self._remember(existing, node, ref, pointer)
            return existing

        type_id = self.context.allocate()
        self._remember(type_id, node, ref, pointer)
        try:
            definition = build(type_id)
        except SchemaIssue as issue:
            self.context.record(issue)
            definition = placeholder_type(type_id, name, str(issue))
        self.context.fill(type_id, definition)
        return type_id

    def placeholder(
        self,
        name: str,
        issue: SchemaIssue,
        ref: str | None = None,
        pointer: str | None = None,
    ) -> str:
        """Record ``issue`` and substitute a placeholder type.

        A broken reference yields one placeholder no matter how often it is
        used; only its first use is reported.
        """
        existing = self.lookup(ref=ref, pointer=pointer)
        if existing is not None:
            return existing
        self.context.record(issue)
        type_id = self.context.allocate()
        self._remember(type_id, None, ref, pointer)
        self.context.fill(type_id, placeholder_type(type_id, name, str(issue)))
        return type_id

    def _remember(
        self, type_id: str, node: Any, ref: str | None, pointer: str | None
    ) -> None:
        if ref is not None:
            self.context.references.setdefault(ref, type_id)
        if _has_identity(node):
            if id(node) not in self.context.identities:
                self.context.identities[self.context.pin(node)] = type_id
        elif pointer is not None:
            self.context.pointers.setdefault(pointer, type_id)
