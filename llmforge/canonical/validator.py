"""Structural and semantic validation of canonical schemas.

Structural checks come from the pydantic models themselves. The semantic
checks cover what a single model cannot see: every ``type_id`` resolving in
the schema's type list, endpoint authentication naming a known scheme,
unique endpoints, and objects whose ``required`` list agrees with the flags
on their properties.
"""

import dataclasses
from collections import Counter
from collections.abc import Iterator
from typing import Any

from pydantic import ValidationError

from llmforge.canonical.models import (
    ArrayType,
    CanonicalSchema,
    ObjectType,
    TypeReference,
    UnionType,
)

__all__ = [
    'ValidationIssue',
    'ValidationResult',
    'SchemaValidator',
    'collect_type_references',
]


@dataclasses.dataclass(frozen=True)
class ValidationIssue:
    path: str
    message: str
    code: str

    def __str__(self) -> str:
        return f'{self.path}: {self.message}' if self.path else self.message


@dataclasses.dataclass
class ValidationResult:
    valid: bool
    issues: list[ValidationIssue] = dataclasses.field(default_factory=list)

    def __bool__(self) -> bool:
        return self.valid


def collect_type_references(
    schema: CanonicalSchema,
) -> Iterator[tuple[str, TypeReference]]:
    """Yield ``(path, reference)`` for every type reference in the schema."""
    for idx, definition in enumerate(schema.types):
        base = f'types[{idx}]'
        if isinstance(definition, ObjectType):
            for prop_idx, prop in enumerate(definition.properties):
                yield f'{base}.properties[{prop_idx}].type', prop.type
            if isinstance(definition.additional_properties, TypeReference):
                yield f'{base}.additionalProperties', definition.additional_properties
        elif isinstance(definition, ArrayType):
            yield f'{base}.items', definition.items
        elif isinstance(definition, UnionType):
            for variant_idx, variant in enumerate(definition.variants):
                yield f'{base}.variants[{variant_idx}]', variant

    for idx, endpoint in enumerate(schema.endpoints):
        base = f'endpoints[{idx}]'
        for param_idx, param in enumerate(endpoint.parameters):
            yield f'{base}.parameters[{param_idx}].type', param.type
        if endpoint.request_body is not None:
            yield f'{base}.requestBody.type', endpoint.request_body.type
        for resp_idx, response in enumerate(endpoint.responses):
            if response.type is not None:
                yield f'{base}.responses[{resp_idx}].type', response.type
            for header_idx, header in enumerate(response.headers or ()):
                yield (
                    f'{base}.responses[{resp_idx}].headers[{header_idx}].type',
                    header.type,
                )

    for idx, error in enumerate(schema.errors):
        if error.type is not None:
            yield f'errors[{idx}].type', error.type


class SchemaValidator:
    """Validates canonical schemas and reports every problem found.

    Example:
        >>> result = SchemaValidator().validate(schema)
        >>> if not result.valid:
        ...     for issue in result.issues:
        ...         print(issue)
    """

    def validate(self, schema: CanonicalSchema | dict[str, Any]) -> ValidationResult:
        if not isinstance(schema, CanonicalSchema):
            try:
                schema = CanonicalSchema.model_validate(schema)
            except ValidationError as e:
                issues = [
                    ValidationIssue(
                        path='.'.join(str(part) for part in error['loc']),
                        message=error['msg'],
                        code=error['type'],
                    )
                    for error in e.errors()
                ]
                return ValidationResult(valid=False, issues=issues)

        issues: list[ValidationIssue] = []
        self._validate_type_ids(schema, issues)
        self._validate_type_references(schema, issues)
        self._validate_auth_references(schema, issues)
        self._validate_endpoint_uniqueness(schema, issues)
        self._validate_required_properties(schema, issues)
        return ValidationResult(valid=not issues, issues=issues)

    def _validate_type_ids(
        self, schema: CanonicalSchema, issues: list[ValidationIssue]
    ) -> None:
        counts = Counter(definition.id for definition in schema.types)
        for type_id, count in counts.items():
            if count > 1:
                issues.append(
                    ValidationIssue(
                        path='types',
                        message=f"Type id '{type_id}' is defined {count} times",
                        code='duplicate_type_id',
                    )
                )

    def _validate_type_references(
        self, schema: CanonicalSchema, issues: list[ValidationIssue]
    ) -> None:
        known = {definition.id for definition in schema.types}
        for path, reference in collect_type_references(schema):
            if reference.type_id not in known:
                issues.append(
                    ValidationIssue(
                        path=f'{path}.typeId',
                        message=f"Type '{reference.type_id}' not found",
                        code='invalid_type_reference',
                    )
                )

    def _validate_auth_references(
        self, schema: CanonicalSchema, issues: list[ValidationIssue]
    ) -> None:
        known = {scheme.id for scheme in schema.authentication}
        for idx, endpoint in enumerate(schema.endpoints):
            for auth_idx, scheme_id in enumerate(endpoint.authentication):
                if scheme_id not in known:
                    issues.append(
                        ValidationIssue(
                            path=f'endpoints[{idx}].authentication[{auth_idx}]',
                            message=f"Authentication scheme '{scheme_id}' not found",
                            code='invalid_auth_reference',
                        )
                    )

    def _validate_endpoint_uniqueness(
        self, schema: CanonicalSchema, issues: list[ValidationIssue]
    ) -> None:
        seen_operations: set[str] = set()
        seen_routes: set[tuple[str, str]] = set()
        for idx, endpoint in enumerate(schema.endpoints):
            if endpoint.operation_id in seen_operations:
                issues.append(
                    ValidationIssue(
                        path=f'endpoints[{idx}].operationId',
                        message=f"Duplicate operation id '{endpoint.operation_id}'",
                        code='duplicate_endpoint',
                    )
                )
            route = (endpoint.method.value, endpoint.path)
            if route in seen_routes:
                issues.append(
                    ValidationIssue(
                        path=f'endpoints[{idx}]',
                        message=f'Duplicate endpoint {route[0]} {route[1]}',
                        code='duplicate_endpoint',
                    )
                )
            seen_operations.add(endpoint.operation_id)
            seen_routes.add(route)

    def _validate_required_properties(
        self, schema: CanonicalSchema, issues: list[ValidationIssue]
    ) -> None:
        for idx, definition in enumerate(schema.types):
            if not isinstance(definition, ObjectType):
                continue
            required = set(definition.required)
            for prop_idx, prop in enumerate(definition.properties):
                if prop.required != (prop.name in required):
                    issues.append(
                        ValidationIssue(
                            path=f'types[{idx}].properties[{prop_idx}].required',
                            message=(
                                f"Property '{prop.name}' of '{definition.name}' has "
                                f'required={prop.required} but the object says '
                                f'{prop.name in required}'
                            ),
                            code='required_mismatch',
                        )
                    )
