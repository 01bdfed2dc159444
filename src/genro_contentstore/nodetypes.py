# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Node type declarations and the type graph resolver.

Types are declared with TypeDeclaration and registered on a
TypeGraphResolver. Effective information (supertypes, child and property
definitions, subtypes) is derived by walking the declared graph on every
call, never cached, so registering or unregistering needs no invalidation.

Two resolve modes, fixed when the resolver is built:

- PERMISSIVE: any name resolves to a synthesized type with no declared
  information. Registry and subtype queries are not available.
- STRICT: only registered names resolve.

Example:
    >>> types = TypeGraphResolver(mode=ResolveMode.STRICT)
    >>> types.register_type(TypeDeclaration('nt:base', abstract=True))
    <RegisterResult.REGISTERED: 'registered'>
    >>> types.register_type(TypeDeclaration('my:folder'))
    <RegisterResult.REGISTERED: 'registered'>
    >>> types.effective_supertypes('my:folder')
    ['nt:base']
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterable, Iterator, TypeVar

from .closure import closure
from .constants import NT_BASE, NT_UNSTRUCTURED, RESIDUAL
from .exceptions import (
    AlreadyExistsError,
    NotFoundError,
    UnsupportedInCurrentModeError,
    UnsupportedOperationError,
)


class ResolveMode(Enum):
    """How unknown type names are handled."""

    PERMISSIVE = 'permissive'
    STRICT = 'strict'


class RegisterResult(Enum):
    """Outcome of a registration."""

    REGISTERED = 'registered'
    UPDATED = 'updated'


# ==================== Declarations ====================


@dataclass
class ChildDefinition:
    """A declared child node slot ('*' for residual)."""

    name: str
    required_types: tuple[str, ...] = (NT_BASE,)
    default_type: str | None = None
    autocreated: bool = False
    mandatory: bool = False
    protected: bool = False
    same_name_siblings: bool = False
    on_parent_version: str = 'COPY'
    declaring_type: str | None = None

    @property
    def is_residual(self) -> bool:
        return self.name == RESIDUAL


@dataclass
class PropertyDefinition:
    """A declared property slot ('*' for residual)."""

    name: str
    required_type: str = 'String'
    default_values: tuple[Any, ...] = ()
    multiple: bool = False
    autocreated: bool = False
    mandatory: bool = False
    protected: bool = False
    constraints: tuple[str, ...] = ()
    on_parent_version: str = 'COPY'
    declaring_type: str | None = None

    @property
    def is_residual(self) -> bool:
        return self.name == RESIDUAL


@dataclass
class TypeDeclaration:
    """Everything declared about one node type.

    Definitions without a declaring type are stamped with this type's
    name.
    """

    name: str
    supertypes: list[str] = field(default_factory=list)
    mixin: bool = False
    abstract: bool = False
    queryable: bool = True
    orderable_children: bool = False
    primary_item_name: str | None = None
    child_definitions: list[ChildDefinition] = field(default_factory=list)
    property_definitions: list[PropertyDefinition] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.supertypes = list(self.supertypes)
        self.child_definitions = _stamp(self.child_definitions, self.name)
        self.property_definitions = _stamp(self.property_definitions, self.name)


D = TypeVar('D', ChildDefinition, PropertyDefinition)


def _stamp(definitions: Iterable[D], type_name: str) -> list[D]:
    return [
        d if d.declaring_type else replace(d, declaring_type=type_name)
        for d in definitions
    ]


# ==================== NodeType view ====================


class NodeType:
    """Read-only view of a type, resolved through its TypeGraphResolver.

    A NodeType without a declaration is synthesized (permissive mode):
    only its name is known, so declared-information queries raise
    UnsupportedOperationError.
    """

    __slots__ = ('_resolver', 'name', '_declaration')

    def __init__(
        self,
        resolver: TypeGraphResolver,
        name: str,
        declaration: TypeDeclaration | None = None,
    ) -> None:
        self._resolver = resolver
        self.name = name
        self._declaration = declaration

    def __repr__(self) -> str:
        kind = 'synthesized' if self.is_synthesized else 'declared'
        return f"NodeType({self.name!r}, {kind})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NodeType):
            return NotImplemented
        return self.name == other.name

    def __hash__(self) -> int:
        return hash(self.name)

    @property
    def is_synthesized(self) -> bool:
        return self._declaration is None

    @property
    def declaration(self) -> TypeDeclaration:
        """The underlying declaration.

        Raises:
            UnsupportedOperationError: For synthesized types.
        """
        if self._declaration is None:
            raise UnsupportedOperationError(
                f"Type {self.name!r} was not declared"
            )
        return self._declaration

    # ==================== Declared information ====================

    @property
    def is_mixin(self) -> bool:
        return self.declaration.mixin

    @property
    def is_abstract(self) -> bool:
        return self.declaration.abstract

    @property
    def is_queryable(self) -> bool:
        return self.declaration.queryable

    @property
    def primary_item_name(self) -> str | None:
        return self.declaration.primary_item_name

    @property
    def has_orderable_child_nodes(self) -> bool:
        """Declared flag; synthesized types only know nt:unstructured."""
        if self._declaration is None:
            return self.name == NT_UNSTRUCTURED
        return self._declaration.orderable_children

    @property
    def declared_supertype_names(self) -> list[str]:
        return list(self.declaration.supertypes)

    @property
    def declared_supertypes(self) -> list[NodeType]:
        return [self._resolver.get_node_type(n) for n in self.declared_supertype_names]

    @property
    def declared_child_definitions(self) -> list[ChildDefinition]:
        return list(self.declaration.child_definitions)

    @property
    def declared_property_definitions(self) -> list[PropertyDefinition]:
        return list(self.declaration.property_definitions)

    # ==================== Effective information ====================

    @property
    def supertypes(self) -> list[NodeType]:
        return [self._resolver.get_node_type(n) for n in self.supertype_names]

    @property
    def supertype_names(self) -> list[str]:
        return self._resolver.effective_supertypes(self.name)

    @property
    def subtypes(self) -> list[NodeType]:
        return [self._resolver.get_node_type(n) for n in self._resolver.subtypes(self.name)]

    @property
    def declared_subtypes(self) -> list[NodeType]:
        return [
            self._resolver.get_node_type(n)
            for n in self._resolver.declared_subtypes(self.name)
        ]

    @property
    def child_definitions(self) -> list[ChildDefinition]:
        return self._resolver.effective_child_definitions(self.name)

    @property
    def property_definitions(self) -> list[PropertyDefinition]:
        return self._resolver.effective_property_definitions(self.name)

    def is_node_type(self, name: str) -> bool:
        """True if this type is ``name`` or inherits from it."""
        return self._resolver.is_node_type(self.name, name)

    # ==================== Not modelled ====================

    def can_add_child_node(self, name: str, type_name: str | None = None) -> bool:
        raise UnsupportedOperationError('can_add_child_node')

    def can_set_property(self, name: str, value: Any) -> bool:
        raise UnsupportedOperationError('can_set_property')

    def can_remove_node(self, name: str) -> bool:
        raise UnsupportedOperationError('can_remove_node')

    def can_remove_property(self, name: str) -> bool:
        raise UnsupportedOperationError('can_remove_property')


# ==================== Resolver ====================


class TypeGraphResolver:
    """Registry of type declarations and the graph queries over it.

    Attributes:
        mode: The ResolveMode, fixed at construction.
        base_type: Name of the universal base type appended to the
            supertypes of every strict, non-mixin type.
    """

    __slots__ = ('mode', 'base_type', '_declarations')

    def __init__(
        self,
        mode: ResolveMode = ResolveMode.PERMISSIVE,
        declarations: Iterable[TypeDeclaration] | None = None,
        base_type: str = NT_BASE,
    ) -> None:
        """Initialize the resolver.

        Args:
            mode: PERMISSIVE (default) or STRICT.
            declarations: Optional declarations to register right away
                (STRICT mode only).
            base_type: Name of the universal base type.
        """
        self.mode = mode
        self.base_type = base_type
        self._declarations: dict[str, TypeDeclaration] = {}
        if declarations:
            self.register_types(declarations)

    def __repr__(self) -> str:
        return f"TypeGraphResolver({self.mode.value}, {len(self._declarations)} types)"

    def __len__(self) -> int:
        return len(self._declarations)

    def __contains__(self, name: str) -> bool:
        return name in self._declarations

    @property
    def is_strict(self) -> bool:
        return self.mode is ResolveMode.STRICT

    def _require_strict(self, operation: str) -> None:
        if not self.is_strict:
            raise UnsupportedInCurrentModeError(
                f"{operation} is not available in {self.mode.value} mode"
            )

    def _declaration(self, name: str) -> TypeDeclaration:
        try:
            return self._declarations[name]
        except KeyError:
            raise NotFoundError(f"Node type not found: {name}") from None

    # ==================== Lookup ====================

    def get_node_type(self, name: str) -> NodeType:
        """Resolve a type name.

        Raises:
            NotFoundError: For blank names, and in STRICT mode for names
                that were never registered.
        """
        if not name or not name.strip():
            raise NotFoundError(f"Invalid node type name: {name!r}")
        if not self.is_strict:
            return NodeType(self, name)
        return NodeType(self, name, self._declaration(name))

    def has_node_type(self, name: str) -> bool:
        if not name or not name.strip():
            return False
        if not self.is_strict:
            return True
        return name in self._declarations

    def iter_node_types(self) -> Iterator[NodeType]:
        self._require_strict('iter_node_types')
        for name, declaration in list(self._declarations.items()):
            yield NodeType(self, name, declaration)

    def all_node_types(self) -> list[NodeType]:
        return list(self.iter_node_types())

    def primary_node_types(self) -> list[NodeType]:
        return [nt for nt in self.iter_node_types() if not nt.is_mixin]

    def mixin_node_types(self) -> list[NodeType]:
        return [nt for nt in self.iter_node_types() if nt.is_mixin]

    # ==================== Graph queries ====================

    def declared_supertypes(self, name: str) -> list[str]:
        """Declared supertype names ([] for synthesized types)."""
        if not self.is_strict:
            return []
        return list(self._declaration(name).supertypes)

    def effective_supertypes(self, name: str) -> list[str]:
        """All ancestors of ``name``, depth-first pre-order.

        Each ancestor appears once and ``name`` itself never does, even
        if the declared graph is cyclic. In STRICT mode the base type is
        appended last for non-mixin types other than the base itself,
        registered or not; resolving it later fails if it is missing.

        Raises:
            NotFoundError: If ``name`` or a declared ancestor is not
                registered (STRICT mode).
        """
        if not self.is_strict:
            return []
        declaration = self._declaration(name)
        result = closure(name, self.declared_supertypes)
        if (
            not declaration.mixin
            and name != self.base_type
            and self.base_type not in result
        ):
            result.append(self.base_type)
        return result

    def effective_child_definitions(self, name: str) -> list[ChildDefinition]:
        """Child definitions by name; own declarations win over inherited."""
        return list(self._merge_definitions(name, 'child_definitions').values())

    def effective_property_definitions(self, name: str) -> list[PropertyDefinition]:
        """Property definitions by name; own declarations win over inherited."""
        return list(self._merge_definitions(name, 'property_definitions').values())

    def _merge_definitions(self, name: str, attr: str) -> dict[str, Any]:
        if not self.is_strict:
            raise UnsupportedOperationError(
                f"Definitions of {name!r} were never declared"
            )
        merged: dict[str, Any] = {}
        for type_name in self.effective_supertypes(name) + [name]:
            for definition in getattr(self._declaration(type_name), attr):
                merged[definition.name] = definition
        return merged

    def subtypes(self, name: str) -> list[str]:
        """Registered types that inherit from ``name``."""
        self._require_strict('subtypes')
        return [
            other for other in list(self._declarations)
            if other != name and name in self.effective_supertypes(other)
        ]

    def declared_subtypes(self, name: str) -> list[str]:
        """Registered types that declare ``name`` as a direct supertype."""
        self._require_strict('declared_subtypes')
        return [
            other for other, declaration in self._declarations.items()
            if name in declaration.supertypes
        ]

    def is_node_type(self, name: str, candidate: str) -> bool:
        """True if ``name`` equals ``candidate`` or inherits from it."""
        if name == candidate:
            return True
        return candidate in self.effective_supertypes(name)

    # ==================== Registration ====================

    def register_type(
        self, declaration: TypeDeclaration, allow_update: bool = False
    ) -> RegisterResult:
        """Register one declaration.

        Raises:
            UnsupportedInCurrentModeError: In PERMISSIVE mode.
            AlreadyExistsError: If the name is taken and ``allow_update``
                is False.
        """
        self._require_strict('register_type')
        self._check_registrable(declaration, allow_update)
        existed = declaration.name in self._declarations
        self._declarations[declaration.name] = declaration
        return RegisterResult.UPDATED if existed else RegisterResult.REGISTERED

    def register_types(
        self, declarations: Iterable[TypeDeclaration], allow_update: bool = False
    ) -> list[NodeType]:
        """Register several declarations, all or nothing."""
        self._require_strict('register_types')
        declarations = list(declarations)
        for declaration in declarations:
            self._check_registrable(declaration, allow_update)
        for declaration in declarations:
            self._declarations[declaration.name] = declaration
        return [NodeType(self, d.name, d) for d in declarations]

    def unregister_type(self, name: str) -> None:
        """Remove a registered type.

        Raises:
            NotFoundError: If ``name`` is not registered.
        """
        self.unregister_types([name])

    def unregister_types(self, names: Iterable[str]) -> None:
        """Remove several types, all or nothing."""
        self._require_strict('unregister_types')
        names = list(names)
        for name in names:
            self._declaration(name)
        for name in names:
            self._declarations.pop(name, None)

    def _check_registrable(
        self, declaration: TypeDeclaration, allow_update: bool
    ) -> None:
        if not declaration.name or not declaration.name.strip():
            raise NotFoundError(f"Invalid node type name: {declaration.name!r}")
        if declaration.name in self._declarations and not allow_update:
            raise AlreadyExistsError(f"Node type already exists: {declaration.name}")
