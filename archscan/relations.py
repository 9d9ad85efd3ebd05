"""Symbol resolution and relation inference between components.

Two passes over a populated Architecture:

1. Build a frozen symbol table mapping class names (qualified and bare) to
   component ids.
2. Re-parse each component's source file, collect the type names it refers
   to (supertype, interfaces, constructor parameter types, `new T` and
   `T::method()` expressions, class constants handed to the parent
   constructor) and resolve them through the table.

Every resolved (from, to) pair becomes one typed Relation.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from archscan.model import Architecture, Component, ComponentKind, Relation, RelationKind
from archscan.php_class import ClassInfo, inspect
from archscan.php_parser import (
    DEFAULT_MAX_FILE_SIZE,
    NAME_NODE_TYPES,
    first_child_of_type,
    name_text,
    normalize_name,
    parse_file,
    walk,
)

logger = logging.getLogger(__name__)

SymbolTable = Mapping[str, str]


def build_symbol_table(components: Iterable[Component]) -> SymbolTable:
    """Map qualified and bare class names to component ids.

    On a bare-name collision the later component wins.

    Returns:
        Read-only mapping.
    """
    table: dict[str, str] = {}
    for component in components:
        table[component.qualified_name] = component.id

        previous = table.get(component.name)
        if previous is not None and previous != component.id:
            logger.debug(
                "Bare name %s maps to %s, replacing %s", component.name, component.id, previous
            )
        table[component.name] = component.id
    return MappingProxyType(table)


def referenced_names(root, info: Optional[ClassInfo] = None) -> list[str]:
    """Type names referenced from a parsed file, in first-seen order.

    Positions: supertype, implemented interfaces, constructor parameter
    types (one level of `?T` unwrapped), class constants passed to the
    parent constructor, and every `new T(...)` / `T::m(...)` in the file.
    """
    names: list[str] = []
    if info is None:
        info = inspect(root)
    if info is not None:
        if info.parent:
            names.append(info.parent)
        names.extend(info.interfaces)
        constructor = info.constructor
        if constructor is not None:
            names.extend(p.type_name for p in constructor.parameters if p.type_name)
            names.extend(arg for arg in constructor.parent_constructor_args if arg)

    for node in walk(root):
        if node.type == "object_creation_expression":
            target = name_text(first_child_of_type(node, *NAME_NODE_TYPES))
            if target:
                names.append(target)
        elif node.type == "scoped_call_expression":
            target = name_text(node.child_by_field_name("scope"))
            if target:
                names.append(target)

    return names


def resolve_name(name: str, symbols: SymbolTable, info: Optional[ClassInfo] = None) -> Optional[str]:
    """Resolve a referenced class name to a component id.

    Tries the name as written (qualified names only), then its `use` import,
    then the name inside the file's own namespace, then the bare last segment.
    """
    name = normalize_name(name)
    candidates = [name] if "\\" in name else []

    if info is not None:
        head, _, rest = name.partition("\\")
        imported = info.imports.get(head)
        if imported:
            candidates.append(f"{imported}\\{rest}" if rest else imported)
        if info.namespace:
            candidates.append(f"{info.namespace}\\{name}")

    candidates.append(name.split("\\")[-1])

    for candidate in candidates:
        component_id = symbols.get(candidate)
        if component_id is not None:
            return component_id
    return None


@dataclass(frozen=True)
class RelationRule:
    from_kind: Optional[str]
    to_kind: Optional[str]
    kind: RelationKind
    description: str
    technology: str

    def matches(self, from_kind: str, to_kind: str) -> bool:
        return (self.from_kind is None or self.from_kind == from_kind) and (
            self.to_kind is None or self.to_kind == to_kind
        )


# First match wins
RELATION_RULES: tuple[RelationRule, ...] = (
    RelationRule(ComponentKind.CONTROLLER.value, ComponentKind.SERVICE.value,
                 RelationKind.USES, "Calls service methods", "Dependency Injection"),
    RelationRule(ComponentKind.CONTROLLER.value, ComponentKind.REPOSITORY.value,
                 RelationKind.USES, "Data access", "Dependency Injection"),
    RelationRule(ComponentKind.SERVICE.value, ComponentKind.REPOSITORY.value,
                 RelationKind.USES, "Performs data operations", "Method Call"),
    RelationRule(ComponentKind.REPOSITORY.value, ComponentKind.ENTITY.value,
                 RelationKind.MANAGES, "CRUD operations", "Doctrine ORM"),
    RelationRule(None, ComponentKind.ENTITY.value,
                 RelationKind.DEPENDS, "Uses entity", "Object Reference"),
)


def create_relation(source: Component, target: Component) -> Relation:
    """Type the edge source -> target from the pair of component kinds."""
    for rule in RELATION_RULES:
        if rule.matches(source.kind, target.kind):
            return Relation(source.id, target.id, rule.kind.value, rule.description, rule.technology)

    return Relation(
        source.id,
        target.id,
        RelationKind.USES.value,
        f"{source.kind[:1].upper()}{source.kind[1:]} uses {target.kind}",
        "Dependency",
    )


class RelationAnalyzer:
    """Infers relations between the components of an Architecture."""

    def __init__(self, max_workers: int = 1, max_file_size: int = DEFAULT_MAX_FILE_SIZE):
        """Initialize analyzer.

        Args:
            max_workers: Threads used for the dependency pass. 1 runs it inline.
            max_file_size: Files larger than this are skipped.
        """
        self.max_workers = max_workers
        self.max_file_size = max_file_size

    def analyze(self, architecture: Architecture) -> None:
        """Add inferred relations to `architecture` in place."""
        components = list(architecture.components.values())
        symbols = build_symbol_table(components)

        if self.max_workers > 1 and len(components) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                dependencies = list(executor.map(lambda c: self.dependencies_of(c, symbols), components))
        else:
            dependencies = [self.dependencies_of(c, symbols) for c in components]

        added = 0
        for source, target_ids in zip(components, dependencies):
            for target_id in target_ids:
                if target_id == source.id:
                    continue
                target = architecture.get_component(target_id)
                if target is None:
                    continue
                if architecture.add_relation(create_relation(source, target)):
                    added += 1

        logger.info("Inferred %d relations between %d components", added, len(components))

    def dependencies_of(self, component: Component, symbols: SymbolTable) -> list[str]:
        """Resolved component ids referenced from the component's file.

        Returns:
            Unique ids in first-seen order; empty when the file is missing or
            does not parse.
        """
        if component.file_path is None or not Path(component.file_path).is_file():
            if component.file_path is not None:
                logger.debug("Source file missing for %s: %s", component.id, component.file_path)
            return []

        result = parse_file(component.file_path, self.max_file_size)
        if not result.ok:
            logger.debug("Skipping relations of %s: %s", component.id, result.error)
            return []

        info = inspect(result.root)
        target_ids: list[str] = []
        for name in referenced_names(result.root, info):
            target_id = resolve_name(name, symbols, info)
            if target_id is not None and target_id not in target_ids:
                target_ids.append(target_id)
        return target_ids
