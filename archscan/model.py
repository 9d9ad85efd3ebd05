"""Architecture model: components, relations and the component registry."""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional


class ComponentKind(str, Enum):
    """Architectural categories assigned by the classifiers."""

    CONTROLLER = "controller"
    ENTITY = "entity"
    REPOSITORY = "repository"
    SERVICE = "service"
    EVENT_LISTENER = "event_listener"
    EVENT_SUBSCRIBER = "event_subscriber"


class RelationKind(str, Enum):
    """Kinds of directed edges between components."""

    USES = "uses"
    EXTENDS = "extends"
    IMPLEMENTS = "implements"
    MANAGES = "manages"
    DEPENDS = "depends"


DEFAULT_LAYERS: dict[str, tuple[str, ...]] = {
    "presentation": ("controller", "command", "form"),
    "application": ("service", "handler", "manager"),
    "domain": ("entity", "model", "valueobject"),
    "infrastructure": ("repository", "gateway", "adapter"),
}

_ID_SEPARATORS = re.compile(r"[^0-9a-z]+")


def _kind_value(kind: str | Enum) -> str:
    return kind.value if isinstance(kind, Enum) else str(kind)


def make_component_id(prefix: str | Enum, qualified_name: str) -> str:
    """Build a deterministic component id.

    Args:
        prefix: Kind prefix (e.g. "controller").
        qualified_name: Namespace-qualified class name (e.g. "App\\Controller\\Home").

    Returns:
        Lowercased id with non-alphanumeric separators collapsed to "_",
        e.g. "controller_app_controller_home".
    """
    raw = f"{_kind_value(prefix)}_{qualified_name}".lower()
    return _ID_SEPARATORS.sub("_", raw).strip("_")


@dataclass
class Component:
    """A classified architectural unit derived from one source class."""

    id: str
    name: str
    kind: str
    description: str = ""
    technology: str = "PHP"
    metadata: dict[str, Any] = field(default_factory=dict)
    namespace: Optional[str] = None
    file_path: Optional[str] = None
    layer: str = ""

    def __post_init__(self) -> None:
        self.kind = _kind_value(self.kind)
        object.__setattr__(self, "_frozen_id", self.id)

    def __setattr__(self, name: str, value: Any) -> None:
        # id is fixed once the component exists
        if name == "id" and hasattr(self, "_frozen_id"):
            raise AttributeError("Component id is immutable")
        super().__setattr__(name, value)

    @property
    def qualified_name(self) -> str:
        """Namespace-qualified class name."""
        if self.namespace:
            return f"{self.namespace}\\{self.name}"
        return self.name

    @property
    def short_name(self) -> str:
        """Last segment of the name when it is namespace-qualified."""
        if self.namespace is not None:
            return self.name.split("\\")[-1]
        return self.name

    def add_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = value

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-ready dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "kind": self.kind,
            "description": self.description,
            "technology": self.technology,
            "namespace": self.namespace,
            "file_path": self.file_path,
            "layer": self.layer,
            "metadata": self.metadata,
        }


@dataclass(eq=False)
class Relation:
    """A directed, kind-tagged edge between two components.

    Identity is (from_id, to_id, kind); description and technology are
    presentation only.
    """

    from_id: str
    to_id: str
    kind: str = RelationKind.USES.value
    description: str = ""
    technology: str = ""

    def __post_init__(self) -> None:
        self.kind = _kind_value(self.kind)

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.from_id, self.to_id, self.kind)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Relation):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def to_dict(self) -> dict[str, Any]:
        return {
            "from": self.from_id,
            "to": self.to_id,
            "kind": self.kind,
            "description": self.description,
            "technology": self.technology,
        }


class Architecture:
    """Registry of the components and relations discovered in one scan."""

    def __init__(
        self,
        name: str = "System Architecture",
        description: str = "",
        layers: Optional[Mapping[str, tuple[str, ...] | list[str]]] = None,
    ):
        """Initialize an empty registry.

        Args:
            name: Display name of the system.
            description: Free-text description.
            layers: Layer table (layer name -> kind strings). Defaults to
                DEFAULT_LAYERS.

        Raises:
            ValueError: If two layers claim the same kind.
        """
        self.name = name
        self.description = description
        self._components: dict[str, Component] = {}
        self._relations: list[Relation] = []
        self._relation_keys: set[tuple[str, str, str]] = set()
        self._relation_lock = threading.Lock()
        self._layers = self._build_layers(layers if layers is not None else DEFAULT_LAYERS)
        self._metadata: dict[str, Any] = {}
        self._infrastructures: dict[str, dict[str, Any]] = {}
        self._external_systems: dict[str, dict[str, str]] = {}
        self._data_flows: list[dict[str, str]] = []
        self._security_measures: dict[str, dict[str, str]] = {}

    @staticmethod
    def _build_layers(
        layers: Mapping[str, tuple[str, ...] | list[str]],
    ) -> dict[str, tuple[str, ...]]:
        claimed: dict[str, str] = {}
        table: dict[str, tuple[str, ...]] = {}
        for layer, kinds in layers.items():
            normalized = tuple(k.lower() for k in kinds)
            for kind in normalized:
                if kind in claimed and claimed[kind] != layer:
                    raise ValueError(
                        f"Kind '{kind}' claimed by layers '{claimed[kind]}' and '{layer}'"
                    )
                claimed[kind] = layer
            table[layer] = normalized
        return table

    # Components

    def add_component(self, component: Component) -> "Architecture":
        self._components[component.id] = component
        return self

    def create_and_add_component(self, kind: str, name: str, layer: str = "") -> "Architecture":
        """Create a component whose id and name are both `name`, and add it."""
        return self.add_component(Component(id=name, name=name, kind=kind, layer=layer))

    def get_component(self, component_id: str) -> Optional[Component]:
        return self._components.get(component_id)

    @property
    def components(self) -> Mapping[str, Component]:
        """Read-only view of components keyed by id, in insertion order."""
        return MappingProxyType(self._components)

    def components_by_kind(self, kind: str | Enum) -> list[Component]:
        wanted = _kind_value(kind)
        return [c for c in self._components.values() if c.kind == wanted]

    def has_components(self) -> bool:
        return bool(self._components)

    # Relations

    def add_relation(self, relation: Relation) -> bool:
        """Insert a relation unless an equal one is already present.

        The membership check and the append happen under one lock, so
        concurrent callers cannot insert duplicates.

        Returns:
            True if the relation was inserted, False if it was a duplicate.
        """
        with self._relation_lock:
            if relation.key in self._relation_keys:
                return False
            self._relation_keys.add(relation.key)
            self._relations.append(relation)
            return True

    def create_and_add_relation(
        self,
        from_id: str,
        to_id: str,
        kind: str | Enum = RelationKind.USES,
        technology: str = "",
    ) -> bool:
        return self.add_relation(Relation(from_id, to_id, _kind_value(kind), "", technology))

    @property
    def relations(self) -> list[Relation]:
        return list(self._relations)

    def relations_from(self, component_id: str) -> list[Relation]:
        return [r for r in self._relations if r.from_id == component_id]

    def relations_to(self, component_id: str) -> list[Relation]:
        return [r for r in self._relations if r.to_id == component_id]

    def has_relations(self) -> bool:
        return bool(self._relations)

    # Layers

    @property
    def layers(self) -> dict[str, list[str]]:
        return {layer: list(kinds) for layer, kinds in self._layers.items()}

    def layer_for_kind(self, kind: str | Enum) -> Optional[str]:
        """Return the layer claiming `kind` (case-insensitive), or None."""
        wanted = _kind_value(kind).lower()
        for layer, kinds in self._layers.items():
            if wanted in kinds:
                return layer
        return None

    # Metadata

    def set_metadata(self, key: str, value: Any) -> None:
        self._metadata[key] = value

    @property
    def metadata(self) -> dict[str, Any]:
        return dict(self._metadata)

    # Side-channel records filled by infrastructure/integration collaborators

    def add_infrastructure(
        self,
        infra_id: str,
        name: str,
        infra_type: str,
        properties: Optional[dict[str, Any]] = None,
    ) -> "Architecture":
        self._infrastructures[infra_id] = {
            "name": name,
            "type": infra_type,
            "properties": dict(properties or {}),
        }
        return self

    @property
    def infrastructures(self) -> dict[str, dict[str, Any]]:
        return dict(self._infrastructures)

    def add_external_system(
        self, system_id: str, name: str, system_type: str, technology: str
    ) -> "Architecture":
        self._external_systems[system_id] = {
            "name": name,
            "type": system_type,
            "technology": technology,
        }
        return self

    @property
    def external_systems(self) -> dict[str, dict[str, str]]:
        return dict(self._external_systems)

    def add_data_flow(
        self,
        from_id: str,
        to_id: str,
        data: str,
        frequency: str = "",
        protocol: str = "",
    ) -> "Architecture":
        self._data_flows.append({
            "from": from_id,
            "to": to_id,
            "data": data,
            "frequency": frequency,
            "protocol": protocol,
        })
        return self

    @property
    def data_flows(self) -> list[dict[str, str]]:
        return list(self._data_flows)

    def add_security_measure(
        self, measure_id: str, name: str, measure_type: str, scope: str
    ) -> "Architecture":
        self._security_measures[measure_id] = {
            "name": name,
            "type": measure_type,
            "scope": scope,
        }
        return self

    @property
    def security_measures(self) -> dict[str, dict[str, str]]:
        return dict(self._security_measures)

    # Summary

    def statistics(self) -> dict[str, Any]:
        """Summarize the registry contents.

        Returns:
            Totals for every record type plus component counts grouped by
            kind and by layer.
        """
        by_kind: dict[str, int] = {}
        by_layer: dict[str, int] = {}

        for component in self._components.values():
            by_kind[component.kind] = by_kind.get(component.kind, 0) + 1
            layer = self.layer_for_kind(component.kind)
            if layer is not None:
                by_layer[layer] = by_layer.get(layer, 0) + 1

        return {
            "total_components": len(self._components),
            "total_relations": len(self._relations),
            "total_data_flows": len(self._data_flows),
            "total_external_systems": len(self._external_systems),
            "total_infrastructures": len(self._infrastructures),
            "total_security_measures": len(self._security_measures),
            "components_by_kind": by_kind,
            "components_by_layer": by_layer,
        }
