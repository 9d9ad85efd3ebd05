"""Per-kind component classifiers.

Each classifier enumerates its candidate files, inspects every file once and
applies an ordered table of recognition rules. A rule is a pure predicate
over a ClassInfo; the first rule that matches is enough to recognize the
class. Files that cannot be read or parsed are logged and skipped.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Callable, Iterable, Optional

from archscan.model import Component, ComponentKind, make_component_id
from archscan.patterns import find_files
from archscan.php_class import ClassInfo, inspect
from archscan.php_parser import DEFAULT_MAX_FILE_SIZE, parse_file

logger = logging.getLogger(__name__)

Rule = Callable[[ClassInfo], bool]


# Controller rules

def parent_is_controller(info: ClassInfo) -> bool:
    return info.parent is not None and "Controller" in info.parent


def has_controller_attribute(info: ClassInfo) -> bool:
    return any("Controller" in a.name or "Route" in a.name for a in info.attributes)


def doc_marks_controller(info: ClassInfo) -> bool:
    return "@Controller" in info.doc_comment


def has_route_method(info: ClassInfo) -> bool:
    return any(
        "Route" in a.name
        for method in info.methods
        if method.is_public
        for a in method.attributes
    )


CONTROLLER_RULES: tuple[Rule, ...] = (
    parent_is_controller,
    has_controller_attribute,
    doc_marks_controller,
    has_route_method,
)


# Entity rules

def has_entity_attribute(info: ClassInfo) -> bool:
    return any("Entity" in a.name for a in info.attributes)


def doc_marks_entity(info: ClassInfo) -> bool:
    return "@Entity" in info.doc_comment or "@ORM\\Entity" in info.doc_comment


ENTITY_RULES: tuple[Rule, ...] = (
    has_entity_attribute,
    doc_marks_entity,
)


def always(info: ClassInfo) -> bool:
    """Filename conventions alone decide membership."""
    return True


REPOSITORY_RULES: tuple[Rule, ...] = (always,)
SERVICE_RULES: tuple[Rule, ...] = (always,)


# Event rules

SUBSCRIBER_INTERFACE = "EventSubscriberInterface"
SUBSCRIBED_EVENTS_METHOD = "getSubscribedEvents"
LISTENER_ATTRIBUTE = "AsEventListener"


def implements_subscriber_interface(info: ClassInfo) -> bool:
    return any(SUBSCRIBER_INTERFACE in name for name in info.interfaces)


def listener_events(info: ClassInfo) -> list[str]:
    """Event names declared through #[AsEventListener(event: ...)] attributes."""
    attributes = list(info.attributes)
    for method in info.methods:
        attributes.extend(method.attributes)

    events = []
    for attr in attributes:
        if LISTENER_ATTRIBUTE not in attr.name:
            continue
        event = attr.string_argument("event")
        if event is not None:
            events.append(event)
    return events


def has_listener_event(info: ClassInfo) -> bool:
    return bool(listener_events(info))


SUBSCRIBER_RULES: tuple[Rule, ...] = (implements_subscriber_interface,)
LISTENER_RULES: tuple[Rule, ...] = (has_listener_event,)


def matches_any(rules: Iterable[Rule], info: ClassInfo) -> bool:
    return any(rule(info) for rule in rules)


def _unique(values: Iterable[str]) -> list[str]:
    seen: list[str] = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return seen


class Classifier:
    """Base classifier: file enumeration, parsing and component assembly.

    Subclasses set `kind`, `technology`, `rules`, and implement
    `build_metadata` and `describe`.
    """

    kind: ComponentKind
    technology: str = "PHP"
    rules: tuple[Rule, ...] = ()
    default_patterns: tuple[str, ...] = ("*.php",)

    def __init__(
        self,
        patterns: Optional[Iterable[str]] = None,
        skip_dirs: Optional[Iterable[str]] = None,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
    ):
        self.patterns = list(patterns) if patterns is not None else list(self.default_patterns)
        self.skip_dirs = list(skip_dirs or [])
        self.max_file_size = max_file_size

    def scan(self, path: Path | str) -> list[Component]:
        """Classify every candidate file under `path`.

        Returns:
            Components in file order. Missing directories yield an empty list.
        """
        components = []
        for file_path in find_files(path, self.patterns, self.skip_dirs):
            component = self.classify_file(file_path)
            if component is not None:
                components.append(component)
        return components

    def classify_file(self, file_path: Path | str) -> Optional[Component]:
        result = parse_file(file_path, self.max_file_size)
        if not result.ok:
            logger.debug("Skipping %s: %s", result.path, result.error)
            return None

        info = inspect(result.root)
        if info is None or not info.name:
            return None
        return self.classify(info, str(file_path))

    def resolve_kind(self, info: ClassInfo) -> Optional[ComponentKind]:
        """Return the component kind for `info`, or None if not recognized."""
        return self.kind if matches_any(self.rules, info) else None

    def classify(self, info: ClassInfo, file_path: Optional[str] = None) -> Optional[Component]:
        kind = self.resolve_kind(info)
        if kind is None:
            return None

        metadata = self.build_metadata(info, kind)
        return Component(
            id=make_component_id(kind, info.qualified_name),
            name=info.name,
            kind=kind.value,
            description=self.describe(info, kind, metadata),
            technology=self.technology,
            metadata=metadata,
            namespace=info.namespace,
            file_path=file_path,
        )

    def build_metadata(self, info: ClassInfo, kind: ComponentKind) -> dict[str, Any]:
        raise NotImplementedError

    def describe(self, info: ClassInfo, kind: ComponentKind, metadata: dict[str, Any]) -> str:
        raise NotImplementedError


DEFAULT_HTTP_METHODS = ["GET"]


def extract_routes(info: ClassInfo) -> list[dict[str, Any]]:
    """Collect {path, methods} for every Route attribute on public methods.

    Path comes from the `path:` argument or the first positional string and
    defaults to "/<method name>". Methods default to GET.
    """
    routes = []
    for method in info.methods:
        if not method.is_public:
            continue
        for attr in method.attributes:
            if "Route" not in attr.name:
                continue
            path = attr.string_argument("path", position=0) or f"/{method.name.lower()}"
            methods = attr.string_list_argument("methods") or list(DEFAULT_HTTP_METHODS)
            routes.append({"path": path, "methods": methods})
    return routes


class ControllerClassifier(Classifier):
    kind = ComponentKind.CONTROLLER
    technology = "Symfony Controller"
    rules = CONTROLLER_RULES
    default_patterns = ("*Controller.php",)

    def build_metadata(self, info: ClassInfo, kind: ComponentKind) -> dict[str, Any]:
        return {
            "actions": info.public_methods,
            "routes": extract_routes(info),
            "extends": info.parent,
        }

    def describe(self, info: ClassInfo, kind: ComponentKind, metadata: dict[str, Any]) -> str:
        description = f"Controller with {len(metadata['actions'])} actions"
        if metadata["routes"]:
            description += f" ({len(metadata['routes'])} routes)"
        return description


def _doc_table_name(doc_comment: str) -> Optional[str]:
    match = re.search(r'@(?:ORM\\)?Table\(name="([^"]+)"\)', doc_comment)
    return match.group(1) if match else None


def extract_table_name(info: ClassInfo) -> Optional[str]:
    """Storage table from a #[Table(name: ...)] attribute or @Table doc tag."""
    table = None
    for attr in info.attributes:
        if "Table" in attr.name:
            table = attr.string_argument("name") or table
    return _doc_table_name(info.doc_comment) or table


class EntityClassifier(Classifier):
    kind = ComponentKind.ENTITY
    technology = "Doctrine ORM"
    rules = ENTITY_RULES

    def build_metadata(self, info: ClassInfo, kind: ComponentKind) -> dict[str, Any]:
        return {
            "properties": list(info.properties),
            "methods": info.method_names,
            "table": extract_table_name(info),
        }

    def describe(self, info: ClassInfo, kind: ComponentKind, metadata: dict[str, Any]) -> str:
        description = f"Entity with {len(metadata['properties'])} properties"
        if metadata["table"] is not None:
            description += f" (Table: {metadata['table']})"
        return description


REPOSITORY_SUFFIX = "Repository"
INHERITED_REPOSITORY_METHODS = ("__construct", "find", "findAll", "findBy", "findOneBy")


def _short_name(name: str) -> str:
    return name.split("\\")[-1]


def resolve_target_entity(info: ClassInfo) -> Optional[str]:
    """Entity managed by a repository.

    Reads the class constant passed as first argument to the parent
    constructor call, else strips the Repository suffix from the class name.
    """
    constructor = info.constructor
    if constructor is not None and constructor.parent_constructor_args:
        first = constructor.parent_constructor_args[0]
        if first is not None:
            return first

    stripped = info.name.replace(REPOSITORY_SUFFIX, "")
    if stripped and stripped != info.name:
        return stripped
    return None


class RepositoryClassifier(Classifier):
    kind = ComponentKind.REPOSITORY
    technology = "Doctrine Repository"
    rules = REPOSITORY_RULES
    default_patterns = ("*Repository.php",)

    def build_metadata(self, info: ClassInfo, kind: ComponentKind) -> dict[str, Any]:
        return {
            "methods": info.public_methods,
            "entity": resolve_target_entity(info),
            "extends": info.parent,
        }

    def describe(self, info: ClassInfo, kind: ComponentKind, metadata: dict[str, Any]) -> str:
        custom = [m for m in metadata["methods"] if m not in INHERITED_REPOSITORY_METHODS]
        description = f"Repository with {len(custom)} custom methods"
        if metadata["entity"] is not None:
            description += f" for {_short_name(metadata['entity'])}"
        return description


class ServiceClassifier(Classifier):
    kind = ComponentKind.SERVICE
    technology = "Business Logic"
    rules = SERVICE_RULES
    default_patterns = ("*Service.php", "*Manager.php", "*Handler.php")

    def build_metadata(self, info: ClassInfo, kind: ComponentKind) -> dict[str, Any]:
        return {
            "methods": info.public_methods,
            "dependencies": _unique(p for m in info.methods for p in m.property_calls),
            "implements": list(info.interfaces),
        }

    def describe(self, info: ClassInfo, kind: ComponentKind, metadata: dict[str, Any]) -> str:
        description = f"Service with {len(metadata['methods'])} public methods"
        if metadata["dependencies"]:
            description += f" and {len(metadata['dependencies'])} dependencies"
        return description


def subscribed_events(info: ClassInfo) -> list[str]:
    """String keys of the array returned by getSubscribedEvents()."""
    method = info.method(SUBSCRIBED_EVENTS_METHOD)
    if method is None:
        return []
    return list(method.returned_keys)


class EventClassifier(Classifier):
    """Recognizes event subscribers and attribute-configured listeners."""

    kind = ComponentKind.EVENT_LISTENER
    technology = "Event System"
    rules = SUBSCRIBER_RULES + LISTENER_RULES

    def __init__(
        self,
        patterns: Optional[Iterable[str]] = None,
        skip_dirs: Optional[Iterable[str]] = None,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
        fallback_dirs: Optional[Iterable[str]] = None,
    ):
        super().__init__(patterns, skip_dirs, max_file_size)
        self.fallback_dirs = list(
            fallback_dirs if fallback_dirs is not None
            else ("EventListener", "EventSubscriber", "Listener")
        )

    def scan(self, path: Path | str) -> list[Component]:
        """Classify files under `path`.

        When `path` does not exist, its siblings named in `fallback_dirs`
        are scanned instead.
        """
        path = Path(path)
        if path.is_dir():
            roots = [path]
        else:
            roots = [path.parent / name for name in self.fallback_dirs]

        components = []
        for root in roots:
            components.extend(super().scan(root))
        return components

    def resolve_kind(self, info: ClassInfo) -> Optional[ComponentKind]:
        if matches_any(SUBSCRIBER_RULES, info):
            return ComponentKind.EVENT_SUBSCRIBER
        if matches_any(LISTENER_RULES, info):
            return ComponentKind.EVENT_LISTENER
        return None

    def build_metadata(self, info: ClassInfo, kind: ComponentKind) -> dict[str, Any]:
        is_subscriber = kind == ComponentKind.EVENT_SUBSCRIBER
        events = subscribed_events(info) if is_subscriber else []
        return {
            "events": _unique(events + listener_events(info)),
            "methods": info.method_names,
            "is_subscriber": is_subscriber,
        }

    def describe(self, info: ClassInfo, kind: ComponentKind, metadata: dict[str, Any]) -> str:
        events = metadata["events"]
        label = "Event Subscriber" if metadata["is_subscriber"] else "Event Listener"
        description = f"{label} handling {len(events)} events"
        if events:
            listed = ", ".join(events[:3])
            if len(events) > 3:
                listed += "..."
            description += f" ({listed})"
        return description
