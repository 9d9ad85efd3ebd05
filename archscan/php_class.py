"""Single-pass inspection of a parsed PHP file.

`inspect` walks the syntax tree once and returns an immutable ClassInfo
record describing the first class declared in the file. Classifiers and the
relation analyzer read these records instead of keeping visitor state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from tree_sitter import Node

from archscan.php_parser import (
    NAME_NODE_TYPES,
    Argument,
    call_arguments,
    children_of_type,
    class_constant_class,
    first_child_of_type,
    name_text,
    node_text,
    normalize_name,
    string_value,
)

CONSTRUCTOR = "__construct"


@dataclass(frozen=True)
class Attribute:
    """A PHP 8 attribute such as #[Route('/home', methods: ['GET'])]."""

    name: str
    arguments: tuple[Argument, ...] = ()

    def string_argument(self, arg_name: str, position: Optional[int] = None) -> Optional[str]:
        """Return a string argument passed by name, or positionally.

        Args:
            arg_name: Named-argument key to look for.
            position: Positional index accepted when the argument is unnamed.
        """
        for index, arg in enumerate(self.arguments):
            if arg.name == arg_name or (arg.name is None and index == position):
                value = string_value(arg.value)
                if value is not None:
                    return value
        return None

    def string_list_argument(self, arg_name: str) -> Optional[list[str]]:
        """Return the string items of a named array argument, if present."""
        for arg in self.arguments:
            if arg.name != arg_name or arg.value is None:
                continue
            if arg.value.type != "array_creation_expression":
                return None
            items = []
            for element in children_of_type(arg.value, "array_element_initializer"):
                value = string_value(element.named_children[-1] if element.named_children else None)
                if value is not None:
                    items.append(value)
            return items
        return None


@dataclass(frozen=True)
class Parameter:
    name: str
    type_name: Optional[str] = None


@dataclass(frozen=True)
class Method:
    """A method declaration and what the classifiers need from its body."""

    name: str
    visibility: str = "public"
    attributes: tuple[Attribute, ...] = ()
    parameters: tuple[Parameter, ...] = ()
    # String keys of arrays returned by top-level `return [...]` statements
    returned_keys: tuple[str, ...] = ()
    # Property names X in top-level `$this->X->method()` statements
    property_calls: tuple[str, ...] = ()
    # Class-constant qualifiers passed to a `parent::__construct(...)` call,
    # one entry per argument position (None when not a class constant)
    parent_constructor_args: tuple[Optional[str], ...] = ()

    @property
    def is_public(self) -> bool:
        return self.visibility == "public"


@dataclass(frozen=True)
class ClassInfo:
    """Structural facts about the unit declared in one file."""

    name: str
    namespace: Optional[str] = None
    parent: Optional[str] = None
    interfaces: tuple[str, ...] = ()
    attributes: tuple[Attribute, ...] = ()
    doc_comment: str = ""
    properties: tuple[str, ...] = ()
    methods: tuple[Method, ...] = ()
    # Local alias -> fully-qualified name from `use` statements
    imports: dict[str, str] = field(default_factory=dict)

    @property
    def qualified_name(self) -> str:
        if self.namespace:
            return f"{self.namespace}\\{self.name}"
        return self.name

    @property
    def method_names(self) -> list[str]:
        return [m.name for m in self.methods]

    @property
    def public_methods(self) -> list[str]:
        return [m.name for m in self.methods if m.is_public]

    @property
    def constructor(self) -> Optional[Method]:
        for method in self.methods:
            if method.name.lower() == CONSTRUCTOR:
                return method
        return None

    def method(self, name: str) -> Optional[Method]:
        for method in self.methods:
            if method.name == name:
                return method
        return None


def _doc_comment_before(node: Node) -> str:
    """Return the nearest /** */ comment directly preceding `node`."""
    sibling = node.prev_sibling
    while sibling is not None and sibling.type == "comment":
        text = node_text(sibling)
        if text.startswith("/**"):
            return text
        sibling = sibling.prev_sibling

    # Comments placed between attributes and the `class` keyword
    for child in node.children:
        if child.type == "comment" and node_text(child).startswith("/**"):
            return node_text(child)
        if child.type == "name":
            break
    return ""


def _attributes(node: Node) -> tuple[Attribute, ...]:
    attributes = []
    for attr_list in children_of_type(node, "attribute_list"):
        for group in children_of_type(attr_list, "attribute_group"):
            for attr in children_of_type(group, "attribute"):
                attr_name = name_text(first_child_of_type(attr, *NAME_NODE_TYPES))
                if not attr_name:
                    continue
                arguments = attr.child_by_field_name("parameters") or first_child_of_type(attr, "arguments")
                attributes.append(Attribute(attr_name, tuple(call_arguments(arguments))))
    return tuple(attributes)


def _clause_names(node: Node, clause_type: str) -> list[str]:
    names = []
    for clause in children_of_type(node, clause_type):
        for child in clause.named_children:
            value = name_text(child)
            if value:
                names.append(value)
    return names


def type_name(type_node: Optional[Node]) -> Optional[str]:
    """Class name of a parameter type, unwrapping one level of `?T`.

    Primitive, union and intersection types yield None.
    """
    if type_node is None:
        return None

    if type_node.type == "optional_type":
        inner = first_child_of_type(type_node, "named_type", *NAME_NODE_TYPES)
        return _named_type(inner)

    # Some grammar versions wrap every type in a single-member union_type
    if type_node.type == "union_type" and len(type_node.named_children) == 1:
        return type_name(type_node.named_children[0])

    return _named_type(type_node)


def _named_type(node: Optional[Node]) -> Optional[str]:
    if node is None:
        return None
    if node.type == "named_type":
        return name_text(first_child_of_type(node, *NAME_NODE_TYPES))
    return name_text(node)


def _parameters(method_node: Node) -> tuple[Parameter, ...]:
    params_node = method_node.child_by_field_name("parameters")
    params = []
    for param in children_of_type(
        params_node, "simple_parameter", "property_promotion_parameter", "variadic_parameter"
    ):
        var = param.child_by_field_name("name") or first_child_of_type(param, "variable_name")
        params.append(Parameter(
            name=node_text(var).lstrip("&$"),
            type_name=type_name(param.child_by_field_name("type")),
        ))
    return tuple(params)


def _visibility(method_node: Node) -> str:
    modifier = first_child_of_type(method_node, "visibility_modifier")
    if modifier is None:
        return "public"
    return node_text(modifier).split("(")[0].strip().lower()


def _statement_expression(stmt: Node) -> Optional[Node]:
    if stmt.type != "expression_statement" or not stmt.named_children:
        return None
    return stmt.named_children[0]


def _returned_keys(body: Optional[Node]) -> tuple[str, ...]:
    keys = []
    for stmt in children_of_type(body, "return_statement"):
        array = first_child_of_type(stmt, "array_creation_expression")
        for element in children_of_type(array, "array_element_initializer"):
            has_key = any(child.type == "=>" for child in element.children)
            if not has_key or not element.named_children:
                continue
            key = string_value(element.named_children[0])
            if key is not None:
                keys.append(key)
    return tuple(keys)


def _property_calls(body: Optional[Node]) -> tuple[str, ...]:
    calls = []
    for stmt in children_of_type(body, "expression_statement"):
        expr = _statement_expression(stmt)
        if expr is None or expr.type != "member_call_expression":
            continue
        target = expr.child_by_field_name("object")
        if target is None or target.type != "member_access_expression":
            continue
        owner = target.child_by_field_name("object")
        prop = target.child_by_field_name("name")
        if owner is not None and node_text(owner) == "$this" and prop is not None and prop.type == "name":
            prop_name = node_text(prop)
            if prop_name not in calls:
                calls.append(prop_name)
    return tuple(calls)


def _parent_constructor_args(body: Optional[Node]) -> tuple[Optional[str], ...]:
    for stmt in children_of_type(body, "expression_statement"):
        expr = _statement_expression(stmt)
        if expr is None or expr.type != "scoped_call_expression":
            continue
        if node_text(expr.child_by_field_name("name")).lower() != CONSTRUCTOR:
            continue
        arguments = call_arguments(expr.child_by_field_name("arguments"))
        if arguments:
            return tuple(class_constant_class(arg.value) for arg in arguments)
    return ()


def _method(node: Node) -> Method:
    body = node.child_by_field_name("body")
    return Method(
        name=node_text(node.child_by_field_name("name")),
        visibility=_visibility(node),
        attributes=_attributes(node),
        parameters=_parameters(node),
        returned_keys=_returned_keys(body),
        property_calls=_property_calls(body),
        parent_constructor_args=_parent_constructor_args(body),
    )


def _properties(body: Optional[Node]) -> tuple[str, ...]:
    names = []
    for decl in children_of_type(body, "property_declaration"):
        for element in children_of_type(decl, "property_element"):
            var = element.child_by_field_name("name") or first_child_of_type(element, "variable_name")
            if var is not None:
                names.append(node_text(var).lstrip("$"))
    return tuple(names)


def _use_imports(node: Node, prefix: str = "") -> dict[str, str]:
    """Collect alias -> fully-qualified name from a namespace_use_declaration."""
    imports: dict[str, str] = {}
    group_prefix = prefix
    ns_name = first_child_of_type(node, "namespace_name")
    if ns_name is not None:
        group_prefix = normalize_name(node_text(ns_name))

    for child in node.named_children:
        if child.type == "namespace_use_group":
            imports.update(_use_imports(child, group_prefix))
            continue
        if child.type not in ("namespace_use_clause", "namespace_use_group_clause"):
            continue

        target = first_child_of_type(child, *NAME_NODE_TYPES)
        full = name_text(target)
        if not full:
            continue
        if prefix:
            full = f"{prefix}\\{full}"

        alias_node = child.child_by_field_name("alias")
        if alias_node is None:
            aliasing = first_child_of_type(child, "namespace_aliasing_clause")
            alias_node = first_child_of_type(aliasing, "name")
        # The alias field may point at the target itself in some grammar versions
        if alias_node is not None and target is not None and alias_node.id == target.id:
            alias_node = None
        alias = node_text(alias_node) if alias_node is not None else full.split("\\")[-1]
        imports[alias] = full
    return imports


def inspect(root: Node) -> Optional[ClassInfo]:
    """Describe the first class declared under `root`.

    Returns:
        ClassInfo, or None when the file declares no class.
    """
    namespace: Optional[str] = None
    imports: dict[str, str] = {}
    class_node: Optional[Node] = None
    class_namespace: Optional[str] = None

    stack = [root]
    while stack and class_node is None:
        node = stack.pop()
        if node.type == "namespace_definition":
            ns_name = node.child_by_field_name("name") or first_child_of_type(node, "namespace_name")
            namespace = normalize_name(node_text(ns_name)) or None
        elif node.type == "namespace_use_declaration":
            imports.update(_use_imports(node))
            continue
        elif node.type == "class_declaration":
            class_node = node
            class_namespace = namespace
            break
        stack.extend(reversed(node.children))

    if class_node is None:
        return None

    body = class_node.child_by_field_name("body") or first_child_of_type(class_node, "declaration_list")
    parents = _clause_names(class_node, "base_clause")

    return ClassInfo(
        name=node_text(class_node.child_by_field_name("name")),
        namespace=class_namespace,
        parent=parents[0] if parents else None,
        interfaces=tuple(_clause_names(class_node, "class_interface_clause")),
        attributes=_attributes(class_node),
        doc_comment=_doc_comment_before(class_node),
        properties=_properties(body),
        methods=tuple(_method(m) for m in children_of_type(body, "method_declaration")),
        imports=imports,
    )
