"""Tests for symbol resolution and relation inference."""

import logging

import pytest

from archscan.model import Architecture, Component
from archscan.php_class import ClassInfo
from archscan.relations import (
    RelationAnalyzer,
    build_symbol_table,
    create_relation,
    resolve_name,
)
from archscan.scanner import ProjectScanner


def _component(kind, name, namespace=None, file_path=None):
    qualified = f"{namespace}\\{name}" if namespace else name
    return Component(
        id=f"{kind}_{qualified}".lower().replace("\\", "_"),
        name=name,
        kind=kind,
        namespace=namespace,
        file_path=file_path,
    )


class TestSymbolTable:
    """Tests for the project-wide symbol table."""

    def test_qualified_and_bare_names(self):
        user = _component("entity", "User", "App\\Entity")
        table = build_symbol_table([user])
        assert table["App\\Entity\\User"] == user.id
        assert table["User"] == user.id

    def test_table_is_read_only(self):
        table = build_symbol_table([_component("entity", "User")])
        with pytest.raises(TypeError):
            table["Other"] = "x"

    def test_bare_name_collision_last_writer_wins(self, caplog):
        first = _component("entity", "User", "App\\Entity")
        second = _component("entity", "User", "Legacy\\Entity")

        with caplog.at_level(logging.DEBUG, logger="archscan.relations"):
            table = build_symbol_table([first, second])

        assert table["User"] == second.id
        assert table["App\\Entity\\User"] == first.id
        assert first.id in caplog.text and second.id in caplog.text


class TestResolveName:
    """Tests for name resolution order."""

    def setup_method(self):
        self.app_user = _component("entity", "User", "App\\Entity")
        self.legacy_user = _component("entity", "User", "Legacy\\Entity")
        self.symbols = build_symbol_table([self.app_user, self.legacy_user])

    def test_fully_qualified_name(self):
        assert resolve_name("\\App\\Entity\\User", self.symbols) == self.app_user.id

    def test_use_import_beats_bare_name(self):
        """An import points at the right class even when the bare name collides."""
        info = ClassInfo(name="Repo", namespace="App\\Repository", imports={"User": "App\\Entity\\User"})
        assert resolve_name("User", self.symbols, info) == self.app_user.id

    def test_aliased_import(self):
        info = ClassInfo(name="Repo", imports={"Account": "App\\Entity\\User"})
        assert resolve_name("Account", self.symbols, info) == self.app_user.id

    def test_import_prefix(self):
        info = ClassInfo(name="Repo", imports={"Entity": "App\\Entity"})
        assert resolve_name("Entity\\User", self.symbols, info) == self.app_user.id

    def test_same_namespace(self):
        info = ClassInfo(name="Order", namespace="App\\Entity")
        assert resolve_name("User", self.symbols, info) == self.app_user.id

    def test_bare_name_fallback(self):
        assert resolve_name("Vendor\\User", self.symbols) == self.legacy_user.id

    def test_unresolved(self):
        assert resolve_name("Response", self.symbols) is None


class TestCreateRelation:
    """Tests for the kind-pair edge table."""

    @pytest.mark.parametrize("from_kind,to_kind,kind,description,technology", [
        ("controller", "service", "uses", "Calls service methods", "Dependency Injection"),
        ("controller", "repository", "uses", "Data access", "Dependency Injection"),
        ("service", "repository", "uses", "Performs data operations", "Method Call"),
        ("repository", "entity", "manages", "CRUD operations", "Doctrine ORM"),
        ("controller", "entity", "depends", "Uses entity", "Object Reference"),
        ("service", "entity", "depends", "Uses entity", "Object Reference"),
        ("service", "service", "uses", "Service uses service", "Dependency"),
        ("event_subscriber", "service", "uses", "Event_subscriber uses service", "Dependency"),
    ])
    def test_edge_table(self, from_kind, to_kind, kind, description, technology):
        relation = create_relation(_component(from_kind, "A"), _component(to_kind, "B"))
        assert relation.kind == kind
        assert relation.description == description
        assert relation.technology == technology


class TestRelationAnalyzer:
    """Tests for pass-2 dependency extraction."""

    def _architecture(self, *components):
        arch = Architecture()
        for component in components:
            arch.add_component(component)
        return arch

    def test_repository_manages_entity(self, write_php, php_sources):
        """The parent-constructor class constant links the entity."""
        user = _component("entity", "User", "App\\Entity",
                          str(write_php("src/Entity/User.php", php_sources["User"])))
        repo = _component("repository", "UserRepository", "App\\Repository",
                          str(write_php("src/Repository/UserRepository.php", php_sources["UserRepository"])))
        arch = self._architecture(user, repo)

        RelationAnalyzer().analyze(arch)

        assert [(r.from_id, r.to_id, r.kind) for r in arch.relations] == [
            (repo.id, user.id, "manages"),
        ]

    def test_instantiation_static_call_and_dedup(self, write_php):
        """`new T` and `T::m()` create edges; repeated references collapse."""
        order = _component("entity", "Order", "App\\Entity",
                           str(write_php("Order.php", "<?php\nnamespace App\\Entity;\nclass Order {}\n")))
        factory = _component("service", "Factory", "App\\Service", str(write_php("Factory.php", (
            "<?php\n"
            "namespace App\\Service;\n"
            "use App\\Entity\\Order;\n"
            "class Factory {\n"
            "    public function __construct(Order $template) {}\n"
            "    public function make() { return new Order(); }\n"
            "    public function load() { return Order::fromArray([]); }\n"
            "}\n"
        ))))
        arch = self._architecture(order, factory)

        RelationAnalyzer().analyze(arch)

        assert len(arch.relations) == 1
        relation = arch.relations[0]
        assert (relation.from_id, relation.to_id, relation.kind) == (factory.id, order.id, "depends")

    def test_self_reference_is_ignored(self, write_php):
        service = _component("service", "Clock", None, str(write_php("Clock.php", (
            "<?php\n"
            "class Clock {\n"
            "    public static function create() { return new Clock(); }\n"
            "    public function now() { return Clock::create(); }\n"
            "}\n"
        ))))
        arch = self._architecture(service)

        RelationAnalyzer().analyze(arch)

        assert not arch.has_relations()

    def test_missing_and_unparseable_files_are_skipped(self, tmp_path, write_php, php_sources):
        broken = _component("controller", "BrokenController", None,
                            str(write_php("Broken.php", php_sources["BrokenController"])))
        missing = _component("service", "Ghost", None, str(tmp_path / "Ghost.php"))
        detached = _component("database", "mysql")
        arch = self._architecture(broken, missing, detached)

        RelationAnalyzer().analyze(arch)

        assert not arch.has_relations()

    def test_parallel_matches_sequential(self, full_project):
        """Threaded extraction yields the same relations in the same order."""
        arch = ProjectScanner().scan(full_project)
        sequential = [(r.from_id, r.to_id, r.kind) for r in arch.relations]
        assert sequential

        parallel_arch = Architecture()
        for component in arch.components.values():
            parallel_arch.add_component(component)
        RelationAnalyzer(max_workers=4).analyze(parallel_arch)

        assert [(r.from_id, r.to_id, r.kind) for r in parallel_arch.relations] == sequential
