"""Tests for the regeneration driver."""

import pytest

from menusync.constants import ROOT_PATH
from menusync.errors import (
    CycleDetected,
    InvalidSourceTree,
    MissingRoot,
    MutationApplyFailure,
    RootRecoveryFailed,
    SyncInProgress,
)
from menusync.graph.analysis import find_root
from menusync.graph.models import Classification, GeneratedNode, NodeContent
from menusync.host.memory import InMemoryHostGraph
from menusync.source.loader import StaticSourceProvider
from menusync.source.models import SourceNode
from menusync.sync.driver import RegenerationDriver, SyncState, graph_lock
from menusync.sync.plan import MutationKind


class FlakyHost(InMemoryHostGraph):
    """Host that refuses the n-th non-root create."""

    def __init__(self, *args, fail_on_create=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fail_on_create = fail_on_create
        self.creates = 0

    def create_node(self, parent, classification, original_path, content):
        if parent is not None:
            self.creates += 1
            if self.creates == self.fail_on_create:
                raise RuntimeError("editor refused the node")
        return super().create_node(parent, classification, original_path, content)


class RefusingHost(InMemoryHostGraph):
    """Host that refuses every create."""

    def create_node(self, parent, classification, original_path, content):
        raise RuntimeError("editor refused the node")


class VanishingSource:
    """Source provider whose menu file disappears before it is read."""

    def load_tree(self):
        raise OSError("menu file vanished")


def child_named(node, name):
    return next(child for child in node.children if child.display_name == name)


def make_host(cls=InMemoryHostGraph, **kwargs):
    graph = cls(**kwargs)
    graph.create_node(None, Classification.GENERATED_ROOT, ROOT_PATH, NodeContent("Menu"))
    return graph


class TestSuccessfulPass:
    """A pass that runs to completion."""

    def test_transitions_through_every_state(self, sync, menu, item):
        report = sync(menu(item("A")))

        assert report.ok
        assert report.transitions == [
            SyncState.LOADING,
            SyncState.DIFFING,
            SyncState.APPLYING,
            SyncState.REPAIRING,
            SyncState.IDLE,
        ]

    def test_applies_every_mutation(self, host, sync, menu, item):
        report = sync(menu(item("A", item("B"), item("C"))))

        assert report.applied == report.total == 3
        a = child_named(host.root, "A")
        assert [child.display_name for child in a.children] == ["B", "C"]
        assert a.classification is Classification.GENERATED
        assert a.original_path == ("A",)

    def test_second_pass_is_a_no_op(self, sync, menu, item):
        source = menu(item("A", item("B")), item("C"))
        sync(source)

        report = sync(source)

        assert report.ok
        assert report.plan.is_empty
        assert report.applied == 0

    def test_identifiers_survive_content_changes(self, host, sync, menu, item):
        sync(menu(item("A", item("B"))))
        a = child_named(host.root, "A")
        before = {node.identifier for node in host.root.walk()}

        report = sync(menu(item("A", item("B"), display_name="Renamed")))

        assert report.plan.summary()["update"] == 1
        assert a.display_name == "Renamed"
        assert {node.identifier for node in host.root.walk()} == before

    def test_full_paths_refreshed(self, host, sync, menu, item):
        sync(menu(item("A", item("B"))))

        b = child_named(child_named(host.root, "A"), "B")
        assert b.metadata.full_path == "Menu/A/B"

    def test_full_paths_can_be_disabled(self, host, menu, item):
        driver = RegenerationDriver(
            StaticSourceProvider(menu(item("A"))), host, track_full_paths=False
        )

        driver.run()

        assert child_named(host.root, "A").metadata.full_path is None

    def test_user_nodes_are_untouched(self, host, sync, menu, item):
        sync(menu(item("A")))
        user_id = host.add_user_node(host.root.identifier, "My Toggle", index=0)

        report = sync(menu(item("B")))

        assert report.ok
        assert [child.identifier for child in host.root.children][0] == user_id
        assert [child.display_name for child in host.root.children] == ["My Toggle", "B"]


class TestRootRecovery:
    """Passes against a graph without a GeneratedRoot."""

    def test_creates_root_in_empty_graph(self, menu, item):
        host = InMemoryHostGraph()

        report = RegenerationDriver(StaticSourceProvider(menu(item("A"))), host).run()

        assert report.ok
        assert report.root_created
        assert host.root.classification is Classification.GENERATED_ROOT
        assert host.root.original_path == ROOT_PATH
        assert [child.display_name for child in host.root.children] == ["A"]

    def test_creates_root_inside_host_container(self, menu, item):
        container = GeneratedNode("scene", Classification.USER_INCLUDED, "Scene")
        host = InMemoryHostGraph(container)

        report = RegenerationDriver(StaticSourceProvider(menu(item("A"))), host).run()

        assert report.root_created
        root = find_root(host.root)
        assert root.parent is container
        assert [child.display_name for child in root.children] == ["A"]

    def test_excluded_top_level_root_fails_the_pass(self, menu, item):
        old_root = GeneratedNode("old", Classification.EXCLUDED, "Old Menu")
        old_root.metadata.original_path = ROOT_PATH
        host = InMemoryHostGraph(old_root)

        report = RegenerationDriver(StaticSourceProvider(menu(item("A"))), host).run()

        assert report.state is SyncState.FAILED
        assert isinstance(report.error, RootRecoveryFailed)
        assert "Old Menu" in str(report.error)
        assert not report.root_created
        assert host.root is old_root
        assert old_root.classification is Classification.EXCLUDED
        assert old_root.children == []

    def test_excluded_root_inside_container_gets_a_sibling(self, menu, item):
        container = GeneratedNode("scene", Classification.USER_INCLUDED, "Scene")
        old_root = GeneratedNode("old", Classification.EXCLUDED, "Old Menu")
        old_root.metadata.original_path = ROOT_PATH
        container.add_child(old_root)
        host = InMemoryHostGraph(container)

        report = RegenerationDriver(StaticSourceProvider(menu(item("A"))), host).run()

        assert report.ok
        assert report.root_created
        new_root = find_root(host.root)
        assert new_root.parent is container
        assert container.children == [old_root, new_root]
        assert old_root.children == []

    def test_plan_does_not_create_a_root(self, menu):
        host = InMemoryHostGraph()
        driver = RegenerationDriver(StaticSourceProvider(menu()), host)

        with pytest.raises(MissingRoot):
            driver.plan()
        assert host.root is None


class TestFailures:
    """Passes that end in the Failed state."""

    def test_host_failure_leaves_prefix_applied(self, menu, item):
        host = make_host(FlakyHost, fail_on_create=2)

        report = RegenerationDriver(
            StaticSourceProvider(menu(item("A"), item("B"), item("C"))), host
        ).run()

        assert report.state is SyncState.FAILED
        assert isinstance(report.error, MutationApplyFailure)
        assert report.failed_index == 1
        assert report.applied == 1
        assert report.committed == [report.plan[0]]
        assert [child.display_name for child in host.root.children] == ["A"]
        assert report.transitions[-2:] == [SyncState.APPLYING, SyncState.FAILED]

    def test_failure_reason_names_the_mutation(self, menu, item):
        host = make_host(FlakyHost, fail_on_create=1)

        report = RegenerationDriver(StaticSourceProvider(menu(item("A"))), host).run()

        assert report.error.index == 0
        assert report.error.reason == "editor refused the node"
        assert "create A" in str(report.error)

    def test_next_pass_completes_after_failure(self, menu, item):
        host = make_host(FlakyHost, fail_on_create=2)
        driver = RegenerationDriver(
            StaticSourceProvider(menu(item("A"), item("B"), item("C"))), host
        )
        driver.run()
        host.fail_on_create = None

        report = driver.run()

        assert report.ok
        assert report.plan.summary()["create"] == 2
        assert [child.display_name for child in host.root.children] == ["A", "B", "C"]

    def test_invalid_source_fails_before_touching_graph(self, host):
        bad = SourceNode(
            path=(),
            display_name="Menu",
            children=(SourceNode(("A",), "A"), SourceNode(("A",), "A")),
        )

        report = RegenerationDriver(StaticSourceProvider(bad), host).run()

        assert report.state is SyncState.FAILED
        assert isinstance(report.error, InvalidSourceTree)
        assert report.plan is None
        assert report.transitions == [SyncState.LOADING, SyncState.FAILED]
        assert host.root.children == []

    def test_host_refusing_the_root_fails_the_pass(self, menu, item):
        host = RefusingHost()

        report = RegenerationDriver(StaticSourceProvider(menu(item("A"))), host).run()

        assert report.state is SyncState.FAILED
        assert isinstance(report.error, RootRecoveryFailed)
        assert "editor refused the node" in str(report.error)
        assert isinstance(report.error.__cause__, RuntimeError)
        assert not report.root_created
        assert report.plan is None
        assert report.transitions == [SyncState.LOADING, SyncState.DIFFING, SyncState.FAILED]
        assert host.root is None

    def test_source_provider_error_fails_the_pass(self, host):
        report = RegenerationDriver(VanishingSource(), host).run()

        assert report.state is SyncState.FAILED
        assert isinstance(report.error, InvalidSourceTree)
        assert "menu file vanished" in str(report.error)
        assert isinstance(report.error.__cause__, OSError)
        assert report.transitions == [SyncState.LOADING, SyncState.FAILED]
        assert host.root.children == []

    def test_source_provider_error_in_plan(self, host):
        driver = RegenerationDriver(VanishingSource(), host)

        with pytest.raises(InvalidSourceTree, match="menu file vanished"):
            driver.plan()

    def test_cycle_fails_before_diffing(self, host, menu, item):
        a_id = host.create_node(
            host.root.identifier, Classification.GENERATED, ("A",), NodeContent("A")
        )
        a = host.root.children[0]
        assert a.identifier == a_id
        a.children.append(host.root)

        report = RegenerationDriver(StaticSourceProvider(menu(item("B"))), host).run()

        assert isinstance(report.error, CycleDetected)
        assert report.plan is None

    def test_concurrent_pass_is_rejected(self, host, menu):
        driver = RegenerationDriver(StaticSourceProvider(menu()), host)

        with graph_lock(host):
            with pytest.raises(SyncInProgress):
                driver.run()
            with pytest.raises(SyncInProgress):
                driver.plan()

    def test_lock_released_after_failure(self, menu, item):
        host = make_host(FlakyHost, fail_on_create=1)
        driver = RegenerationDriver(StaticSourceProvider(menu(item("A"))), host)
        driver.run()

        with graph_lock(host):
            pass


class TestIdentityRepair:
    """Identifier collisions found while loading."""

    def test_duplicated_generated_node_is_repaired_and_removed(self, host, sync, menu, item):
        sync(menu(item("A")))
        original = host.root.children[0]
        original_id = original.identifier
        clone = host.duplicate_node(original_id)

        report = sync(menu(item("A")))

        assert report.ok
        assert len(report.repaired) == 1
        assert report.repaired[0][0] == original_id
        assert clone.identifier != original_id
        assert report.plan.of_kind(MutationKind.DELETE)[0].identifier == clone.identifier
        assert host.root.children == [original]
        assert original.identifier == original_id

    def test_duplicated_excluded_node_keeps_both_copies(self, host, sync, menu, item):
        sync(menu(item("A")))
        original = host.root.children[0]
        host.set_classification(original.identifier, Classification.EXCLUDED)
        clone = host.duplicate_node(original.identifier)

        report = sync(menu(item("A")))

        assert report.ok
        assert report.plan.is_empty
        assert host.root.children == [original, clone]
        assert original.identifier != clone.identifier

    def test_without_pre_diff_repair_the_graph_still_converges(self, host, menu, item):
        source = StaticSourceProvider(menu(item("A")))
        RegenerationDriver(source, host).run()
        host.duplicate_node(host.root.children[0].identifier)

        report = RegenerationDriver(source, host, repair_before_diff=False).run()

        assert report.ok
        assert len(host.root.children) == 1
        assert host.root.children[0].original_path == ("A",)
        ids = [node.identifier for node in host.root.walk()]
        assert len(ids) == len(set(ids))
