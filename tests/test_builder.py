"""
Tests for the tree builder: applying source events to a tree.
"""

import pytest

from mimir import parse_string, build_tree
from mimir.builder import TreeBuilder, BuilderState
from mimir.parser import DTEvent
from mimir.include import IncludeStack
from mimir.source import DTSource, MemorySourceProvider
from mimir.tree import DTTree
from mimir.error import (MimirError, MissingNode, UnknownLabel, BadPath,
                         Redefine, BuilderHalted, SourceNotFound, UnknownSymbol)


def children(node):
    return list(node.child_nodes)


class TestNodes:
    """Tests for node creation, reopening and closing."""

    def test_single_node(self):
        """One empty node is a root with nothing in it."""
        tree = parse_string("name { };")
        assert tree.root.name == "name"
        assert children(tree.root) == []
        assert list(tree.root) == []
        assert len(list(tree)) == 1

    def test_reopen_union(self):
        """Reopening a node unions its content, later values win."""
        tree = parse_string("""
        / {
            a { p = "1"; q; x { }; };
            a { p = "2"; r; y { }; };
        };
        """)
        assert children(tree.root) == ["a"]
        a = tree["/a"]
        assert dict(a.items()) == {"p": '"2"', "q": None, "r": None}
        assert children(a) == ["x", "y"]

    def test_identical_reopen_is_noop(self):
        """Applying the same node content twice changes nothing."""
        once = parse_string('/ { a { p = "1"; }; };')
        twice = parse_string('/ { a { p = "1"; }; }; / { a { p = "1"; }; };')
        assert once.export() == twice.export()

    def test_unbalanced_close(self):
        """More closes than opens is a bad path."""
        with pytest.raises(BadPath):
            parse_string("/ { }; };")

    def test_close_without_open(self):
        """A close before anything is opened is a bad path."""
        with pytest.raises(BadPath):
            parse_string("};")

    def test_root_name_mismatch(self):
        """Only one top level node may exist."""
        with pytest.raises(BadPath):
            parse_string("/ { }; other { };")

    def test_unclosed_node(self):
        """Input ending inside a node still produces the tree."""
        tree = parse_string("/ { a { b;")
        assert tree["/a"]["b"] is None

    def test_empty_value(self):
        """foo = ; is a property with an empty value."""
        tree = parse_string("/ { foo = ; };")
        assert tree.root["foo"] == ""


class TestLabelsAndReferences:
    """Tests for labels and &label reopening."""

    def test_reference_edits_labeled_node(self):
        """Content of a reference block lands in the labeled node."""
        tree = parse_string('/ { l: n { }; }; &l { p = "v"; };')
        assert tree["/n"]["p"] == '"v"'
        assert children(tree.root) == ["n"], "reference created a sibling"

    def test_reference_new_children(self):
        """Nodes opened in a reference block are children of the labeled node."""
        tree = parse_string("/ { soc { l: bus { }; }; }; &l { dev { }; };")
        assert children(tree["/soc/bus"]) == ["dev"]

    def test_reference_returns(self):
        """After a reference block the previous cursor is restored."""
        tree = parse_string("/ { l: a { }; &l { p; }; z { }; };")
        assert "p" in tree["/a"]
        assert children(tree.root) == ["a", "z"]
        assert children(tree["/a"]) == []

    def test_unknown_reference(self):
        """Reopening an undeclared label fails."""
        with pytest.raises(UnknownLabel):
            parse_string("/ { }; &nope { };")

    def test_delete_by_label(self):
        """Deleting a node by label removes it and invalidates the label."""
        tree = parse_string("/ { l: n { }; m { }; }; /delete-node/ &l;")
        assert children(tree.root) == ["m"]
        with pytest.raises(UnknownLabel):
            tree.label_path("l")

    def test_reference_after_delete(self):
        """A deleted node cannot be reopened through its label."""
        with pytest.raises(UnknownLabel):
            parse_string("/ { l: n { }; }; /delete-node/ &l; &l { };")

    def test_labels_recorded(self, board_tree):
        """Labels map to the path current at their declaration."""
        assert board_tree.label_path("uart0") == ["/", "soc", "serial@ff000000"]
        assert board_tree["amba"] is board_tree["/soc"]


class TestDirectives:
    """Tests for delete directives and other directives."""

    def test_delete_relative(self):
        """A relative delete inside a node removes its child."""
        tree = parse_string('n1 { sub { x = "1"; }; /delete-node/ sub; };')
        assert children(tree.root) == []

    def test_delete_relative_path(self):
        """Relative targets may name a deeper node."""
        tree = parse_string("/ { soc { uart { }; gpio { }; }; /delete-node/ soc/uart; };")
        assert children(tree["/soc"]) == ["gpio"]

    def test_delete_absolute(self):
        """Absolute targets resolve from the root."""
        tree = parse_string("/ { soc { uart { }; }; }; /delete-node/ /soc/uart;")
        assert children(tree["/soc"]) == []

    def test_delete_missing_node(self):
        """Deleting a node that is not there fails."""
        with pytest.raises(MissingNode):
            parse_string("/ { /delete-node/ nope; };")

    def test_delete_relative_top_level(self):
        """A relative delete outside of any node does not resolve."""
        with pytest.raises(MissingNode):
            parse_string("/ { a { }; }; /delete-node/ a;")

    def test_delete_no_target(self):
        """A delete without a target is a bad path."""
        with pytest.raises(BadPath):
            parse_string("/ { /delete-node/; };")

    def test_delete_root(self):
        """The root cannot be deleted."""
        with pytest.raises(BadPath):
            parse_string("/ { }; /delete-node/ /;")

    def test_delete_property(self):
        """A property is deleted from the current node."""
        tree = parse_string('/ { a { s = "x"; t; /delete-property/ s; }; };')
        assert list(tree["/a"]) == ["t"]

    def test_delete_absent_property_tolerated(self):
        """By default deleting an absent property does nothing."""
        tree = parse_string("/ { a { t; /delete-property/ nope; }; };")
        assert list(tree["/a"]) == ["t"]

    def test_delete_absent_property_strict(self):
        """In strict mode deleting an absent property fails."""
        with pytest.raises(MissingNode):
            parse_string("/ { a { /delete-property/ nope; }; };", strict=True)

    def test_version_and_memreserve(self):
        """The version tag and memory reservations are recorded."""
        tree = parse_string("/dts-v1/;\n/memreserve/ 0x1000 0x2000;\n/ { };")
        assert tree.version == "dts-v1"
        assert tree.memreserves == [["0x1000", "0x2000"]]

    def test_unknown_directive(self):
        """Unknown directives are ignored."""
        tree = parse_string("/plugin/;\n/ { a; };")
        assert list(tree.root) == ["a"]


class TestDefines:
    """Tests for defines."""

    def test_defines(self):
        """Distinct defines are all kept."""
        tree = parse_string("#define FOO 1\n#define BAR 2\n/ { };")
        assert dict(tree.defines) == {"FOO": "1", "BAR": "2"}

    def test_redefine(self):
        """Defining a name twice fails."""
        with pytest.raises(Redefine):
            parse_string("#define FOO 1\n#define FOO 1\n")


class TestIncludes:
    """Tests for builds over several sources."""

    def test_include_order(self):
        """Included nodes come before the nodes after the include."""
        tree = parse_string('/ {\n#include "B"\nx { };\n};\n', sources={"B": "y { };\n"})
        assert children(tree.root) == ["y", "x"]

    def test_root_across_includes(self):
        """Root blocks in several sources merge into one root."""
        tree = parse_string('/dts-v1/;\n#include "soc.dtsi"\n/ { board { }; };\n',
                            sources={"soc.dtsi": "/ { soc { }; };\n"})
        assert children(tree.root) == ["soc", "board"]

    def test_board(self, board_tree):
        """The board sources build the expected tree."""
        assert board_tree.version == "dts-v1"
        assert board_tree.memreserves == [["0x10000000", "0x4000"]]
        assert board_tree.defines["BOARD_NAME"] == "zynqmp-board"
        assert children(board_tree.root) == ["soc", "chosen"]
        assert list(board_tree.root) == ["#address-cells", "#size-cells", "model", "compatible"]
        assert board_tree.root["compatible"] == '"xlnx,zynqmp-board", "xlnx,zynqmp"'
        assert board_tree["/chosen"]["bootargs"] == '"console=ttyPS0,115200"'
        assert board_tree["uart0"]["status"] == '"okay"'
        assert children(board_tree["/soc"]) == ["serial@ff000000", "gpio@ff0a0000"]
        assert "spare" not in board_tree.labels

    def test_build_tree_files(self, board_dir):
        """Trees are built from files and include search paths."""
        tree = build_tree(str(board_dir / "board.dts"), [str(board_dir / "include")])
        assert tree["uart0"]["status"] == '"okay"'

    def test_build_tree_missing(self, board_dir):
        """A missing include fails the build."""
        with pytest.raises(SourceNotFound):
            build_tree(str(board_dir / "board.dts"))


class TestBuilderState:
    """Tests for the builder state machine."""

    def test_halts_on_end(self):
        """END_OF_INPUT halts the builder."""
        builder = TreeBuilder()
        builder.apply(DTEvent.node_open(None, "/"))
        builder.apply(DTEvent.node_close())
        assert builder.state == BuilderState.ACTIVE
        builder.apply(DTEvent.end_of_input())
        assert builder.state == BuilderState.HALTED
        with pytest.raises(BuilderHalted):
            builder.apply(DTEvent.node_open(None, "/"))

    def test_halts_on_error(self):
        """Any error halts the builder."""
        builder = TreeBuilder()
        with pytest.raises(BadPath):
            builder.apply(DTEvent.node_close())
        assert builder.state == BuilderState.HALTED
        with pytest.raises(BuilderHalted):
            builder.apply(DTEvent.node_close())

    def test_halts_on_source_error(self):
        """An error from the event source halts the builder."""
        builder = TreeBuilder()
        stack = IncludeStack(MemorySourceProvider(), source=DTSource("x", "/ { $ };"))
        with pytest.raises(UnknownSymbol):
            builder.build(stack)
        assert builder.state == BuilderState.HALTED
        with pytest.raises(BuilderHalted):
            builder.apply(DTEvent.node_open(None, "/"))

    def test_cursor(self):
        """The cursor follows opens and closes."""
        builder = TreeBuilder()
        builder.apply(DTEvent.node_open(None, "/"))
        builder.apply(DTEvent.node_open("l", "a"))
        assert builder.path == ["/", "a"]
        builder.apply(DTEvent.node_close())
        assert builder.path == ["/"]
        assert builder.tree.labels["l"] == ["/", "a"]

    def test_identical_event_twice(self):
        """Opening the same node twice leaves one node."""
        builder = TreeBuilder()
        for ev in (DTEvent.node_open(None, "/"), DTEvent.node_open(None, "a"),
                   DTEvent.node_close(), DTEvent.node_open(None, "a"),
                   DTEvent.node_close()):
            builder.apply(ev)
        assert children(builder.tree.root) == ["a"]

    def test_existing_tree(self):
        """A builder can add to an existing tree."""
        tree = parse_string("/ { a { }; };")
        TreeBuilder(tree).build([DTEvent.node_open(None, "/"), DTEvent.node_open(None, "b"),
                                 DTEvent.node_close(), DTEvent.node_close()])
        assert children(tree.root) == ["a", "b"]

    def test_include_not_expanded(self):
        """Include events must be expanded before the builder."""
        with pytest.raises(MimirError):
            TreeBuilder().apply(DTEvent.include("x"))

    def test_error_location(self):
        """Tree errors carry the source and offset of the failing event."""
        with pytest.raises(UnknownLabel) as excinfo:
            parse_string("/ { };\n&nope { };", name="board.dts")
        assert excinfo.value.source == "board.dts"
        assert excinfo.value.offset == 7
        assert str(excinfo.value).startswith("board.dts: label 'nope'")

    def test_no_partial_tree(self):
        """A failed build returns nothing."""
        result = None
        with pytest.raises(MimirError):
            result = parse_string("/ { a; }; $")
        assert result is None
