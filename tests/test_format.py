"""
Tests for the output formats: dts, dot and yaml.
"""

import configparser
import io
import pytest

from ruamel.yaml import YAML

import mimir.log
from mimir import MimirDT, parse_string
from mimir.fmt import MimirFmt
from mimir.dot import to_dot, dot_lines
from mimir.yaml import to_yaml, export_dict, DTTreeImporter


@pytest.fixture
def small_tree():
    """A tree with a label, a boolean property and a reference."""
    return parse_string("/ { l: a { p = <1>; b; }; c { r = <&l>; }; };")


def yaml_load(text):
    return YAML(typ='safe').load(text)


class TestFmt:
    """Tests for the output format names."""

    @pytest.mark.parametrize("name,fmt", [
        ("dts", MimirFmt.DTS), ("file", MimirFmt.DTS), ("DOT", MimirFmt.DOT),
        ("dotfile", MimirFmt.DOT), ("yaml", MimirFmt.YAML), ("yml", MimirFmt.YAML),
    ])
    def test_from_string(self, name, fmt):
        """Formats are found by name or alias."""
        assert MimirFmt.from_string(name) == fmt

    def test_from_string_unknown(self):
        """Unknown format names are rejected."""
        with pytest.raises(ValueError):
            MimirFmt.from_string("dtb")

    @pytest.mark.parametrize("name,fmt", [
        ("out.dts", MimirFmt.DTS), ("a/b.gv", MimirFmt.DOT),
        ("x.YAML", MimirFmt.YAML), ("x.txt", None), ("noext", None),
    ])
    def test_from_filename(self, name, fmt):
        """Output file suffixes imply a format."""
        assert MimirFmt.from_filename(name) == fmt


class TestYaml:
    """Tests for the yaml export."""

    def test_export_dict(self, small_tree):
        """Boolean properties become True, nodes become mappings."""
        assert export_dict(small_tree) == {
            "/": {"a": {"p": "<1>", "b": True}, "c": {"r": "<&l>"}},
        }

    def test_to_yaml(self, small_tree, tmp_path):
        """The yaml text loads back to the same mapping."""
        outfile = tmp_path / "out.yaml"
        text = to_yaml(small_tree, str(outfile))
        assert yaml_load(text) == export_dict(small_tree)
        assert outfile.read_text() == text

    def test_board(self, board_tree):
        """Quoted string values survive the export."""
        data = yaml_load(to_yaml(board_tree))
        assert data["/"]["chosen"]["bootargs"] == '"console=ttyPS0,115200"'
        assert data["/"]["soc"]["gpio@ff0a0000"]["gpio-controller"] is True

    def test_node_and_property_same_name(self, monkeypatch):
        """A node wins over a property of the same name, with a warning."""
        warnings = []
        monkeypatch.setattr(mimir.log, "_warning", lambda message, logger=None: warnings.append(message))
        tree = parse_string("/ { a = <1>; a { b; }; };")
        assert export_dict(tree) == {"/": {"a": {"b": True}}}
        assert len(warnings) == 1
        assert "/a" in warnings[0]

    def test_empty(self):
        """An empty tree exports as an empty mapping."""
        assert export_dict(parse_string("")) == {}

    def test_importer(self, small_tree):
        """The importer mirrors the tree as anytree nodes."""
        anyroot = DTTreeImporter().import_(small_tree)
        assert anyroot.dt_path == "/"
        a, c = anyroot.children
        assert a.labels == ["l"]
        assert a.dt_path == "/a"
        assert dict(c.props) == {"r": "<&l>"}


class TestDot:
    """Tests for the graphviz export."""

    def test_nodes_and_edges(self, small_tree):
        """Nodes are named by path and labelled by name."""
        lines = dot_lines(small_tree)
        assert lines[0] == "digraph tree {"
        assert lines[-1] == "}"
        assert '    "/a" [label="l: a"];' in lines
        assert '    "/" -> "/a";' in lines
        assert '    "/" -> "/c";' in lines
        assert not any("dashed" in l for l in lines)

    def test_references(self, small_tree):
        """References are drawn as dashed edges."""
        lines = dot_lines(small_tree, references=True)
        assert '    "/c" -> "/a" [style=dashed];' in lines
        assert lines[-1] == "}"

    def test_dangling_reference(self):
        """References to unknown labels are not drawn."""
        tree = parse_string("/ { c { r = <&nope>; }; };")
        lines = dot_lines(tree, references=True)
        assert not any("dashed" in l for l in lines)

    def test_show_properties(self, small_tree):
        """Properties can be listed in the node boxes."""
        lines = dot_lines(small_tree, show_properties=True)
        assert '    "/a" [label="l: a\\lp = <1>\\lb\\l"];' in lines

    def test_to_dot_stream(self, small_tree):
        """The dot text is written to a stream."""
        out = io.StringIO()
        text = to_dot(small_tree, out)
        assert out.getvalue() == text
        assert text.endswith("}\n")


class TestWrite:
    """Tests for MimirDT.write() format selection."""

    @pytest.fixture
    def sdt(self, board_dir):
        device_tree = MimirDT(str(board_dir / "board.dts"))
        device_tree.setup([str(board_dir / "include")])
        device_tree.build()
        return device_tree

    def test_default_dts(self, sdt, capsys):
        """Without an output file, dts is written to stdout."""
        sdt.write()
        out = capsys.readouterr().out
        assert out.startswith("/dts-v1/;\n")
        assert "uart0: serial@ff000000 {" in out
        assert "spare" not in out

    def test_suffix(self, sdt, tmp_path):
        """The output suffix picks the format."""
        sdt.write(str(tmp_path / "out.yaml"))
        data = yaml_load((tmp_path / "out.yaml").read_text())
        assert "soc" in data["/"]
        sdt.write(str(tmp_path / "out.dot"))
        assert (tmp_path / "out.dot").read_text().startswith("digraph tree {")

    def test_explicit_format(self, sdt, tmp_path):
        """An explicit format overrides the suffix."""
        sdt.write(str(tmp_path / "out.yaml"), MimirFmt.DOT)
        assert (tmp_path / "out.yaml").read_text().startswith("digraph tree {")

    def test_config_format(self, board_dir, tmp_path):
        """The configured format is used when none is passed."""
        config = configparser.ConfigParser()
        config.read_dict({"output": {"format": "yaml"}, "dot": {"references": "yes"}})
        device_tree = MimirDT(str(board_dir / "board.dts"))
        device_tree.setup([str(board_dir / "include")], config)
        assert device_tree.format == MimirFmt.YAML
        assert device_tree.references
        device_tree.build()
        device_tree.write(str(tmp_path / "out.dts"))
        assert "soc" in yaml_load((tmp_path / "out.dts").read_text())["/"]

    def test_dryrun(self, sdt, tmp_path):
        """Nothing is written in dryrun mode."""
        sdt.dryrun = True
        sdt.write(str(tmp_path / "out.dts"))
        assert not (tmp_path / "out.dts").exists()

    def test_printed_dts_rebuilds(self, sdt, tmp_path):
        """The printed dts builds to the same tree."""
        outfile = tmp_path / "out.dts"
        sdt.write(str(outfile))
        rebuilt = parse_string(outfile.read_text())
        assert rebuilt.export() == sdt.tree.export()
        assert rebuilt.label_path("uart0") == sdt.tree.label_path("uart0")
