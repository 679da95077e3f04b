"""
Pytest configuration and shared fixtures for mimir tests.
"""

import pytest
from pathlib import Path

from mimir import parse_string
from mimir.source import MemorySourceProvider


BOARD_DTS = """/dts-v1/;
/memreserve/ 0x10000000 0x4000;

#include "soc.dtsi"

#define BOARD_NAME zynqmp-board

/ {
	model = "Test Board";
	compatible = "xlnx,zynqmp-board", "xlnx,zynqmp";

	chosen {
		bootargs = "console=ttyPS0,115200";
		stdout-path = &uart0;
	};
};

&uart0 {
	status = "okay";
};

/delete-node/ &spare;
"""

SOC_DTSI = """/* SoC description */
/ {
	#address-cells = <2>;
	#size-cells = <2>;

	amba: soc {
		uart0: serial@ff000000 {
			compatible = "cdns,uart-r1p12";
			reg = <0x0 0xff000000 0x0 0x1000>;
			status = "disabled";
		};

		spare: spare@ff010000 {
			reg = <0x0 0xff010000 0x0 0x1000>;
		};

		gpio: gpio@ff0a0000 {
			gpio-controller;
			interrupt-parent = <&gic>;
		};
	};
};
"""


@pytest.fixture
def board_sources():
    """
    The sources of a small board description, by name.

    board.dts includes soc.dtsi, reopens a node by label and deletes
    another one.
    """
    return {"board.dts": BOARD_DTS, "soc.dtsi": SOC_DTSI}


@pytest.fixture
def memory_provider(board_sources):
    """An in-memory source provider over the board sources."""
    return MemorySourceProvider(board_sources)


@pytest.fixture
def board_tree(board_sources):
    """The tree built from the in-memory board sources."""
    return parse_string(BOARD_DTS, name="board.dts", sources=board_sources)


@pytest.fixture
def board_dir(tmp_path):
    """
    Write the board sources to disk.

    board.dts is placed at the top of the directory and soc.dtsi in an
    include/ subdirectory, so that it is only found through a search path.
    """
    inc = tmp_path / "include"
    inc.mkdir()
    (tmp_path / "board.dts").write_text(BOARD_DTS)
    (inc / "soc.dtsi").write_text(SOC_DTSI)
    return tmp_path


@pytest.fixture
def write_sources(tmp_path):
    """
    Return a helper that writes name -> text sources under tmp_path.

    The helper returns the path of the first source written.
    """
    def _write(sources):
        first = None
        for name, text in sources.items():
            p = Path(tmp_path) / name
            p.parent.mkdir(parents=True, exist_ok=True)
            p.write_text(text)
            if first is None:
                first = p
        return first

    return _write
