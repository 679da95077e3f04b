from enum import Enum
from pathlib import Path

class MimirFmt(Enum):
    """Enum class for the output formats of a finished tree
    """
    DTS = 1
    DOT = 2
    YAML = 3

    @staticmethod
    def from_string( s ):
        """Get a format from its (case insensitive) name

        "file" and "dotfile" are accepted as aliases of dts and dot.

        Returns:
           MimirFmt, raises ValueError on an unknown name
        """
        names = { "dts": MimirFmt.DTS,
                  "file": MimirFmt.DTS,
                  "dot": MimirFmt.DOT,
                  "dotfile": MimirFmt.DOT,
                  "yaml": MimirFmt.YAML,
                  "yml": MimirFmt.YAML }
        try:
            return names[s.lower()]
        except KeyError:
            raise ValueError( f"Invalid output format: {s}" ) from None

    @staticmethod
    def from_filename( name ):
        """Guess a format from an output file suffix, None if unknown"""
        suffixes = { ".dts": MimirFmt.DTS,
                     ".dtsi": MimirFmt.DTS,
                     ".dot": MimirFmt.DOT,
                     ".gv": MimirFmt.DOT,
                     ".yaml": MimirFmt.YAML,
                     ".yml": MimirFmt.YAML }
        return suffixes.get( Path( name ).suffix.lower() )
