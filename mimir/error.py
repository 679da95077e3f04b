#/*
# * Copyright (c) 2023 Advanced Micro Devices, Inc. All Rights Reserved.
# *
# * Author:
# *       Bruce Ashfield <bruce.ashfield@amd.com>
# *
# * SPDX-License-Identifier: BSD-3-Clause
# */

"""
Contains all errors that may be raised while building a device tree.

The errors are organized in a hierarchy, with the base class being
MimirError:

- DTParseError: lexical and syntax errors found while turning source text
  into events. These carry the offending text, the offset into the source
  and (once known) the source name.
- DTTreeError: errors found while applying events to the tree.
- SourceError: errors opening a source or an include.

Errors are kept in a separate module to avoid circular imports.
"""


class MimirError(Exception):
    "Exception raised for all device tree build errors"


class DTParseError(MimirError):
    """Exception raised when source text cannot be turned into events

    Attributes:
       - text: the offending slice of source text (may be empty)
       - offset: offset of the slice in the source text
       - source: the name of the source, filled in by the parser
       - lineno: 1 based line of the offset, when the source text is known
    """
    message = "parse error"

    def __init__(self, offset, text="", source=None, lineno=None):
        super().__init__(offset, text)
        self.offset = offset
        self.text = text
        self.source = source
        self.lineno = lineno

    def describe(self):
        msg = self.message
        if self.text:
            msg += " '{}'".format(self.text.strip() or repr(self.text))
        return msg

    def __str__(self):
        where = self.source or "<input>"
        if self.lineno is not None:
            where += ":{}".format(self.lineno)

        return "{}: {} (offset {})".format(where, self.describe(), self.offset)


class UnexpectedEndOfInput(DTParseError):
    "Exception raised when the source ends inside a construct"
    message = "unexpected end of input"


class UnknownSymbol(DTParseError):
    "Exception raised for text the lexer does not recognize"
    message = "unknown symbol"


class BadDefine(DTParseError):
    "Exception raised for a #define that is not '#define NAME VALUE'"
    message = "bad #define"


class MalformedConstruct(DTParseError):
    "Exception raised for a token that is not legal where it was found"
    message = "malformed construct"

    def __init__(self, offset, text="", reason="", source=None, lineno=None):
        super().__init__(offset, text, source, lineno)
        self.reason = reason

    def describe(self):
        msg = super().describe()
        if self.reason:
            msg += ": " + self.reason
        return msg


class DTTreeError(MimirError):
    """Exception raised for errors applying events to the tree

    Attributes:
       - source: name of the source of the failing event, if known
       - offset: offset of the failing event in that source, if known
    """
    def __init__(self, message, source=None, offset=None):
        super().__init__(message)
        self.message = message
        self.source = source
        self.offset = offset

    def __str__(self):
        if self.source is None:
            return self.message
        return "{}: {} (offset {})".format(self.source, self.message, self.offset)


class MissingNode(DTTreeError):
    "Exception raised when a path or property does not resolve"


class UnknownLabel(DTTreeError):
    "Exception raised when a label is not (or no longer) bound to a node"


class BadPath(DTTreeError):
    "Exception raised for an empty or otherwise unusable path"


class Redefine(DTTreeError):
    "Exception raised when a #define name is defined twice"


class SourceError(MimirError):
    """Exception raised when a source cannot be opened

    Attributes:
       - name: the source name that was requested
    """
    def __init__(self, name, reason=""):
        super().__init__(name, reason)
        self.name = name
        self.reason = reason

    def __str__(self):
        if self.reason:
            return "{}: {}".format(self.name, self.reason)
        return str(self.name)


class SourceNotFound(SourceError):
    "Exception raised when no source matches a name"


class SourceIOError(SourceError):
    "Exception raised when a source exists but could not be read"


class IncludeCycle(SourceError):
    "Exception raised when a source includes itself, directly or not"


class BuilderHalted(MimirError):
    "Exception raised when events are applied to a halted builder"
