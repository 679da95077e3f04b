#/*
# * Copyright (c) 2023 Advanced Micro Devices, Inc. All Rights Reserved.
# *
# * Author:
# *       Bruce Ashfield <bruce.ashfield@amd.com>
# *
# * SPDX-License-Identifier: BSD-3-Clause
# */

import re
from collections import namedtuple
from enum import Enum

class TokenType(Enum):
    """Enum class for the lexical units of device tree source
    """
    END = 1
    ERROR = 2
    INCLUDE = 3
    DEFINE = 4
    BLOCK_COMMENT_START = 5
    BLOCK_COMMENT_END = 6
    LINE_COMMENT = 7
    REFERENCE = 8
    LABEL = 9
    NODE_OPEN = 10
    NODE_CLOSE = 11
    EQUALS = 12
    STATEMENT_END = 13
    QUOTE = 14
    ANGLE_OPEN = 15
    ANGLE_CLOSE = 16
    BRACKET_OPEN = 17
    BRACKET_CLOSE = 18
    DIRECTIVE = 19
    NEWLINE = 20
    TEXT = 21

Token = namedtuple( "Token", [ "type", "text", "offset" ] )

# Rules in priority order. The first rule that matches at a position wins,
# and each rule matches as much as it can.
_rules = [
    ( TokenType.INCLUDE, r'#include|/include/' ),
    ( TokenType.DEFINE, r'#define' ),
    ( TokenType.BLOCK_COMMENT_START, r'/\*' ),
    ( TokenType.BLOCK_COMMENT_END, r'\*/' ),
    ( TokenType.LINE_COMMENT, r'//' ),
    ( TokenType.REFERENCE, r'&' ),
    ( TokenType.LABEL, r':' ),
    ( TokenType.NODE_OPEN, r'\{' ),
    ( TokenType.NODE_CLOSE, r'\};' ),
    ( TokenType.EQUALS, r'=' ),
    ( TokenType.STATEMENT_END, r';' ),
    ( TokenType.QUOTE, r'"' ),
    ( TokenType.ANGLE_OPEN, r'<' ),
    ( TokenType.ANGLE_CLOSE, r'>' ),
    ( TokenType.BRACKET_OPEN, r'\[' ),
    ( TokenType.BRACKET_CLOSE, r'\]' ),
    ( TokenType.NEWLINE, r'\n' ),
    ( TokenType.DIRECTIVE, r'/[A-Za-z0-9-]+/' ),
    # a "/" that starts a comment ends the text run
    ( TokenType.TEXT, r'(?:[A-Za-z0-9_#@,.+?-]|/(?![*/]))+' ),
]

_token_re = re.compile( "|".join( "(?P<{}>{})".format( t.name, r ) for t, r in _rules ) )
_whitespace_re = re.compile( r'[ \t\r\f\v]+' )
_define_body_re = re.compile( r'(?:(?!//|/\*)[^\n])*' )

class Lexer:
    """Tokenizer for device tree source text

    The lexer is a lazy, restartable scanner over an immutable buffer. Each
    call to advance() classifies the text at the current position and moves
    past it. Once the end of the buffer is reached, END tokens are returned
    forever.

    The lexer never fails. Text that no rule recognizes is returned as a
    one character ERROR token, and the consumer decides what to do with it.

    The only context the lexer keeps is the #define keyword: the rest of
    that line is returned as a single TEXT token, so that the name and value
    can be split by the consumer.

    Attributes:
       - text: the source text
       - pos: offset of the next character to be scanned
       - token: the last token returned by advance()
    """
    def __init__( self, text ):
        if isinstance( text, bytes ):
            text = text.decode( "utf-8" )

        self.text = text
        self.reset()

    def reset( self, offset = 0 ):
        """Restart scanning at a given offset

        Args:
           offset (int,optional): offset to restart at. Default is 0

        Returns:
           Nothing
        """
        self.pos = offset
        self.token = None
        self._define_body = False

    def __iter__( self ):
        """Iterate tokens up to, but not including, END"""
        while True:
            tok = self.advance()
            if tok.type == TokenType.END:
                return
            yield tok

    def advance( self ):
        """Scan and return the next token

        Args:
           None

        Returns:
           Token: the next token. It is also available as self.token
        """
        m = _whitespace_re.match( self.text, self.pos )
        if m:
            self.pos = m.end()

        if self.pos >= len( self.text ):
            self.token = Token( TokenType.END, "", len( self.text ) )
            return self.token

        start = self.pos
        if self._define_body:
            self._define_body = False
            body = _define_body_re.match( self.text, start ).group().rstrip()
            if body:
                self.pos = start + len( body )
                self.token = Token( TokenType.TEXT, body, start )
                return self.token

        m = _token_re.match( self.text, start )
        if m:
            ttype = TokenType[m.lastgroup]
            self.pos = m.end()
            self.token = Token( ttype, m.group(), start )
            if ttype == TokenType.DEFINE:
                self._define_body = True
        else:
            self.pos = start + 1
            self.token = Token( TokenType.ERROR, self.text[start], start )

        return self.token

    def lineno( self, offset ):
        """Get the 1 based line number of an offset into the text

        Args:
           offset (int): offset into the source text

        Returns:
           int: the line number
        """
        return self.text.count( "\n", 0, offset ) + 1

def tokenize( text ):
    """Get the list of tokens of a text, up to (not including) END

    Args:
       text (string or bytes): the source text

    Returns:
       list (Token): the tokens
    """
    return list( Lexer( text ) )
