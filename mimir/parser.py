#/*
# * Copyright (c) 2023 Advanced Micro Devices, Inc. All Rights Reserved.
# *
# * Author:
# *       Bruce Ashfield <bruce.ashfield@amd.com>
# *
# * SPDX-License-Identifier: BSD-3-Clause
# */

import re
from enum import Enum

from mimir.lexer import Lexer, TokenType
from mimir.error import UnexpectedEndOfInput, UnknownSymbol, BadDefine, MalformedConstruct

class EventType(Enum):
    """Enum class for the source events produced by the DTParser
    """
    INCLUDE = 1
    DEFINE = 2
    NODE_OPEN = 3
    NODE_CLOSE = 4
    PROPERTY = 5
    DIRECTIVE = 6
    REFERENCE = 7
    END_OF_INPUT = 8

class DirectiveType(Enum):
    """Enum class for the /<name>/ overlay directives
    """
    DELETE_NODE = 1
    DELETE_PROPERTY = 2
    UNKNOWN = 3

    @staticmethod
    def from_name( name ):
        """Map a directive name (without slashes) to a DirectiveType"""
        if name == "delete-node":
            return DirectiveType.DELETE_NODE
        if name == "delete-property":
            return DirectiveType.DELETE_PROPERTY
        return DirectiveType.UNKNOWN

class DTEvent:
    """Class representing one semantic unit of device tree source

    Only the attributes that are meaningful for the event type are set,
    the rest are None.

    Attributes:
       - type (EventType): the kind of event
       - name: node name (NODE_OPEN, REFERENCE), property name (PROPERTY),
               define name (DEFINE) or directive name (DIRECTIVE)
       - value: property value (None for a boolean property) or define value
       - label: label of a NODE_OPEN
       - target: include target, or the directive target
       - directive (DirectiveType): kind of a DIRECTIVE
       - args: the separate right hand side words of a DIRECTIVE
       - offset: offset of the first token of the event in its source
       - source: name of the source the event came from
    """
    def __init__( self, etype, name = None, value = None, label = None, target = None,
                  directive = None, args = (), offset = -1, source = None ):
        self.type = etype
        self.name = name
        self.value = value
        self.label = label
        self.target = target
        self.directive = directive
        self.args = tuple( args )
        self.offset = offset
        self.source = source

    def fields( self ):
        return ( self.type, self.name, self.value, self.label, self.target, self.directive )

    def __eq__( self, other ):
        if not isinstance( other, DTEvent ):
            return NotImplemented
        return self.fields() == other.fields()

    def __repr__( self ):
        parts = [ self.type.name ]
        for attr in ( "label", "name", "value", "target", "directive" ):
            v = getattr( self, attr )
            if v is not None:
                parts.append( "{}={!r}".format( attr, v ) )
        return "DTEvent({})".format( ", ".join( parts ) )

    @staticmethod
    def include( target ):
        return DTEvent( EventType.INCLUDE, target = target )

    @staticmethod
    def define( name, value ):
        return DTEvent( EventType.DEFINE, name = name, value = value )

    @staticmethod
    def node_open( label, name ):
        return DTEvent( EventType.NODE_OPEN, name = name, label = label )

    @staticmethod
    def node_close():
        return DTEvent( EventType.NODE_CLOSE )

    @staticmethod
    def prop( name, value = None ):
        return DTEvent( EventType.PROPERTY, name = name, value = value )

    @staticmethod
    def directive_event( name, target = None, args = () ):
        return DTEvent( EventType.DIRECTIVE, name = name, target = target,
                        directive = DirectiveType.from_name( name ), args = args )

    @staticmethod
    def reference( name ):
        return DTEvent( EventType.REFERENCE, name = name )

    @staticmethod
    def end_of_input():
        return DTEvent( EventType.END_OF_INPUT )

# tokens that are kept as literal characters inside a property value
_value_literals = ( TokenType.QUOTE, TokenType.ANGLE_OPEN, TokenType.ANGLE_CLOSE,
                    TokenType.BRACKET_OPEN, TokenType.BRACKET_CLOSE,
                    TokenType.LABEL, TokenType.EQUALS )

class DTParser:
    """Groups the tokens of one source into DTEvents

    next() returns one event per call, and END_OF_INPUT once the source is
    exhausted (and on every call after that).

    The first error found is raised, and raised again on any later call,
    there is no attempt to resynchronize after a bad token.

    Attributes:
       - name: the name of the source being parsed, used in errors
       - lexer: the Lexer over the source text
    """
    def __init__( self, text, name = None ):
        self.name = name
        self.lexer = Lexer( text )
        self.done = False
        self.error = None

    def __iter__( self ):
        """Iterate the events of the source, END_OF_INPUT included"""
        while True:
            event = self.next()
            yield event
            if event.type == EventType.END_OF_INPUT:
                return

    def events( self ):
        """Get the list of all events of the source, END_OF_INPUT included"""
        return list( self )

    def next( self ):
        """Parse and return the next event

        Args:
           None

        Returns:
           DTEvent: the next event. Raises a DTParseError subclass on failure
        """
        if self.error:
            raise self.error

        if self.done:
            return self._event( DTEvent.end_of_input(), len( self.lexer.text ) )

        try:
            return self._next()
        except ( UnexpectedEndOfInput, UnknownSymbol, BadDefine, MalformedConstruct ) as e:
            e.source = self.name
            e.lineno = self.lexer.lineno( e.offset )
            self.error = e
            raise

    def _event( self, event, offset ):
        event.offset = offset
        event.source = self.name
        return event

    def _next( self ):
        while True:
            tok = self.lexer.advance()
            tt = tok.type

            if tt == TokenType.NEWLINE:
                continue
            elif tt in ( TokenType.LINE_COMMENT, TokenType.BLOCK_COMMENT_START ):
                self._skip_comment( tok )
            elif tt == TokenType.END:
                self.done = True
                return self._event( DTEvent.end_of_input(), tok.offset )
            elif tt == TokenType.ERROR:
                raise UnknownSymbol( tok.offset, tok.text )
            elif tt == TokenType.DEFINE:
                return self._event( self._define(), tok.offset )
            elif tt == TokenType.INCLUDE:
                return self._event( self._include(), tok.offset )
            elif tt == TokenType.TEXT:
                return self._event( self._statement( tok ), tok.offset )
            elif tt == TokenType.NODE_CLOSE:
                return self._event( DTEvent.node_close(), tok.offset )
            elif tt == TokenType.DIRECTIVE:
                return self._event( self._directive( tok ), tok.offset )
            elif tt == TokenType.REFERENCE:
                return self._event( self._reference(), tok.offset )
            else:
                raise MalformedConstruct( tok.offset, tok.text, "unexpected token" )

    def _skip_comment( self, start ):
        """Advance past the body of a comment

        A line comment runs to the next newline, a block comment to the next
        end marker. The body is still tokenized, so an unknown symbol in it
        is an error, as is running out of input.
        """
        if start.type == TokenType.LINE_COMMENT:
            end = TokenType.NEWLINE
        else:
            end = TokenType.BLOCK_COMMENT_END

        while True:
            tok = self.lexer.advance()
            if tok.type == end:
                return
            if tok.type == TokenType.END:
                raise UnexpectedEndOfInput( tok.offset )
            if tok.type == TokenType.ERROR:
                raise UnknownSymbol( tok.offset, tok.text )

    def _next_significant( self ):
        """Advance to the next token that is not a newline or a comment"""
        while True:
            tok = self.lexer.advance()
            if tok.type == TokenType.NEWLINE:
                continue
            if tok.type in ( TokenType.LINE_COMMENT, TokenType.BLOCK_COMMENT_START ):
                self._skip_comment( tok )
                continue
            return tok

    def _unexpected( self, tok, reason ):
        if tok.type == TokenType.END:
            return UnexpectedEndOfInput( tok.offset )
        if tok.type == TokenType.ERROR:
            return UnknownSymbol( tok.offset, tok.text )
        return MalformedConstruct( tok.offset, tok.text, reason )

    def _define( self ):
        body = self.lexer.advance()
        if body.type != TokenType.TEXT:
            raise BadDefine( body.offset, body.text )

        parts = re.split( r'\s+', body.text, maxsplit = 1 )
        if len( parts ) != 2:
            raise BadDefine( body.offset, body.text )

        return DTEvent.define( parts[0], parts[1] )

    def _include( self ):
        words = _Words()
        while True:
            tok = self.lexer.advance()
            tt = tok.type
            if tt in ( TokenType.NEWLINE, TokenType.END ):
                break
            elif tt == TokenType.LINE_COMMENT:
                self._skip_comment( tok )
                break
            elif tt == TokenType.BLOCK_COMMENT_START:
                self._skip_comment( tok )
            elif tt in ( TokenType.QUOTE, TokenType.ANGLE_OPEN, TokenType.ANGLE_CLOSE ):
                words.cut()
            elif tt in ( TokenType.TEXT, TokenType.DIRECTIVE ):
                words.add( tok )
                if len( words ) > 1:
                    raise MalformedConstruct( tok.offset, tok.text, "more than one include target" )
            else:
                raise self._unexpected( tok, "unexpected token in include" )

        if not words:
            raise MalformedConstruct( tok.offset, tok.text, "missing include target" )

        return DTEvent.include( words[0] )

    def _statement( self, lhs ):
        """A text token starts a property or a node, the next token decides"""
        tok = self._next_significant()
        tt = tok.type

        if tt == TokenType.EQUALS:
            return DTEvent.prop( lhs.text, self._value() )
        elif tt == TokenType.STATEMENT_END:
            return DTEvent.prop( lhs.text )
        elif tt == TokenType.NODE_OPEN:
            return DTEvent.node_open( None, lhs.text )
        elif tt == TokenType.LABEL:
            return DTEvent.node_open( lhs.text, self._labeled_node_name() )

        raise self._unexpected( tok, "expected '=', ';', ':' or '{{' after '{}'".format( lhs.text ) )

    def _labeled_node_name( self ):
        name = None
        while True:
            tok = self._next_significant()
            if tok.type == TokenType.NODE_OPEN:
                break
            if tok.type == TokenType.TEXT:
                name = tok.text
            else:
                raise self._unexpected( tok, "expected a node name after a label" )

        if name is None:
            raise MalformedConstruct( tok.offset, tok.text, "label without a node name" )

        return name

    def _value( self ):
        """Collect the right hand side of a property up to the closing ';'"""
        words = _Words()
        while True:
            tok = self.lexer.advance()
            tt = tok.type

            if tt == TokenType.STATEMENT_END:
                break
            elif tt == TokenType.NEWLINE:
                words.cut()
            elif tt in ( TokenType.LINE_COMMENT, TokenType.BLOCK_COMMENT_START ):
                self._skip_comment( tok )
                words.cut()
            elif tt in ( TokenType.TEXT, TokenType.DIRECTIVE ):
                words.add( tok )
            elif tt == TokenType.REFERENCE:
                self._add_reference( words, tok )
            elif tt in _value_literals:
                words.add( tok )
            else:
                raise self._unexpected( tok, "unexpected token in property value" )

        return " ".join( words )

    def _reference_name( self ):
        tok = self.lexer.advance()
        if tok.type != TokenType.TEXT:
            raise self._unexpected( tok, "expected a label after '&'" )
        return tok

    def _add_reference( self, words, amp ):
        """A &name inside a value or directive is kept as the literal &name"""
        name = self._reference_name()
        words.add( amp, "&" + name.text, name.offset + len( name.text ) )

    def _directive( self, start ):
        words = _Words()
        while True:
            tok = self.lexer.advance()
            tt = tok.type

            if tt == TokenType.STATEMENT_END:
                break
            elif tt == TokenType.NEWLINE:
                words.cut()
            elif tt in ( TokenType.LINE_COMMENT, TokenType.BLOCK_COMMENT_START ):
                self._skip_comment( tok )
                words.cut()
            elif tt in ( TokenType.TEXT, TokenType.DIRECTIVE ):
                words.add( tok )
            elif tt == TokenType.REFERENCE:
                self._add_reference( words, tok )
            else:
                raise self._unexpected( tok, "unexpected token in directive" )

        name = start.text.strip( "/" )
        target = "".join( words ) if words else None

        return DTEvent.directive_event( name, target, words )

    def _reference( self ):
        name = self._reference_name().text
        tok = self._next_significant()
        if tok.type != TokenType.NODE_OPEN:
            raise self._unexpected( tok, "expected '{{' after '&{}'".format( name ) )

        return DTEvent.reference( name )

class _Words( list ):
    """List of words, where tokens with no space between them form one word

    A path such as /soc/uart is scanned as a slash form followed by text,
    and a value such as "okay" as quote, text, quote. This glues such pieces
    back together, so a value keeps the spacing of the source.
    """
    def __init__( self ):
        super().__init__()
        self._end = None

    def add( self, tok, text = None, end = None ):
        if text is None:
            text = tok.text
        if self and self._end == tok.offset:
            self[-1] += text
        else:
            self.append( text )
        self._end = end if end is not None else tok.offset + len( text )

    def cut( self ):
        self._end = None
