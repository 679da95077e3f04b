#/*
# * Copyright (c) 2023 Advanced Micro Devices, Inc. All Rights Reserved.
# *
# * Author:
# *       Bruce Ashfield <bruce.ashfield@amd.com>
# *
# * SPDX-License-Identifier: BSD-3-Clause
# */

from enum import Enum

from mimir.parser import EventType, DirectiveType
from mimir.tree import DTTree
from mimir.error import MimirError, DTTreeError, BadPath, MissingNode, BuilderHalted
import mimir.log

mimir.log._init( __name__ )

class BuilderState(Enum):
    """Enum class for the states of a TreeBuilder
    """
    ACTIVE = 1
    HALTED = 2

class TreeBuilder:
    """Applies a stream of DTEvents to a DTTree

    The builder keeps a cursor: the path (list of node names from the root)
    of the node being edited. Opening a node pushes onto it, closing pops,
    and a reference (&label {) replaces it with the path of the label. When
    the block opened by a reference is closed, the cursor from before the
    reference is restored.

    Any error halts the builder, there is no recovery of a partial tree.

    Attributes:
       - tree (DTTree): the tree being built
       - path (list): the cursor
       - state (BuilderState): ACTIVE until END_OF_INPUT or an error
       - strict (bool): if True, deleting a missing property is an error
    """
    def __init__( self, tree = None, strict = False ):
        self.tree = tree if tree is not None else DTTree()
        self.strict = strict
        self.path = []
        self.state = BuilderState.ACTIVE
        # (cursor depth inside the reference block, cursor to restore)
        self.__returns__ = []

        self.__handlers__ = {
            EventType.NODE_OPEN: self._node_open,
            EventType.NODE_CLOSE: self._node_close,
            EventType.PROPERTY: self._property,
            EventType.DEFINE: self._define,
            EventType.REFERENCE: self._reference,
            EventType.DIRECTIVE: self._directive,
            EventType.INCLUDE: self._include,
            EventType.END_OF_INPUT: self._end,
        }

    def build( self, events ):
        """Apply events until END_OF_INPUT

        Args:
           events (iterable): DTEvents, i.e. an IncludeStack

        Returns:
           DTTree: the finished tree
        """
        try:
            for event in events:
                self.apply( event )
                if self.state == BuilderState.HALTED:
                    break
        except MimirError:
            # the event source failed: a parse or include error
            self.state = BuilderState.HALTED
            raise

        if self.state != BuilderState.HALTED:
            self._end( None )

        return self.tree

    def apply( self, event ):
        """Apply one event to the tree

        Args:
           event (DTEvent): the event

        Returns:
           Nothing, raises a MimirError on failure (and halts)
        """
        if self.state == BuilderState.HALTED:
            raise BuilderHalted( "no events can be applied after the build is finished" )

        mimir.log._debug( f"{self.path}: {event}" )

        try:
            self.__handlers__[event.type]( event )
        except DTTreeError as e:
            self.state = BuilderState.HALTED
            if e.source is None and event.source is not None:
                e.source = event.source
                e.offset = event.offset
            raise
        except MimirError:
            self.state = BuilderState.HALTED
            raise

    def _node_open( self, event ):
        self.tree.add_node( self.path, event.name )
        self.path.append( event.name )
        if event.label:
            self.tree.add_label( event.label, self.path )

    def _node_close( self, event ):
        if not self.path:
            raise BadPath( "unbalanced '};'" )

        if self.__returns__ and self.__returns__[-1][0] == len( self.path ):
            _, self.path = self.__returns__.pop()
        else:
            self.path.pop()

    def _property( self, event ):
        self.tree.add_property( self.path, event.name, event.value )

    def _define( self, event ):
        self.tree.add_define( event.name, event.value )

    def _reference( self, event ):
        path = self.tree.label_path( event.name )
        self.__returns__.append( ( len( path ), self.path ) )
        self.path = path

    def _directive( self, event ):
        if event.directive == DirectiveType.DELETE_NODE:
            self.tree.delete_node( self._target_path( event.target ) )
        elif event.directive == DirectiveType.DELETE_PROPERTY:
            if not event.target:
                raise BadPath( "/delete-property/ without a property name" )
            if not self.tree.delete_property( self.path, event.target, self.strict ):
                mimir.log._info( f"/delete-property/ {event.target}: not present, ignored" )
        elif event.name == "dts-v1":
            self.tree.version = event.name
            mimir.log._debug( f"version tag /{event.name}/" )
        elif event.name == "memreserve":
            self.tree.memreserves.append( list( event.args ) )
            mimir.log._debug( f"memory reservation: {event.args}" )
        else:
            mimir.log._warning( f"ignoring directive /{event.name}/" )

    def _target_path( self, target ):
        """Resolve a /delete-node/ target: &label, /absolute/path or relative/path"""
        if not target:
            raise BadPath( "/delete-node/ without a target" )

        if target.startswith( "&" ):
            return self.tree.label_path( target[1:] )
        if target.startswith( "/" ):
            return self.tree.split_path( target )

        if not self.path:
            raise MissingNode( "relative /delete-node/ target '{}' outside of any node".format( target ) )

        return self.path + [ p for p in target.split( "/" ) if p ]

    def _include( self, event ):
        raise MimirError( "include of '{}' was not expanded before the tree builder".format( event.target ) )

    def _end( self, event ):
        if self.path:
            mimir.log._warning( f"input ended inside node {'/'.join( self.path )}" )
        self.state = BuilderState.HALTED
