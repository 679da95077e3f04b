#/*
# * Copyright (c) 2023 Advanced Micro Devices, Inc. All Rights Reserved.
# *
# * Author:
# *       Bruce Ashfield <bruce.ashfield@amd.com>
# *
# * SPDX-License-Identifier: BSD-3-Clause
# */

import re
import sys
from collections import OrderedDict

from mimir.error import MissingNode, UnknownLabel, BadPath, Redefine
import mimir.log

mimir.log._init( __name__ )

_ref_re = re.compile( r'&([A-Za-z0-9_]+)' )

class DTNode(object):
    """Class representing a device tree node

    This class implements:
       - dictionary access to properties
       - str(): the absolute path of the node
       - equality check (==): nodes at the same path are equal
       - child add (with merge of an existing child of the same name)
       - property add, modify, delete
       - export(): a nested dictionary of the node and its children

    Attributes:
       - name: the node name (this is not the node path)
       - parent: a link to the parent DTNode, None for the root
       - child_nodes: the children, by name, in declaration order
       - __props__: the properties, by name, in declaration order. A
                    boolean property has the value None
    """
    def __init__( self, name, parent = None ):
        self.name = name
        self.parent = parent
        self.child_nodes = OrderedDict()
        self.__props__ = OrderedDict()

    @property
    def depth( self ):
        """The node depth, 0 is the root"""
        d = 0
        p = self.parent
        while p is not None:
            d += 1
            p = p.parent
        return d

    @property
    def path( self ):
        """The list of node names from the root to this node"""
        names = []
        n = self
        while n is not None:
            names.insert( 0, n.name )
            n = n.parent
        return names

    @property
    def abs_path( self ):
        """The absolute path of the node, the root is always "/" """
        if self.parent is None:
            return "/"
        if self.parent.parent is None:
            return "/" + self.name
        return self.parent.abs_path + "/" + self.name

    @property
    def props( self ):
        return self.__props__

    def __str__( self ):
        return self.abs_path

    def __repr__( self ):
        return "DTNode({})".format( self.abs_path )

    def __eq__( self, other ):
        if not isinstance( other, DTNode ):
            return False
        return self.abs_path == other.abs_path

    def __hash__( self ):
        return hash( self.abs_path )

    def __iter__( self ):
        """Iterate the property names of the node"""
        return iter( self.__props__ )

    def __contains__( self, pname ):
        return pname in self.__props__

    def items( self ):
        return self.__props__.items()

    def __getitem__( self, pname ):
        """Access a property value, KeyError if it does not exist"""
        return self.__props__[pname]

    def __setitem__( self, pname, value ):
        """Add or overwrite a property, the last write wins"""
        self.__props__[pname] = value

    def propval( self, pname, default = None ):
        """A safe (no exception) way to fetch a property value"""
        return self.__props__.get( pname, default )

    def delete( self, pname ):
        """delete a property from a node

        Args:
           pname (string): the property to delete

        Returns:
           Nothing. KeyError if property is not found
        """
        del self.__props__[pname]

    def child( self, name ):
        """Get a direct child by name, None if there is no such child"""
        return self.child_nodes.get( name )

    def add( self, node ):
        """Add a child node

        If a child of the same name exists, the new node is merged into it
        and the existing child is kept (in its original position).

        Args:
           node (DTNode): the node to add

        Returns:
           DTNode: the child that is now in the tree
        """
        existing = self.child_nodes.get( node.name )
        if existing is not None:
            existing.merge( node )
            return existing

        node.parent = self
        self.child_nodes[node.name] = node

        return node

    def remove( self, name ):
        """Remove a direct child by name

        Args:
           name (string): the child name

        Returns:
           DTNode: the removed child. KeyError if there is no such child
        """
        node = self.child_nodes.pop( name )
        node.parent = None
        return node

    def merge( self, other_node ):
        """merge a secondary node into the target

        Properties of the other node are added or overwrite ours, children
        are added or merged recursively. Nothing is removed.

        Args:
           other_node (DTNode): The other to merge

        Returns:
           Nothing
        """
        for pname, value in other_node.__props__.items():
            self.__props__[pname] = value

        for c in list( other_node.child_nodes.values() ):
            other_node.child_nodes.pop( c.name )
            self.add( c )

    def subnodes( self ):
        """Walk this node and its children, depth first, in declaration order"""
        yield self
        for c in self.child_nodes.values():
            yield from c.subnodes()

    def export( self ):
        """Export the node and its children as a nested dictionary

        Properties come first, children follow keyed by their name.

        Returns:
           OrderedDict
        """
        dct = OrderedDict()
        for pname, value in self.__props__.items():
            dct[pname] = value
        for c in self.child_nodes.values():
            dct[c.name] = c.export()

        return dct

class DTTree:
    """Class holding a device tree: the nodes, labels and defines

    This class implements:
       - node access by path or label ( tree["/soc/uart"], tree["uart0"] )
       - a depth first node iterator
       - the node and property operations used while building a tree
       - label registration and resolution
       - a tree walker / exec() that has callbacks for: tree start, node start,
         property, node end, tree end

    Labels are stored as the path (list of node names) that was current when
    they were declared, and are resolved by walking from the root on every
    lookup, so a label can never refer to a node that has been deleted.

    Attributes:
       - root: the root DTNode, None until the first node is opened
       - labels: label -> list of node names from the root
       - defines: define name -> value
       - version: the version tag (i.e. "dts-v1") if one was seen
       - memreserves: list of memory reservations (lists of words)
       - start_tree_cb, start_node_cb, end_node_cb, property_cb, end_tree_cb: callbacks
    """
    def __init__( self ):
        self.root = None
        self.labels = OrderedDict()
        self.defines = OrderedDict()
        self.version = None
        self.memreserves = []

        # callbacks
        self.start_tree_cb = None
        self.start_node_cb = None
        self.end_node_cb = None
        self.end_tree_cb = None
        self.property_cb = None

    def __iter__( self ):
        if self.root is None:
            return iter( [] )
        return self.root.subnodes()

    def __contains__( self, key ):
        try:
            self[key]
            return True
        except KeyError:
            return False

    def __getitem__( self, key ):
        """Access a node by absolute path or by label

        Args:
           key (string): "/" for the root, "/a/b" or a label

        Returns:
           DTNode, KeyError if nothing matches
        """
        if key.startswith( "/" ):
            try:
                return self.resolve( self.split_path( key ) )
            except MissingNode:
                raise KeyError( key ) from None

        try:
            return self.resolve( self.label_path( key ) )
        except UnknownLabel:
            raise KeyError( key ) from None

    def split_path( self, path_str ):
        """Turn an absolute path string into a list of node names"""
        if self.root is None:
            raise MissingNode( "tree has no root node" )

        parts = [ p for p in path_str.split( "/" ) if p ]
        return [ self.root.name ] + parts

    def resolve( self, path ):
        """Get the node at a path

        Args:
           path (list): node names, starting with the root name

        Returns:
           DTNode, raises MissingNode if the path does not resolve
        """
        if self.root is None:
            raise MissingNode( "tree has no root node" )
        if not path or path[0] != self.root.name:
            raise MissingNode( "path {} does not start at the root '{}'".format( list( path ), self.root.name ) )

        n = self.root
        for name in path[1:]:
            c = n.child( name )
            if c is None:
                raise MissingNode( "node '{}' not found under {}".format( name, n.abs_path ) )
            n = c

        return n

    def add_node( self, path, name ):
        """Open a node under a path

        With an empty path the root is created, or reopened when the name
        matches it. Otherwise the child of the node at path is created, or
        reopened when it already exists.

        Args:
           path (list): the parent path
           name (string): the node name

        Returns:
           DTNode: the opened node
        """
        if not path:
            if self.root is None:
                self.root = DTNode( name )
                return self.root
            if name == self.root.name:
                return self.root
            raise BadPath( "top level node '{}' does not match the root '{}'".format( name, self.root.name ) )

        parent = self.resolve( path )
        return parent.add( DTNode( name ) )

    def add_property( self, path, name, value = None ):
        """Add or overwrite a property of the node at a path"""
        node = self.resolve( path )
        node[name] = value
        return node

    def delete_property( self, path, name, strict = False ):
        """Delete a property of the node at a path

        Args:
           path (list): the node path
           name (string): the property name
           strict (bool,optional): if True, a missing property is an error

        Returns:
           bool: True if a property was removed. MissingNode if the path does
                 not resolve, or the property is missing in strict mode
        """
        node = self.resolve( path )
        if name not in node:
            if strict:
                raise MissingNode( "property '{}' not found in {}".format( name, node.abs_path ) )
            return False

        node.delete( name )
        return True

    def delete_node( self, path ):
        """Delete the node at a path (and its subnodes)

        Labels bound to the deleted subtree are dropped.

        Args:
           path (list): the node path

        Returns:
           DTNode: the removed node
        """
        if not path:
            raise BadPath( "no node to delete" )
        if len( path ) == 1:
            raise BadPath( "the root node cannot be deleted" )

        parent = self.resolve( path[:-1] )
        try:
            node = parent.remove( path[-1] )
        except KeyError:
            raise MissingNode( "node '{}' not found under {}".format( path[-1], parent.abs_path ) ) from None

        prefix = list( path )
        for label, lpath in list( self.labels.items() ):
            if lpath[:len(prefix)] == prefix:
                mimir.log._debug( f"dropping label '{label}' of deleted node {'/'.join( lpath )}" )
                del self.labels[label]

        return node

    def add_label( self, label, path ):
        """Bind a label to a path (a copy of it is stored)"""
        if label in self.labels and self.labels[label] != list( path ):
            mimir.log._debug( f"label '{label}' moved from {self.labels[label]} to {list(path)}" )
        self.labels[label] = list( path )

    def label_path( self, label ):
        """Get the path bound to a label

        Args:
           label (string): the label

        Returns:
           list: node names, raises UnknownLabel if the label is not known or
                 no longer refers to a node
        """
        try:
            path = self.labels[label]
        except KeyError:
            raise UnknownLabel( "label '{}' is not defined".format( label ) ) from None

        try:
            self.resolve( path )
        except MissingNode:
            raise UnknownLabel( "label '{}' refers to a missing node".format( label ) ) from None

        return list( path )

    def lnodes( self, label, exact = True ):
        """Find nodes in a tree by label

        Safely (no exception raised) returns the nodes whose label matches.

        Args:
           label (string): label or label regex
           exact (boolean): flag indicating if exact or fuzzy matching

        Returns:
           list (DTNode): the matching nodes if found, [] otherwise
        """
        nodes = []
        for l in self.labels:
            if exact:
                match = re.search( "^" + label + "$", l )
            else:
                match = re.search( label, l )
            if match:
                try:
                    nodes.append( self.resolve( self.labels[l] ) )
                except MissingNode:
                    pass

        return nodes

    def node_labels( self, node ):
        """Get the labels bound to a node"""
        path = node.path
        return [ l for l, p in self.labels.items() if p == path ]

    def add_define( self, name, value ):
        """Add a define, raises Redefine if the name is already defined"""
        if name in self.defines:
            raise Redefine( "'{}' is already defined as '{}'".format( name, self.defines[name] ) )
        self.defines[name] = value

    def references( self, node ):
        """Get the labels referenced (&label) in the property values of a node

        Args:
           node (DTNode): the node to check

        Returns:
           list (string): the labels, in order of first use
        """
        refs = []
        for value in node.props.values():
            if not value:
                continue
            for l in _ref_re.findall( value ):
                if l not in refs:
                    refs.append( l )
        return refs

    def ref_nodes( self, node ):
        """Get the nodes referenced by the property values of a node

        Returns:
           list (DTNode): the nodes, raises UnknownLabel for a dangling reference
        """
        return [ self.resolve( self.label_path( l ) ) for l in self.references( node ) ]

    def export( self ):
        """Export the tree as a nested dictionary, starting at the root name"""
        dct = OrderedDict()
        if self.root is not None:
            dct[self.root.name] = self.root.export()
        return dct

    def exec( self ):
        """Walk the tree, with callbacks executed as required

        The walk is depth first, in declaration order. Callbacks that are
        set are called at the start of the tree (with the root), at the
        start/end of each node, for each property (with the node, name and
        value) and at the end of the tree.

        Args:
           None

        Returns:
           Nothing
        """
        if self.start_tree_cb:
            self.start_tree_cb( self.root )

        if self.root is not None:
            self._exec_node( self.root )

        if self.end_tree_cb:
            self.end_tree_cb( self.root )

    def _exec_node( self, n ):
        if self.start_node_cb:
            self.start_node_cb( n )

        for pname, value in n.items():
            if self.property_cb:
                self.property_cb( n, pname, value )

        for c in n.child_nodes.values():
            self._exec_node( c )

        if self.end_node_cb:
            self.end_node_cb( n )

    def print( self, output = None ):
        """Print the tree as device tree source

        Args:
           output (string or file,optional): where to write, stdout by default

        Returns:
           Nothing
        """
        printer = DTTreePrinter( self, output or sys.stdout )
        printer.exec()

class DTTreePrinter( DTTree ):
    """SubClass for printing a tree as device tree source

    The printer shares the nodes, labels and reservations of the tree it is
    created from, and implements the walk callbacks to write them out.

    Attributes:
       - output: output file name or file object, stdout if not passed
       - indent_char: the indent character, a space indents 8 per level
    """
    def __init__( self, tree = None, output = sys.stdout ):
        super().__init__()

        if tree is not None:
            self.root = tree.root
            self.labels = tree.labels
            self.defines = tree.defines
            self.version = tree.version
            self.memreserves = tree.memreserves

        self.start_tree_cb = self.start
        self.start_node_cb = self.start_node
        self.end_node_cb   = self.end_node
        self.end_tree_cb   = self.end
        self.property_cb   = self.start_property

        self.indent_char = ' '
        self._close = False
        self.output = output
        if isinstance( output, str ):
            self.output = open( output, "w" )
            self._close = True

    def _indent( self, depth ):
        if self.indent_char == ' ':
            return self.indent_char * ( depth * 8 )
        return self.indent_char * depth

    def start( self, n ):
        """Prints the preamble: version tag and memory reservations"""
        self._node_labels = {}
        for label, path in self.labels.items():
            self._node_labels.setdefault( tuple( path ), [] ).append( label )

        if self.version:
            print( "/{}/;".format( self.version ), file=self.output )
            print( "", file=self.output )

        for m in self.memreserves:
            print( "/memreserve/ {};".format( " ".join( m ) ), file=self.output )
        if self.memreserves:
            print( "", file=self.output )

    def start_node( self, n ):
        """Prints the opening of a node, with its labels"""
        if n.parent is not None:
            print( "", file=self.output )

        outstring = n.name + " {"
        for label in reversed( self._node_labels.get( tuple( n.path ), [] ) ):
            outstring = label + ": " + outstring

        print( self._indent( n.depth ) + outstring, file=self.output )

    def start_property( self, n, pname, value ):
        """Prints one property"""
        if value is None:
            outstring = pname + ";"
        else:
            outstring = "{} = {};".format( pname, value )

        print( self._indent( n.depth + 1 ) + outstring, file=self.output )

    def end_node( self, n ):
        """Prints the closing of a node"""
        print( self._indent( n.depth ) + "};", file=self.output )

    def end( self, n ):
        if self._close:
            self.output.close()
