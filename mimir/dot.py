#/*
# * Copyright (c) 2023 Advanced Micro Devices, Inc. All Rights Reserved.
# *
# * Author:
# *       Bruce Ashfield <bruce.ashfield@amd.com>
# *
# * SPDX-License-Identifier: BSD-3-Clause
# */

from anytree import PreOrderIter
from anytree.exporter import DotExporter

from mimir.yaml import DTTreeImporter
import mimir.log

mimir.log._init( __name__ )

def _esc( s ):
    return s.replace( "\\", "\\\\" ).replace( '"', '\\"' )

def _node_label( node, show_properties ):
    title = node.name
    for l in reversed( node.labels ):
        title = l + ": " + title

    lines = [ _esc( title ) ]
    if show_properties:
        for pname, value in node.props.items():
            if value is None:
                lines.append( _esc( pname ) )
            else:
                lines.append( _esc( f"{pname} = {value}" ) )

    return 'label="{}"'.format( "\\l".join( lines ) + ( "\\l" if show_properties else "" ) )

def dot_lines( tree, references = False, show_properties = False ):
    """Get the graphviz description of a tree, line by line

    Nodes are identified by their absolute path and labelled with their
    name (and labels). Parent -> child edges are solid. With references,
    each &label used in a property value adds a dashed edge to the node
    the label is bound to.

    Args:
       tree (DTTree): the tree to describe
       references (bool,optional): draw reference edges
       show_properties (bool,optional): list properties in the node boxes

    Returns:
       list (string): the dot lines
    """
    anyroot = DTTreeImporter().import_( tree )
    if anyroot is None:
        return [ "digraph tree {", "}" ]

    exporter = DotExporter( anyroot,
                            name = "tree",
                            options = [ "node [shape=box];" ],
                            nodenamefunc = lambda n: n.dt_path,
                            nodeattrfunc = lambda n: _node_label( n, show_properties ) )

    lines = list( exporter )
    if references:
        closing = lines.pop()
        for n in PreOrderIter( anyroot ):
            dtnode = tree[n.dt_path]
            for label in tree.references( dtnode ):
                try:
                    target = tree[label]
                except KeyError:
                    mimir.log._warning( f"{n.dt_path}: reference to unknown label '{label}' not drawn" )
                    continue
                lines.append( '    "{}" -> "{}" [style=dashed];'.format( _esc( n.dt_path ), _esc( target.abs_path ) ) )
        lines.append( closing )

    return lines

def to_dot( tree, output = None, references = False, show_properties = False ):
    """Export a tree to graphviz dot

    Args:
       tree (DTTree): the tree to export
       output (string or file,optional): where to write. If not passed, the
                                         text is only returned
       references (bool,optional): draw reference edges
       show_properties (bool,optional): list properties in the node boxes

    Returns:
       string: the dot text
    """
    text = "\n".join( dot_lines( tree, references, show_properties ) ) + "\n"

    if output is not None:
        if isinstance( output, str ):
            with open( output, "w" ) as f:
                f.write( text )
        else:
            output.write( text )

    return text
