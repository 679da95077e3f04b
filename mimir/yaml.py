#/*
# * Copyright (c) 2023 Advanced Micro Devices, Inc. All Rights Reserved.
# *
# * Author:
# *       Bruce Ashfield <bruce.ashfield@amd.com>
# *
# * SPDX-License-Identifier: BSD-3-Clause
# */

import json
from collections import OrderedDict
from io import StringIO

from ruamel.yaml import YAML

from anytree import AnyNode
from anytree import PreOrderIter

from mimir.tree import DTTree, DTNode
import mimir.log

mimir.log._init( __name__ )

class DTTreeImporter(object):

    def __init__(self, nodecls=AnyNode):
        """
        Import Tree from a DTTree

        Every DTNode is converted to an instance of `nodecls`, with the
        attributes:
           - name: the node name
           - dt_path: the absolute path of the node
           - labels: the labels bound to the node
           - props: OrderedDict of the node properties

        The node's children are converted likewise and added as children.

        Keyword Args:
            nodecls: class used for nodes.
        """
        self.nodecls = nodecls

    def import_(self, tree):
        """Import tree from `tree`, None for an empty tree."""
        assert isinstance(tree, DTTree)
        if tree.root is None:
            return None

        self.tree = tree
        return self.__import(tree.root)

    def __import(self, node, parent=None):
        assert isinstance(node, DTNode)

        attrs = {}
        attrs['name'] = node.name
        attrs['dt_path'] = node.abs_path
        attrs['labels'] = self.tree.node_labels(node)
        attrs['props'] = OrderedDict(node.items())

        nnode = self.nodecls(parent=parent, **attrs)
        for child in node.child_nodes.values():
            self.__import(child, parent=nnode)

        return nnode

def _yaml_value( value ):
    # boolean (valueless) properties
    if value is None:
        return True
    return value

def export_dict( tree ):
    """Export a tree as nested plain dictionaries, ready to be dumped

    Properties map to their raw value strings, boolean properties to True
    and child nodes to nested dictionaries.

    Args:
       tree (DTTree): the tree to export

    Returns:
       dict
    """
    anyroot = DTTreeImporter().import_( tree )
    if anyroot is None:
        return {}

    dcts = {}
    for n in PreOrderIter( anyroot ):
        dct = OrderedDict()
        for pname, value in n.props.items():
            dct[pname] = _yaml_value( value )
        dcts[n.dt_path] = dct
        if n.parent is not None:
            parent_dct = dcts[n.parent.dt_path]
            if n.name in parent_dct:
                mimir.log._warning( f"{n.dt_path}: node replaces the property '{n.name}' in the export" )
            parent_dct[n.name] = dct

    # This converts the ordered dicts to regular dicts at the last moment, so
    # the order is preserved and the yaml is not list based.
    return json.loads( json.dumps( { anyroot.name: dcts[anyroot.dt_path] } ) )

def to_yaml( tree, output = None ):
    """Export a tree to yaml

    Args:
       tree (DTTree): the tree to export
       output (string or file,optional): where to write. If not passed, the
                                         yaml is only returned

    Returns:
       string: the yaml text
    """
    dct = export_dict( tree )

    yaml_obj = YAML( typ='safe' )
    yaml_obj.default_flow_style = False

    stream = StringIO()
    yaml_obj.dump( dct, stream )
    text = stream.getvalue()

    if output is not None:
        if isinstance( output, str ):
            with open( output, "w" ) as f:
                f.write( text )
        else:
            output.write( text )

    mimir.log._debug( f"to_yaml: exported {len(text)} bytes" )

    return text
