#/*
# * Copyright (c) 2023 Advanced Micro Devices, Inc. All Rights Reserved.
# *
# * Author:
# *       Bruce Ashfield <bruce.ashfield@amd.com>
# *
# * SPDX-License-Identifier: BSD-3-Clause
# */

import os
import sys
from pathlib import Path

from mimir.fmt import MimirFmt
from mimir.source import DTSource, MemorySourceProvider, FileSourceProvider
from mimir.include import IncludeStack
from mimir.builder import TreeBuilder
from mimir.tree import DTTree, DTNode, DTTreePrinter
from mimir.error import MimirError, SourceNotFound
import mimir.dot
import mimir.yaml

import mimir.log

mimir_directory = os.path.dirname(os.path.realpath(__file__))

with open(Path(__file__).parent / 'VERSION', 'r') as f:
    __version__ = f.read().strip()

mimir.log._init( __name__ )

def parse_string( text, name = "<string>", sources = None, strict = False ):
    """Build a tree from source text held in memory

    Args:
       text (string): the top level source text
       name (string,optional): the name the text is reported under
       sources (dict,optional): name -> text of the sources it may include
       strict (bool,optional): deleting a missing property is an error

    Returns:
       DTTree: the finished tree
    """
    provider = MemorySourceProvider( sources )
    stack = IncludeStack( provider, source = DTSource( name, text ) )

    return TreeBuilder( strict = strict ).build( stack )

def build_tree( dts_file, include_paths = None, strict = False, provider = None ):
    """Build a tree from a source file and everything it includes

    Args:
       dts_file (string): the top level source
       include_paths (list,optional): directories searched for includes
       strict (bool,optional): deleting a missing property is an error
       provider (SourceProvider,optional): used instead of the filesystem

    Returns:
       DTTree: the finished tree
    """
    if provider is None:
        provider = FileSourceProvider( include_paths )

    stack = IncludeStack( provider, name = dts_file )

    return TreeBuilder( strict = strict ).build( stack )

class MimirDT:
    """The MimirDT Class builds and writes a device tree from a source file

    In particular this class:
      - collects the build options from the command line and configuration
      - builds a DTTree from a dts file and its includes
      - writes the tree as dts, dot or yaml

    Attributes:
      - dts (string): the source device tree file
      - verbose (int): the verbosity level of operations
      - dryrun (bool): whether or not output should be written
      - output_file (string): default output file for writing, "" for stdout
      - include_paths (list): directories searched for includes
      - strict (bool): deleting a missing property is an error
      - format (MimirFmt): the output format, None to pick one on write
      - references (bool): draw reference edges in dot output
      - config (ConfigParser): the configuration, if any
      - tree (DTTree): the tree, once built
    """
    def __init__(self, dts_file):
        self.dts = dts_file
        self.verbose = 0
        self.dryrun = False
        self.output_file = ""
        self.include_paths = []
        self.strict = False
        self.format = None
        self.references = False
        self.config = None
        self.tree = None

    def setup(self, include_paths = None, config = None):
        """apply the configuration and validate the inputs

        Configured include directories are searched after the ones passed
        in. Configured values only apply when the matching attribute was
        not set already (i.e. from the command line).

        Args:
           include_paths (list,optional): directories to search for includes
           config (ConfigParser,optional): configuration to apply

        Returns:
           Nothing
        """
        if config is not None:
            self.config = config

        for p in include_paths or []:
            if p and p not in self.include_paths:
                self.include_paths.append( p )

        if self.config is not None:
            cfg_dirs = self.config.get( 'build', 'include_dirs', fallback = '' )
            for p in cfg_dirs.split( ":" ):
                if p and p not in self.include_paths:
                    self.include_paths.append( p )

            if not self.strict:
                self.strict = self.config.getboolean( 'build', 'strict_delete_property', fallback = False )

            if self.format is None:
                cfg_fmt = self.config.get( 'output', 'format', fallback = '' )
                if cfg_fmt:
                    self.format = MimirFmt.from_string( cfg_fmt )

            if not self.references:
                self.references = self.config.getboolean( 'dot', 'references', fallback = False )

        if not Path( self.dts ).exists():
            raise SourceNotFound( self.dts, "input file does not exist" )

        mimir.log._info( f"setup: {self.dts}, include paths: {self.include_paths}, strict: {self.strict}" )

    def build(self):
        """build the tree from the dts file

        Returns:
           DTTree: the tree, raises a MimirError on failure
        """
        self.tree = build_tree( self.dts, self.include_paths, self.strict )

        return self.tree

    def output_format(self, output_filename = None):
        """Get the format to write with

        The first of: the format set on this object, the one implied by the
        output file suffix, dts.
        """
        if self.format is not None:
            return self.format

        if output_filename:
            fmt = MimirFmt.from_filename( output_filename )
            if fmt is not None:
                return fmt

        return MimirFmt.DTS

    def write(self, output_filename = None, fmt = None):
        """write the tree

        Args:
           output_filename (string,optional): file to write, default is the
                                              output_file attribute, stdout if
                                              that is not set either
           fmt (MimirFmt,optional): format to write, see output_format()

        Returns:
           Nothing
        """
        if self.tree is None:
            raise MimirError( "no tree has been built" )

        if not output_filename:
            output_filename = self.output_file

        if fmt is None:
            fmt = self.output_format( output_filename )

        if self.dryrun:
            mimir.log._info( f"dryrun: {fmt.name.lower()} output to {output_filename or 'stdout'} not written" )
            return

        output = output_filename or sys.stdout

        mimir.log._info( f"writing {fmt.name.lower()} output to {output_filename or 'stdout'}" )
        if fmt == MimirFmt.DOT:
            mimir.dot.to_dot( self.tree, output, references = self.references )
        elif fmt == MimirFmt.YAML:
            mimir.yaml.to_yaml( self.tree, output )
        else:
            self.tree.print( output )
