#/*
# * Copyright (c) 2023 Advanced Micro Devices, Inc. All Rights Reserved.
# *
# * Author:
# *       Bruce Ashfield <bruce.ashfield@amd.com>
# *
# * SPDX-License-Identifier: BSD-3-Clause
# */

import os
from pathlib import Path

from mimir.error import SourceNotFound, SourceIOError
import mimir.log

mimir.log._init( __name__ )

class DTSource:
    """A named source text

    Attributes:
       - name: the identity of the source (a resolved path for files)
       - text: the decoded source text
    """
    def __init__( self, name, text ):
        if isinstance( text, bytes ):
            text = text.decode( "utf-8" )
        self.name = name
        self.text = text

    def __repr__( self ):
        return "DTSource({!r}, {} chars)".format( self.name, len( self.text ) )

class SourceProvider:
    """Base class for the "open a source by name" capability

    Subclasses implement open(). The parent argument is the source that
    contains the include, and is None for the initial source.
    """
    def open( self, name, parent = None ):
        raise NotImplementedError

class MemorySourceProvider( SourceProvider ):
    """Sources held in a dictionary of name -> text

    Attributes:
       - sources (dict): the known sources
    """
    def __init__( self, sources = None ):
        self.sources = dict( sources or {} )

    def __setitem__( self, name, text ):
        self.sources[name] = text

    def open( self, name, parent = None ):
        try:
            return DTSource( name, self.sources[name] )
        except KeyError:
            raise SourceNotFound( name, "no such source" ) from None

class FileSourceProvider( SourceProvider ):
    """Sources read from the filesystem

    A name is looked up in this order:
       - relative to the directory of the including source
       - in each search path, in order
       - as given (relative to the current directory, or absolute)

    Attributes:
       - search_paths (list): directories searched for includes
    """
    def __init__( self, search_paths = None ):
        self.search_paths = []
        for p in search_paths or []:
            if p:
                self.search_paths.append( p )

    def candidates( self, name, parent = None ):
        """Get the list of paths a name may resolve to, in lookup order"""
        c = []
        if parent and parent.name:
            c.append( Path( parent.name ).parent / name )
        for p in self.search_paths:
            c.append( Path( p ) / name )
        c.append( Path( name ) )

        return c

    def resolve( self, name, parent = None ):
        """Find the file for a source name

        Args:
           name (string): the source or include name
           parent (DTSource,optional): the including source

        Returns:
           Path: the resolved path, raises SourceNotFound if there is none
        """
        for c in self.candidates( name, parent ):
            if c.is_file():
                return c.resolve()

        raise SourceNotFound( name, "not found in {}".format( [ str(p) for p in self.search_paths ] ) )

    def open( self, name, parent = None ):
        path = self.resolve( name, parent )

        mimir.log._debug( f"opening {path} for '{name}'" )
        try:
            with open( path, "rb" ) as f:
                data = f.read()
        except OSError as e:
            raise SourceIOError( name, e.strerror or str(e) ) from e

        try:
            return DTSource( os.fspath( path ), data )
        except UnicodeDecodeError as e:
            raise SourceIOError( name, f"not valid utf-8: {e}" ) from e
