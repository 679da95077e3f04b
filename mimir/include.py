#/*
# * Copyright (c) 2023 Advanced Micro Devices, Inc. All Rights Reserved.
# *
# * Author:
# *       Bruce Ashfield <bruce.ashfield@amd.com>
# *
# * SPDX-License-Identifier: BSD-3-Clause
# */

from mimir.parser import DTParser, DTEvent, EventType
from mimir.error import IncludeCycle
import mimir.log

mimir.log._init( __name__ )

class _Frame:
    def __init__( self, source ):
        self.source = source
        self.parser = DTParser( source.text, source.name )

class IncludeStack:
    """Threads a source and everything it includes into one event stream

    The stack holds one frame (source + parser) per source being read, the
    most recently opened on top. Events are always pulled from the top
    frame. An INCLUDE event is never returned: the target is opened through
    the provider, pushed, and pulling continues from it. When a frame is
    exhausted it is popped and the frame below resumes, so the content of
    an include is fully consumed before anything after the include line.

    END_OF_INPUT is only returned once the whole stack is empty.

    Attributes:
       - provider (SourceProvider): used to open every source
       - frames (list): the open frames, bottom first
    """
    def __init__( self, provider, name = None, source = None ):
        self.provider = provider
        self.frames = []

        if source is None and name is not None:
            source = provider.open( name )
        if source is not None:
            self.push( source )

    def __iter__( self ):
        """Iterate the merged events, END_OF_INPUT included"""
        while True:
            event = self.pull_next_event()
            yield event
            if event.type == EventType.END_OF_INPUT:
                return

    def __len__( self ):
        return len( self.frames )

    @property
    def current( self ):
        """The source of the top frame, or None when the stack is empty"""
        if self.frames:
            return self.frames[-1].source
        return None

    def push( self, source ):
        """Push a new frame for a source

        Args:
           source (DTSource): the source to read next

        Returns:
           Nothing, raises IncludeCycle if the source is already open
        """
        for f in self.frames:
            if f.source.name == source.name:
                raise IncludeCycle( source.name, "included from {}".format( self.current.name ) )

        mimir.log._info( f"reading {source.name} (depth {len(self.frames)})" )
        self.frames.append( _Frame( source ) )

    def pull_next_event( self ):
        """Get the next event from the top frame

        Errors from a frame are raised as they are, with the remaining frames
        abandoned.

        Args:
           None

        Returns:
           DTEvent: the next event of the merged stream
        """
        while self.frames:
            frame = self.frames[-1]
            try:
                event = frame.parser.next()
            except Exception:
                self.frames = []
                raise

            if event.type == EventType.INCLUDE:
                try:
                    source = self.provider.open( event.target, frame.source )
                    self.push( source )
                except Exception:
                    self.frames = []
                    raise
                continue

            if event.type == EventType.END_OF_INPUT:
                mimir.log._info( f"finished {frame.source.name}" )
                self.frames.pop()
                continue

            return event

        return DTEvent.end_of_input()
