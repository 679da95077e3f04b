#/*
# * Copyright (c) 2023 Advanced Micro Devices, Inc. All Rights Reserved.
# *
# * Author:
# *       Bruce Ashfield <bruce.ashfield@amd.com>
# *
# * SPDX-License-Identifier: BSD-3-Clause
# */

import logging
import os
import sys

logging.basicConfig( format='[%(levelname)s]: %(message)s' )
root_logger = logging.getLogger()

def init( verbose ):
    """Set every registered logger to the level for a verbosity count

    0 shows warnings and above, 1 adds info, and 2 or more shows
    debug output.

    Args:
       verbose (int): number of times -v was passed

    Returns:
       Nothing
    """
    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    loggers = logging.root.manager.loggerDict.items()
    for lname,logger in loggers:
        if type(logger) == logging.Logger:
            logger.setLevel( level )

    root_logger.setLevel( level )

def _init( name ):
    """
    Initalize a logger for a given name.

    This is typically called with __name__ to intialize a logger
    for a given file (subsystem).

    When called, a formatter is setup that includes the passed name
    and then the standard level and messages. Calling it a second time
    for the same name does not add another handler.

    Args:
       name (string): the logger name

    Returns:
       Nothing
    """
    if name:
        l = logging.getLogger( name )
        if l.handlers:
            return
        formatter = logging.Formatter('[%(name)s][%(levelname)s]: %(message)s' )
        ch = logging.StreamHandler()
        ch.setFormatter( formatter )
        l.addHandler( ch )
        l.propagate = False

def _warning( message, logger = None ):
    """
    output a warning mesage

    Args:
        message (string): the string to output
        logger (Logger,optional): the logger to use, otherwise, look it up

    Returns:
        None
    """
    if not logger:
        logger = __logger__()
    logger.warning( message )

def _info( message, logger = None ):
    """
    output an info mesage

    Args:
        message (string): the string to output
        logger (Logger,optional): the logger to use, otherwise, look it up

    Returns:
        None
    """
    if not logger:
        logger = __logger__()

    logger.info( message )

def _error( message, also_exit = True, logger = None ):
    """
    output an error mesage

    Args:
        message (string): the string to output
        also_exit (bool,optonal): flag indicating if exit should be called after the message
        logger (Logger,optional): the logger to use, otherwise, look it up

    Returns:
        None
    """
    if not logger:
        logger = __logger__()

    logger.error( message )

    if also_exit:
        sys.exit(1)

def _debug( message, logger = None ):
    """
    output a debug mesage

    Args:
        message (string): the string to output
        logger (Logger,optional): the logger to use, otherwise, look it up

    Returns:
        None
    """
    if not logger:
        logger = __logger__()

    logger.debug( message )


## internal calls only, since this pokes at the call stack and is
## expected to find the caller two deep.
def __logger__():
    """
    look for a configured logger

    We look at the call stack to find the name of the calling python
    module, and check to see if _init() has been called for that module
    (either by its __name__ or by its file name).

    if _init() has been called, we return the logger, otherwise, we return
    the root logger and use the defaults.

    Args:
        None

    Returns:
        Logger
    """
    try:
        frame = sys._getframe().f_back.f_back
    except ValueError:
        return root_logger

    candidates = [ frame.f_globals.get( "__name__" ),
                   os.path.basename( frame.f_code.co_filename ) ]
    for c in candidates:
        if c and c in logging.root.manager.loggerDict:
            return logging.getLogger( c )

    return root_logger
