#/*
# * Copyright (c) 2023 Advanced Micro Devices, Inc. All Rights Reserved.
# *
# * Author:
# *       Bruce Ashfield <bruce.ashfield@amd.com>
# *
# * SPDX-License-Identifier: BSD-3-Clause
# */

import getopt
import os
import sys
from pathlib import Path
import configparser

from mimir import MimirDT
from mimir import mimir_directory
from mimir.fmt import MimirFmt
from mimir.error import MimirError

import mimir.log

mimir.log._init( __name__ )

with open(Path(__file__).parent / 'VERSION', 'r') as f:
    MIMIR_VERSION = f.read().strip()

def usage():
    prog = "mimir"
    print(f'Usage: {prog} [OPTION] <device tree source> [<output file>]...')
    print('  -v, --verbose       enable verbose/debug processing (specify more than once for more verbosity)')
    print('  -I, --include-dirs  colon separated list of directories to search for included files')
    print('                      include directories can also be set by environment variable MIMIR_INCLUDE_DIRS')
    print('  -o, --output        output file (stdout if not passed)')
    print('  -f, --format        output format: dts, dot or yaml (default: from the output file suffix, or dts)')
    print('    , --strict        treat /delete-property/ of a missing property as an error' )
    print('    , --dryrun        run all processing, but don\'t write any output' )
    print('    , --cfgfile       specify a mimir configuration file to use (configparser format) ' )
    print('    , --cfgval        specify a configuration value to use (in configparser section format). Can be specified multiple times' )
    print('  -h, --help          display this help and exit')
    print('    , --version       output the version and exit')
    print('')

def config_load( config_file = None, config_vals = None ):
    """Read the configuration

    Args:
       config_file (string,optional): the ini file, mimir.ini if not passed
       config_vals (list,optional): "section.option=value" overrides. An option
                                    without a value is set to True

    Returns:
       ConfigParser, or None if the config file does not exist
    """
    config = configparser.ConfigParser()
    if not config_file:
        config_file = f"{mimir_directory}/mimir.ini"

    inf = Path(config_file)
    if not inf.exists():
        mimir.log._error( f"config file {config_file} does not exist", also_exit = False )
        return None

    config.read( inf.absolute() )

    for k in config_vals or []:
        # was there a ".", if so that's the section split marker
        config_sections = k.split( '.' )
        if len(config_sections) > 1:
            config_option = config_sections[-1]
            config_option_name = config_option.split('=')[0]
            config_option_val = config_option.split('=')[-1]
            if config_option_name == config_option_val:
                config_option_val = True

            for item in config_sections[:-1]:
                if not config.has_section( item ):
                    config[item] = {}

                config[item][config_option_name] = str(config_option_val)
        else:
            mimir.log._warning( f"configuration value '{k}' has no section, ignored" )

    return config

def main( argv = None ):
    if argv is None:
        argv = sys.argv[1:]

    verbose = 0
    output = ""
    include_dirs = []
    fmt = None
    strict = False
    dryrun = False
    config_file = None
    config_vals = []

    try:
        opts, args = getopt.getopt(argv, "vhI:o:f:",
                                   [ "verbose", "help", "include-dirs=", "output=", "format=",
                                     "strict", "dryrun", "cfgfile=", "cfgval=", "version" ] )
    except getopt.GetoptError as err:
        print(f'{str(err)}')
        usage()
        sys.exit(2)

    if opts == [] and args == []:
        usage()
        sys.exit(1)

    for o, a in opts:
        if o in ('-v', "--verbose"):
            verbose = verbose + 1
        elif o in ('-h', '--help'):
            usage()
            sys.exit(0)
        elif o in ('-I', '--include-dirs'):
            include_dirs += a.split(":")
        elif o in ('-o', '--output'):
            output = a
        elif o in ('-f', '--format'):
            try:
                fmt = MimirFmt.from_string( a )
            except ValueError as e:
                print( f"[ERROR]: {e}" )
                sys.exit(1)
        elif o == '--strict':
            strict = True
        elif o == '--dryrun':
            dryrun = True
        elif o == '--cfgfile':
            config_file = a
        elif o == '--cfgval':
            config_vals.append( a )
        elif o == '--version':
            print( f"{MIMIR_VERSION}" )
            sys.exit(0)
        else:
            assert False, "unhandled option"

    if not args:
        print( "[ERROR]: no device tree source passed" )
        usage()
        sys.exit(1)

    dts = args[0]
    if len(args) > 1:
        if output:
            print( f"[ERROR]: output file passed twice ({output} and {args[1]})" )
            sys.exit(1)
        output = args[1]
    if len(args) > 2:
        print( f"[ERROR]: unexpected arguments: {args[2:]}" )
        usage()
        sys.exit(1)

    env_dirs = os.environ.get( "MIMIR_INCLUDE_DIRS" )
    if env_dirs:
        include_dirs += env_dirs.split(":")

    mimir.log.init( verbose )

    config = config_load( config_file, config_vals )
    if config is None:
        sys.exit(1)

    device_tree = MimirDT( dts )
    device_tree.verbose = verbose
    device_tree.dryrun = dryrun
    device_tree.output_file = output
    device_tree.strict = strict
    device_tree.format = fmt

    try:
        device_tree.setup( include_dirs, config )
        device_tree.build()
    except MimirError as e:
        mimir.log._error( f"{e}" )
    except ValueError as e:
        # a bad format name in the configuration
        mimir.log._error( f"configuration: {e}" )

    try:
        device_tree.write()
    except ( MimirError, OSError ) as e:
        mimir.log._error( f"cannot write output: {e}" )


if __name__ == "__main__":
    main()
