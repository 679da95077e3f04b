# Copyright (c) 2021 Nordic Semiconductor ASA
#
# SPDX-License-Identifier: BSD-3-Clause

import os
from pathlib import Path

import setuptools

here = Path(__file__).parent

with open(here / 'README.md', 'r') as f:
    long_description = f.read()

with open(here / 'mimir' / 'VERSION', 'r') as f:
    # This is option 3 in:
    # https://packaging.python.org/guides/single-sourcing-package-version/
    version = f.read().strip()

setuptools.setup(
    name='mimir',
    version=version,
    author='Bruce Ashfield',
    author_email='bruce.ashfield@gmail.com',
    description='A device tree source front end',
    license='BSD',
    long_description=long_description,
    long_description_content_type='text/plain',
    classifiers=[
        'Programming Language :: Python :: 3',
        'License :: OSI Approved :: BSD License',
        'Operating System :: POSIX :: Linux',
    ],
    packages=setuptools.find_packages(include=('mimir',)),
    package_data={ 'mimir': [ 'VERSION', 'mimir.ini' ] },
    python_requires='>=3.6',
    include_package_data=True,
    install_requires=[ "anytree", "ruamel.yaml" ],
    extras_require={ "test": ["pytest"],
                    },
    namespace_packages=[ ],
    entry_points={'console_scripts': ('mimir = mimir.__main__:main',)},
)
