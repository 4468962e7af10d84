# Licensed to the Apache Software Foundation (ASF) under one
# or more contributor license agreements.  See the NOTICE file
# distributed with this work for additional information
# regarding copyright ownership.  The ASF licenses this file
# to you under the Apache License, Version 2.0 (the
# "License"); you may not use this file except in compliance
# with the License.  You may obtain a copy of the License at
#
#   http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing,
# software distributed under the License is distributed on an
# "AS IS" BASIS, WITHOUT WARRANTIES OR CONDITIONS OF ANY
# KIND, either express or implied.  See the License for the
# specific language governing permissions and limitations
# under the License.
"""Setup.py for the drone-kube project."""
import glob
import logging
import os
from os.path import dirname
from typing import Dict, List

from setuptools import Command, find_packages, setup

logger = logging.getLogger(__name__)

version = '1.0.0'

my_dir = dirname(__file__)


class CleanCommand(Command):
    """
    Command to tidy up the project root.
    Registered as cmdclass in setup() so it can be called with ``python setup.py extra_clean``.
    """

    description = "Tidy up the project root"
    user_options: List[str] = []

    def initialize_options(self) -> None:
        """Set default values for options."""

    def finalize_options(self) -> None:
        """Set final values for options."""

    @staticmethod
    def rm_all_files(files: List[str]) -> None:
        """Remove all files from the list"""
        for file in files:
            try:
                os.remove(file)
            except Exception as e:
                logger.warning("Error when removing %s: %s", file, e)

    def run(self) -> None:
        """Remove temporary files and directories."""
        os.chdir(my_dir)
        self.rm_all_files(glob.glob('./build/*'))
        self.rm_all_files(glob.glob('./**/__pycache__/*', recursive=True))
        self.rm_all_files(glob.glob('./**/*.pyc', recursive=True))
        self.rm_all_files(glob.glob('./dist/*'))
        self.rm_all_files(glob.glob('./*.egg-info'))


install_requires = [
    'argcomplete>=1.10',
    'attrs>=22.1.0',
    # The Kubernetes Python client follows SemVer; the models used here have been stable across
    # major versions, so only the lower bound is pinned.
    'kubernetes>=21.7.0',
    'pyyaml>=5.1',
    'rich-argparse>=1.0.0',
]

devel = [
    'pytest>=7.0',
    'pytest-cov',
]

EXTRAS_REQUIREMENTS: Dict[str, List[str]] = {
    'devel': devel,
    'test': devel,
}


def do_setup() -> None:
    """Perform the drone-kube package setup."""
    with open(os.path.join(my_dir, 'README.md'), encoding='utf-8') as f:
        long_description = f.read()
    setup(
        name='drone-kube',
        version=version,
        description='Compile Drone pipeline steps into Kubernetes pods, services, secrets and namespaces',
        long_description=long_description,
        long_description_content_type='text/markdown',
        license='Apache License 2.0',
        python_requires='>=3.8',
        packages=find_packages(include=['drone_kube', 'drone_kube.*']),
        package_data={'drone_kube': ['config_templates/*.cfg']},
        install_requires=install_requires,
        extras_require=EXTRAS_REQUIREMENTS,
        entry_points={
            'console_scripts': [
                'drone-kube = drone_kube.__main__:main',
            ],
        },
        cmdclass={
            'extra_clean': CleanCommand,
        },
    )


if __name__ == "__main__":
    do_setup()
