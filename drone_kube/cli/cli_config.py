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
"""Explicit configuration and definition of drone-kube CLI commands."""
from __future__ import annotations

import argparse
from typing import Callable, Iterable, NamedTuple, Union

from drone_kube.utils.module_loading import import_string


def lazy_load_command(import_path: str) -> Callable:
    """Create a lazy loader for command."""
    _, _, name = import_path.rpartition(".")

    def command(*args, **kwargs):
        func = import_string(import_path)
        return func(*args, **kwargs)

    command.__name__ = name

    return command


class DefaultHelpParser(argparse.ArgumentParser):
    """CustomParser to display help message."""

    def error(self, message):
        """Override error and use print_instead of print_usage."""
        self.print_help()
        self.exit(2, f"\n{self.prog} command error: {message}, see help above.\n")


# Used in Arg to enable `None' as a distinct value from "not passed"
_UNSET = object()


class Arg:
    """Class to keep information about command line argument."""

    def __init__(
        self,
        flags=_UNSET,
        help=_UNSET,
        action=_UNSET,
        default=_UNSET,
        nargs=_UNSET,
        type=_UNSET,
        choices=_UNSET,
        required=_UNSET,
        metavar=_UNSET,
        dest=_UNSET,
    ):
        self.flags = flags
        self.kwargs = {}
        for k, v in locals().items():
            if k not in ("self", "flags") and v is not _UNSET:
                self.kwargs[k] = v

    def add_to_parser(self, parser: argparse.ArgumentParser):
        """Add this argument to an ArgumentParser."""
        parser.add_argument(*self.flags, **self.kwargs)


# Shared
ARG_SPEC = Arg(
    ("spec",),
    help="Path to the pipeline specification (JSON or YAML), or '-' to read it from stdin",
)
ARG_VERBOSE = Arg(
    ("-v", "--verbose"),
    help="Make logging output more verbose",
    action="store_true",
)

# compile
ARG_STEP = Arg(
    ("-s", "--step"),
    help="Compile only the step with this name",
)
ARG_OUTPUT = Arg(
    (
        "-o",
        "--output",
    ),
    help="Output format. Allowed values: yaml, json (default: [cli] output)",
    metavar="(yaml, json)",
    choices=("yaml", "json"),
)
ARG_STRICT = Arg(
    ("--strict",),
    help="Fail when a secret, file or volume reference does not resolve instead of skipping it",
    action="store_true",
)

# config
ARG_SECTION = Arg(
    ("section",),
    help="The section name",
)
ARG_OPTION = Arg(
    ("option",),
    help="The option name",
)


class ActionCommand(NamedTuple):
    """Single CLI command."""

    name: str
    help: str
    func: Callable
    args: Iterable[Arg]
    description: str | None = None
    epilog: str | None = None


class GroupCommand(NamedTuple):
    """ClI command with subcommands."""

    name: str
    help: str
    subcommands: Iterable
    description: str | None = None
    epilog: str | None = None


CLICommand = Union[ActionCommand, GroupCommand]

CONFIG_COMMANDS = (
    ActionCommand(
        name="get-value",
        help="Print the value of the configuration",
        func=lazy_load_command("drone_kube.cli.commands.config_command.get_value"),
        args=(ARG_SECTION, ARG_OPTION, ARG_VERBOSE),
    ),
    ActionCommand(
        name="list",
        help="List options for the configuration",
        func=lazy_load_command("drone_kube.cli.commands.config_command.show_config"),
        args=(ARG_VERBOSE,),
    ),
)

core_commands: list[CLICommand] = [
    ActionCommand(
        name="compile",
        help="Compile a pipeline specification into Kubernetes manifests",
        description=(
            "Print the namespace, secrets, config maps, services and pods of a pipeline "
            "specification. With --step, print only one step and the objects its pod needs."
        ),
        func=lazy_load_command("drone_kube.cli.commands.compile_command.compile_spec"),
        args=(ARG_SPEC, ARG_STEP, ARG_OUTPUT, ARG_STRICT, ARG_VERBOSE),
    ),
    ActionCommand(
        name="validate",
        help="Check that every reference of a pipeline specification resolves",
        func=lazy_load_command("drone_kube.cli.commands.compile_command.validate_spec"),
        args=(ARG_SPEC, ARG_VERBOSE),
    ),
    GroupCommand(
        name="config",
        help="View configuration",
        subcommands=CONFIG_COMMANDS,
    ),
]
