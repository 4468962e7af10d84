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
"""Exceptions used by drone-kube."""
from __future__ import annotations

from typing import NamedTuple


class DroneKubeException(Exception):
    """
    Base class for all drone-kube errors.

    Each custom exception should be derived from this class.
    """


class DroneKubeConfigException(DroneKubeException):
    """Raise when there is configuration problem."""


class SpecLoadException(DroneKubeException):
    """Raise when a pipeline specification document cannot be read or is malformed."""


class StepNotFoundException(DroneKubeException):
    """Raise when a step is requested by name and the specification does not declare it."""


class MissingReference(NamedTuple):
    """A step reference that does not resolve against the specification."""

    step: str
    kind: str
    name: str

    def __str__(self) -> str:
        return f"step {self.step!r} references unknown {self.kind} {self.name!r}"


class ReferenceNotFoundException(DroneKubeException):
    """
    Raise when eager validation finds references that do not resolve.

    :param missing: every dangling reference, in step declaration order
    """

    def __init__(self, missing: list[MissingReference]):
        self.missing = missing
        lines = "\n".join(f"  - {ref}" for ref in missing)
        super().__init__(f"Found {len(missing)} unresolved reference(s):\n{lines}")
