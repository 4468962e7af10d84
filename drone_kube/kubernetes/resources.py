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
"""
Resource requirement conversion.

CPU is declared in milli-units and memory in bytes. Both are rendered in the
canonical Kubernetes quantity notation: memory with binary-SI semantics
(``Ki``, ``Mi``, ...), CPU with decimal-SI semantics (``m``, ``k``, ...).
"""
from __future__ import annotations

import kubernetes.client.models as k8s

from drone_kube.engine.spec import ResourceObject, Step

DECIMAL_SUFFIXES = {
    -9: "n",
    -6: "u",
    -3: "m",
    0: "",
    3: "k",
    6: "M",
    9: "G",
    12: "T",
    15: "P",
    18: "E",
}

BINARY_SUFFIXES = ["", "Ki", "Mi", "Gi", "Ti", "Pi", "Ei"]

MAX_DECIMAL_EXPONENT = 18


def format_decimal_si(value: int, exponent: int = 0) -> str:
    """
    Format ``value * 10**exponent`` as a canonical decimal-SI quantity.

    Factors of 1000 are folded into the suffix only while the result stays an
    exact integer, e.g. ``(500, -3)`` is ``500m``, ``(2000, -3)`` is ``2`` and
    ``(1500, -3)`` is ``1500m``.

    :param value: the integer mantissa
    :param exponent: power of ten of ``value``, a multiple of 3 in ``[-9, 18]``
    """
    if exponent not in DECIMAL_SUFFIXES:
        raise ValueError(f"Unsupported decimal exponent {exponent}")
    if value == 0:
        return "0"
    while value % 1000 == 0 and exponent < MAX_DECIMAL_EXPONENT:
        value //= 1000
        exponent += 3
    return f"{value}{DECIMAL_SUFFIXES[exponent]}"


def format_binary_si(value: int) -> str:
    """
    Format a byte count as a canonical binary-SI quantity.

    Amounts smaller than 1024 in magnitude, or not a whole multiple of 1024,
    fall back to decimal-SI notation, e.g. ``1073741824`` is ``1Gi``, ``1536``
    is ``1536`` and ``1000`` is ``1k``.
    """
    if -1024 < value < 1024:
        return format_decimal_si(value)
    power = 0
    while value % 1024 == 0 and power < len(BINARY_SUFFIXES) - 1:
        value //= 1024
        power += 1
    return f"{value}{BINARY_SUFFIXES[power]}"


def to_resource_list(resources: ResourceObject) -> dict[str, str]:
    """
    Return the quantities of ``resources`` that are strictly positive.

    Zero and negative amounts are omitted, so an explicit zero cannot be told
    apart from an unset amount.
    """
    result = {}
    if resources.memory > 0:
        result["memory"] = format_binary_si(resources.memory)
    if resources.cpu > 0:
        result["cpu"] = format_decimal_si(resources.cpu, exponent=-3)
    return result


def to_resources(step: Step) -> k8s.V1ResourceRequirements:
    """Convert the step resource limits and requests to kubernetes resource requirements."""
    resources = k8s.V1ResourceRequirements()
    if step.resources is None:
        return resources
    if step.resources.limits is not None:
        resources.limits = to_resource_list(step.resources.limits)
    if step.resources.requests is not None:
        resources.requests = to_resource_list(step.resources.requests)
    return resources
