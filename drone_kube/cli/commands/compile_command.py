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
"""Compile and validate commands."""
from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from typing import Any

import yaml

from drone_kube.configuration import conf
from drone_kube.engine.loader import load_spec
from drone_kube.engine.spec import Spec
from drone_kube.engine.validation import validate_references
from drone_kube.exceptions import DroneKubeException, StepNotFoundException
from drone_kube.kubernetes import pod_generator

log = logging.getLogger(__name__)


def _read_spec(path: str) -> Spec:
    if path == "-":
        return load_spec(sys.stdin.read())
    return load_spec(path)


def render_manifests(manifests: list[Any], output: str) -> str:
    """Render compiled objects as a YAML stream or as a JSON ``v1/List``."""
    documents = [pod_generator.serialize(manifest) for manifest in manifests]
    if output == "json":
        return json.dumps({"apiVersion": "v1", "kind": "List", "items": documents}, indent=2)
    return yaml.safe_dump_all(documents, sort_keys=False).rstrip("\n")


def compile_spec(args: Namespace) -> None:
    """Print the manifests of a specification, or of one of its steps."""
    output = args.output or conf.get("cli", "output")
    try:
        strict = args.strict or conf.getboolean("compiler", "validate_references")
        spec = _read_spec(args.spec)
        if strict:
            validate_references(spec)
        if args.step:
            step = spec.lookup_step(args.step)
            if step is None:
                raise StepNotFoundException(f"Step {args.step!r} not found in the specification")
            manifests = pod_generator.compile_step(spec, step).manifests()
        else:
            manifests = pod_generator.compile_spec(spec).manifests()
    except DroneKubeException as e:
        raise SystemExit(f"Error: {e}")
    log.info("Compiled %d object(s)", len(manifests))
    print(render_manifests(manifests, output))


def validate_spec(args: Namespace) -> None:
    """Check every reference of a specification."""
    try:
        validate_references(_read_spec(args.spec))
    except DroneKubeException as e:
        raise SystemExit(f"Error: {e}")
    print("Specification is valid")
