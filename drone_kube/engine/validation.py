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
Eager reference validation.

The compiler skips references that do not resolve. Callers that prefer to
fail fast run :func:`validate_references` once, before compiling, and get
every dangling reference reported in a single exception.
"""
from __future__ import annotations

import logging

from drone_kube.engine.spec import Spec, Step, secret_volume_lookup_key
from drone_kube.exceptions import MissingReference, ReferenceNotFoundException

log = logging.getLogger(__name__)


def find_missing_references(spec: Spec, step: Step) -> list[MissingReference]:
    """Return the references of ``step`` that do not resolve against ``spec``."""
    step_name = step.metadata.name
    missing = [
        MissingReference(step_name, "secret", secret.name)
        for secret in step.secrets
        if spec.lookup_secret(secret.name) is None
    ]
    missing.extend(
        MissingReference(step_name, "file", file.name)
        for file in step.files
        if spec.lookup_file(file.name) is None
    )
    for mount in step.volumes:
        volume = spec.lookup_volume(mount.name)
        if volume is None:
            missing.append(MissingReference(step_name, "volume", mount.name))
            continue
        if volume.secret is None:
            continue
        for item in volume.secret.items:
            lookup_key = secret_volume_lookup_key(volume.metadata.name, volume.secret.name, item.key)
            if spec.lookup_secret(lookup_key) is None:
                missing.append(MissingReference(step_name, "secret", lookup_key))
    return missing


def validate_references(spec: Spec) -> None:
    """
    Check that every secret, file and volume reference of every step resolves.

    :raises ReferenceNotFoundException: listing all dangling references
    """
    missing = []
    for step in spec.steps:
        missing.extend(find_missing_references(spec, step))
    if missing:
        raise ReferenceNotFoundException(missing)
    log.debug("All references of specification %s resolve", spec.metadata.uid)
