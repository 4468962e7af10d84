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
Environment of the step container.

Declared variables come first, followed by the node identity and one
variable per resolved secret reference. Both of the latter are resolved by
the cluster when the pod is scheduled rather than supplied literally.
"""
from __future__ import annotations

import logging

import kubernetes.client.models as k8s

from drone_kube.engine.spec import Spec, Step

log = logging.getLogger(__name__)

ENV_AUTOMOUNT_SERVICE_ACCOUNT_TOKEN = "PLUGIN_AUTOMOUNTSERVICEACCOUNTTOKEN"

NODE_ENV_NAME = "KUBERNETES_NODE"

NODE_NAME_FIELD_PATH = "spec.nodeName"

_TRUE_VALUES = ("1", "t", "T", "TRUE", "true", "True")
_FALSE_VALUES = ("0", "f", "F", "FALSE", "false", "False")


def parse_bool(value: str) -> bool:
    """
    Parse a boolean the way the pipeline runtime does.

    :raises ValueError: if the value is not a recognised boolean spelling
    """
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"invalid boolean {value!r}")


def automount_service_account_token(step: Step) -> bool:
    """
    Whether the service account token is mounted into the step pod.

    The typed step option wins; otherwise the reserved environment variable is
    read. Absent or unparsable values mean ``False``.
    """
    if step.automount_service_account_token is not None:
        return step.automount_service_account_token
    value = step.envs.get(ENV_AUTOMOUNT_SERVICE_ACCOUNT_TOKEN)
    if value is None:
        return False
    try:
        return parse_bool(value)
    except ValueError:
        log.debug(
            "Step %s: ignoring unparsable %s=%r",
            step.metadata.name,
            ENV_AUTOMOUNT_SERVICE_ACCOUNT_TOKEN,
            value,
        )
        return False


def to_env(spec: Spec, step: Step) -> list[k8s.V1EnvVar]:
    """Build the ordered environment variable list of the step container."""
    env = [
        k8s.V1EnvVar(name=key, value=value)
        for key, value in step.envs.items()
        if key != ENV_AUTOMOUNT_SERVICE_ACCOUNT_TOKEN
    ]
    env.append(
        k8s.V1EnvVar(
            name=NODE_ENV_NAME,
            value_from=k8s.V1EnvVarSource(
                field_ref=k8s.V1ObjectFieldSelector(field_path=NODE_NAME_FIELD_PATH),
            ),
        )
    )
    for secret_var in step.secrets:
        secret = spec.lookup_secret(secret_var.name)
        if secret is None:
            log.debug("Step %s: skipping unknown secret %s", step.metadata.name, secret_var.name)
            continue
        env.append(
            k8s.V1EnvVar(
                name=secret_var.env,
                value_from=k8s.V1EnvVarSource(
                    secret_key_ref=k8s.V1SecretKeySelector(
                        name=secret.metadata.uid,
                        key=secret.metadata.uid,
                        optional=True,
                    ),
                ),
            )
        )
    return env
