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
from __future__ import annotations

import base64
import json

import kubernetes.client.models as k8s

from drone_kube.engine.spec import Secret, Spec

DOCKER_AUTH_SECRET_NAME = "docker-auth-config"

DOCKER_CONFIG_JSON_KEY = ".dockerconfigjson"


def to_secret(spec: Spec, secret: Secret) -> k8s.V1Secret:
    """
    Materialize a pipeline secret.

    The secret uid is both the object name and its only data key.
    """
    return k8s.V1Secret(
        api_version="v1",
        kind="Secret",
        metadata=k8s.V1ObjectMeta(name=secret.metadata.uid),
        type="Opaque",
        string_data={secret.metadata.uid: secret.data},
    )


def docker_config_json(spec: Spec) -> str:
    """Encode the registry credentials of the specification as a docker config.json document."""
    auths = {}
    for auth in spec.docker.auths:
        token = base64.b64encode(f"{auth.username}:{auth.password}".encode()).decode()
        auths[auth.address] = {"auth": token}
    return json.dumps({"auths": auths}, sort_keys=True)


def to_docker_config_secret(spec: Spec) -> k8s.V1Secret | None:
    """
    Materialize the registry credentials as the image pull secret referenced by every pod.

    :return: the pull secret, or None when the specification has no credentials
    """
    if not spec.docker.auths:
        return None
    return k8s.V1Secret(
        api_version="v1",
        kind="Secret",
        metadata=k8s.V1ObjectMeta(
            name=DOCKER_AUTH_SECRET_NAME,
            namespace=spec.metadata.namespace,
        ),
        type="kubernetes.io/dockerconfigjson",
        string_data={DOCKER_CONFIG_JSON_KEY: docker_config_json(spec)},
    )
