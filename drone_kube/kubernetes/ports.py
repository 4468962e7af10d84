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

import kubernetes.client.models as k8s

from drone_kube.engine.spec import Spec, Step
from drone_kube.kubernetes.naming import to_dns

STEP_NAME_LABEL = "io.drone.step.name"

SERVICE_TYPE = "ClusterIP"


def to_ports(step: Step) -> list[k8s.V1ContainerPort] | None:
    """Return the container ports of the step, or None when it declares none."""
    if not step.docker.ports:
        return None
    return [k8s.V1ContainerPort(container_port=port.port) for port in step.docker.ports]


def to_service_ports(step: Step) -> list[k8s.V1ServicePort]:
    """
    Return the service ports of the step.

    The host port of a declared port is the port the service forwards to; it
    defaults to the container port.
    """
    ports = []
    for port in step.docker.ports:
        target = port.host or port.port
        ports.append(k8s.V1ServicePort(name=str(port.port), port=port.port, target_port=target))
    return ports


def to_service(spec: Spec, step: Step) -> k8s.V1Service | None:
    """
    Return the cluster internal service exposing the step, or None when it declares no ports.

    The service selects the step pod by the step name, not its uid.
    """
    if not step.docker.ports:
        return None
    return k8s.V1Service(
        api_version="v1",
        kind="Service",
        metadata=k8s.V1ObjectMeta(
            name=to_dns(step.metadata.name),
            namespace=step.metadata.namespace,
        ),
        spec=k8s.V1ServiceSpec(
            type=SERVICE_TYPE,
            selector={STEP_NAME_LABEL: step.metadata.name},
            ports=to_service_ports(step),
        ),
    )
