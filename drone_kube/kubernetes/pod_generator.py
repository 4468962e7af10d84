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
Assemble the Kubernetes objects of a pipeline specification.

Every function here is pure: it reads the specification it is given and
returns new ``kubernetes.client.models`` objects. Nothing is submitted to a
cluster, so the functions may be called repeatedly or concurrently over the
same specification.
"""
from __future__ import annotations

import logging
from typing import Any

import attr
import kubernetes.client.models as k8s
from kubernetes.client import ApiClient

from drone_kube.engine.spec import File, PullPolicy, Secret, Spec, Step, secret_volume_lookup_key
from drone_kube.kubernetes.config_map import to_config_map, to_config_mounts, to_config_volumes
from drone_kube.kubernetes.env import automount_service_account_token, to_env
from drone_kube.kubernetes.ports import to_ports, to_service
from drone_kube.kubernetes.resources import to_resources
from drone_kube.kubernetes.secret import DOCKER_AUTH_SECRET_NAME, to_docker_config_secret, to_secret
from drone_kube.kubernetes.volume import to_volume_mounts, to_volumes

log = logging.getLogger(__name__)

RESTART_POLICY = "Never"

_PULL_POLICIES = {
    PullPolicy.ALWAYS: "Always",
    PullPolicy.NEVER: "Never",
    PullPolicy.IF_NOT_EXISTS: "IfNotPresent",
}


def to_pull_policy(policy: PullPolicy) -> str:
    """Convert the step pull policy to the kubernetes image pull policy, IfNotPresent by default."""
    return _PULL_POLICIES.get(policy, "IfNotPresent")


def to_namespace(spec: Spec) -> k8s.V1Namespace:
    """Return the namespace holding every object of the specification."""
    return k8s.V1Namespace(
        api_version="v1",
        kind="Namespace",
        metadata=k8s.V1ObjectMeta(
            name=spec.metadata.namespace,
            labels=dict(spec.metadata.labels),
        ),
    )


def to_pod(spec: Spec, step: Step) -> k8s.V1Pod:
    """
    Return the pod running the step.

    The pod holds a single container and is never restarted in place.
    """
    volumes = to_volumes(spec, step) + to_config_volumes(spec, step)
    mounts = to_volume_mounts(spec, step) + to_config_mounts(spec, step)

    image_pull_secrets = None
    if spec.docker.auths:
        image_pull_secrets = [k8s.V1LocalObjectReference(name=DOCKER_AUTH_SECRET_NAME)]

    container = k8s.V1Container(
        name=step.metadata.uid,
        image=step.docker.image,
        image_pull_policy=to_pull_policy(step.docker.pull_policy),
        command=list(step.docker.command),
        args=list(step.docker.args),
        working_dir=step.working_dir or None,
        security_context=k8s.V1SecurityContext(privileged=step.docker.privileged),
        env=to_env(spec, step),
        volume_mounts=mounts,
        ports=to_ports(step),
        resources=to_resources(step),
    )

    return k8s.V1Pod(
        api_version="v1",
        kind="Pod",
        metadata=k8s.V1ObjectMeta(
            name=step.metadata.uid,
            namespace=step.metadata.namespace,
            labels=dict(step.metadata.labels),
        ),
        spec=k8s.V1PodSpec(
            automount_service_account_token=automount_service_account_token(step),
            restart_policy=RESTART_POLICY,
            containers=[container],
            image_pull_secrets=image_pull_secrets,
            volumes=volumes,
        ),
    )


def referenced_secrets(spec: Spec, step: Step) -> list[Secret]:
    """
    Return the distinct secrets the step references, in first reference order.

    Both environment references and the items of secret volumes count.
    """
    found: dict[str, Secret] = {}
    for secret_var in step.secrets:
        secret = spec.lookup_secret(secret_var.name)
        if secret is not None:
            found.setdefault(secret.metadata.uid, secret)
    for mount in step.volumes:
        volume = spec.lookup_volume(mount.name)
        if volume is None or volume.secret is None:
            continue
        for item in volume.secret.items:
            lookup_key = secret_volume_lookup_key(volume.metadata.name, volume.secret.name, item.key)
            secret = spec.lookup_secret(lookup_key)
            if secret is not None:
                found.setdefault(secret.metadata.uid, secret)
    return list(found.values())


def referenced_files(spec: Spec, step: Step) -> list[File]:
    """Return the distinct files the step mounts, in first reference order."""
    found: dict[str, File] = {}
    for mount in step.files:
        file = spec.lookup_file(mount.name)
        if file is not None:
            found.setdefault(file.metadata.uid, file)
    return list(found.values())


@attr.define(frozen=True)
class StepObjects:
    """The objects compiled from one step."""

    pod: k8s.V1Pod
    service: k8s.V1Service | None
    secrets: list[k8s.V1Secret]
    config_maps: list[k8s.V1ConfigMap] = attr.field(factory=list)
    pull_secret: k8s.V1Secret | None = None

    def manifests(self) -> list[Any]:
        """Return the objects in submission order: pull secret, secrets, config maps, service, pod."""
        objects: list[Any] = []
        if self.pull_secret is not None:
            objects.append(self.pull_secret)
        objects.extend(self.secrets)
        objects.extend(self.config_maps)
        if self.service is not None:
            objects.append(self.service)
        objects.append(self.pod)
        return objects


@attr.define(frozen=True)
class SpecObjects:
    """
    The objects compiled from a whole specification.

    Secrets and config maps are shared by the steps, so they are held once
    here rather than per step. ``steps`` is keyed by step uid.
    """

    namespace: k8s.V1Namespace
    pull_secret: k8s.V1Secret | None
    secrets: list[k8s.V1Secret]
    config_maps: list[k8s.V1ConfigMap]
    steps: dict[str, StepObjects]

    def manifests(self) -> list[Any]:
        """Return every object in submission order."""
        objects: list[Any] = [self.namespace]
        if self.pull_secret is not None:
            objects.append(self.pull_secret)
        objects.extend(self.secrets)
        objects.extend(self.config_maps)
        for step_objects in self.steps.values():
            if step_objects.service is not None:
                objects.append(step_objects.service)
            objects.append(step_objects.pod)
        return objects


def compile_step(spec: Spec, step: Step) -> StepObjects:
    """
    Compile one step into its pod, its optional service and every object the pod depends on.

    Besides the secrets the step references, that is the config maps behind its
    file mounts and the registry pull secret when the specification has credentials.
    """
    return StepObjects(
        pod=to_pod(spec, step),
        service=to_service(spec, step),
        secrets=[to_secret(spec, secret) for secret in referenced_secrets(spec, step)],
        config_maps=[to_config_map(spec, file) for file in referenced_files(spec, step)],
        pull_secret=to_docker_config_secret(spec),
    )


def compile_spec(spec: Spec) -> SpecObjects:
    """Compile every step of the specification, plus the namespace and shared objects."""
    secrets: dict[str, k8s.V1Secret] = {}
    config_maps: dict[str, k8s.V1ConfigMap] = {}
    steps: dict[str, StepObjects] = {}
    for step in spec.steps:
        step_objects = compile_step(spec, step)
        steps[step.metadata.uid] = step_objects
        for secret in step_objects.secrets:
            secrets.setdefault(secret.metadata.name, secret)
        for config_map in step_objects.config_maps:
            config_maps.setdefault(config_map.metadata.name, config_map)
    log.debug(
        "Compiled specification %s: %d step(s), %d secret(s), %d config map(s)",
        spec.metadata.uid,
        len(steps),
        len(secrets),
        len(config_maps),
    )
    return SpecObjects(
        namespace=to_namespace(spec),
        pull_secret=to_docker_config_secret(spec),
        secrets=list(secrets.values()),
        config_maps=list(config_maps.values()),
        steps=steps,
    )


def serialize(obj: Any) -> Any:
    """Convert kubernetes.client.models objects into plain dictionaries with camelCase keys."""
    return ApiClient().sanitize_for_serialization(obj)
