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
Volume resolution.

Empty directory and host path volumes become host path volumes; a secret
volume becomes one volume per item. Empty directories cannot be shared by the
several pods of one pipeline run, so they are emulated with a directory on the
host under ``/tmp/drone/{namespace}/{volume uid}``. Nothing here deletes those
directories; that is left to whoever tears the pipeline down.
"""
from __future__ import annotations

import logging
import posixpath

import kubernetes.client.models as k8s

from drone_kube.engine.spec import Spec, Step, Volume, secret_volume_lookup_key

log = logging.getLogger(__name__)

EMPTY_DIR_ROOT = "/tmp"

EMPTY_DIR_PRODUCT_SEGMENT = "drone"

HOST_PATH_TYPE = "DirectoryOrCreate"


def empty_dir_host_path(namespace: str, volume_uid: str) -> str:
    """Return the host directory that stands in for an empty directory volume."""
    return posixpath.join(EMPTY_DIR_ROOT, EMPTY_DIR_PRODUCT_SEGMENT, namespace, volume_uid)


def _is_host_path_kind(volume: Volume) -> bool:
    return volume.empty_dir is not None or volume.host_path is not None


def to_host_path_volume(spec: Spec, volume: Volume) -> k8s.V1Volume:
    """Convert an empty directory or host path volume to a host path volume."""
    if volume.empty_dir is not None:
        path = empty_dir_host_path(spec.metadata.namespace, volume.metadata.uid)
    else:
        path = volume.host_path.path
    return k8s.V1Volume(
        name=volume.metadata.uid,
        host_path=k8s.V1HostPathVolumeSource(path=path, type=HOST_PATH_TYPE),
    )


def secret_volume_name(volume: Volume, item_key: str) -> str:
    return f"{volume.metadata.uid}-{item_key}"


def to_secret_volumes(spec: Spec, volume: Volume) -> list[k8s.V1Volume]:
    """
    Convert a secret volume to one volume per item.

    Each item names the secret record holding its value through a lookup key;
    the volume then references that record by its uid.
    """
    volumes = []
    for item in volume.secret.items:
        lookup_key = secret_volume_lookup_key(volume.metadata.name, volume.secret.name, item.key)
        secret = spec.lookup_secret(lookup_key)
        if secret is None:
            log.debug("Volume %s: skipping item %s, unknown secret %s", volume.metadata.name, item.key, lookup_key)
            continue
        reference_id = secret.metadata.uid
        volumes.append(
            k8s.V1Volume(
                name=secret_volume_name(volume, item.key),
                secret=k8s.V1SecretVolumeSource(
                    secret_name=reference_id,
                    items=[k8s.V1KeyToPath(key=reference_id, path=item.path, mode=item.mode)],
                ),
            )
        )
    return volumes


def to_volumes(spec: Spec, step: Step) -> list[k8s.V1Volume]:
    """Return the volumes of the step, references that do not resolve are skipped."""
    volumes = []
    for mount in step.volumes:
        volume = spec.lookup_volume(mount.name)
        if volume is None:
            log.debug("Step %s: skipping unknown volume %s", step.metadata.name, mount.name)
            continue
        if _is_host_path_kind(volume):
            volumes.append(to_host_path_volume(spec, volume))
        elif volume.secret is not None:
            volumes.extend(to_secret_volumes(spec, volume))
        else:
            log.debug("Step %s: skipping volume %s of unknown kind", step.metadata.name, mount.name)
    return volumes


def to_volume_mounts(spec: Spec, step: Step) -> list[k8s.V1VolumeMount]:
    """Return the volume mounts matching :func:`to_volumes`, in the same order."""
    mounts = []
    for mount in step.volumes:
        volume = spec.lookup_volume(mount.name)
        if volume is None:
            continue
        if _is_host_path_kind(volume):
            mounts.append(k8s.V1VolumeMount(name=volume.metadata.uid, mount_path=mount.path))
        elif volume.secret is not None:
            for item in volume.secret.items:
                lookup_key = secret_volume_lookup_key(volume.metadata.name, volume.secret.name, item.key)
                if spec.lookup_secret(lookup_key) is None:
                    continue
                mounts.append(
                    k8s.V1VolumeMount(
                        name=secret_volume_name(volume, item.key),
                        mount_path=f"{mount.path}/{item.path}",
                        sub_path=item.path,
                    )
                )
    return mounts
