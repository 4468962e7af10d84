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
File mounts.

Each file is projected from a config map named by the file uid. The volume
item is named after the base name of the mount path and the mount targets its
directory; the two halves only place the file correctly together.
"""
from __future__ import annotations

import logging
import posixpath

import kubernetes.client.models as k8s

from drone_kube.engine.spec import File, Spec, Step

log = logging.getLogger(__name__)


def _base(path: str) -> str:
    return posixpath.basename(path.rstrip("/")) or "."


def _dir(path: str) -> str:
    return posixpath.dirname(path.rstrip("/")) or "."


def to_config_map(spec: Spec, file: File) -> k8s.V1ConfigMap:
    """Materialize a file as a config map whose only key is the file uid."""
    return k8s.V1ConfigMap(
        api_version="v1",
        kind="ConfigMap",
        metadata=k8s.V1ObjectMeta(name=file.metadata.uid, namespace=spec.metadata.namespace),
        data={file.metadata.uid: file.data},
    )


def to_config_volumes(spec: Spec, step: Step) -> list[k8s.V1Volume]:
    volumes = []
    for mount in step.files:
        file = spec.lookup_file(mount.name)
        if file is None:
            log.debug("Step %s: skipping unknown file %s", step.metadata.name, mount.name)
            continue
        volumes.append(
            k8s.V1Volume(
                name=file.metadata.uid,
                config_map=k8s.V1ConfigMapVolumeSource(
                    name=file.metadata.uid,
                    optional=False,
                    items=[
                        k8s.V1KeyToPath(
                            key=file.metadata.uid,
                            path=_base(mount.path),
                            mode=mount.mode,
                        )
                    ],
                ),
            )
        )
    return volumes


def to_config_mounts(spec: Spec, step: Step) -> list[k8s.V1VolumeMount]:
    mounts = []
    for mount in step.files:
        file = spec.lookup_file(mount.name)
        if file is None:
            continue
        mounts.append(k8s.V1VolumeMount(name=file.metadata.uid, mount_path=_dir(mount.path)))
    return mounts
