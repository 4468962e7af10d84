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
Pipeline specification model.

A :class:`Spec` is supplied whole and treated as read-only. Secrets, files and
volumes are declared once on the specification and referenced by name from
each :class:`Step`; every referenceable entity carries a :class:`Metadata`
block whose ``uid`` is used as the name of the Kubernetes object it becomes.
"""
from __future__ import annotations

import enum

import attr


class PullPolicy(str, enum.Enum):
    """Image pull policy of a step."""

    DEFAULT = "default"
    ALWAYS = "always"
    IF_NOT_EXISTS = "if-not-exists"
    NEVER = "never"

    @classmethod
    def parse(cls, value: str | PullPolicy | None) -> PullPolicy:
        """Parse a pull policy, any unknown value is the default policy."""
        if isinstance(value, PullPolicy):
            return value
        if not value:
            return cls.DEFAULT
        normalized = str(value).strip().lower().replace("_", "-")
        if normalized == "ifnotexists":
            normalized = cls.IF_NOT_EXISTS.value
        try:
            return cls(normalized)
        except ValueError:
            return cls.DEFAULT


@attr.define(frozen=True)
class Metadata:
    """Identity block shared by specs, steps, secrets, files and volumes."""

    uid: str
    name: str = ""
    namespace: str = ""
    labels: dict[str, str] = attr.field(factory=dict)


@attr.define(frozen=True)
class Secret:
    """A named secret holding a single opaque value."""

    metadata: Metadata
    data: str = ""


@attr.define(frozen=True)
class File:
    """A named configuration file."""

    metadata: Metadata
    data: str = ""


@attr.define(frozen=True)
class EmptyDirVolume:
    medium: str = ""
    size_limit: int = 0


@attr.define(frozen=True)
class HostPathVolume:
    path: str


@attr.define(frozen=True)
class SecretVolumeItem:
    """Exposes one key of a secret as a file named ``path``."""

    key: str
    path: str
    mode: int | None = None


@attr.define(frozen=True)
class SecretVolume:
    name: str
    items: list[SecretVolumeItem] = attr.field(factory=list)


@attr.define(frozen=True)
class Volume:
    """
    A specification level volume.

    Exactly one of ``empty_dir``, ``host_path`` or ``secret`` is expected to
    be set. A volume with none of them is of unknown kind and is ignored by
    the compiler.
    """

    metadata: Metadata
    empty_dir: EmptyDirVolume | None = None
    host_path: HostPathVolume | None = None
    secret: SecretVolume | None = None


@attr.define(frozen=True)
class Port:
    """A container port; ``host`` is the port the service forwards to, 0 when unset."""

    port: int
    host: int = 0


@attr.define(frozen=True)
class DockerStep:
    image: str = ""
    command: list[str] = attr.field(factory=list)
    args: list[str] = attr.field(factory=list)
    pull_policy: PullPolicy = attr.field(default=PullPolicy.DEFAULT, converter=PullPolicy.parse)
    privileged: bool = False
    ports: list[Port] = attr.field(factory=list)


@attr.define(frozen=True)
class SecretVar:
    """Exposes the secret ``name`` as the environment variable ``env``."""

    name: str
    env: str


@attr.define(frozen=True)
class FileMount:
    name: str
    path: str
    mode: int | None = None


@attr.define(frozen=True)
class VolumeMount:
    name: str
    path: str


@attr.define(frozen=True)
class ResourceObject:
    """CPU in milli-units and memory in bytes."""

    cpu: int = 0
    memory: int = 0


@attr.define(frozen=True)
class Resources:
    limits: ResourceObject | None = None
    requests: ResourceObject | None = None


@attr.define(frozen=True)
class Step:
    """
    One unit of pipeline work, compiled to one pod.

    ``automount_service_account_token`` takes precedence over the
    ``PLUGIN_AUTOMOUNTSERVICEACCOUNTTOKEN`` environment variable when set.
    ``detach``, ``depends_on``, ``ignore_err`` and ``run_policy`` are carried
    for the runtime and do not affect the compiled objects.
    """

    metadata: Metadata
    docker: DockerStep = attr.field(factory=DockerStep)
    envs: dict[str, str] = attr.field(factory=dict)
    secrets: list[SecretVar] = attr.field(factory=list)
    files: list[FileMount] = attr.field(factory=list)
    volumes: list[VolumeMount] = attr.field(factory=list)
    resources: Resources | None = None
    working_dir: str = ""
    automount_service_account_token: bool | None = None
    detach: bool = False
    depends_on: list[str] = attr.field(factory=list)
    ignore_err: bool = False
    run_policy: str = "on-success"


@attr.define(frozen=True)
class DockerAuth:
    """Registry credentials."""

    address: str
    username: str = ""
    password: str = attr.field(default="", repr=False)


@attr.define(frozen=True)
class DockerConfig:
    auths: list[DockerAuth] = attr.field(factory=list)
    volumes: list[Volume] = attr.field(factory=list)


@attr.define(frozen=True)
class Spec:
    """The full pipeline description, root for all name based lookups."""

    metadata: Metadata
    steps: list[Step] = attr.field(factory=list)
    secrets: list[Secret] = attr.field(factory=list)
    files: list[File] = attr.field(factory=list)
    docker: DockerConfig = attr.field(factory=DockerConfig)

    def lookup_step(self, name: str) -> Step | None:
        """Return the step with the given name, or None."""
        return next((step for step in self.steps if step.metadata.name == name), None)

    def lookup_secret(self, name: str) -> Secret | None:
        """Return the secret with the given name, or None."""
        return next((secret for secret in self.secrets if secret.metadata.name == name), None)

    def lookup_file(self, name: str) -> File | None:
        """Return the file with the given name, or None."""
        return next((file for file in self.files if file.metadata.name == name), None)

    def lookup_volume(self, name: str) -> Volume | None:
        """Return the volume with the given name, or None."""
        return next((volume for volume in self.docker.volumes if volume.metadata.name == name), None)


def secret_volume_lookup_key(volume_name: str, secret_name: str, item_key: str) -> str:
    """
    Return the name under which the secret backing one item of a secret volume is declared.

    This is only used to find the secret record; the compiled volume references
    the secret by the record's own uid.
    """
    return f"{volume_name}-{secret_name}-{item_key}"
