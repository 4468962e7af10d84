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
Load a pipeline specification document into a :class:`~drone_kube.engine.spec.Spec`.

Documents are JSON or YAML (YAML being a superset of JSON, both go through
``yaml.safe_load``). Keys are snake_case; the camelCase spelling used by the
Drone runtime JSON encoding is accepted as well.
"""
from __future__ import annotations

import logging
import os
import re
from typing import Any, Callable, TypeVar

import yaml

from drone_kube.engine.spec import (
    DockerAuth,
    DockerConfig,
    DockerStep,
    EmptyDirVolume,
    File,
    FileMount,
    HostPathVolume,
    Metadata,
    Port,
    PullPolicy,
    ResourceObject,
    Resources,
    Secret,
    SecretVar,
    SecretVolume,
    SecretVolumeItem,
    Spec,
    Step,
    Volume,
    VolumeMount,
)
from drone_kube.exceptions import SpecLoadException

log = logging.getLogger(__name__)

T = TypeVar("T")

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def _snake_case(key: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def _normalize(data: Any, where: str) -> dict[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise SpecLoadException(f"Expected a mapping at {where}, got {type(data).__name__}")
    return {_snake_case(str(k)): v for k, v in data.items()}


def _list(data: dict[str, Any], key: str, where: str, parse: Callable[[Any, str], T]) -> list[T]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise SpecLoadException(f"Expected a list at {where}.{key}, got {type(value).__name__}")
    return [parse(item, f"{where}.{key}[{i}]") for i, item in enumerate(value)]


def _int(value: Any, where: str, default: int | None = 0) -> int | None:
    if value is None or value == "":
        return default
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise SpecLoadException(f"Expected an integer at {where}, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise SpecLoadException(f"Expected an integer at {where}, got {value!r}")


def _mode(value: Any, where: str) -> int | None:
    # file modes are commonly written in octal, e.g. "0644"
    if isinstance(value, str) and value.startswith("0") and len(value) > 1:
        try:
            return int(value, 8)
        except ValueError:
            raise SpecLoadException(f"Expected an octal file mode at {where}, got {value!r}")
    return _int(value, where, default=None)


def _strings(value: Any, where: str) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise SpecLoadException(f"Expected a list of strings at {where}, got {type(value).__name__}")
    return [str(v) for v in value]


def _scalar_string(value: Any) -> str:
    if value is None:
        return ""
    # YAML booleans are spelled the way the runtime reads them back
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _string_map(value: Any, where: str) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise SpecLoadException(f"Expected a mapping at {where}, got {type(value).__name__}")
    return {str(k): _scalar_string(v) for k, v in value.items()}


def _metadata(data: Any, where: str) -> Metadata:
    if data is None:
        raise SpecLoadException(f"Missing metadata at {where}")
    meta = _normalize(data, f"{where}.metadata")
    uid = meta.get("uid") or meta.get("name")
    if not uid:
        raise SpecLoadException(f"Missing metadata.uid at {where}")
    return Metadata(
        uid=str(uid),
        name=str(meta.get("name") or ""),
        namespace=str(meta.get("namespace") or ""),
        labels=_string_map(meta.get("labels"), f"{where}.metadata.labels"),
    )


def _secret(data: Any, where: str) -> Secret:
    data = _normalize(data, where)
    return Secret(metadata=_metadata(data.get("metadata"), where), data=str(data.get("data") or ""))


def _file(data: Any, where: str) -> File:
    data = _normalize(data, where)
    content = data.get("data") or ""
    if isinstance(content, bytes):
        content = content.decode()
    return File(metadata=_metadata(data.get("metadata"), where), data=str(content))


def _secret_item(data: Any, where: str) -> SecretVolumeItem:
    data = _normalize(data, where)
    return SecretVolumeItem(
        key=str(data.get("key") or ""),
        path=str(data.get("path") or ""),
        mode=_mode(data.get("mode"), f"{where}.mode"),
    )


def _volume(data: Any, where: str) -> Volume:
    data = _normalize(data, where)
    empty_dir = data.get("temp", data.get("empty_dir"))
    host_path = data.get("host", data.get("host_path"))
    secret = data.get("secret")

    kwargs: dict[str, Any] = {}
    if empty_dir is not None:
        empty_dir = _normalize(empty_dir, f"{where}.empty_dir")
        kwargs["empty_dir"] = EmptyDirVolume(
            medium=str(empty_dir.get("medium") or ""),
            size_limit=_int(empty_dir.get("size_limit"), f"{where}.empty_dir.size_limit"),
        )
    if host_path is not None:
        host_path = _normalize(host_path, f"{where}.host_path")
        kwargs["host_path"] = HostPathVolume(path=str(host_path.get("path") or ""))
    if secret is not None:
        secret = _normalize(secret, f"{where}.secret")
        kwargs["secret"] = SecretVolume(
            name=str(secret.get("name") or ""),
            items=_list(secret, "items", f"{where}.secret", _secret_item),
        )
    return Volume(metadata=_metadata(data.get("metadata"), where), **kwargs)


def _port(data: Any, where: str) -> Port:
    if not isinstance(data, dict):
        return Port(port=_int(data, where))
    data = _normalize(data, where)
    return Port(port=_int(data.get("port"), f"{where}.port"), host=_int(data.get("host"), f"{where}.host"))


def _docker_step(data: Any, where: str) -> DockerStep:
    data = _normalize(data, where)
    return DockerStep(
        image=str(data.get("image") or ""),
        command=_strings(data.get("command"), f"{where}.command"),
        args=_strings(data.get("args"), f"{where}.args"),
        pull_policy=PullPolicy.parse(data.get("pull_policy")),
        privileged=_bool(data.get("privileged"), f"{where}.privileged"),
        ports=_list(data, "ports", where, _port),
    )


def _secret_var(data: Any, where: str) -> SecretVar:
    data = _normalize(data, where)
    return SecretVar(name=str(data.get("name") or ""), env=str(data.get("env") or ""))


def _file_mount(data: Any, where: str) -> FileMount:
    data = _normalize(data, where)
    return FileMount(
        name=str(data.get("name") or ""),
        path=str(data.get("path") or ""),
        mode=_mode(data.get("mode"), f"{where}.mode"),
    )


def _volume_mount(data: Any, where: str) -> VolumeMount:
    data = _normalize(data, where)
    return VolumeMount(name=str(data.get("name") or ""), path=str(data.get("path") or ""))


def _resource_object(data: Any, where: str) -> ResourceObject | None:
    if data is None:
        return None
    data = _normalize(data, where)
    return ResourceObject(
        cpu=_int(data.get("cpu"), f"{where}.cpu"),
        memory=_int(data.get("memory"), f"{where}.memory"),
    )


def _resources(data: Any, where: str) -> Resources | None:
    if data is None:
        return None
    data = _normalize(data, where)
    return Resources(
        limits=_resource_object(data.get("limits"), f"{where}.limits"),
        requests=_resource_object(data.get("requests"), f"{where}.requests"),
    )


def _optional_bool(value: Any, where: str) -> bool | None:
    if value is None or isinstance(value, bool):
        return value
    raise SpecLoadException(f"Expected a boolean at {where}, got {value!r}")


def _bool(value: Any, where: str) -> bool:
    return bool(_optional_bool(value, where))


def _step(data: Any, where: str) -> Step:
    data = _normalize(data, where)
    return Step(
        metadata=_metadata(data.get("metadata"), where),
        docker=_docker_step(data.get("docker"), f"{where}.docker"),
        envs=_string_map(data.get("envs"), f"{where}.envs"),
        secrets=_list(data, "secrets", where, _secret_var),
        files=_list(data, "files", where, _file_mount),
        volumes=_list(data, "volumes", where, _volume_mount),
        resources=_resources(data.get("resources"), f"{where}.resources"),
        working_dir=str(data.get("working_dir") or ""),
        automount_service_account_token=_optional_bool(
            data.get("automount_service_account_token"), f"{where}.automount_service_account_token"
        ),
        detach=_bool(data.get("detach"), f"{where}.detach"),
        depends_on=_strings(data.get("depends_on"), f"{where}.depends_on"),
        ignore_err=_bool(data.get("ignore_err"), f"{where}.ignore_err"),
        run_policy=str(data.get("run_policy") or "on-success"),
    )


def _docker_auth(data: Any, where: str) -> DockerAuth:
    data = _normalize(data, where)
    return DockerAuth(
        address=str(data.get("address") or ""),
        username=str(data.get("username") or ""),
        password=str(data.get("password") or ""),
    )


def spec_from_dict(data: Any) -> Spec:
    """
    Build a specification from its dictionary representation.

    :param data: the decoded specification document
    :return: the specification
    :raises SpecLoadException: if the document is malformed
    """
    data = _normalize(data, "spec")
    docker = _normalize(data.get("docker"), "spec.docker")
    spec = Spec(
        metadata=_metadata(data.get("metadata"), "spec"),
        steps=_list(data, "steps", "spec", _step),
        secrets=_list(data, "secrets", "spec", _secret),
        files=_list(data, "files", "spec", _file),
        docker=DockerConfig(
            auths=_list(docker, "auths", "spec.docker", _docker_auth),
            volumes=_list(docker, "volumes", "spec.docker", _volume),
        ),
    )
    seen = set()
    for step in spec.steps:
        if step.metadata.uid in seen:
            raise SpecLoadException(f"Duplicate step uid {step.metadata.uid!r} in spec.steps")
        seen.add(step.metadata.uid)
    log.debug(
        "Loaded specification %s with %d step(s), %d secret(s), %d file(s), %d volume(s)",
        spec.metadata.uid,
        len(spec.steps),
        len(spec.secrets),
        len(spec.files),
        len(spec.docker.volumes),
    )
    return spec


def load_spec(path_or_string: str) -> Spec:
    """
    Load a specification from a file path or from the document itself.

    :param path_or_string: path to a JSON/YAML file, or the JSON/YAML text
    :return: the specification
    :raises SpecLoadException: if the file cannot be read or the document is malformed
    """
    if os.path.exists(path_or_string):
        log.debug("Reading specification from %s", path_or_string)
        try:
            with open(path_or_string) as stream:
                data = yaml.safe_load(stream)
        except OSError as e:
            raise SpecLoadException(f"Cannot read specification {path_or_string}: {e}") from e
        except yaml.YAMLError as e:
            raise SpecLoadException(f"Invalid specification document {path_or_string}: {e}") from e
    else:
        try:
            data = yaml.safe_load(path_or_string)
        except yaml.YAMLError as e:
            raise SpecLoadException(f"Invalid specification document: {e}") from e
    if not isinstance(data, dict):
        raise SpecLoadException(
            f"Specification must be a mapping or an existing file, got {type(data).__name__}"
        )
    return spec_from_dict(data)
