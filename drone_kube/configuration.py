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
drone-kube configuration.

Values are resolved from, in order: ``DRONE_KUBE__{SECTION}__{KEY}``
environment variables, the user configuration file and the packaged
defaults in ``config_templates/default_drone_kube.cfg``.
"""
from __future__ import annotations

import logging
import os
from configparser import ConfigParser
from typing import Any

from drone_kube.exceptions import DroneKubeConfigException

log = logging.getLogger(__name__)

ENV_VAR_PREFIX = "DRONE_KUBE__"

_UNSET = object()


def expand_env_var(env_var: str | None) -> str | None:
    """
    Expand (potentially nested) env vars.

    Repeat and apply `expandvars` and `expanduser` until
    interpolation stops having any effect.
    """
    if not env_var:
        return env_var
    while True:
        interpolated = os.path.expanduser(os.path.expandvars(str(env_var)))
        if interpolated == env_var:
            return interpolated
        env_var = interpolated


def _default_config_file_path(file_name: str) -> str:
    templates_dir = os.path.join(os.path.dirname(__file__), "config_templates")
    return os.path.join(templates_dir, file_name)


def get_drone_kube_config_path() -> str:
    """Return the location of the user configuration file."""
    if "DRONE_KUBE_CONFIG" in os.environ:
        return expand_env_var(os.environ["DRONE_KUBE_CONFIG"])
    return expand_env_var("~/drone-kube/drone-kube.cfg")


class DroneKubeConfigParser(ConfigParser):
    """
    ConfigParser that falls back to packaged defaults and honours environment overrides.

    :param default_config: default configuration (in the form of ini file).
    """

    def __init__(self, default_config: str | None = None, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._default_values = ConfigParser(*args, **kwargs)
        if default_config is not None:
            self._default_values.read_string(default_config)

    def _env_var_name(self, section: str, key: str) -> str:
        return f"{ENV_VAR_PREFIX}{section.replace('.', '_').upper()}__{key.upper()}"

    def _get_env_var_option(self, section: str, key: str) -> str | None:
        # must have format DRONE_KUBE__{SECTION}__{KEY} (note double underscore)
        env_var = self._env_var_name(section, key)
        if env_var in os.environ:
            return expand_env_var(os.environ[env_var])
        return None

    def get_mandatory_value(self, section: str, key: str, **kwargs) -> str:
        value = self.get(section, key, **kwargs)
        if value is None:
            raise DroneKubeConfigException(f"The value {section}/{key} should be set!")
        return value

    def get(self, section: str, key: str, fallback: Any = _UNSET, **kwargs) -> str | None:  # type: ignore[override]
        section = section.lower()
        key = key.lower()

        option = self._get_env_var_option(section, key)
        if option is not None:
            return option

        if super().has_option(section, key):
            return expand_env_var(super().get(section, key, **kwargs))

        if self._default_values.has_option(section, key):
            return expand_env_var(self._default_values.get(section, key, **kwargs))

        if fallback is not _UNSET:
            return fallback

        log.warning("section/key [%s/%s] not found in config", section, key)
        raise DroneKubeConfigException(f"section/key [{section}/{key}] not found in config")

    def getboolean(self, section: str, key: str, **kwargs) -> bool:  # type: ignore[override]
        val = str(self.get(section, key, **kwargs)).lower().strip()
        if "#" in val:
            val = val.split("#")[0].strip()
        if val in ("t", "true", "1"):
            return True
        elif val in ("f", "false", "0"):
            return False
        else:
            raise DroneKubeConfigException(
                f'Failed to convert value to bool. Please check "{key}" key in "{section}" section. '
                f'Current value: "{val}".'
            )

    def getint(self, section: str, key: str, **kwargs) -> int:  # type: ignore[override]
        val = self.get(section, key, **kwargs)
        if val is None:
            raise DroneKubeConfigException(
                f"Failed to convert value None to int. "
                f'Please check "{key}" key in "{section}" section is set.'
            )
        try:
            return int(val)
        except ValueError:
            raise DroneKubeConfigException(
                f'Failed to convert value to int. Please check "{key}" key in "{section}" section. '
                f'Current value: "{val}".'
            )

    def has_option(self, section: str, option: str) -> bool:
        try:
            self.get(section, option)
            return True
        except DroneKubeConfigException:
            return False

    def as_dict(self) -> dict[str, dict[str, str]]:
        """Return the effective configuration, defaults and overrides included."""
        result: dict[str, dict[str, str]] = {}
        sections = list(self._default_values.sections())
        sections.extend(s for s in self.sections() if s not in sections)
        for section in sections:
            keys = []
            if self._default_values.has_section(section):
                keys.extend(self._default_values.options(section))
            if super().has_section(section):
                keys.extend(k for k in super().options(section) if k not in keys)
            result[section] = {key: self.get(section, key) for key in keys}
        return result


def initialize_config() -> DroneKubeConfigParser:
    """Load the packaged defaults and the user configuration file, if one exists."""
    with open(_default_config_file_path("default_drone_kube.cfg")) as default_file:
        default_config = default_file.read()
    local_conf = DroneKubeConfigParser(default_config=default_config)
    config_path = get_drone_kube_config_path()
    if os.path.isfile(config_path):
        log.debug("Reading the config from %s", config_path)
        local_conf.read(config_path)
    return local_conf


conf = initialize_config()
