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

import os
import textwrap
from unittest import mock

import pytest

from drone_kube.configuration import (
    DroneKubeConfigParser,
    expand_env_var,
    get_drone_kube_config_path,
    initialize_config,
)
from drone_kube.exceptions import DroneKubeConfigException

DEFAULT_CONFIG = textwrap.dedent(
    """
    [cli]
    output = yaml

    [compiler]
    validate_references = False
    workers = 4
    """
)


@pytest.fixture
def test_conf():
    return DroneKubeConfigParser(default_config=DEFAULT_CONFIG)


class TestConf:
    def test_get_drone_kube_config_path(self):
        with mock.patch.dict("os.environ", {"DRONE_KUBE_CONFIG": "/tmp/drone-kube.cfg"}):
            assert get_drone_kube_config_path() == "/tmp/drone-kube.cfg"

    def test_get_drone_kube_config_path_default(self):
        with mock.patch.dict("os.environ"):
            os.environ.pop("DRONE_KUBE_CONFIG", None)
            assert get_drone_kube_config_path() == os.path.expanduser("~/drone-kube/drone-kube.cfg")

    @mock.patch.dict("os.environ", {"OUTER": "${INNER}/x", "INNER": "/opt"})
    def test_expand_env_var(self):
        assert expand_env_var("$OUTER") == "/opt/x"
        assert expand_env_var("") == ""
        assert expand_env_var(None) is None

    def test_defaults(self, test_conf):
        assert test_conf.get("cli", "output") == "yaml"
        assert test_conf.getboolean("compiler", "validate_references") is False
        assert test_conf.getint("compiler", "workers") == 4

    def test_file_overrides_defaults(self, test_conf):
        test_conf.read_string("[cli]\noutput = json\n")

        assert test_conf.get("cli", "output") == "json"

    @mock.patch.dict("os.environ", {"DRONE_KUBE__CLI__OUTPUT": "json"})
    def test_env_overrides_file(self, test_conf):
        test_conf.read_string("[cli]\noutput = yaml\n")

        assert test_conf.get("cli", "output") == "json"
        assert test_conf.get("CLI", "OUTPUT") == "json"

    def test_missing_option(self, test_conf):
        with pytest.raises(DroneKubeConfigException, match=r"section/key \[cli/nope\] not found in config"):
            test_conf.get("cli", "nope")
        assert test_conf.get("cli", "nope", fallback="x") == "x"
        assert test_conf.has_option("cli", "output")
        assert not test_conf.has_option("cli", "nope")

    @pytest.mark.parametrize(
        "value, expected",
        [("t", True), ("True", True), ("1", True), ("f", False), ("FALSE", False), ("0 # off", False)],
    )
    def test_getboolean(self, test_conf, value, expected):
        with mock.patch.dict("os.environ", {"DRONE_KUBE__COMPILER__VALIDATE_REFERENCES": value}):
            assert test_conf.getboolean("compiler", "validate_references") is expected

    def test_getboolean_invalid(self, test_conf):
        with mock.patch.dict("os.environ", {"DRONE_KUBE__COMPILER__VALIDATE_REFERENCES": "maybe"}):
            with pytest.raises(DroneKubeConfigException, match="Failed to convert value to bool"):
                test_conf.getboolean("compiler", "validate_references")

    def test_getint_invalid(self, test_conf):
        with mock.patch.dict("os.environ", {"DRONE_KUBE__COMPILER__WORKERS": "many"}):
            with pytest.raises(DroneKubeConfigException, match="Failed to convert value to int"):
                test_conf.getint("compiler", "workers")

    def test_get_mandatory_value(self, test_conf):
        assert test_conf.get_mandatory_value("cli", "output") == "yaml"
        with pytest.raises(DroneKubeConfigException, match="should be set"):
            test_conf.get_mandatory_value("cli", "nope", fallback=None)

    @mock.patch.dict("os.environ", {"DRONE_KUBE__CLI__OUTPUT": "json"})
    def test_as_dict(self, test_conf):
        test_conf.read_string("[extra]\nkey = value\n")

        assert test_conf.as_dict() == {
            "cli": {"output": "json"},
            "compiler": {"validate_references": "False", "workers": "4"},
            "extra": {"key": "value"},
        }

    def test_initialize_config(self, tmp_path):
        config_file = tmp_path / "drone-kube.cfg"
        config_file.write_text("[cli]\noutput = json\n")

        with mock.patch.dict("os.environ", {"DRONE_KUBE_CONFIG": str(config_file)}):
            config = initialize_config()

        assert config.get("cli", "output") == "json"
        assert config.get("logging", "logging_level") == "INFO"
        assert config.getboolean("compiler", "validate_references") is False

    def test_packaged_log_format_is_not_interpolated_away(self, tmp_path):
        with mock.patch.dict("os.environ", {"DRONE_KUBE_CONFIG": str(tmp_path / "absent.cfg")}):
            config = initialize_config()

        assert "%(levelname)s" in config.get("logging", "log_format")
