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

import contextlib
import io
from unittest import mock

import pytest

from drone_kube.cli import cli_parser
from drone_kube.cli.commands import config_command


class TestCliConfigList:
    @classmethod
    def setup_class(cls):
        cls.parser = cli_parser.get_parser()

    @mock.patch("drone_kube.cli.commands.config_command.conf")
    def test_cli_show_config_should_print_each_section(self, mock_conf):
        mock_conf.as_dict.return_value = {"cli": {"output": "yaml"}, "compiler": {"validate_references": "False"}}

        with contextlib.redirect_stdout(io.StringIO()) as temp_stdout:
            config_command.show_config(self.parser.parse_args(["config", "list"]))

        assert temp_stdout.getvalue() == "[cli]\noutput = yaml\n\n[compiler]\nvalidate_references = False\n\n"

    def test_cli_show_config_should_include_defaults(self):
        with contextlib.redirect_stdout(io.StringIO()) as temp_stdout:
            config_command.show_config(self.parser.parse_args(["config", "list"]))

        output = temp_stdout.getvalue()
        assert "[logging]" in output
        assert "[compiler]" in output


class TestCliConfigGetValue:
    @classmethod
    def setup_class(cls):
        cls.parser = cli_parser.get_parser()

    @mock.patch.dict("os.environ", {"DRONE_KUBE__CLI__OUTPUT": "json"})
    def test_should_display_value(self):
        with contextlib.redirect_stdout(io.StringIO()) as temp_stdout:
            config_command.get_value(self.parser.parse_args(["config", "get-value", "cli", "output"]))

        assert temp_stdout.getvalue().strip() == "json"

    def test_should_raise_exception_when_option_is_missing(self):
        with pytest.raises(SystemExit, match=r"The option \[cli/missing-option\] is not found in config."):
            config_command.get_value(self.parser.parse_args(["config", "get-value", "cli", "missing-option"]))
