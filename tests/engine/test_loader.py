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

import json

import pytest

from drone_kube.engine.loader import load_spec, spec_from_dict
from drone_kube.engine.spec import EmptyDirVolume, Port, PullPolicy, ResourceObject, SecretVolumeItem
from drone_kube.exceptions import SpecLoadException


class TestLoadSpec:
    def test_load_from_file(self, fixture_path):
        spec = load_spec(fixture_path("pipeline.yaml"))

        assert spec.metadata.uid == "spec-uid"
        assert spec.metadata.namespace == "ns1"
        assert spec.metadata.labels == {"io.drone": "true"}
        assert [step.metadata.name for step in spec.steps] == ["build_and_test", "publish"]
        assert [secret.metadata.uid for secret in spec.secrets] == [
            "secret-token-uid",
            "secret-crt-uid",
            "secret-key-uid",
        ]
        assert spec.docker.auths[0].username == "octocat"

    def test_step_fields(self, fixture_path):
        step = load_spec(fixture_path("pipeline.yaml")).lookup_step("build_and_test")

        assert step.metadata.uid == "step-uid"
        assert step.docker.image == "golang:1.20"
        assert step.docker.command == ["/bin/sh", "-c"]
        assert step.docker.pull_policy is PullPolicy.ALWAYS
        assert step.docker.privileged is True
        assert step.docker.ports == [Port(port=8080), Port(port=9000, host=9090)]
        assert step.envs == {"GOOS": "linux", "CGO_ENABLED": "0"}
        assert step.files[0].mode == 0o600
        assert step.resources.limits == ResourceObject(cpu=500)
        assert step.resources.requests == ResourceObject(cpu=250, memory=64 * 1024 * 1024)
        assert step.working_dir == "/go/src/github.com/octocat/hello-world"

    def test_optional_step_fields(self, fixture_path):
        step = load_spec(fixture_path("pipeline.yaml")).lookup_step("publish")

        assert step.docker.pull_policy is PullPolicy.IF_NOT_EXISTS
        assert step.depends_on == ["build_and_test"]
        assert step.resources is None
        assert step.automount_service_account_token is None
        assert step.run_policy == "on-success"

    def test_volumes(self, fixture_path):
        spec = load_spec(fixture_path("pipeline.yaml"))

        assert spec.lookup_volume("cache").empty_dir == EmptyDirVolume()
        assert spec.lookup_volume("certs").secret.items == [
            SecretVolumeItem(key="crt", path="tls.crt", mode=0o444),
            SecretVolumeItem(key="key", path="tls.key"),
        ]

    def test_load_from_json_string(self):
        document = json.dumps(
            {
                "metadata": {"uid": "spec-uid", "namespace": "ns1"},
                "steps": [{"metadata": {"uid": "s1", "name": "build"}, "docker": {"image": "alpine"}}],
                "docker": {"volumes": [{"metadata": {"name": "docker"}, "hostPath": {"path": "/var/run"}}]},
            }
        )

        spec = load_spec(document)

        assert spec.lookup_step("build").docker.image == "alpine"
        volume = spec.lookup_volume("docker")
        assert volume.metadata.uid == "docker"
        assert volume.host_path.path == "/var/run"

    @pytest.mark.parametrize("document", ["- a list", "just text", "", "/no/such/file.yaml"])
    def test_not_a_mapping(self, document):
        with pytest.raises(SpecLoadException, match="must be a mapping"):
            load_spec(document)

    def test_invalid_yaml(self):
        with pytest.raises(SpecLoadException, match="Invalid specification document"):
            load_spec("metadata: [unclosed")


class TestSpecFromDict:
    def test_missing_uid(self):
        with pytest.raises(SpecLoadException, match="Missing metadata.uid at spec"):
            spec_from_dict({"metadata": {"namespace": "ns1"}})

    def test_missing_metadata(self):
        with pytest.raises(SpecLoadException, match=r"Missing metadata at spec.steps\[0\]"):
            spec_from_dict({"metadata": {"uid": "a"}, "steps": [{"docker": {"image": "alpine"}}]})

    def test_wrong_list_type(self):
        with pytest.raises(SpecLoadException, match="Expected a list at spec.steps"):
            spec_from_dict({"metadata": {"uid": "a"}, "steps": {"name": "build"}})

    @pytest.mark.parametrize("cpu", ["lots", True, 500.7])
    def test_wrong_integer(self, cpu):
        data = {
            "metadata": {"uid": "a"},
            "steps": [{"metadata": {"uid": "s"}, "resources": {"limits": {"cpu": cpu}}}],
        }
        with pytest.raises(SpecLoadException, match="Expected an integer"):
            spec_from_dict(data)

    def test_integral_float_is_accepted(self):
        data = {"metadata": {"uid": "a"}, "steps": [{"metadata": {"uid": "s"}, "docker": {"ports": [8080.0]}}]}

        (step,) = spec_from_dict(data).steps

        assert step.docker.ports == [Port(port=8080)]

    def test_fractional_port(self):
        data = {"metadata": {"uid": "a"}, "steps": [{"metadata": {"uid": "s"}, "docker": {"ports": [8080.9]}}]}
        with pytest.raises(SpecLoadException, match=r"Expected an integer at spec.steps\[0\].docker.ports\[0\]"):
            spec_from_dict(data)

    @pytest.mark.parametrize(
        "step",
        [
            {"docker": {"privileged": "false"}},
            {"docker": {"privileged": "yes"}},
            {"detach": "false"},
            {"ignore_err": 1},
        ],
    )
    def test_flags_must_be_boolean(self, step):
        data = {"metadata": {"uid": "a"}, "steps": [{"metadata": {"uid": "s"}, **step}]}
        with pytest.raises(SpecLoadException, match="Expected a boolean"):
            spec_from_dict(data)

    def test_flags(self):
        data = {
            "metadata": {"uid": "a"},
            "steps": [{"metadata": {"uid": "s"}, "docker": {"privileged": False}, "detach": True}],
        }

        (step,) = spec_from_dict(data).steps

        assert step.docker.privileged is False
        assert step.detach is True
        assert step.ignore_err is False

    def test_env_scalars(self):
        data = {
            "metadata": {"uid": "a"},
            "steps": [
                {
                    "metadata": {"uid": "s"},
                    "envs": {"DEBUG": False, "VERBOSE": True, "CGO_ENABLED": 0, "EMPTY": None},
                }
            ],
        }

        (step,) = spec_from_dict(data).steps

        assert step.envs == {"DEBUG": "false", "VERBOSE": "true", "CGO_ENABLED": "0", "EMPTY": ""}

    def test_duplicate_step_uid(self):
        data = {
            "metadata": {"uid": "a"},
            "steps": [{"metadata": {"uid": "s", "name": "build"}}, {"metadata": {"uid": "s", "name": "test"}}],
        }
        with pytest.raises(SpecLoadException, match="Duplicate step uid 's'"):
            spec_from_dict(data)

    def test_automount_must_be_boolean(self):
        data = {"metadata": {"uid": "a"}, "steps": [{"metadata": {"uid": "s"}, "automountServiceAccountToken": "yes"}]}
        with pytest.raises(SpecLoadException, match="Expected a boolean"):
            spec_from_dict(data)

    def test_camel_case_keys(self):
        data = {
            "metadata": {"uid": "a"},
            "steps": [
                {
                    "metadata": {"uid": "s"},
                    "workingDir": "/src",
                    "automountServiceAccountToken": True,
                    "ignoreErr": True,
                    "dependsOn": "clone",
                    "docker": {"pullPolicy": "never"},
                }
            ],
        }

        (step,) = spec_from_dict(data).steps

        assert step.working_dir == "/src"
        assert step.automount_service_account_token is True
        assert step.ignore_err is True
        assert step.depends_on == ["clone"]
        assert step.docker.pull_policy is PullPolicy.NEVER
