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

from drone_kube.engine.spec import DockerStep, Port
from drone_kube.kubernetes.pod_generator import serialize
from drone_kube.kubernetes.ports import to_ports, to_service


class TestToPorts:
    def test_no_ports(self, build_step):
        assert to_ports(build_step()) is None

    def test_container_ports(self, spec):
        assert serialize(to_ports(spec.steps[0])) == [{"containerPort": 8080}, {"containerPort": 9000}]


class TestToService:
    def test_no_ports(self, spec, build_step):
        assert to_service(spec, build_step()) is None

    def test_to_service(self, spec):
        service = serialize(to_service(spec, spec.steps[0]))

        assert service == {
            "apiVersion": "v1",
            "kind": "Service",
            "metadata": {"name": "build-and-test", "namespace": "ns1"},
            "spec": {
                "type": "ClusterIP",
                "selector": {"io.drone.step.name": "build_and_test"},
                "ports": [
                    {"name": "8080", "port": 8080, "targetPort": 8080},
                    {"name": "9000", "port": 9000, "targetPort": 9090},
                ],
            },
        }

    def test_target_defaults_to_port(self, spec, build_step):
        step = build_step(docker=DockerStep(image="redis", ports=[Port(port=8080, host=0)]))

        (port,) = to_service(spec, step).spec.ports

        assert port.port == 8080
        assert port.target_port == 8080
