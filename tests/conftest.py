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

import pytest

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

FIXTURES_DIR = os.path.join(os.path.dirname(__file__), "fixtures")


@pytest.fixture
def fixture_path():
    def _path(name: str) -> str:
        return os.path.join(FIXTURES_DIR, name)

    return _path


@pytest.fixture
def build_step():
    """Step factory, every field but the identity is optional."""

    def _build(name="build_and_test", uid="step-uid", **kwargs):
        kwargs.setdefault("docker", DockerStep(image="golang:1.20"))
        return Step(
            metadata=Metadata(uid=uid, name=name, namespace="ns1", labels={"io.drone.step.name": name}),
            **kwargs,
        )

    return _build


@pytest.fixture
def spec(build_step):
    """A specification exercising every kind of reference."""
    step = build_step(
        docker=DockerStep(
            image="golang:1.20",
            command=["/bin/sh", "-c"],
            args=["go test ./..."],
            pull_policy=PullPolicy.ALWAYS,
            privileged=True,
            ports=[Port(port=8080), Port(port=9000, host=9090)],
        ),
        envs={"GOOS": "linux", "PLUGIN_AUTOMOUNTSERVICEACCOUNTTOKEN": "true", "CGO_ENABLED": "0"},
        secrets=[SecretVar(name="token", env="GITHUB_TOKEN"), SecretVar(name="missing", env="NOPE")],
        files=[
            FileMount(name="netrc", path="/root/.netrc", mode=0o600),
            FileMount(name="missing", path="/etc/missing"),
        ],
        volumes=[
            VolumeMount(name="cache", path="/go/pkg"),
            VolumeMount(name="docker", path="/var/run/docker.sock"),
            VolumeMount(name="certs", path="/etc/certs"),
            VolumeMount(name="missing", path="/nowhere"),
        ],
        resources=Resources(
            limits=ResourceObject(cpu=500, memory=0),
            requests=ResourceObject(cpu=250, memory=64 * 1024 * 1024),
        ),
        working_dir="/go/src/github.com/octocat/hello-world",
    )
    return Spec(
        metadata=Metadata(uid="spec-uid", name="pipeline", namespace="ns1", labels={"io.drone": "true"}),
        steps=[step],
        secrets=[
            Secret(metadata=Metadata(uid="secret-token-uid", name="token"), data="ghp_secret"),
            Secret(metadata=Metadata(uid="secret-crt-uid", name="certs-tls-crt"), data="CERT"),
            Secret(metadata=Metadata(uid="secret-key-uid", name="certs-tls-key"), data="KEY"),
        ],
        files=[File(metadata=Metadata(uid="file-netrc-uid", name="netrc"), data="machine github.com")],
        docker=DockerConfig(
            auths=[DockerAuth(address="index.docker.io", username="octocat", password="correct-horse")],
            volumes=[
                Volume(metadata=Metadata(uid="vol-abc", name="cache"), empty_dir=EmptyDirVolume()),
                Volume(
                    metadata=Metadata(uid="vol-docker", name="docker"),
                    host_path=HostPathVolume(path="/var/run/docker.sock"),
                ),
                Volume(
                    metadata=Metadata(uid="vol-certs", name="certs"),
                    secret=SecretVolume(
                        name="tls",
                        items=[
                            SecretVolumeItem(key="crt", path="tls.crt", mode=0o444),
                            SecretVolumeItem(key="key", path="tls.key", mode=0o400),
                        ],
                    ),
                ),
            ],
        ),
    )
