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

import logging
from logging.config import dictConfig
from typing import Any

from drone_kube.configuration import conf
from drone_kube.exceptions import DroneKubeConfigException
from drone_kube.utils.module_loading import import_string

log = logging.getLogger(__name__)

DEFAULT_LOGGING_CONFIG_PATH = "drone_kube.config_templates.default_logging.DEFAULT_LOGGING_CONFIG"


def load_logging_config() -> tuple[dict[str, Any], str]:
    """Load the logging configuration dictionary named by ``[logging] logging_config_class``."""
    fallback = DEFAULT_LOGGING_CONFIG_PATH
    logging_class_path = conf.get("logging", "logging_config_class", fallback=fallback)

    # Sometimes we end up with `""` as the value!
    logging_class_path = logging_class_path or fallback

    user_defined = logging_class_path != fallback

    try:
        logging_config = import_string(logging_class_path)

        # Make sure that the variable is in scope
        if not isinstance(logging_config, dict):
            raise ValueError("Logging Config should be of dict type")

        if user_defined:
            log.info("Successfully imported user-defined logging config from %s", logging_class_path)

    except Exception as err:
        raise ImportError(
            f"Unable to load {'custom ' if user_defined else ''}logging config from {logging_class_path} due "
            f"to: {type(err).__name__}:{err}"
        )

    return logging_config, logging_class_path


def configure_logging() -> str:
    """Configure & Validate drone-kube logging."""
    logging_config, logging_class_path = load_logging_config()
    try:
        dictConfig(logging_config)
    except (ValueError, KeyError, TypeError) as e:
        log.error("Unable to load the config, contains a configuration error.")
        raise DroneKubeConfigException(f"Invalid logging config {logging_class_path}: {e}") from e

    return logging_class_path
