# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Runtime settings for registry access.
"""
import os
from typing import Dict, Mapping, Optional

from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..exceptions import ConfigurationError

ENV_PREFIX = "TAGBUMP_"


class Settings(BaseModel):
    """
    Endpoints and limits used when querying registries.
    """
    model_config = ConfigDict(frozen=True)

    hub_url: str = "https://registry.hub.docker.com"
    github_api_url: str = "https://api.github.com"
    timeout: float = Field(default=30.0, gt=0)
    page_size: int = Field(default=100, gt=0, le=100)

    @classmethod
    def from_env(
        cls,
        env_file: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "Settings":
        """
        Build settings from a .env file and the process environment.

        Process environment wins over the .env file. Recognised variables are
        TAGBUMP_HUB_URL, TAGBUMP_GITHUB_API_URL, TAGBUMP_TIMEOUT and
        TAGBUMP_PAGE_SIZE.

        :param env_file: Optional path to a .env file.
        :param environ: Environment to read, defaults to os.environ.
        :return: Validated settings.
        """
        values: Dict[str, Optional[str]] = {}
        if env_file:
            if not os.path.isfile(env_file):
                raise ConfigurationError(f"Environment file '{env_file}' not found")
            values.update(dotenv_values(env_file))
        values.update(os.environ if environ is None else environ)

        fields = {}
        for name in cls.model_fields:
            value = values.get(ENV_PREFIX + name.upper())
            if value not in (None, ""):
                fields[name] = value

        try:
            return cls(**fields)
        except ValidationError as err:
            raise ConfigurationError(f"Invalid settings: {err}") from err
