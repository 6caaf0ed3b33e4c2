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
GitHub releases client, for images whose versions follow project releases.
"""

from .hub_client import fetch_json
from ..exceptions import RegistryError


class GitHubReleaseClient:
    """
    Looks up the latest published release of a GitHub repository.
    """

    def __init__(self, base_url: str = "https://api.github.com", timeout: float = 30.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def latest_release(self, source: str) -> str:
        """
        Return the tag name of the latest release.

        Args:
            source: Repository in 'org/repo' form.

        Raises:
            RegistryError: If the source is malformed or the query fails.
        """
        if source.count("/") != 1 or not all(source.split("/")):
            raise RegistryError(f"Release source must be 'org/repo', got {source!r}")

        url = f"{self.base_url}/repos/{source}/releases/latest"
        data = fetch_json(url, self.timeout, accept="application/vnd.github+json")

        tag = data.get("tag_name") if isinstance(data, dict) else None
        if not isinstance(tag, str) or not tag:
            raise RegistryError(f"No tag_name in latest release of {source}")
        return tag
