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
Docker Hub client for listing repository tags.
Uses the Hub's public `/v2/repositories/{repo}/tags/` endpoint.
"""

import json
from typing import Any, List, Optional
from urllib.request import urlopen, Request
from urllib.error import HTTPError, URLError
from urllib.parse import quote

from ..exceptions import RegistryError


def fetch_json(url: str, timeout: float, accept: Optional[str] = None) -> Any:
    """
    GET a URL and decode its JSON body.

    Raises:
        RegistryError: On network errors, HTTP errors, an empty body or
            invalid JSON.
    """
    request = Request(url, headers={"User-Agent": "tagbump"})
    if accept:
        request.add_header("Accept", accept)

    try:
        with urlopen(request, timeout=timeout) as response:
            body = response.read()
    except HTTPError as e:
        raise RegistryError(f"HTTP {e.code} from {url}") from e
    except (URLError, OSError) as e:
        raise RegistryError(f"Request to {url} failed: {e}") from e

    if not body or not body.strip():
        raise RegistryError(f"Empty response from {url}")

    try:
        return json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise RegistryError(f"Invalid JSON from {url}: {e}") from e


def is_hub_repository(repository: str) -> bool:
    """Whether a repository lives on Docker Hub (no registry host prefix)."""
    if "/" not in repository or repository.startswith("docker.io/"):
        return True
    first = repository.split("/", 1)[0]
    return not ("." in first or ":" in first or first == "localhost")


def hub_path(repository: str) -> str:
    """
    Map a repository to its Docker Hub API path.

    Official images (single path segment) live under `library/`.
    """
    if repository.startswith("docker.io/"):
        repository = repository[len("docker.io/"):]
    if "/" not in repository:
        repository = f"library/{repository}"
    return repository


class DockerHubClient:
    """
    Read-only client for Docker Hub tag listings.
    """

    def __init__(self, base_url: str = "https://registry.hub.docker.com",
                 timeout: float = 30.0, page_size: int = 100):
        """
        Initialize the client.

        Args:
            base_url: Hub API root.
            timeout: Seconds to wait for each request.
            page_size: Number of tags requested per query (Hub maximum 100).
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.page_size = page_size

    def tags_url(self, repository: str) -> str:
        path = quote(hub_path(repository), safe="/")
        return f"{self.base_url}/v2/repositories/{path}/tags/?page_size={self.page_size}"

    def list_tags(self, repository: str) -> List[str]:
        """
        List tag names for a repository, in the order the Hub returns them.

        Args:
            repository: Repository name, e.g. 'supabase/postgres' or 'kong'.

        Returns:
            Tag names (the Hub returns the most recently pushed first).

        Raises:
            RegistryError: If the repository is not on Docker Hub or the
                query fails.
        """
        if not is_hub_repository(repository):
            raise RegistryError(f"{repository} is not a Docker Hub repository")

        data = fetch_json(self.tags_url(repository), self.timeout)
        results = data.get("results") if isinstance(data, dict) else None
        if not isinstance(results, list):
            raise RegistryError(f"No tag results for {repository}")

        return [
            item["name"] for item in results
            if isinstance(item, dict) and isinstance(item.get("name"), str)
        ]
