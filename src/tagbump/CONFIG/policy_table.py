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
Built-in update policies and official version pins.

Both tables are read-only. A policy override file produces new tables
layered over these defaults; nothing here is ever mutated at run time.
"""

from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml
from pydantic import ValidationError

from ..MODELS.policy import PolicyEntry, PolicyKind
from ..exceptions import PolicyFileError


def _lookup(preserve_flavor: bool = False) -> PolicyEntry:
    return PolicyEntry(kind=PolicyKind.API_LOOKUP, preserve_flavor=preserve_flavor)


DEFAULT_POLICIES: Mapping[str, PolicyEntry] = MappingProxyType({
    "kong": PolicyEntry(
        kind=PolicyKind.ALWAYS_SKIP,
        note="Kong upgrades often have breaking changes - keeping current version",
    ),
    "ghcr.io/coollabsio/coolify": PolicyEntry(
        kind=PolicyKind.ALWAYS_SKIP,
        note="Coolify updates can be breaking - keeping current version",
    ),
    "supabase/postgres": PolicyEntry(kind=PolicyKind.MAJOR_GATED),
    "timberio/vector": _lookup(preserve_flavor=True),
    "supabase/studio": _lookup(),
    "supabase/gotrue": _lookup(),
    "postgrest/postgrest": _lookup(),
    "supabase/logflare": _lookup(),
    "supabase/realtime": _lookup(),
    "supabase/storage-api": _lookup(),
    "darthsim/imgproxy": _lookup(),
    "supabase/postgres-meta": _lookup(),
    "supabase/edge-runtime": _lookup(),
    "minio/minio": _lookup(),
    "minio/mc": _lookup(),
})

# Version combinations tested together upstream
OFFICIAL_VERSIONS: Mapping[str, str] = MappingProxyType({
    "supabase/studio": "2025.06.02-sha-8f2993d",
    "supabase/postgres": "17.4.1.042",
    "supabase/gotrue": "v2.174.0",
    "kong": "2.8.1",
    "postgrest/postgrest": "v12.2.0",
    "supabase/logflare": "1.15.4",
    "timberio/vector": "0.28.1-alpine",
    "supabase/realtime": "v2.36.20",
    "supabase/storage-api": "v1.24.4",
    "darthsim/imgproxy": "v3.28.0",
    "supabase/postgres-meta": "v0.89.3",
    "supabase/edge-runtime": "v1.67.4",
    "minio/minio": "latest",
    "minio/mc": "latest",
})


def load_policy_file(
    path: str,
    policies: Optional[Mapping[str, PolicyEntry]] = None,
    official: Optional[Mapping[str, str]] = None,
) -> Tuple[Mapping[str, PolicyEntry], Mapping[str, str]]:
    """
    Layer a YAML policy file over the given tables.

    The file may contain a `policies` mapping (repository -> policy fields)
    and an `official` mapping (repository -> tag):

        policies:
          kong:
            kind: api_lookup
          ghcr.io/coollabsio/coolify:
            kind: release_lookup
            source: coollabsio/coolify
            major_gated: true
        official:
          kong: 3.4.2

    Args:
        path: Path to the YAML file.
        policies: Base policy table. Defaults to DEFAULT_POLICIES.
        official: Base official pins. Defaults to OFFICIAL_VERSIONS.

    Returns:
        New read-only (policies, official) tables.

    Raises:
        PolicyFileError: If the file cannot be read or does not validate.
    """
    policies = DEFAULT_POLICIES if policies is None else policies
    official = OFFICIAL_VERSIONS if official is None else official

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as err:
        raise PolicyFileError(f"Cannot read policy file {path}: {err}") from err
    except yaml.YAMLError as err:
        raise PolicyFileError(f"Invalid YAML in policy file {path}: {err}") from err

    return merge_policy_data(data or {}, policies, official, origin=path)


def merge_policy_data(
    data: Any,
    policies: Mapping[str, PolicyEntry],
    official: Mapping[str, str],
    origin: str = "<policy>",
) -> Tuple[Mapping[str, PolicyEntry], Mapping[str, str]]:
    """Validate already-loaded policy data and merge it over the base tables."""
    if not isinstance(data, dict):
        raise PolicyFileError(f"{origin}: top level must be a mapping")

    unknown = set(data) - {"policies", "official"}
    if unknown:
        raise PolicyFileError(f"{origin}: unknown sections {sorted(unknown)}")

    policy_data = data.get("policies") or {}
    if not isinstance(policy_data, dict):
        raise PolicyFileError(f"{origin}: 'policies' must map repositories to policies")

    merged_policies: Dict[str, PolicyEntry] = dict(policies)
    for repository, fields in policy_data.items():
        try:
            merged_policies[str(repository)] = PolicyEntry.model_validate(fields or {})
        except ValidationError as err:
            raise PolicyFileError(f"{origin}: invalid policy for {repository}: {err}") from err

    merged_official: Dict[str, str] = dict(official)
    official_data = data.get("official") or {}
    if not isinstance(official_data, dict):
        raise PolicyFileError(f"{origin}: 'official' must map repositories to tags")
    for repository, tag in official_data.items():
        if tag is None or str(tag).strip() == "":
            raise PolicyFileError(f"{origin}: empty official tag for {repository}")
        merged_official[str(repository)] = str(tag)

    return MappingProxyType(merged_policies), MappingProxyType(merged_official)
