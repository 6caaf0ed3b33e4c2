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
Tag resolution: picks the tag an image should move to under its policy.

Resolution never fails a run. Registry errors, empty listings and listings
with no stable candidate all fall back to the current tag.
"""

import re
from typing import Iterable, Mapping, Optional, Tuple

from ..CONFIG.policy_table import DEFAULT_POLICIES, OFFICIAL_VERSIONS
from ..MODELS.image_ref import ImageRef
from ..MODELS.policy import Mode, PolicyEntry, PolicyKind
from ..MODELS.report import Resolution, SkipReason, SkippedUpgrade
from ..REGISTRY.github_client import GitHubReleaseClient
from ..REGISTRY.hub_client import DockerHubClient
from ..REPORTERS.console import ConsoleReporter
from ..exceptions import RegistryError

FLOATING_TAG = "latest"
UNSTABLE_MARKERS = ("rc", "alpha", "beta", "develop")
KNOWN_FLAVORS = ("alpine", "ubuntu", "distroless")

STABLE_SHAPE = re.compile(r"^v?[0-9]")
FLAVOR_SUFFIX = re.compile(r"-([A-Za-z]+)$")
KNOWN_FLAVOR_SUFFIX = re.compile(r"-(?:%s)$" % "|".join(KNOWN_FLAVORS), re.IGNORECASE)
LEADING_MAJOR = re.compile(r"^v?([0-9]+)")


def flavor_of(tag: str) -> Optional[str]:
    """Return the flavor suffix of a tag ('-alpine' for '0.28.1-alpine')."""
    match = FLAVOR_SUFFIX.search(tag)
    return f"-{match.group(1)}" if match else None


def is_stable_tag(tag: str) -> bool:
    """Numeric (optionally v-prefixed) tags without pre-release markers."""
    if not STABLE_SHAPE.match(tag):
        return False
    lowered = tag.lower()
    return not any(marker in lowered for marker in UNSTABLE_MARKERS)


def select_candidate(tags: Iterable[str], flavor: Optional[str] = None) -> Optional[str]:
    """
    Pick the first stable tag from a newest-first listing.

    With a flavor, only tags ending in exactly that suffix qualify. Without
    one, tags ending in a known base-image flavor are passed over so the
    image's base does not change silently.
    """
    for tag in tags:
        if not is_stable_tag(tag):
            continue
        if flavor:
            if tag.endswith(flavor):
                return tag
        elif not KNOWN_FLAVOR_SUFFIX.search(tag):
            return tag
    return None


def major_of(tag: str) -> Optional[int]:
    match = LEADING_MAJOR.match(tag)
    return int(match.group(1)) if match else None


def is_major_upgrade(current: str, new: str) -> bool:
    """True when the leading version number of `new` exceeds `current`'s."""
    current_major, new_major = major_of(current), major_of(new)
    if current_major is None or new_major is None:
        return False
    return new_major > current_major


class TagResolver:
    """
    Applies the policy table to one image at a time.
    """

    def __init__(
        self,
        mode: Mode = Mode.CONSERVATIVE,
        policies: Mapping[str, PolicyEntry] = DEFAULT_POLICIES,
        official: Mapping[str, str] = OFFICIAL_VERSIONS,
        hub: Optional[DockerHubClient] = None,
        github: Optional[GitHubReleaseClient] = None,
        reporter: Optional[ConsoleReporter] = None,
    ):
        """
        Initialize the resolver.

        Args:
            mode: Official pins or conservative registry lookups.
            policies: Repository -> update policy.
            official: Repository -> officially tested tag.
            hub: Docker Hub client used for tag listings.
            github: GitHub client used for release lookups.
            reporter: Receives per-image status and warnings.
        """
        self.mode = Mode(mode)
        self.policies = policies
        self.official = official
        self.hub = hub or DockerHubClient()
        self.github = github or GitHubReleaseClient()
        self.reporter = reporter or ConsoleReporter(quiet=True)

    def resolve(self, ref: ImageRef) -> Resolution:
        """
        Resolve the recommended tag for an image.

        Args:
            ref: The image as currently declared.

        Returns:
            Resolution carrying the tag to use and, when the current tag was
            kept on purpose or by fallback, the reason.
        """
        policy = self.policies.get(ref.repository)
        if policy is None:
            self.reporter.warning(f"Unknown image: {ref.repository}, skipping...")
            return Resolution(tag=ref.tag, reason=SkipReason.UNRECOGNIZED)

        if self.mode == Mode.OFFICIAL:
            return self._resolve_official(ref, policy)
        return self._resolve_conservative(ref, policy)

    def _resolve_official(self, ref: ImageRef, policy: PolicyEntry) -> Resolution:
        pinned = self.official.get(ref.repository)
        if pinned:
            self.reporter.info(f"Using official version: {pinned}")
            return Resolution(tag=pinned)
        if policy.kind == PolicyKind.STATIC_PIN:
            return Resolution(tag=policy.pin)
        if policy.kind == PolicyKind.ALWAYS_SKIP:
            return self._hard_pinned(ref, policy)
        return Resolution(tag=ref.tag)

    def _resolve_conservative(self, ref: ImageRef, policy: PolicyEntry) -> Resolution:
        if policy.kind == PolicyKind.ALWAYS_SKIP:
            return self._hard_pinned(ref, policy)
        if policy.kind == PolicyKind.STATIC_PIN:
            return Resolution(tag=policy.pin)

        if policy.kind == PolicyKind.RELEASE_LOOKUP:
            candidate, reason = self.latest_release_tag(policy.source, ref.tag)
        else:
            candidate, reason = self.latest_stable_tag(
                ref.repository, ref.tag, policy.preserve_flavor
            )

        if policy.gated and is_major_upgrade(ref.tag, candidate):
            self.reporter.warning(
                f"Major version upgrade detected for {ref.repository} "
                f"({ref.tag} → {candidate}) - skipping for safety"
            )
            return Resolution(
                tag=ref.tag,
                reason=SkipReason.MAJOR_UPGRADE,
                skipped_upgrade=SkippedUpgrade(
                    repository=ref.repository,
                    current_tag=ref.tag,
                    candidate_tag=candidate,
                ),
            )
        return Resolution(tag=candidate, reason=reason)

    def _hard_pinned(self, ref: ImageRef, policy: PolicyEntry) -> Resolution:
        self.reporter.warning(
            policy.note or f"{ref.repository} is pinned - keeping current version"
        )
        return Resolution(tag=ref.tag, reason=SkipReason.PINNED)

    def latest_stable_tag(
        self, repository: str, current_tag: str, preserve_flavor: bool = False
    ) -> Tuple[str, Optional[SkipReason]]:
        """
        Find the newest stable tag on Docker Hub.

        Returns:
            (tag, reason): the candidate and None, or the current tag and
            LOOKUP_FAILED when nothing usable came back.
        """
        if current_tag == FLOATING_TAG:
            return current_tag, None

        try:
            tags = self.hub.list_tags(repository)
        except RegistryError as e:
            self.reporter.warning(f"Tag lookup failed for {repository}: {e} - keeping {current_tag}")
            return current_tag, SkipReason.LOOKUP_FAILED

        flavor = flavor_of(current_tag) if preserve_flavor else None
        candidate = select_candidate(tags, flavor)
        if candidate is None:
            self.reporter.warning(f"No stable tag found for {repository} - keeping {current_tag}")
            return current_tag, SkipReason.LOOKUP_FAILED
        return candidate, None

    def latest_release_tag(
        self, source: str, current_tag: str
    ) -> Tuple[str, Optional[SkipReason]]:
        """Use the latest GitHub release of `source` as the candidate tag."""
        if current_tag == FLOATING_TAG:
            return current_tag, None

        try:
            tag = self.github.latest_release(source)
        except RegistryError as e:
            self.reporter.warning(f"Release lookup failed for {source}: {e} - keeping {current_tag}")
            return current_tag, SkipReason.LOOKUP_FAILED

        if not is_stable_tag(tag):
            self.reporter.warning(f"Latest release of {source} ({tag}) is not a stable tag - keeping {current_tag}")
            return current_tag, SkipReason.LOOKUP_FAILED
        return tag, None
