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
Drives one update run: read, back up, extract, resolve, rewrite, report.
"""
from datetime import datetime
from typing import Dict, Mapping, Optional

import yaml

from ..CONFIG.policy_table import DEFAULT_POLICIES, OFFICIAL_VERSIONS
from ..CONFIG.settings import Settings
from ..MODELS.image_ref import ImageRef
from ..MODELS.policy import Mode, PolicyEntry
from ..MODELS.report import ReportEntry, RunReport, SkipReason, UpdatePlan
from ..PARSERS.image_extractor import extract_images
from ..REGISTRY.github_client import GitHubReleaseClient
from ..REGISTRY.hub_client import DockerHubClient
from ..REPORTERS.console import ConsoleReporter
from ..RESOLVERS.tag_resolver import TagResolver
from ..UTILS.file_ops import create_backup, read_compose, write_atomic
from ..WRITERS.rewriter import apply_plan
from ..exceptions import RewriteError


class ComposeUpdater:
    """
    Updates the image tags of a single compose file.
    """

    def __init__(
        self,
        compose_file: str = "docker-compose.yml",
        mode: Mode = Mode.CONSERVATIVE,
        policies: Mapping[str, PolicyEntry] = DEFAULT_POLICIES,
        official: Mapping[str, str] = OFFICIAL_VERSIONS,
        settings: Optional[Settings] = None,
        reporter: Optional[ConsoleReporter] = None,
        hub: Optional[DockerHubClient] = None,
        github: Optional[GitHubReleaseClient] = None,
        now: Optional[datetime] = None,
    ):
        """
        Initializes the updater.

        :param compose_file: Path of the compose file to update.
        :param mode: Official pins or conservative registry lookups.
        :param policies: Repository -> update policy.
        :param official: Repository -> officially tested tag.
        :param settings: Registry endpoints and limits.
        :param reporter: Console reporter for progress output.
        :param hub: Docker Hub client, built from settings when omitted.
        :param github: GitHub client, built from settings when omitted.
        :param now: Timestamp for the backup name, defaults to the current time.
        """
        self.compose_file = compose_file
        self.mode = Mode(mode)
        self.settings = settings or Settings()
        self.reporter = reporter or ConsoleReporter(quiet=True)
        self.now = now
        self.resolver = TagResolver(
            mode=self.mode,
            policies=policies,
            official=official,
            hub=hub or DockerHubClient(
                self.settings.hub_url, self.settings.timeout, self.settings.page_size
            ),
            github=github or GitHubReleaseClient(
                self.settings.github_api_url, self.settings.timeout
            ),
            reporter=self.reporter,
        )

    def run(self) -> RunReport:
        """
        Perform the update.

        Nothing is written unless the backup succeeded, and the compose file
        is only replaced when at least one tag changed.

        :return: Report of what was updated and what was skipped.
        """
        report = RunReport(mode=self.mode, compose_file=self.compose_file)

        self.reporter.info("Starting compose image updater...")
        if self.mode == Mode.OFFICIAL:
            self.reporter.info("Mode: Official tested versions")
        else:
            self.reporter.info("Mode: Conservative API-based updates")
        self.reporter.info(f"Compose file: {self.compose_file}")

        text = read_compose(self.compose_file)
        report.backup_path = create_backup(self.compose_file, self.now)
        self.reporter.success(f"Backup created: {report.backup_path}")

        plan = self.build_plan(text, report)

        self.reporter.line()
        self.reporter.info(f"Applying updates to {self.compose_file}...")
        new_text, replaced = apply_plan(text, plan)
        if new_text != text:
            self._check_still_parses(text, new_text)
            write_atomic(self.compose_file, new_text)

        # Only declarations actually found and replaced count as updated
        for entry in report.entries:
            entry.applied = f"{entry.image}:{entry.old_tag}" in replaced

        for entry in report.updated:
            self.reporter.success(
                f"Updated: {entry.image}:{entry.old_tag} → {entry.image}:{entry.new_tag}"
            )
        return report

    def build_plan(self, text: str, report: RunReport) -> UpdatePlan:
        """
        Resolve every distinct image in the text.

        Each `repo:tag` is resolved once; repeated declarations share the
        result and are all rewritten. Unrecognized images are reported but
        never enter the plan.

        :param text: Compose file contents.
        :param report: Report to record entries and skipped upgrades in.
        :return: Mapping of old `repo:tag` to new `repo:tag`, changed entries only.
        """
        seen: Dict[str, ImageRef] = {}
        for ref in extract_images(text):
            seen[str(ref)] = ref

        plan: UpdatePlan = {}
        for key, ref in seen.items():
            self.reporter.info(f"Checking {key}...")
            resolution = self.resolver.resolve(ref)

            entry = ReportEntry(
                image=ref.repository,
                old_tag=ref.tag,
                new_tag=resolution.tag,
                reason=resolution.reason,
            )
            if resolution.skipped_upgrade:
                report.skipped_upgrades.append(resolution.skipped_upgrade)

            if resolution.reason == SkipReason.UNRECOGNIZED:
                report.entries.append(entry)
                continue

            if entry.changed:
                plan[key] = str(ref.with_tag(resolution.tag))
                if self.mode == Mode.OFFICIAL:
                    self.reporter.info(f"Official update: {ref.repository} {ref.tag} → {resolution.tag}")
                else:
                    self.reporter.info(f"Safe update available: {ref.repository} {ref.tag} → {resolution.tag}")
            else:
                self.reporter.info(f"Already up to date: {key}")
            report.entries.append(entry)

        return plan

    def _check_still_parses(self, before: str, after: str) -> None:
        try:
            yaml.safe_load(before)
        except yaml.YAMLError:
            return
        try:
            yaml.safe_load(after)
        except yaml.YAMLError as e:
            raise RewriteError(
                f"Rewritten {self.compose_file} is no longer valid YAML; left unchanged"
            ) from e
