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
Console output: prefixed status lines and the end-of-run summary.
"""
from typing import List, Optional, Tuple

import click
from jinja2 import Template

from ..MODELS.policy import Mode

SUMMARY_TEMPLATE = """
{%- if not updated %}
{%- if official %}
Already using official versions!
{%- else %}
No updates were applied - all images are already at safe versions!
{%- endif %}
{%- else %}
{%- for entry in updated %}
  ✅ {{ entry.image }}:{{ entry.old_tag }} → {{ entry.image }}:{{ entry.new_tag }}
{%- endfor %}
{%- endif %}
"""

SKIPPED_TEMPLATE = """
{%- for upgrade in skipped %}
  ⚠️  {{ upgrade.repository }}: {{ upgrade }}
{%- endfor %}

Major upgrades require manual review and testing:
  • Database major versions need migration planning
  • Gateway versions often have breaking API changes
  • Always test in development environment first
  • Consider using --official mode for tested combinations
"""

NEXT_STEPS_TEMPLATE = """
{%- if official %}
  1. These versions are tested together upstream
  2. Run 'docker-compose pull' to download new images
  3. Run 'docker-compose up -d' to restart with new images
  4. Monitor logs for any issues
{%- else %}
  1. Review the changes in {{ compose_file }}
  2. Test in development environment first
  3. Run 'docker-compose pull' to download new images
  4. Run 'docker-compose up -d' to restart with new images
  5. Monitor logs for any issues
{%- endif %}
"""

LEVELS = {
    "info": ("[INFO]", "blue"),
    "success": ("[SUCCESS]", "green"),
    "warning": ("[WARNING]", "yellow"),
    "error": ("[ERROR]", "red"),
}


class ConsoleReporter:
    """
    Writes prefixed, colored status lines.

    Every message is also kept in `messages` as (level, text) so callers can
    inspect what was reported. With `quiet`, nothing is printed.
    """

    def __init__(self, quiet: bool = False, color: Optional[bool] = None):
        self.quiet = quiet
        self.color = color
        self.messages: List[Tuple[str, str]] = []

    def _emit(self, level: str, message: str) -> None:
        self.messages.append((level, message))
        if self.quiet:
            return
        prefix, fg = LEVELS[level]
        click.echo(
            f"{click.style(prefix, fg=fg)} {message}",
            err=(level == "error"),
            color=self.color,
        )

    def info(self, message: str) -> None:
        self._emit("info", message)

    def success(self, message: str) -> None:
        self._emit("success", message)

    def warning(self, message: str) -> None:
        self._emit("warning", message)

    def error(self, message: str) -> None:
        self._emit("error", message)

    def line(self, text: str = "") -> None:
        if not self.quiet:
            click.echo(text)

    def warnings(self) -> List[str]:
        return [text for level, text in self.messages if level == "warning"]

    def summary(self, report) -> None:
        """
        Print the end-of-run summary for a RunReport.

        :param report: The finished run report.
        """
        official = report.mode == Mode.OFFICIAL
        updated = report.updated

        self.line()
        self.success("Update completed!")
        if report.backup_path:
            self.info(f"Original file backed up as: {report.backup_path}")
        self.info(f"Updated file: {report.compose_file}")

        self.line()
        self.info("Summary of changes:")
        rendered = Template(SUMMARY_TEMPLATE).render(official=official, updated=updated)
        if updated:
            self.line(rendered.strip("\n"))
            self.success(f"Successfully updated {len(updated)} image(s) safely")
        else:
            self.success(rendered.strip())

        unrecognized = report.unrecognized
        if unrecognized:
            self.line()
            self.warning(
                "Skipped unrecognized images: "
                + ", ".join(e.image for e in unrecognized)
            )

        if not official and report.skipped_upgrades:
            self.line()
            self.warning("Major upgrades skipped for safety:")
            self.line(Template(SKIPPED_TEMPLATE).render(skipped=report.skipped_upgrades).strip("\n"))

        if updated:
            self.line()
            if official:
                self.warning("Updated to official tested versions. Next steps:")
            else:
                self.warning("Next steps:")
            self.line(
                Template(NEXT_STEPS_TEMPLATE)
                .render(official=official, compose_file=report.compose_file)
                .strip("\n")
            )
