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
In-place rewriting of image references in compose file text.
"""
import re
from typing import Mapping, Set, Tuple

from ..MODELS.image_ref import ImageRef

# The declaration's own value: quoted, or unquoted up to whitespace. Anything
# after it (comments included) is carried over untouched.
DECLARATION = re.compile(
    r"^(?P<prefix>\s*(?:-\s+)?)image:[ \t]*"
    r"(?P<value>'[^']*'|\"[^\"]*\"|[^\s'\"]+)"
    r"(?P<rest>(?=\s|$).*)$"
)


def _split_ending(line: str) -> Tuple[str, str]:
    body = line.rstrip("\r\n")
    return body, line[len(body):]


def apply_plan(text: str, plan: Mapping[str, str]) -> Tuple[str, Set[str]]:
    """
    Replace image references according to an update plan.

    A declaration matches a plan entry when its value parses to the old
    `repo:tag`, so `image: kong` is matched by `kong:latest`. Matching lines
    become `image: '<new repo:tag>'`; indentation, trailing text and line
    endings are kept byte for byte, as is every other line. Entries that do
    not change anything, or whose old reference is not in the text, are
    no-ops.

    :param text: Compose file contents.
    :param plan: Mapping of old `repo:tag` to new `repo:tag`.
    :return: The rewritten text and the plan keys that were replaced.
    """
    changes = {old: new for old, new in plan.items() if old != new}
    replaced: Set[str] = set()
    if not changes:
        return text, replaced

    lines = text.splitlines(keepends=True)
    for i, line in enumerate(lines):
        body, ending = _split_ending(line)
        match = DECLARATION.match(body)
        if not match:
            continue
        try:
            key = str(ImageRef.parse(match.group("value")))
        except ValueError:
            continue
        if key not in changes:
            continue
        lines[i] = f"{match.group('prefix')}image: '{changes[key]}'{match.group('rest')}{ending}"
        replaced.add(key)

    return "".join(lines), replaced


def rewrite(text: str, plan: Mapping[str, str]) -> str:
    """Rewritten text only; see apply_plan."""
    return apply_plan(text, plan)[0]
