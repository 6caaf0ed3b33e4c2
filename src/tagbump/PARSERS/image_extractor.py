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
Line-oriented extraction of image declarations from compose files.

The compose file is never loaded as YAML here: only lines of the form
`image: <repo>[:<tag>]` matter, and matching them line by line keeps every
other byte of the file out of reach.
"""
import re
from typing import List, Optional

from ..MODELS.image_ref import ImageRef

# `image:` at the start of a line, optionally as a list item
IMAGE_LINE = re.compile(r"^(?P<prefix>\s*(?:-\s+)?)image:(?P<rest>.*)$")


def image_value(line: str) -> Optional[str]:
    """
    Return the raw value of an `image:` line, quotes included.

    Quoted values run to the matching closing quote; unquoted values stop at
    the first whitespace, so trailing comments are ignored.
    """
    match = IMAGE_LINE.match(line.rstrip("\r\n"))
    if not match:
        return None

    rest = match.group("rest").strip()
    if not rest:
        return None

    if rest[0] in ("'", '"'):
        end = rest.find(rest[0], 1)
        if end == -1:
            return None
        return rest[: end + 1]

    return rest.split()[0]


def parse_image_line(line: str) -> Optional[ImageRef]:
    """
    Parse one line of a compose file.

    :param line: A single line, with or without its line ending.
    :return: The ImageRef declared on the line, or None if the line is not a
        well-formed image declaration.
    """
    value = image_value(line)
    if value is None:
        return None
    try:
        return ImageRef.parse(value)
    except ValueError:
        return None


def extract_images(text: str) -> List[ImageRef]:
    """
    Collect every image declaration in file order.

    Duplicates are kept; callers decide how to collapse them.

    :param text: Full compose file contents.
    :return: One ImageRef per well-formed `image:` line.
    """
    refs = []
    for line in text.splitlines():
        ref = parse_image_line(line)
        if ref is not None:
            refs.append(ref)
    return refs
