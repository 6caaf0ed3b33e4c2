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
Exceptions raised by tagbump.

Setup failures (missing compose file, bad configuration, failed backup)
abort the run before the compose file is touched. Registry failures are
raised by the clients and swallowed by the resolver, which falls back to
the current tag.
"""


class TagbumpError(Exception):
    """Base class for all tagbump errors."""


class ComposeFileError(TagbumpError):
    """The compose file could not be read or written."""


class ComposeFileNotFoundError(ComposeFileError):
    """The compose file to update does not exist."""


class BackupError(TagbumpError):
    """The backup copy of the compose file could not be written."""


class ConfigurationError(TagbumpError):
    """Settings taken from the environment are invalid."""


class PolicyFileError(TagbumpError):
    """A policy override file could not be read or validated."""


class RegistryError(TagbumpError):
    """A registry query failed or returned an unusable response."""


class RewriteError(TagbumpError):
    """The rewritten compose file failed validation and was not written."""
