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
File helpers for reading, backing up and replacing the compose file.
"""
import os
import shutil
import tempfile
from datetime import datetime
from typing import Optional

from ..exceptions import BackupError, ComposeFileError, ComposeFileNotFoundError

BACKUP_TIMESTAMP = "%Y%m%d_%H%M%S"


def read_compose(path: str) -> str:
    """
    Read the compose file, keeping its line endings untouched.

    :param path: Path to the compose file.
    :return: File contents.
    :raises ComposeFileError: If the file is missing, unreadable or not UTF-8.
    """
    if not os.path.isfile(path):
        raise ComposeFileNotFoundError(f"Docker compose file '{path}' not found!")
    try:
        with open(path, "r", encoding="utf-8", newline="") as f:
            return f.read()
    except UnicodeDecodeError as e:
        raise ComposeFileError(f"Docker compose file '{path}' is not valid UTF-8: {e}") from e
    except OSError as e:
        raise ComposeFileError(f"Cannot read docker compose file '{path}': {e}") from e


def backup_path_for(path: str, now: Optional[datetime] = None) -> str:
    """`<path>.backup.<YYYYMMDD_HHMMSS>` next to the original."""
    stamp = (now or datetime.now()).strftime(BACKUP_TIMESTAMP)
    return f"{path}.backup.{stamp}"


def create_backup(path: str, now: Optional[datetime] = None) -> str:
    """
    Copy the compose file byte for byte to a timestamped backup.

    :param path: Path to the compose file.
    :param now: Timestamp to embed, defaults to the current time.
    :return: Path of the backup file.
    :raises BackupError: If the copy fails.
    """
    backup = backup_path_for(path, now)
    try:
        shutil.copyfile(path, backup)
    except OSError as e:
        raise BackupError(f"Could not create backup {backup}: {e}") from e
    return backup


def write_atomic(path: str, content: str) -> None:
    """
    Replace a file's contents in one step.

    The new content goes to a temporary file in the same directory which is
    then renamed over the original, so readers never see a partial file.

    :raises ComposeFileError: If the file cannot be replaced; the original
        is left as it was.
    """
    directory = os.path.dirname(os.path.abspath(path))
    try:
        fd, tmp_path = tempfile.mkstemp(prefix=".tagbump-", dir=directory)
    except OSError as e:
        raise ComposeFileError(f"Cannot write docker compose file '{path}': {e}") from e
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        shutil.copymode(path, tmp_path)
        os.replace(tmp_path, path)
    except OSError as e:
        _discard(tmp_path)
        raise ComposeFileError(f"Cannot write docker compose file '{path}': {e}") from e
    except BaseException:
        _discard(tmp_path)
        raise


def _discard(tmp_path: str) -> None:
    if os.path.exists(tmp_path):
        os.unlink(tmp_path)
