"""JSON save-file store."""

# BracketForge
# Copyright (C) 2025  BracketForge developers
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.

import json
from pathlib import Path
from typing import Union

from bracketforge.constants import SAVE_FILE_EXTENSION
from bracketforge.store.memory import InMemoryStore
from bracketforge.utils import setup_logger

logger = setup_logger(__name__)


class JsonFileStore(InMemoryStore):
    """In-memory store that writes a JSON save file after every commit."""

    def __init__(self, path: Union[str, Path]) -> None:
        super().__init__()
        path = Path(path)
        if not path.suffix:
            path = path.with_suffix(SAVE_FILE_EXTENSION)
        self.path = path
        if self.path.exists():
            self.load()

    def load(self) -> None:
        with open(self.path, "r", encoding="utf-8") as f:
            self.load_dict(json.load(f))
        logger.info(f"Loaded store from {self.path}")

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
        tmp_path.replace(self.path)
        logger.debug(f"Saved store to {self.path}")

    def _on_commit(self) -> None:
        self.save()
