"""
Persisted record of recipients that already received their NFT.
"""

import json
import os
import tempfile
from typing import Any, Dict, Optional

from .exceptions import ConfigurationError
from .logging_utils import create_operation_logger

logger = create_operation_logger("checkpoint")


class MintCheckpoint:
    """
    JSON file mapping recipient addresses to their mint summaries.

    The file is rewritten after every recorded mint so a killed run can be
    resumed without minting to the same recipient twice.
    """

    def __init__(self, filepath: str):
        self.filepath = filepath
        self.entries: Dict[str, Dict[str, Any]] = {}
        self.load()

    def load(self) -> None:
        """Load the checkpoint file, starting empty if it does not exist."""
        if not os.path.exists(self.filepath):
            logger.info("Checkpoint file not found, starting with empty checkpoint", filepath=self.filepath)
            return

        try:
            with open(self.filepath, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Checkpoint file {self.filepath} is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Checkpoint file {self.filepath} must contain a JSON object")

        self.entries = data
        logger.info("Checkpoint loaded from file", filepath=self.filepath, count=len(self.entries))

    def __contains__(self, address: str) -> bool:
        return address in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def record(self, address: str, summary: Optional[Dict[str, Any]] = None) -> None:
        """Mark ``address`` as minted and persist the checkpoint."""
        self.entries[address] = summary or {}
        self.save()

    def save(self) -> None:
        """Atomically write the checkpoint file."""
        directory = os.path.dirname(os.path.abspath(self.filepath))
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix='.checkpoint-', suffix='.json')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(self.entries, f, indent=2)
            os.replace(tmp_path, self.filepath)
        except Exception:
            os.unlink(tmp_path)
            raise
