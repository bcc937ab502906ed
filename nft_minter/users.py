"""
Recipient extraction from the users CSV export.

The ``linked_accounts`` column holds a Python repr of a list of dicts
(single quotes, True/False/None), so it is normalized to JSON before decoding.
"""

import csv
import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

from .exceptions import RowParseError
from .logging_utils import create_operation_logger

logger = create_operation_logger("users")

LINKED_ACCOUNTS_COLUMN = 'linked_accounts'

_PYTHON_LITERALS = {
    'True': 'true',
    'False': 'false',
    'None': 'null',
}
_PYTHON_LITERAL_PATTERN = re.compile(r'\b(True|False|None)\b')


@dataclass(frozen=True)
class UserRecord:
    """A user with the Solana wallet an NFT is minted to."""
    id: str
    solana_address: Optional[str] = None


@dataclass(frozen=True)
class LinkedAccountEntry:
    """One account linked to a user."""
    type: str
    chain_type: Optional[str] = None
    address: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LinkedAccountEntry':
        return cls(
            type=data.get('type', ''),
            chain_type=data.get('chain_type', data.get('chainType')),
            address=data.get('address'),
        )

    @property
    def is_solana_wallet(self) -> bool:
        return self.type == 'wallet' and self.chain_type == 'solana'


def normalize_linked_accounts(text: str) -> str:
    """Rewrite the Python-style export text as JSON."""
    normalized = text.replace("'", '"')
    return _PYTHON_LITERAL_PATTERN.sub(lambda match: _PYTHON_LITERALS[match.group(1)], normalized)


def parse_linked_accounts(text: Optional[str]) -> List[LinkedAccountEntry]:
    """
    Decode a ``linked_accounts`` value into entries.

    Raises:
        RowParseError: If the text is missing, is not valid JSON after
            normalization, or does not decode to a list.
    """
    if text is None or not text.strip():
        raise RowParseError("linked_accounts is empty", raw_text=text)

    try:
        decoded = json.loads(normalize_linked_accounts(text))
    except json.JSONDecodeError as e:
        raise RowParseError(f"Invalid linked_accounts JSON: {e}", raw_text=text) from e

    if not isinstance(decoded, list):
        raise RowParseError(
            f"linked_accounts must be a list, got {type(decoded).__name__}",
            raw_text=text
        )

    return [LinkedAccountEntry.from_dict(item) for item in decoded if isinstance(item, dict)]


def extract_solana_address(linked_accounts: Optional[str]) -> Optional[str]:
    """Return the first Solana wallet address in the text, or None."""
    try:
        entries = parse_linked_accounts(linked_accounts)
    except RowParseError as e:
        logger.error(
            "Error parsing linked accounts",
            error=str(e),
            problematic_json=e.raw_text
        )
        return None

    for entry in entries:
        if entry.is_solana_wallet:
            return entry.address
    return None


def read_users(file_path: str) -> Iterator[UserRecord]:
    """
    Lazily yield users that have a Solana wallet.

    Rows without a Solana wallet, or whose linked accounts cannot be parsed,
    are dropped without interrupting the iteration.
    """
    with open(file_path, 'r', newline='', encoding='utf-8') as csv_file:
        reader = csv.DictReader(csv_file)
        for row in reader:
            address = extract_solana_address(row.get(LINKED_ACCOUNTS_COLUMN))
            if not address:
                logger.debug("Skipping user without Solana wallet", user_id=row.get('id'))
                continue
            yield UserRecord(id=row.get('id', ''), solana_address=address)


def load_users(file_path: str) -> List[UserRecord]:
    """Read every user with a Solana wallet from the CSV."""
    users = list(read_users(file_path))
    logger.info(
        f"Found {len(users)} users with Solana addresses",
        file_path=file_path,
        count=len(users)
    )
    return users
