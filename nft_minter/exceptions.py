"""
Exception hierarchy for the NFT minter.
"""

from typing import Optional


class NFTMinterError(Exception):
    """Base class for all minter errors."""


class ConfigurationError(NFTMinterError):
    """Missing or invalid configuration. Fatal for the run."""


class RowParseError(NFTMinterError):
    """A CSV row whose linked accounts could not be decoded."""

    def __init__(self, message: str, raw_text: Optional[str] = None):
        super().__init__(message)
        self.raw_text = raw_text


class UpstreamCallError(NFTMinterError):
    """Failure reported by the Metaplex bridge or the Solana RPC."""

    def __init__(self, message: str, action: Optional[str] = None):
        super().__init__(message)
        self.action = action


class PerRecipientMintError(NFTMinterError):
    """Minting to a single recipient failed."""

    def __init__(self, recipient: str, cause: BaseException):
        super().__init__(f"Mint failed for {recipient}: {cause}")
        self.recipient = recipient
        self.cause = cause
