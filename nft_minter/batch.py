"""
Batched, strictly sequential minting over a list of recipients.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, List, Optional, Sequence, TypeVar

from .exceptions import PerRecipientMintError
from .logging_utils import LogLevel, create_operation_logger, log_mint_event

logger = create_operation_logger("batch")

T = TypeVar('T')


def chunk(items: Sequence[T], size: int) -> List[List[T]]:
    """Split ``items`` into contiguous batches of at most ``size``."""
    if size < 1:
        raise ValueError("batch size must be at least 1")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


@dataclass
class BatchProgress:
    """Progress and outcome of a batch minting run."""
    total_items: int
    processed_items: int = 0
    successful_items: int = 0
    failed_items: int = 0
    skipped_items: int = 0
    batches_completed: int = 0
    failures: List[PerRecipientMintError] = field(default_factory=list)
    start_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    end_time: Optional[datetime] = None

    @property
    def success_rate(self) -> float:
        """Calculate success rate."""
        if self.processed_items == 0:
            return 0.0
        return (self.successful_items / self.processed_items) * 100

    @property
    def duration(self) -> timedelta:
        end_time = self.end_time or datetime.now(timezone.utc)
        return end_time - self.start_time

    @property
    def failed_recipients(self) -> List[str]:
        return [failure.recipient for failure in self.failures]


class BatchMinter:
    """
    Drives a per-recipient mint operation over fixed-size batches.

    Recipients are minted one at a time in their original order. A failed
    recipient is logged and recorded, and the run moves on. ``batch_delay``
    is waited between batches (never after the last one) and ``item_delay``
    between recipients of the same batch.
    """

    def __init__(
        self,
        batch_size: int = 5,
        batch_delay: float = 2.0,
        item_delay: float = 0.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self.item_delay = item_delay
        self._sleep = sleep

    async def run(
        self,
        recipients: Sequence[T],
        mint_one: Callable[[T], Awaitable[Any]],
        skip: Optional[Callable[[T], bool]] = None,
        address_of: Callable[[T], str] = str
    ) -> BatchProgress:
        """
        Mint to every recipient.

        Args:
            recipients: Recipient addresses (or records), in minting order
            mint_one: Coroutine function minting to a single recipient
            skip: Optional predicate for recipients that are already done
            address_of: Maps a recipient to its wallet address for logging

        Returns:
            BatchProgress with the final counts
        """
        progress = BatchProgress(total_items=len(recipients))

        pending = []
        for recipient in recipients:
            if skip is not None and skip(recipient):
                progress.skipped_items += 1
                log_mint_event("skipped", address_of(recipient), additional_data={"reason": "already minted"})
            else:
                pending.append(recipient)

        batches = chunk(pending, self.batch_size)

        logger.info(
            "Starting batch minting",
            total_items=progress.total_items,
            pending_items=len(pending),
            skipped_items=progress.skipped_items,
            batch_count=len(batches),
            batch_size=self.batch_size
        )

        for batch_number, batch in enumerate(batches, start=1):
            logger.info(
                f"Processing batch {batch_number}/{len(batches)}",
                batch_items=len(batch)
            )

            for index, recipient in enumerate(batch):
                await self._mint_recipient(recipient, mint_one, progress, address_of)

                if self.item_delay > 0 and index < len(batch) - 1:
                    await self._sleep(self.item_delay)

            progress.batches_completed += 1

            if batch_number < len(batches):
                logger.info(f"Waiting {self.batch_delay} seconds before next batch...")
                await self._sleep(self.batch_delay)

        progress.end_time = datetime.now(timezone.utc)

        logger.info(
            "Batch minting completed",
            processed_items=progress.processed_items,
            successful_items=progress.successful_items,
            failed_items=progress.failed_items,
            skipped_items=progress.skipped_items,
            success_rate=f"{progress.success_rate:.1f}%",
            duration_seconds=progress.duration.total_seconds()
        )

        return progress

    async def _mint_recipient(
        self,
        recipient: T,
        mint_one: Callable[[T], Awaitable[Any]],
        progress: BatchProgress,
        address_of: Callable[[T], str]
    ) -> None:
        address = address_of(recipient)
        try:
            await mint_one(recipient)
        except Exception as e:
            failure = PerRecipientMintError(address, e)
            progress.failures.append(failure)
            progress.failed_items += 1
            log_mint_event(
                "failed",
                address,
                additional_data={"error_type": type(e).__name__, "error_message": str(e)},
                level=LogLevel.ERROR
            )
        else:
            progress.successful_items += 1
        finally:
            progress.processed_items += 1
