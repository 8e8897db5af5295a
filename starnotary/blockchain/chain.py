"""
Star Registry Blockchain

An in-memory, append-only chain of blocks where wallet owners register
"stars" by signing a time-stamped ownership challenge with their Bitcoin
key.

Integrity features:
- Every append re-validates the full chain and is rolled back on failure
- Appends are serialized through an asyncio lock
- Ownership challenges expire after a fixed window (5 minutes by default)

Author: StarNotary Project
"""

import asyncio
import logging
import re
import time
from typing import Any, Callable, Dict, List, Optional

from ..config import GENESIS_DATA, MESSAGE_SEPARATOR, ChainSettings
from ..core_crypto.message_signing import verify_message
from .block import Block
from .errors import (
    ChainValidationError,
    ExpiredMessageError,
    FutureMessageError,
    MalformedMessageError,
    SignatureVerificationError,
)


logger = logging.getLogger(__name__)

# ASCII digits only; int() alone would also take " +1", "1_0" and non-ASCII digits
_TIMESTAMP_PATTERN = re.compile(r"-?[0-9]+")


class Blockchain:
    """
    A private star registry chain.

    Lifecycle: construct, ``await initialize_chain()`` to create the genesis
    block, then accept appends for as long as the owning process lives.
    ``create_blockchain()`` does the first two steps.
    """

    def __init__(
        self,
        settings: Optional[ChainSettings] = None,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize an empty chain.

        Args:
            settings: Chain settings (defaults from ``starnotary.config``)
            clock: Returns the current Unix time in seconds
        """
        self._chain: List[Block] = []
        self.height = -1
        self.settings = settings or ChainSettings()
        self._clock = clock
        self._append_lock = asyncio.Lock()

    def _now(self) -> int:
        return int(self._clock())

    async def initialize_chain(self) -> None:
        """Create the genesis block if the chain is still empty."""
        if self.height == -1:
            genesis = await self.append_block(Block(GENESIS_DATA))
            logger.info("Genesis block created: %s", genesis.hash)

    @property
    def chain(self) -> List[Block]:
        """Get the blockchain (read-only view)."""
        return list(self._chain)

    @property
    def last_block(self) -> Optional[Block]:
        return self._chain[-1] if self._chain else None

    def __len__(self) -> int:
        return len(self._chain)

    async def get_chain_height(self) -> int:
        return self.height

    async def append_block(self, block: Block) -> Block:
        """
        Link, hash and store a block.

        The whole chain is validated after the block is pushed; if any
        error is reported the block is removed again.

        Returns:
            The stored block

        Raises:
            ChainValidationError: If the chain is invalid after the append
        """
        async with self._append_lock:
            if self._chain:
                block.previous_block_hash = self._chain[-1].hash
            block.time = self._now()
            block.height = self.height + 1
            block.hash = block.compute_hash()

            self._chain.append(block)
            self.height += 1

            try:
                errors = await self.validate_chain()
            except BaseException:
                self._rollback()
                raise

            if errors:
                self._rollback()
                logger.warning(
                    "Rolled back block #%d: %d validation error(s)",
                    block.height, len(errors)
                )
                raise ChainValidationError(errors)

            logger.info("Appended block #%d %s", block.height, block.hash)
            return block

    def _rollback(self) -> None:
        self._chain.pop()
        self.height -= 1

    async def request_ownership_verification(self, address: str) -> str:
        """
        Build the challenge a wallet owner must sign.

        Returns:
            "<address>:<unix seconds>:starRegistry"
        """
        message = MESSAGE_SEPARATOR.join(
            [address, str(self._now()), self.settings.registry_suffix]
        )
        logger.debug("Issued ownership challenge for %s", address)
        return message

    def _message_timestamp(self, message: str) -> int:
        parts = message.split(MESSAGE_SEPARATOR) if isinstance(message, str) else []
        if len(parts) < 2:
            raise MalformedMessageError(f"Message has no timestamp field: {message!r}")
        if not _TIMESTAMP_PATTERN.fullmatch(parts[1]):
            raise MalformedMessageError(
                f"Message timestamp is not an integer: {parts[1]!r}"
            )
        return int(parts[1])

    async def submit_star(
        self,
        address: str,
        message: str,
        signature: str,
        star: Any
    ) -> Block:
        """
        Register a star for a wallet address.

        Args:
            address: Bitcoin address of the owner
            message: Challenge returned by ``request_ownership_verification``
            signature: Base64 compact signature of ``message`` by ``address``
            star: Star data to store

        Returns:
            The appended block

        Raises:
            MalformedMessageError: Message has no integer timestamp
            FutureMessageError: Message timestamp is in the future
            ExpiredMessageError: Message is older than the validity window
            SignatureVerificationError: Signature does not match
            ChainValidationError: Append failed chain validation
        """
        elapsed = self._now() - self._message_timestamp(message)
        window = self.settings.message_validity_window

        if elapsed < 0:
            logger.warning("Rejected star for %s: message from the future", address)
            raise FutureMessageError("Invalid time: message timestamp is in the future")
        if elapsed >= window:
            logger.warning("Rejected star for %s: message expired (%ds old)", address, elapsed)
            raise ExpiredMessageError(
                f"Expired message: signed {elapsed}s ago, limit is {window}s"
            )
        if not verify_message(message, address, signature):
            logger.warning("Rejected star for %s: bad signature", address)
            raise SignatureVerificationError("Message signature verification failed")

        return await self.append_block(Block({'owner': address, 'star': star}))

    async def get_block_by_hash(self, hash: str) -> Optional[Block]:
        for block in self.chain:
            if block.hash == hash:
                return block
        return None

    async def get_block_by_height(self, height: int) -> Optional[Block]:
        for block in self.chain:
            if block.height == height:
                return block
        return None

    async def get_stars_by_wallet_address(self, address: str) -> List[Any]:
        """
        Get the stars owned by a wallet address, in chain order.

        Every non-genesis payload is decoded before filtering; a block
        whose body cannot be decoded raises ``DecodeError``.
        """
        payloads = [await block.get_b_data() for block in self.chain[1:]]
        return [
            data.get('star')
            for data in payloads
            if isinstance(data, dict) and data.get('owner') == address
        ]

    async def validate_chain(self) -> List[str]:
        """
        Validate every block and every hash link.

        Returns:
            List of error descriptions, empty if the chain is valid
        """
        errors: List[str] = []
        blocks = self.chain

        for index, block in enumerate(blocks):
            if not await block.validate():
                errors.append(f"Block #{index} ({block.hash}) is not valid")

            if index > 0:
                previous = blocks[index - 1]
                if block.previous_block_hash != previous.hash:
                    errors.append(
                        f"Broken link between block #{index - 1} and block "
                        f"#{index}: hash of block #{index - 1} ({previous.hash}) "
                        f"!= previousBlockHash of block #{index} "
                        f"({block.previous_block_hash})"
                    )

        return errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            'height': self.height,
            'chain': [block.to_dict() for block in self._chain],
        }

    def print_chain(self) -> None:
        """Print the blockchain."""
        print(f"\nBlockchain (height={self.height}, length={len(self)})")
        print("=" * 60)
        for block in self._chain:
            print(block)
            print("-" * 40)


# ============================================================================
# Convenience Functions
# ============================================================================

async def create_blockchain(
    settings: Optional[ChainSettings] = None,
    clock: Callable[[], float] = time.time
) -> Blockchain:
    """Create a chain and its genesis block."""
    blockchain = Blockchain(settings=settings, clock=clock)
    await blockchain.initialize_chain()
    return blockchain
