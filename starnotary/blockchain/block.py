"""
Block Module

A block wraps caller data as a hex-encoded JSON body together with its
chain linkage (height, time, previous block hash) and a SHA-256 content
hash computed with the ``hash`` field held at ``None``.

Tamper evidence:
- The body is stored as bytes (hex), never as structured data
- Any change to a hashed field makes ``validate()`` return False
"""

import hashlib
import json
from typing import Any, Dict, Optional

from .errors import DecodeError, GenesisBlockError


def encode_body(data: Any) -> str:
    """Encode payload data as hex of its compact UTF-8 JSON form."""
    text = json.dumps(data, separators=(',', ':'), ensure_ascii=False)
    return text.encode('utf-8').hex()


def decode_body(body: str) -> Any:
    """
    Decode a hex block body back into the payload.

    Raises:
        DecodeError: If the body is not hex, not UTF-8 or not JSON
    """
    try:
        return json.loads(bytes.fromhex(body).decode('utf-8'))
    except (TypeError, ValueError) as e:
        # UnicodeDecodeError and JSONDecodeError are both ValueErrors
        raise DecodeError(f"Malformed block body: {e}") from e


class Block:
    """
    A single chain entry.

    Only ``body`` is set on construction. ``Blockchain.append_block`` fills
    in ``height``, ``time``, ``previous_block_hash`` and finally ``hash``.
    """

    def __init__(self, data: Any = None):
        self.hash: Optional[str] = None
        self.height: int = 0
        self.body: str = encode_body(data)
        self.time: int = 0
        self.previous_block_hash: Optional[str] = None

    def _hashable_dict(self) -> Dict[str, Any]:
        return {
            'hash': None,
            'height': self.height,
            'body': self.body,
            'time': self.time,
            'previousBlockHash': self.previous_block_hash,
        }

    def compute_hash(self) -> str:
        """SHA-256 over the block's fields with ``hash`` excluded."""
        serialized = json.dumps(self._hashable_dict(), separators=(',', ':'))
        return hashlib.sha256(serialized.encode('utf-8')).hexdigest()

    async def validate(self) -> bool:
        """
        Check whether the block has been tampered with.

        Recomputes the content hash and compares it to the stored one.
        Never raises: a block whose fields can no longer be serialized
        is simply invalid.
        """
        if self.hash is None:
            return False
        try:
            return self.compute_hash() == self.hash
        except (TypeError, ValueError):
            return False

    async def get_b_data(self) -> Any:
        """
        Return the decoded payload of the block.

        Raises:
            GenesisBlockError: For the genesis block (height 0)
            DecodeError: If the body is malformed
        """
        if self.height == 0:
            raise GenesisBlockError()
        return decode_body(self.body)

    def to_dict(self) -> Dict[str, Any]:
        """Convert block to the JSON shape served to clients."""
        return {
            'hash': self.hash,
            'height': self.height,
            'body': self.body,
            'time': self.time,
            'previousBlockHash': self.previous_block_hash,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Block':
        """Rebuild a block from ``to_dict`` output without re-encoding the body."""
        block = cls.__new__(cls)
        block.hash = data['hash']
        block.height = data['height']
        block.body = data['body']
        block.time = data['time']
        block.previous_block_hash = data['previousBlockHash']
        return block

    def __str__(self) -> str:
        hash_str = f"{self.hash[:16]}..." if self.hash else "None"
        prev_str = (
            f"{self.previous_block_hash[:16]}..."
            if self.previous_block_hash else "None"
        )
        return (
            f"Block #{self.height}\n"
            f"  Hash: {hash_str}\n"
            f"  Prev: {prev_str}\n"
            f"  Time: {self.time}\n"
            f"  Body: {len(self.body) // 2} bytes"
        )
