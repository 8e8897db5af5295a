"""
Pytest fixtures for the StarNotary test suite.

Wallet keys and signatures are produced here with ``cryptography``; the
package itself only verifies signatures.
"""

import base64

import base58
import bech32
import pytest
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import (
    Prehashed, decode_dss_signature
)

from starnotary.core_crypto.message_signing import (
    AddressType, encode_public_key, hash160, magic_hash,
    recover_public_key, segwit_redeem_hash
)


FIXED_NOW = 1_700_000_000

_HEADER_OFFSETS = {
    (AddressType.P2PKH, False): 27,
    (AddressType.P2PKH, True): 31,
    (AddressType.P2SH_P2WPKH, True): 35,
    (AddressType.P2WPKH, True): 39,
}


class Wallet:
    """A secp256k1 key able to sign Bitcoin messages."""

    def __init__(self, compressed: bool = True):
        self.compressed = compressed
        self.private_key = ec.generate_private_key(ec.SECP256K1())
        point_format = (
            serialization.PublicFormat.CompressedPoint if compressed
            else serialization.PublicFormat.UncompressedPoint
        )
        self.public_key = self.private_key.public_key().public_bytes(
            encoding=serialization.Encoding.X962,
            format=point_format
        )
        self.pubkey_hash = hash160(self.public_key)

    def address(self, address_type: AddressType = AddressType.P2PKH) -> str:
        if address_type is AddressType.P2PKH:
            return base58.b58encode_check(b'\x00' + self.pubkey_hash).decode()
        if address_type is AddressType.P2SH_P2WPKH:
            redeem = segwit_redeem_hash(self.pubkey_hash)
            return base58.b58encode_check(b'\x05' + redeem).decode()
        return bech32.encode('bc', 0, self.pubkey_hash)

    def sign(self, message: str, address_type: AddressType = AddressType.P2PKH) -> str:
        """Produce a base64 compact signature with the given header type."""
        digest = magic_hash(message)
        der = self.private_key.sign(digest, ec.ECDSA(Prehashed(hashes.SHA256())))
        r, s = decode_dss_signature(der)

        for recovery_id in range(4):
            point = recover_public_key(digest, r, s, recovery_id)
            if point is not None and encode_public_key(point, self.compressed) == self.public_key:
                break
        else:
            raise AssertionError("Could not find recovery id for own signature")

        header = _HEADER_OFFSETS[(address_type, self.compressed)] + recovery_id
        raw = bytes([header]) + r.to_bytes(32, 'big') + s.to_bytes(32, 'big')
        return base64.b64encode(raw).decode()


class FakeClock:
    """Controllable replacement for ``time.time``."""

    def __init__(self, now: float = FIXED_NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def wallet():
    """Wallet with a compressed key"""
    return Wallet()


@pytest.fixture
def other_wallet():
    return Wallet()


@pytest.fixture
def uncompressed_wallet():
    return Wallet(compressed=False)


@pytest.fixture
def clock():
    return FakeClock()
