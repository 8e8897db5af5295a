"""
Bitcoin Signed Message Verification

Verifies the compact (65-byte, base64) signatures produced by Bitcoin
Core, Electrum and other wallets for "Bitcoin Signed Message" text.

Supported address types:
- P2PKH (legacy "1..." addresses), compressed and uncompressed keys
- P2SH-P2WPKH (nested segwit "3..." addresses)
- P2WPKH (native segwit bech32 "bc1..." addresses)

Header byte layout (first byte of the compact signature):
    27-30  P2PKH, uncompressed key
    31-34  P2PKH, compressed key
    35-38  P2SH-P2WPKH
    39-42  P2WPKH
The low two bits are the recovery id.

Signatures carrying a compressed P2PKH header are also accepted for the
segwit address of the same key, matching Electrum, which signs segwit
addresses with plain compressed headers.

Author: StarNotary Project
"""

import base64
import binascii
import hashlib
from enum import Enum
from typing import Optional, Tuple

import base58
import bech32
from Crypto.Hash import RIPEMD160
from ecdsa import SECP256k1
from ecdsa.ellipticcurve import INFINITY, Point
from ecdsa.numbertheory import SquareRootError, inverse_mod, square_root_mod_prime

from ..config import BITCOIN_MESSAGE_PREFIX, P2PKH_VERSION, P2SH_VERSION


# ============================================================================
# Constants
# ============================================================================

COMPACT_SIGNATURE_SIZE = 65
HEADER_BASE = 27
HEADER_MAX = HEADER_BASE + 15

_CURVE = SECP256k1.curve
_GENERATOR = SECP256k1.generator.to_affine()
_ORDER = SECP256k1.order
_FIELD_PRIME = _CURVE.p()


class AddressType(Enum):
    """Address kind announced by a compact signature header."""
    P2PKH = "p2pkh"
    P2SH_P2WPKH = "p2sh-p2wpkh"
    P2WPKH = "p2wpkh"


# ============================================================================
# Hashing helpers
# ============================================================================

def _varint(n: int) -> bytes:
    """Bitcoin CompactSize encoding."""
    if n < 0xfd:
        return bytes([n])
    if n <= 0xffff:
        return b'\xfd' + n.to_bytes(2, 'little')
    if n <= 0xffffffff:
        return b'\xfe' + n.to_bytes(4, 'little')
    return b'\xff' + n.to_bytes(8, 'little')


def double_sha256(data: bytes) -> bytes:
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


def hash160(data: bytes) -> bytes:
    """RIPEMD-160 of SHA-256, as used for Bitcoin key and script hashes."""
    return RIPEMD160.new(hashlib.sha256(data).digest()).digest()


def magic_hash(message: str) -> bytes:
    """
    Digest that wallets sign for a text message.

    double_sha256(prefix || varint(len(message)) || message)
    """
    prefix = BITCOIN_MESSAGE_PREFIX.encode('utf-8')
    body = message.encode('utf-8')
    return double_sha256(prefix + _varint(len(body)) + body)


def segwit_redeem_hash(pubkey_hash: bytes) -> bytes:
    """HASH160 of the P2WPKH redeem script wrapped by a P2SH-P2WPKH address."""
    return hash160(b'\x00\x14' + pubkey_hash)


# ============================================================================
# Address decoding
# ============================================================================

def _decode_base58_address(address: str, version: int) -> Optional[bytes]:
    """Return the 20-byte payload of a Base58Check address with this version."""
    try:
        raw = base58.b58decode_check(address)
    except ValueError:
        return None
    if len(raw) != 21 or raw[0] != version:
        return None
    return raw[1:]


def _decode_bech32_address(address: str) -> Optional[bytes]:
    """Return the witness program of a version 0 P2WPKH bech32 address."""
    separator = address.rfind('1')
    if separator < 1:
        return None
    hrp = address[:separator].lower()
    witver, witprog = bech32.decode(hrp, address)
    if witver != 0 or witprog is None or len(witprog) != 20:
        return None
    return bytes(witprog)


# ============================================================================
# Signature parsing and public key recovery
# ============================================================================

def parse_compact_signature(
    signature: str
) -> Optional[Tuple[int, bool, AddressType, int, int]]:
    """
    Parse a base64 compact signature.

    Returns:
        Tuple of (recovery_id, compressed, address_type, r, s), or None if
        the signature is malformed
    """
    try:
        raw = base64.b64decode(signature, validate=True)
    except (binascii.Error, ValueError, TypeError):
        return None
    if len(raw) != COMPACT_SIGNATURE_SIZE:
        return None

    header = raw[0]
    if not HEADER_BASE <= header <= HEADER_MAX:
        return None
    flag = header - HEADER_BASE

    if flag & 8:
        address_type = AddressType.P2WPKH if flag & 4 else AddressType.P2SH_P2WPKH
        compressed = True
    else:
        address_type = AddressType.P2PKH
        compressed = bool(flag & 4)

    r = int.from_bytes(raw[1:33], 'big')
    s = int.from_bytes(raw[33:65], 'big')
    if not (0 < r < _ORDER and 0 < s < _ORDER):
        return None
    return flag & 3, compressed, address_type, r, s


def recover_public_key(digest: bytes, r: int, s: int, recovery_id: int) -> Optional[Point]:
    """
    Recover the secp256k1 public key point that produced (r, s) over digest.

    Follows SEC 1 v2, section 4.1.6. Returns None when no key exists for
    this recovery id.
    """
    x = r + (recovery_id >> 1) * _ORDER
    if x >= _FIELD_PRIME:
        return None

    alpha = (pow(x, 3, _FIELD_PRIME) + _CURVE.a() * x + _CURVE.b()) % _FIELD_PRIME
    try:
        beta = square_root_mod_prime(alpha, _FIELD_PRIME)
    except SquareRootError:
        # x is not on the curve
        return None
    y = beta if (beta - recovery_id) % 2 == 0 else _FIELD_PRIME - beta
    point_r = Point(_CURVE, x, y)

    e = int.from_bytes(digest, 'big') % _ORDER
    q = (point_r * s + _GENERATOR * ((-e) % _ORDER)) * inverse_mod(r, _ORDER)
    if q == INFINITY:
        return None
    return q


def encode_public_key(point: Point, compressed: bool = True) -> bytes:
    """SEC 1 encoding of a public key point."""
    x = point.x().to_bytes(32, 'big')
    if compressed:
        return bytes([2 + (point.y() & 1)]) + x
    return b'\x04' + x + point.y().to_bytes(32, 'big')


# ============================================================================
# Verification
# ============================================================================

def _pubkey_hash_matches(
    pubkey_hash: bytes,
    address: str,
    address_type: AddressType,
    check_segwit: bool
) -> bool:
    if address_type is AddressType.P2SH_P2WPKH:
        return _decode_base58_address(address, P2SH_VERSION) == segwit_redeem_hash(pubkey_hash)
    if address_type is AddressType.P2WPKH:
        return _decode_bech32_address(address) == pubkey_hash

    if _decode_base58_address(address, P2PKH_VERSION) == pubkey_hash:
        return True
    if not check_segwit:
        return False
    return (
        _decode_bech32_address(address) == pubkey_hash
        or _decode_base58_address(address, P2SH_VERSION) == segwit_redeem_hash(pubkey_hash)
    )


def verify_message(message: str, address: str, signature: str) -> bool:
    """
    Verify a Bitcoin signed message.

    Args:
        message: The exact text that was signed
        address: Bitcoin address claimed as the signer
        signature: Base64 compact signature

    Returns:
        True if the signature was made by the key behind ``address``.
        Malformed input of any kind yields False.
    """
    if not isinstance(message, str) or not isinstance(address, str):
        return False

    parsed = parse_compact_signature(signature)
    if parsed is None:
        return False
    recovery_id, compressed, address_type, r, s = parsed

    digest = magic_hash(message)
    point = recover_public_key(digest, r, s, recovery_id)
    if point is None:
        return False

    # Any recovered key satisfies (r, s) over digest; the signer is
    # authenticated only by its key hash matching the address.
    public_key = encode_public_key(point, compressed)
    return _pubkey_hash_matches(
        hash160(public_key),
        address,
        address_type,
        check_segwit=compressed,
    )
