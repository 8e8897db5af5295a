# Blockchain Module
"""
Star registry chain including:
- Self-hashing blocks with hex-encoded JSON bodies - block.py
- Append with full-chain validation and rollback - chain.py
- Error taxonomy - errors.py
"""

# Lazy imports: submodules load on first attribute access
def __getattr__(name):
    """Resolve public names from the submodule that defines them."""
    if name in __all__:
        from . import block, chain, errors
        for module in (block, chain, errors):
            if hasattr(module, name):
                return getattr(module, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

__all__ = [
    # Block
    'Block',
    'encode_body',
    'decode_body',
    # Chain
    'Blockchain',
    'create_blockchain',
    # Errors
    'StarNotaryError',
    'GenesisBlockError',
    'DecodeError',
    'ChainValidationError',
    'MessageVerificationError',
    'MalformedMessageError',
    'FutureMessageError',
    'ExpiredMessageError',
    'SignatureVerificationError',
]
