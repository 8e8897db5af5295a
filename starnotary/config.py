"""
StarNotary configuration.

Module constants carry the defaults; ``ChainSettings`` bundles the values a
``Blockchain`` instance actually uses so tests and process startup can
override them.
"""

import os
from dataclasses import dataclass
from typing import Any, Dict


# ============================================================================
# Chain constants
# ============================================================================

GENESIS_DATA: Dict[str, Any] = {'data': 'Genesis Block'}

# Seconds a signed ownership message stays acceptable (5 minutes)
MESSAGE_VALIDITY_WINDOW = 300

# Trailing field of the ownership challenge "<address>:<time>:starRegistry"
STAR_REGISTRY_SUFFIX = 'starRegistry'
MESSAGE_SEPARATOR = ':'


# ============================================================================
# Bitcoin message signing constants
# ============================================================================

BITCOIN_MESSAGE_PREFIX = '\x18Bitcoin Signed Message:\n'

P2PKH_VERSION = 0x00
P2SH_VERSION = 0x05


# ============================================================================
# Environment overrides
# ============================================================================

ENV_MESSAGE_WINDOW = 'STARNOTARY_MESSAGE_WINDOW'
ENV_REGISTRY_SUFFIX = 'STARNOTARY_REGISTRY_SUFFIX'


@dataclass(frozen=True)
class ChainSettings:
    """Runtime settings for a single chain instance."""
    message_validity_window: int = MESSAGE_VALIDITY_WINDOW
    registry_suffix: str = STAR_REGISTRY_SUFFIX

    def __post_init__(self):
        if self.message_validity_window <= 0:
            raise ValueError("Message validity window must be positive")
        if not self.registry_suffix or MESSAGE_SEPARATOR in self.registry_suffix:
            raise ValueError(
                f"Registry suffix must be non-empty and must not contain "
                f"'{MESSAGE_SEPARATOR}'"
            )

    @classmethod
    def from_env(cls) -> 'ChainSettings':
        """Build settings from environment variables, falling back to defaults."""
        window = os.environ.get(ENV_MESSAGE_WINDOW)
        suffix = os.environ.get(ENV_REGISTRY_SUFFIX)
        return cls(
            message_validity_window=int(window) if window else MESSAGE_VALIDITY_WINDOW,
            registry_suffix=suffix or STAR_REGISTRY_SUFFIX,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'message_validity_window': self.message_validity_window,
            'registry_suffix': self.registry_suffix,
        }
