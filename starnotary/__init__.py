"""
StarNotary - a private star registry blockchain.

- Block hashing and tamper detection
- Signed, time-windowed star submission
- Full chain validation
"""

__version__ = '1.0.0'
