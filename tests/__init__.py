# StarNotary Test Suite
"""
Unit tests for blocks, the chain and signed message verification.

Run with: pytest
"""
