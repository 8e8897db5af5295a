# Core Crypto Module
"""
Bitcoin signed message verification (legacy and segwit addresses).
"""
