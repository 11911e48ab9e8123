"""Conversational gateway for multi-step Hedera DeFi transaction flows."""

__version__ = "0.1.0"
