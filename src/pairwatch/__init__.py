"""Solana DEX pair watcher: pair ingestion, RSI indicators and oversold alerts."""

__version__ = "0.1.0"
