"""Cross-chain copy-trading agent."""
