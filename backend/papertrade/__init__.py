"""
PaperTrading Ledger

Single-account paper trading ledger with stock and option positions.
"""
__version__ = "1.0.0"
