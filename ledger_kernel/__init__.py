"""
Ledger Kernel - double-entry bookkeeping engine

A company-scoped general ledger with:
- Hierarchical chart of accounts
- Balanced journal entries with a draft -> posted -> reversed lifecycle
- Gapless per-company entry numbering
- Balances, equation verification and reporting derived from posted lines
- Fiscal year closing and recurring entry templates
"""

__version__ = "0.1.0"
