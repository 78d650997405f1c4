"""
Ledger Reconciler - Source Package

Derives account balances, budget progress and monthly dashboard
summaries from a personal-finance ledger.

DESIGN PRINCIPLES:
1. Balances are derived, never stored
2. The category decides the sign of a transaction
3. Bad rows are skipped and reported, never fatal
4. Every computation is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Ledger Reconciler Team"
