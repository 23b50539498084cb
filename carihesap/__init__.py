"""
Cari Hesap - Source Package

The reusable core of a personal current-account ledger: accounts with a
current and a future balance, the transactions that move them, and the
snapshot store they are kept in.

DESIGN PRINCIPLES:
1. Balance changes are pure functions of account and transaction
2. Removing a transaction exactly undoes adding it
3. A balance change and its saved transaction list go together
4. Storage backend is swappable
"""

__version__ = "1.0.0"
__author__ = "Cari Hesap Team"
