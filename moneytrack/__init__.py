"""
MoneyTrack - Source Package

The calculation and recurring-transaction engine behind an on-device
personal finance tracker: accounts, transactions, categories, budgets
and recurring payments.

DESIGN PRINCIPLES:
1. Balances are derived from the transaction log, never stored
2. Calculations are pure: data in, data out, no ambient state
3. Missing references degrade to zero, they never crash a report
4. Invalid input is rejected where it is created
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "MoneyTrack Team"
