"""
Household Finance - Source Package

A shared household finance tracker: several people record income,
expenses and savings deposits under one household identifier and
see the same summaries, breakdowns and savings growth.

DESIGN PRINCIPLES:
1. Derived views are pure functions of one full data delivery
2. Malformed data degrades to zero, never to a crash
3. Destructive actions need explicit confirmation
4. Savings value history is append-only
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Household Finance Team"
