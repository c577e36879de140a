"""
finquest - Core State Model

The bookkeeping core of a gamified personal-finance tracker:
balance, savings goals, transactions, challenges and achievements.

DESIGN PRINCIPLES:
1. Each store owns exactly one aggregate
2. Cross-store effects travel as domain events
3. Business-rule failures are results, never exceptions
4. A failed operation changes nothing
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "finquest Team"
