"""
Notion relation linker.

Polls a Notion "Transactions" database on a timer and fills in missing
relations: each transaction is linked to its "Month" page (matched on the
Month Text formula) and to its "Category" page (matched on the title).
"""

__version__ = "1.0.0"
