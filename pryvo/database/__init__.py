"""Database package for the Pryvo backend.

`Database` owns the engine; the sibling modules (`profiles`, `swipes`,
`matches`, ...) are stores of plain async functions that take a session.
"""

from pryvo.database.connection import Database
from pryvo.database.schema import Base

__all__ = ["Base", "Database"]
