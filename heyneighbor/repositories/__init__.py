"""
Persistence adapters.

Services depend on SQLRepository instead of issuing SQL themselves; the
repository receives the Database handle it works against.
"""
