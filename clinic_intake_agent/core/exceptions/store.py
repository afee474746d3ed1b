"""
Record store exceptions.
"""


class StoreError(Exception):
    """Raised when the record store cannot complete an operation."""
    pass
