"""
Application-level errors raised outside the HTTP layer.
"""


class ValidationError(ValueError):
    """Malformed input to the balance computation."""

    def __init__(self, message: str, expense_id=None):
        super().__init__(message)
        self.message = message
        self.expense_id = expense_id


class ConsistencyWarning(UserWarning):
    """Balances did not net to zero after settlement."""
