"""
Engine errors.

Every failure the workflows can report is one of these. The
HTTP layer maps them to status codes; background jobs log them.
"""


class EngineError(Exception):
    """Base class for all workflow errors."""


class NotFound(EngineError):
    """Raised when an order, service, charge, ticket or account does not exist."""

    def __init__(self, entity, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class InvalidState(EngineError):
    """Raised when a transition is attempted from a state that does not permit it."""

    def __init__(self, entity, entity_id, current, action):
        self.entity = entity
        self.entity_id = entity_id
        self.current = current
        self.action = action
        current_value = getattr(current, "value", current)
        super().__init__(
            f"Cannot {action} {entity} {entity_id} in status {current_value}"
        )


class InsufficientFunds(EngineError):
    """Raised when a wallet debit exceeds the available balance."""

    def __init__(self, account_id, requested, available):
        self.account_id = account_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient balance on account {account_id}: "
            f"requested={requested}, available={available}"
        )


class ProvisioningFailed(EngineError):
    """Raised when the provisioner gave no usable access config after retries."""

    def __init__(self, order_id, attempts, reason):
        self.order_id = order_id
        self.attempts = attempts
        self.reason = reason
        super().__init__(
            f"Provisioning for order {order_id} failed after "
            f"{attempts} attempt(s): {reason}"
        )


class ValidationError(EngineError):
    """Raised for malformed plan or amount input."""
