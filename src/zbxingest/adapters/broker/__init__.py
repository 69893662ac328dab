"""Message source adapters implementing MessageSourcePort."""

from zbxingest.adapters.broker.in_memory import (
    InMemoryDelivery,
    InMemoryMessageSource,
)

__all__ = ["InMemoryDelivery", "InMemoryMessageSource"]
