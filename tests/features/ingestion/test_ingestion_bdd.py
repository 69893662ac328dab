"""BDD tests for payload ingestion through the consumer."""

import pytest
from pytest_bdd import scenarios

scenarios("ingestion.feature")

pytestmark = [
    pytest.mark.tier(2),
    pytest.mark.tra("Consumer"),
]
