"""BDD tests for item key classification."""

import pytest
from pytest_bdd import scenarios

scenarios("classification.feature")

pytestmark = [
    pytest.mark.tier(1),
    pytest.mark.tra("Core.Classify"),
]
