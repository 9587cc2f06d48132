from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from tests.helpers.ledger import KST, FakeGateway

if TYPE_CHECKING:
    from datetime import tzinfo


@pytest.fixture
def zone() -> tzinfo:
    return KST


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()
