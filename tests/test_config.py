"""Ayar doğrulama."""
import pytest
from pydantic import ValidationError

from pushgate.core.config import Settings


def test_claim_lease_must_outlive_webhook_timeout():
    with pytest.raises(ValidationError, match="APPROVAL_CLAIM_LEASE_SECONDS"):
        Settings(approval_claim_lease_seconds=5, webhook_timeout_seconds=10)
    with pytest.raises(ValidationError):
        Settings(approval_claim_lease_seconds=10, webhook_timeout_seconds=10)


def test_claim_lease_longer_than_timeout_accepted():
    s = Settings(approval_claim_lease_seconds=30, webhook_timeout_seconds=10)
    assert s.approval_claim_lease_seconds == 30
