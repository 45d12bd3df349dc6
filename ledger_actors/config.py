"""Runtime configuration shared by the broker and every actor it creates."""

from dataclasses import dataclass, replace
from decimal import Decimal


@dataclass(frozen=True)
class LedgerConfig:
    """Timeouts (in seconds), naming conventions and protocol policies."""

    # Broker waiting for a forwarded payload's reply
    forward_timeout: float = 2.0
    # Actor waiting on a broker round-trip (info, probe, create, legs)
    request_timeout: float = 2.0
    mature_deposit_timeout: float = 1.0
    delete_timeout: float = 3.0
    # Broker waiting for a deleted actor to finish its last message
    reap_timeout: float = 1.0

    # Transfer destinations with this prefix are never probed or created
    ephemeral_prefix: str = "temp-"
    fund_interest_rate: Decimal = Decimal("0.10")

    # Proceed with a transfer when the source's kind cannot be looked up
    fail_open_on_metadata_timeout: bool = True
    # Credit the source back when the deposit leg fails
    compensate_failed_deposit: bool = False
    # Zero a maturing fund once its payout is confirmed, before it is deleted
    settle_before_delete: bool = False

    # 0 = unbounded
    mailbox_size: int = 0

    def with_overrides(self, **changes) -> "LedgerConfig":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)


DEFAULT_CONFIG = LedgerConfig()
