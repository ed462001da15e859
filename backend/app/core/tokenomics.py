"""
Presale stage schedule and token distribution.

Each stage has a fixed USD price per token. The admin moves the sale between
stages; the active stage's price is written to the presale row and is the
only price the purchase ledger uses.
"""

from dataclasses import dataclass
from decimal import Decimal

TOTAL_SUPPLY = 1_000_000_000_000


@dataclass(frozen=True, slots=True)
class StageConfig:
    price_usd: Decimal
    label: str


# fmt: off
STAGES: dict[int, StageConfig] = {
    1: StageConfig(Decimal("0.00001"),  "Stage 1"),
    2: StageConfig(Decimal("0.000012"), "Stage 2"),
    3: StageConfig(Decimal("0.000015"), "Stage 3"),
    4: StageConfig(Decimal("0.000018"), "Stage 4"),
    5: StageConfig(Decimal("0.00002"),  "Stage 5"),
}
# fmt: on

PUBLIC_SALE_PRICE_USD = Decimal("0.000025")

# Percentages of TOTAL_SUPPLY
DISTRIBUTION: dict[str, int] = {
    "team": 10,
    "presale": 40,
    "liquidity": 20,
    "marketing": 15,
    "reserve": 5,
    "community": 10,
}


def stage_price(stage: int) -> Decimal:
    """Return the scheduled price for a stage. Raises KeyError for unknown stages."""
    return STAGES[stage].price_usd
