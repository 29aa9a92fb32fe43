from decimal import Decimal, localcontext

from dexstats.config.settings import COMMON_UNIT_DECIMALS


def to_unit(raw: int, decimals: int = COMMON_UNIT_DECIMALS) -> Decimal:
    """
    Convert a raw on-chain integer into the common decimal unit.

    Uses a wide context so uint128/int256 sums keep every digit.
    """
    with localcontext() as ctx:
        ctx.prec = 100
        return Decimal(int(raw)) / (Decimal(10) ** decimals)
