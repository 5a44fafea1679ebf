"""Contract size and price precision helpers from instrument info."""

from __future__ import annotations
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional


def parse_instrument_filters(instrument_info: Optional[dict]) -> tuple[float, float, float]:
    """
    Extract min_size, lot_step, price_tick from an OKX instrument record
    (minSz, lotSz, tickSz). Uses defaults if instrument_info is None.
    """
    min_size = 0.01
    lot_step = 0.01
    price_tick = 0.01
    if not instrument_info:
        return min_size, lot_step, price_tick
    min_size = float(instrument_info.get("minSz") or min_size)
    lot_step = float(instrument_info.get("lotSz") or lot_step)
    price_tick = float(instrument_info.get("tickSz") or price_tick)
    return min_size, lot_step, price_tick


def round_to_step(value: float, step: float, rounding: str = ROUND_HALF_UP) -> float:
    """
    Round to a multiple of step. Halves round away from zero (0.125 -> 0.13
    at step 0.01); pass ROUND_CEILING or ROUND_FLOOR for directional rounding.
    The value is first cut to 8 decimals so float noise such as
    3003.6000000000004 does not push a ceiling up a full step.
    """
    step_dec = Decimal(str(step))
    units = (Decimal(str(round(value, 8))) / step_dec).quantize(Decimal(1), rounding=rounding)
    return float(units * step_dec)
