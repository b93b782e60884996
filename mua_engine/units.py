"""Physical units and conversion of tolerances to parts-per-million."""

from __future__ import annotations

import logging
import math
from enum import Enum
from typing import Optional, Union

logger = logging.getLogger(__name__)

PPM_PER_PERCENT = 1e4


class UnitFamily(Enum):
    """Physical quantity a unit measures."""
    VOLTAGE = "Voltage"
    CURRENT = "Current"
    FREQUENCY = "Frequency"
    RESISTANCE = "Resistance"
    RELATIVE = "Relative"
    TEMPERATURE = "Temperature"


class PhysicalUnit(Enum):
    """Unit a tolerance, uncertainty or nominal value is expressed in."""
    V = "V"
    MV = "mV"
    UV = "uV"
    A = "A"
    MA = "mA"
    UA = "uA"
    HZ = "Hz"
    KHZ = "kHz"
    MHZ = "MHz"
    OHM = "Ohm"
    KOHM = "kOhm"
    MOHM = "MOhm"
    PERCENT = "%"
    PPM = "ppm"
    DEG_F = "deg F"
    DEG_C = "deg C"

    @property
    def family(self) -> UnitFamily:
        return _FAMILIES[self]

    @property
    def multiplier(self) -> Optional[float]:
        """Linear factor to the family's base unit, or None if there is none."""
        return _MULTIPLIERS.get(self)

    @property
    def is_relative(self) -> bool:
        return self in (PhysicalUnit.PPM, PhysicalUnit.PERCENT)


_FAMILIES = {
    PhysicalUnit.V: UnitFamily.VOLTAGE,
    PhysicalUnit.MV: UnitFamily.VOLTAGE,
    PhysicalUnit.UV: UnitFamily.VOLTAGE,
    PhysicalUnit.A: UnitFamily.CURRENT,
    PhysicalUnit.MA: UnitFamily.CURRENT,
    PhysicalUnit.UA: UnitFamily.CURRENT,
    PhysicalUnit.HZ: UnitFamily.FREQUENCY,
    PhysicalUnit.KHZ: UnitFamily.FREQUENCY,
    PhysicalUnit.MHZ: UnitFamily.FREQUENCY,
    PhysicalUnit.OHM: UnitFamily.RESISTANCE,
    PhysicalUnit.KOHM: UnitFamily.RESISTANCE,
    PhysicalUnit.MOHM: UnitFamily.RESISTANCE,
    PhysicalUnit.PERCENT: UnitFamily.RELATIVE,
    PhysicalUnit.PPM: UnitFamily.RELATIVE,
    PhysicalUnit.DEG_F: UnitFamily.TEMPERATURE,
    PhysicalUnit.DEG_C: UnitFamily.TEMPERATURE,
}

# Temperature scales are affine, so they get no entry here.
_MULTIPLIERS = {
    PhysicalUnit.V: 1.0,
    PhysicalUnit.MV: 1e-3,
    PhysicalUnit.UV: 1e-6,
    PhysicalUnit.A: 1.0,
    PhysicalUnit.MA: 1e-3,
    PhysicalUnit.UA: 1e-6,
    PhysicalUnit.HZ: 1.0,
    PhysicalUnit.KHZ: 1e3,
    PhysicalUnit.MHZ: 1e6,
    PhysicalUnit.OHM: 1.0,
    PhysicalUnit.KOHM: 1e3,
    PhysicalUnit.MOHM: 1e6,
}


def as_float(value) -> float:
    """Coerce to float, NaN for None or anything non-numeric."""
    if value is None:
        return math.nan
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def parse_unit(unit: Union[PhysicalUnit, str]) -> Optional[PhysicalUnit]:
    """Coerce a unit or its symbol to a PhysicalUnit, None if unknown."""
    if isinstance(unit, PhysicalUnit):
        return unit
    try:
        return PhysicalUnit(unit)
    except ValueError:
        return None


def convert_to_ppm(
    value: float,
    unit: Union[PhysicalUnit, str],
    nominal_value: float,
    nominal_unit: Union[PhysicalUnit, str],
) -> float:
    """Express ``value`` (in ``unit``) in ppm of the nominal value.

    Relative units (ppm, %) pass through without needing a nominal.
    Absolute units are scaled to their family's base unit and divided by
    the nominal, which is taken in the family base unit (V, A, Hz, Ohm).

    Args:
        value: Tolerance or uncertainty magnitude.
        unit: Unit of ``value``.
        nominal_value: Nominal the ppm figure is relative to.
        nominal_unit: Unit of ``nominal_value``.

    Returns:
        The value in ppm, or NaN when the conversion is undefined (zero or
        non-finite nominal, unit without a linear multiplier, unknown unit,
        or units from different families).
    """
    value = as_float(value)
    if value == 0:
        return 0.0
    if not math.isfinite(value):
        return math.nan

    u = parse_unit(unit)
    if u is None:
        logger.debug("Unknown unit %r", unit)
        return math.nan
    if u is PhysicalUnit.PPM:
        return value
    if u is PhysicalUnit.PERCENT:
        return value * PPM_PER_PERCENT

    nominal = as_float(nominal_value)
    if not math.isfinite(nominal) or nominal == 0:
        logger.debug("Cannot convert %s %s: nominal is %r", value, u.value, nominal_value)
        return math.nan

    nu = parse_unit(nominal_unit)
    if nu is None:
        logger.debug("Unknown nominal unit %r", nominal_unit)
        return math.nan
    if u.family is not nu.family:
        logger.debug("Unit family mismatch: %s (%s) vs nominal %s (%s)",
                     u.value, u.family.value, nu.value, nu.family.value)
        return math.nan

    mul = u.multiplier
    if mul is None:
        logger.debug("Unit %s has no linear multiplier", u.value)
        return math.nan

    # The nominal is a magnitude in the family base unit; only the tolerance unit is scaled.
    return value * mul / nominal * 1e6
