"""Built-in example analyses for demonstration."""

from mua_engine.models import (
    ComponentKind, Distribution, InstrumentSpec, ManualComponent,
    MeasurementAnalysis, NominalContext, RiskAssumptions,
)
from mua_engine.units import PhysicalUnit


def create_dc_voltage_example() -> MeasurementAnalysis:
    """10 V DC point: uniform ±100 ppm UUT against a 50 ppm (k=2) standard.

    No additional contributors and k fixed at 2, so the budget reduces to
    uc ≈ 62.92 ppm, U ≈ 125.83 ppm, TUR ≈ 1.59 and TAR = 2.
    """
    return MeasurementAnalysis(
        name="10 V DC",
        description="Multimeter DC voltage point checked against a calibrator",
        nominal=NominalContext(10.0, PhysicalUnit.V),
        uut=InstrumentSpec(Distribution.UNIFORM, 100.0, PhysicalUnit.PPM),
        tmde=InstrumentSpec(Distribution.NORMAL, 50.0, PhysicalUnit.PPM, coverage_factor=2.0),
    )


def create_frequency_example() -> MeasurementAnalysis:
    """10 MHz reference checked with a counter, with repeatability data.

    Tolerances are in absolute units and converted to ppm of the nominal.
    The Type A repeatability term with 4 degrees of freedom makes the
    Student-t coverage factor larger than 2.
    """
    return MeasurementAnalysis(
        name="10 MHz reference",
        description="Frequency reference checked with a universal counter",
        nominal=NominalContext(10e6, PhysicalUnit.HZ),
        uut=InstrumentSpec(Distribution.UNIFORM, 0.00005, PhysicalUnit.MHZ),
        tmde=InstrumentSpec(Distribution.NORMAL, 1.0, PhysicalUnit.HZ, coverage_factor=2.0),
        manual_components=[
            ManualComponent(
                name="Repeatability",
                kind=ComponentKind.A,
                standard_uncertainty=2.0,
                unit=PhysicalUnit.PPM,
                degrees_of_freedom=4,
            ),
            ManualComponent(
                name="Counter resolution",
                kind=ComponentKind.B,
                distribution=Distribution.UNIFORM,
                bound=0.5,
                unit=PhysicalUnit.HZ,
            ),
        ],
        use_student_t=True,
        risk=RiskAssumptions(0.02),
    )


EXAMPLES = {
    "dcv": create_dc_voltage_example,
    "frequency": create_frequency_example,
}
