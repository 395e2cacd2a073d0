"""Read the current measurements of an Aranet4 sensor over Bluetooth LE."""

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "Sample",
    "decode",
    "locate",
    "run_probe",
]

from .locator import locate
from .pipeline import run_probe
from .sample import Sample, decode
