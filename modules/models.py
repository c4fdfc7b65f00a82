from dataclasses import dataclass, field
from typing import List

# Fabric width in centimeters
DEFAULT_PANNA_SIZE = 97.0


class InvalidCatalogEntry(ValueError):
    """Raised when a catalogue entry cannot be used for cutting."""


@dataclass(frozen=True)
class FabricSize:
    size: float
    weekly_demand: int
    probability: float = 0.0


@dataclass(frozen=True)
class CutResult:
    size: float
    pieces: int
    total: float


@dataclass
class CalculationResult:
    cuts: List[CutResult] = field(default_factory=list)
    leftover: float = 0.0
    total_used: float = 0.0
    panna_size: float = DEFAULT_PANNA_SIZE

    @property
    def total_pieces(self) -> int:
        return sum(c.pieces for c in self.cuts)

    @property
    def is_perfect(self) -> bool:
        return bool(self.cuts) and self.leftover == 0

    @property
    def fabric_area(self) -> float:
        """Used fabric in square meters (panna is given in cm)."""
        return round(self.total_used * self.panna_size / 100, 3)

    def to_dict(self) -> dict:
        return {
            "cuts": [{"size": c.size, "pieces": c.pieces, "total": c.total} for c in self.cuts],
            "leftover": self.leftover,
            "total_used": self.total_used,
            "panna_size": self.panna_size,
            "total_pieces": self.total_pieces,
        }


# Weekly sales data
DEFAULT_FABRIC_SIZES = (
    FabricSize(2.5, 10),
    FabricSize(3.0, 7),
    FabricSize(2.25, 5),
    FabricSize(2.0, 4),
    FabricSize(5.0, 3),
    FabricSize(1.0, 1),
)
