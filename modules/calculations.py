import math
from dataclasses import replace
from typing import Iterable, List, Optional, Tuple

from modules.models import FabricSize, InvalidCatalogEntry

# Demand share from which a size counts as priority
PRIORITY_THRESHOLD = 0.15


class DemandNormalizer:
    @staticmethod
    def validate(sizes: Iterable[FabricSize]) -> List[FabricSize]:
        checked = []
        seen = set()
        for item in sizes:
            try:
                size = float(item.size)
            except (TypeError, ValueError):
                raise InvalidCatalogEntry(f"Size is not a number: {item.size!r}")
            if not math.isfinite(size) or size <= 0:
                raise InvalidCatalogEntry(f"Size must be positive, got {item.size!r}")
            if not isinstance(item.weekly_demand, (int, float)) or item.weekly_demand < 0:
                raise InvalidCatalogEntry(f"Weekly demand for {size:g} m must not be negative")
            if size in seen:
                raise InvalidCatalogEntry(f"Duplicate size in catalogue: {size:g} m")
            seen.add(size)
            checked.append(item)
        return checked

    @staticmethod
    def normalize(sizes: Iterable[FabricSize]) -> List[FabricSize]:
        """
        Returns a new catalogue with probability = weekly_demand / total demand.
        An all-zero catalogue gets probability 0 everywhere. Input order is kept.
        """
        checked = DemandNormalizer.validate(sizes)
        total_demand = sum(item.weekly_demand for item in checked)
        return [
            replace(item, probability=item.weekly_demand / total_demand if total_demand > 0 else 0.0)
            for item in checked
        ]

    @staticmethod
    def is_priority(item: FabricSize, threshold: float = PRIORITY_THRESHOLD) -> bool:
        return item.probability >= threshold

    @staticmethod
    def partition(sizes: Iterable[FabricSize], threshold: float = PRIORITY_THRESHOLD) -> Tuple[List[FabricSize], List[FabricSize]]:
        by_probability = sorted(sizes, key=lambda s: s.probability, reverse=True)
        priority = [s for s in by_probability if s.probability >= threshold]
        optional = [s for s in by_probability if s.probability < threshold]
        return priority, optional

    @staticmethod
    def coerce_length(value) -> Optional[float]:
        """Parses a user supplied total length. Returns None for anything unusable."""
        if isinstance(value, bool):
            return None
        if isinstance(value, str):
            value = value.strip().replace(",", ".")
        try:
            length = float(value)
        except (TypeError, ValueError):
            return None
        if not math.isfinite(length) or length <= 0:
            return None
        return length
