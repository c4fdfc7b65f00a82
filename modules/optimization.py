import math
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set, Tuple

from modules.calculations import DemandNormalizer, PRIORITY_THRESHOLD
from modules.models import (
    CalculationResult,
    CutResult,
    DEFAULT_FABRIC_SIZES,
    DEFAULT_PANNA_SIZE,
    FabricSize,
)

logger = logging.getLogger(__name__)

# Rough average piece length used to estimate how many pieces a roll yields
AVERAGE_PIECE_LENGTH = 2.5
PRIORITY_WINDOW = 3
OPTIONAL_DEMAND_FACTOR = 2
SMALL_PIECE_LENGTH = 1.5
SMALL_PIECE_CAP = 3
LENGTH_TOLERANCE = 0.001


@dataclass(frozen=True)
class SearchSettings:
    priority_threshold: float = PRIORITY_THRESHOLD
    average_piece_length: float = AVERAGE_PIECE_LENGTH
    priority_window: int = PRIORITY_WINDOW
    optional_demand_factor: float = OPTIONAL_DEMAND_FACTOR
    small_piece_length: float = SMALL_PIECE_LENGTH
    small_piece_cap: int = SMALL_PIECE_CAP
    tolerance: float = LENGTH_TOLERANCE


@dataclass(frozen=True)
class SizeSlot:
    """One size in the search order together with its allowed piece counts."""
    fabric: FabricSize
    priority: bool
    min_pieces: int
    preferred: int
    max_preferred: int
    max_pieces: int

    def upper(self, widened: bool) -> int:
        return self.max_pieces if widened else self.max_preferred


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class CutOptimizer:
    def __init__(self, settings: Optional[SearchSettings] = None):
        self.settings = settings or SearchSettings()

    def is_priority(self, item: FabricSize) -> bool:
        return DemandNormalizer.is_priority(item, self.settings.priority_threshold)

    def fits(self, length: float, size: float) -> int:
        return max(0, int(math.floor((length + self.settings.tolerance) / size)))

    def build_slots(self, total_length: float, candidates: Sequence[FabricSize], relax_priority: bool = False) -> List[SizeSlot]:
        """
        Orders the candidates (priority first, then by probability) and derives
        a piece-count window for each of them.
        """
        cfg = self.settings
        ordered = sorted(candidates, key=lambda s: (not self.is_priority(s), -s.probability))
        priority_mass = sum(s.probability for s in ordered if self.is_priority(s))
        estimated_pieces = total_length / cfg.average_piece_length

        slots = []
        for item in ordered:
            max_pieces = self.fits(total_length, item.size)
            if self.is_priority(item):
                proportional = round_half_up(item.probability / priority_mass * estimated_pieces)
                preferred = max(1, min(proportional, max_pieces))
                slots.append(SizeSlot(
                    fabric=item,
                    priority=True,
                    min_pieces=0 if relax_priority else 1,
                    preferred=preferred,
                    max_preferred=min(max_pieces, preferred + cfg.priority_window),
                    max_pieces=max_pieces,
                ))
            else:
                estimated = math.ceil(total_length * item.probability * cfg.optional_demand_factor / item.size)
                max_preferred = min(max_pieces, max(1, estimated))
                # Small pieces must not dominate the plan
                if item.size <= cfg.small_piece_length:
                    max_preferred = min(max_preferred, cfg.small_piece_cap)
                slots.append(SizeSlot(item, False, 0, 0, max_preferred, max_pieces))
        return slots

    def candidate_counts(self, slot: SizeSlot, remaining: float, widened: bool) -> List[int]:
        actual_max = min(slot.upper(widened), self.fits(remaining, slot.fabric.size))

        if not slot.priority:
            return list(range(0, actual_max + 1))

        low = slot.min_pieces
        preferred = min(slot.preferred, actual_max)
        order = []
        if preferred >= low:
            order.append(preferred)
        for offset in range(1, self.settings.priority_window + 1):
            if preferred + offset <= actual_max:
                order.append(preferred + offset)
            if preferred - offset >= low:
                order.append(preferred - offset)
        for pieces in range(actual_max, low - 1, -1):
            if pieces not in order:
                order.append(pieces)
        return order

    def _search(self, slots: List[SizeSlot], total_length: float, widened: bool) -> Optional[Tuple[int, ...]]:
        tol = self.settings.tolerance
        last = len(slots) - 1

        # Largest and smallest length the slots from index i onwards can still take
        max_tail = [0.0] * (len(slots) + 1)
        min_tail = [0.0] * (len(slots) + 1)
        for i in range(last, -1, -1):
            max_tail[i] = max_tail[i + 1] + slots[i].upper(widened) * slots[i].fabric.size
            min_tail[i] = min_tail[i + 1] + slots[i].min_pieces * slots[i].fabric.size

        failed: Set[Tuple[int, float]] = set()

        def descend(index: int, remaining: float, counts: Tuple[int, ...]) -> Optional[Tuple[int, ...]]:
            if remaining > max_tail[index] + tol or remaining < min_tail[index] - tol:
                return None
            key = (index, round(remaining, 9))
            if key in failed:
                return None

            slot = slots[index]
            size = slot.fabric.size
            candidates = self.candidate_counts(slot, remaining, widened)

            if index == last:
                pieces = round_half_up(remaining / size)
                if pieces in candidates and abs(remaining - pieces * size) < tol:
                    return counts + (pieces,)
                failed.add(key)
                return None

            for pieces in candidates:
                left = remaining - pieces * size
                if left < -tol:
                    continue
                found = descend(index + 1, left, counts + (pieces,))
                if found is not None:
                    return found
            failed.add(key)
            return None

        return descend(0, total_length, ())

    def search_candidates(self, total_length: float, candidates: Sequence[FabricSize], relax_priority: bool = False) -> Optional[List[CutResult]]:
        slots = self.build_slots(total_length, candidates, relax_priority)
        if not slots:
            return None

        passes = (True,) if relax_priority else (False, True)
        for widened in passes:
            counts = self._search(slots, total_length, widened)
            if counts is not None:
                return [CutResult(s.fabric.size, n, s.fabric.size * n) for s, n in zip(slots, counts) if n > 0]
            if not widened:
                logger.debug("Windowed search failed for %s, retrying with full piece ranges", [s.fabric.size for s in slots])
        return None

    def find_exact(self, total_length: float, sizes: Sequence[FabricSize], panna_size: float = DEFAULT_PANNA_SIZE) -> Optional[CalculationResult]:
        """
        Searches for a zero-leftover combination. Subsets of the optional sizes
        are tried from "all included" down to "none included"; the first hit wins.
        Returns None when no exact combination exists.
        """
        priority, optional = DemandNormalizer.partition(sizes, self.settings.priority_threshold)

        for mask in range((1 << len(optional)) - 1, -1, -1):
            chosen = [item for i, item in enumerate(optional) if mask & (1 << i)]
            candidates = priority + chosen
            if not candidates:
                continue
            cuts = self.search_candidates(total_length, candidates)
            if cuts is not None:
                logger.debug("Zero-leftover combination found with optional mask %s", format(mask, "b"))
                return self._build_result(total_length, cuts, panna_size, exact=True)

        if priority:
            cuts = self.search_candidates(total_length, priority + optional, relax_priority=True)
            if cuts is not None:
                logger.debug("Zero-leftover combination only reachable by dropping a priority size")
                return self._build_result(total_length, cuts, panna_size, exact=True)
        return None

    def fallback(self, total_length: float, sizes: Sequence[FabricSize], panna_size: float = DEFAULT_PANNA_SIZE) -> CalculationResult:
        """
        Best-effort fill: first meet demand-proportional targets, then keep adding
        the first size that still fits until nothing fits anymore.
        """
        if not sizes:
            return self._build_result(total_length, [], panna_size)

        tol = self.settings.tolerance
        ordered = sorted(sizes, key=lambda s: (not self.is_priority(s), -s.probability, -s.size))
        estimated_pieces = math.floor(total_length / self.settings.average_piece_length)

        remaining = total_length
        pieces: Dict[float, int] = {}

        for item in ordered:
            target = max(1 if self.is_priority(item) else 0, round_half_up(estimated_pieces * item.probability))
            take = min(self.fits(remaining, item.size), target)
            if take > 0:
                pieces[item.size] = take
                remaining -= take * item.size

        smallest = min(s.size for s in ordered)
        while remaining + tol >= smallest:
            added = False
            for item in ordered:
                if remaining + tol >= item.size:
                    pieces[item.size] = pieces.get(item.size, 0) + 1
                    remaining -= item.size
                    added = True
                    break
            if not added:
                break

        cuts = [CutResult(size, n, size * n) for size, n in pieces.items() if n > 0]
        return self._build_result(total_length, cuts, panna_size)

    @staticmethod
    def _build_result(total_length: float, cuts: List[CutResult], panna_size: float, exact: bool = False) -> CalculationResult:
        cuts = sorted(cuts, key=lambda c: c.size, reverse=True)
        if exact:
            return CalculationResult(cuts, 0.0, round(total_length, 3), panna_size)
        used = sum(c.total for c in cuts)
        leftover = max(0.0, round(total_length - used, 3))
        return CalculationResult(cuts, leftover, round(used, 3), panna_size)

    def calculate(self, total_length, sizes: Optional[Sequence[FabricSize]] = None, panna_size: float = DEFAULT_PANNA_SIZE) -> CalculationResult:
        length = DemandNormalizer.coerce_length(total_length)
        if length is None:
            return CalculationResult(panna_size=panna_size)

        catalogue = DemandNormalizer.normalize(DEFAULT_FABRIC_SIZES if sizes is None else sizes)
        result = self.find_exact(length, catalogue, panna_size)
        if result is None:
            logger.info("No zero-leftover combination for %.3f m, using fallback fill", length)
            result = self.fallback(length, catalogue, panna_size)
        return result


def calculate_optimal_cuts(total_length, sizes: Optional[Sequence[FabricSize]] = None,
                           panna_size: float = DEFAULT_PANNA_SIZE,
                           settings: Optional[SearchSettings] = None) -> CalculationResult:
    return CutOptimizer(settings).calculate(total_length, sizes, panna_size)
