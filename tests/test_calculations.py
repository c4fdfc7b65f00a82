import unittest
import math
import sys
import os

# Add parent directory to path to import modules
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from modules.calculations import DemandNormalizer, PRIORITY_THRESHOLD
from modules.models import DEFAULT_FABRIC_SIZES, FabricSize, InvalidCatalogEntry

class TestDemandNormalizer(unittest.TestCase):
    def setUp(self):
        self.catalog = DemandNormalizer.normalize(DEFAULT_FABRIC_SIZES)

    def test_probabilities_sum_to_one(self):
        total = sum(s.probability for s in self.catalog)
        self.assertAlmostEqual(total, 1.0, places=9)

    def test_probability_is_demand_share(self):
        # 2.5m has 10 of 30 weekly sales
        self.assertAlmostEqual(self.catalog[0].probability, 10 / 30)
        self.assertAlmostEqual(self.catalog[5].probability, 1 / 30)

    def test_order_preserved_and_input_untouched(self):
        self.assertEqual([s.size for s in self.catalog], [s.size for s in DEFAULT_FABRIC_SIZES])
        self.assertTrue(all(s.probability == 0 for s in DEFAULT_FABRIC_SIZES))

    def test_zero_demand_gives_zero_probabilities(self):
        res = DemandNormalizer.normalize([FabricSize(2.0, 0), FabricSize(3.0, 0)])
        self.assertEqual([s.probability for s in res], [0.0, 0.0])
        self.assertFalse(any(DemandNormalizer.is_priority(s) for s in res))

    def test_empty_catalog(self):
        self.assertEqual(DemandNormalizer.normalize([]), [])

    def test_priority_classification(self):
        # 2.5 (33%), 3 (23%), 2.25 (16.7%) are priority, the rest optional
        priority, optional = DemandNormalizer.partition(self.catalog)
        self.assertEqual([s.size for s in priority], [2.5, 3.0, 2.25])
        self.assertEqual([s.size for s in optional], [2.0, 5.0, 1.0])

    def test_threshold_is_inclusive(self):
        item = FabricSize(2.0, 3, probability=PRIORITY_THRESHOLD)
        self.assertTrue(DemandNormalizer.is_priority(item))
        self.assertFalse(DemandNormalizer.is_priority(FabricSize(2.0, 3, probability=0.149)))

    def test_rejects_non_positive_size(self):
        with self.assertRaises(InvalidCatalogEntry):
            DemandNormalizer.normalize([FabricSize(0, 4)])
        with self.assertRaises(InvalidCatalogEntry):
            DemandNormalizer.normalize([FabricSize(-1.5, 4)])

    def test_rejects_non_finite_size(self):
        with self.assertRaises(InvalidCatalogEntry):
            DemandNormalizer.normalize([FabricSize(math.inf, 4)])

    def test_rejects_negative_demand(self):
        with self.assertRaises(InvalidCatalogEntry):
            DemandNormalizer.normalize([FabricSize(2.0, -1)])

    def test_rejects_duplicate_sizes(self):
        with self.assertRaises(InvalidCatalogEntry):
            DemandNormalizer.normalize([FabricSize(2.0, 1), FabricSize(2.0, 5)])

    def test_invalid_entry_is_value_error(self):
        self.assertTrue(issubclass(InvalidCatalogEntry, ValueError))


class TestCoerceLength(unittest.TestCase):
    def test_accepts_numbers_and_strings(self):
        self.assertEqual(DemandNormalizer.coerce_length(32.5), 32.5)
        self.assertEqual(DemandNormalizer.coerce_length("32.5"), 32.5)
        self.assertEqual(DemandNormalizer.coerce_length(" 32,5 "), 32.5)

    def test_rejects_unusable_input(self):
        for value in [0, -5, "abc", "", None, float("nan"), float("inf"), True]:
            self.assertIsNone(DemandNormalizer.coerce_length(value), value)

if __name__ == '__main__':
    unittest.main()
