import unittest
import sys
import os

import matplotlib
matplotlib.use("Agg")
import pandas as pd

# Add parent directory to path to import modules
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from modules.models import CalculationResult, CutResult, DEFAULT_FABRIC_SIZES, FabricSize
from modules.optimization import calculate_optimal_cuts
from modules.ui import catalog_from_dataframe, catalog_to_dataframe
from modules.utils import Exporter, Visualizer, PDF_AVAILABLE, format_length

class TestFormatting(unittest.TestCase):
    def test_format_length(self):
        self.assertEqual(format_length(2.0), "2")
        self.assertEqual(format_length(2.25), "2.25")
        self.assertEqual(format_length(2.5), "2.5")

    def test_clean_text_for_pdf(self):
        self.assertEqual(Exporter.clean_text_for_pdf("3 × 2.5 m²"), "3 x 2.5 m2")
        self.assertEqual(Exporter.clean_text_for_pdf(5), "5")


class TestExporter(unittest.TestCase):
    def setUp(self):
        self.result = calculate_optimal_cuts(32.5)

    def test_cuts_to_dataframe(self):
        df = Exporter.cuts_to_dataframe(self.result)
        self.assertEqual(list(df.columns), ["Size (m)", "Pieces", "Total (m)"])
        self.assertEqual(df["Pieces"].sum(), self.result.total_pieces)
        self.assertAlmostEqual(df["Total (m)"].sum(), 32.5)

    def test_empty_result_dataframe(self):
        df = Exporter.cuts_to_dataframe(CalculationResult())
        self.assertTrue(df.empty)

    def test_to_excel(self):
        data = Exporter.to_excel(self.result, 32.5)
        # xlsx is a zip archive
        self.assertTrue(data.startswith(b"PK"))

    @unittest.skipUnless(PDF_AVAILABLE, "fpdf2 not installed")
    def test_to_pdf_cutlist(self):
        data = Exporter.to_pdf_cutlist(self.result, 32.5, "Roll A")
        self.assertTrue(data.startswith(b"%PDF"))


class TestVisualizer(unittest.TestCase):
    def test_plot_cut_plan(self):
        res = calculate_optimal_cuts(32.51)
        fig = Visualizer.plot_cut_plan(res, 32.51)
        self.assertIsNotNone(fig)

    def test_plot_empty(self):
        self.assertIsNone(Visualizer.plot_cut_plan(CalculationResult(), 1.0))


class TestCatalogTable(unittest.TestCase):
    def test_round_trip_keeps_sizes_and_demand(self):
        df = catalog_to_dataframe(DEFAULT_FABRIC_SIZES)
        self.assertEqual(list(df["class"][:3]), ["Priority"] * 3)
        self.assertAlmostEqual(df["share"].sum(), 100.0, delta=0.5)
        self.assertEqual(catalog_from_dataframe(df), list(DEFAULT_FABRIC_SIZES))

    def test_blank_rows_are_skipped(self):
        df = pd.DataFrame([
            {"size": 2.0, "weekly_demand": 3},
            {"size": None, "weekly_demand": None},
            {"size": 1.5, "weekly_demand": None},
        ])
        self.assertEqual(catalog_from_dataframe(df), [FabricSize(2.0, 3), FabricSize(1.5, 0)])

    def test_cut_result_is_value_object(self):
        self.assertEqual(CutResult(2.5, 2, 5.0), CutResult(2.5, 2, 5.0))

if __name__ == '__main__':
    unittest.main()
