import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
from io import BytesIO
from datetime import datetime

from modules.models import CalculationResult

# Optional Imports
try:
    from fpdf import FPDF
    from fpdf.enums import XPos, YPos
    PDF_AVAILABLE = True
except (ImportError, ModuleNotFoundError):
    PDF_AVAILABLE = False

SIZE_COLORS = ['#3b82f6', '#10b981', '#8b5cf6', '#f59e0b', '#f43f5e', '#6366f1']


def format_length(value: float) -> str:
    """2.0 -> '2', 2.25 -> '2.25', 2.5 -> '2.5'"""
    if value == int(value):
        return str(int(value))
    return f"{value:.2f}".rstrip('0').rstrip('.')


class Visualizer:
    @staticmethod
    def plot_cut_plan(result: CalculationResult, total_length: float):
        """
        Draws the roll as one horizontal bar, one segment per piece.
        """
        if not result.cuts: return None

        pieces = []
        colors = []
        for i, cut in enumerate(result.cuts):
            pieces.extend([cut.size] * cut.pieces)
            colors.extend([SIZE_COLORS[i % len(SIZE_COLORS)]] * cut.pieces)
        starts = np.concatenate(([0.0], np.cumsum(pieces)[:-1]))

        fig, ax = plt.subplots(figsize=(10, 1.8))
        ax.barh(0, total_length, height=0.6, color='#f1f5f9', edgecolor='#cbd5e1', linewidth=1)
        ax.barh(np.zeros(len(pieces)), pieces, height=0.6, left=starts, color=colors, edgecolor='white')

        for start, length in zip(starts, pieces):
            if length > total_length * 0.03:
                ax.text(start + length / 2, 0, format_length(length), ha='center', va='center', color='white', fontsize=8, fontweight='bold')

        if result.leftover > 0:
            ax.text(total_length, 0.45, f"Leftover: {result.leftover:.3f} m", ha='right', va='bottom', color='#94a3b8', fontsize=8)

        ax.set_yticks([])
        ax.set_xlabel("Length (m)")
        ax.set_xlim(0, total_length * 1.02)
        ax.set_ylim(-0.5, 0.9)
        plt.tight_layout()
        plt.close(fig)
        return fig


class Exporter:
    @staticmethod
    def clean_text_for_pdf(text: str) -> str:
        if not isinstance(text, str): return str(text)
        replacements = {
            "€": "EUR", "–": "-", "—": "-", "“": '"', "”": '"', "’": "'", "‘": "'", "×": "x", "²": "2"
        }
        for k, v in replacements.items():
            text = text.replace(k, v)
        return text

    @staticmethod
    def cuts_to_dataframe(result: CalculationResult) -> pd.DataFrame:
        rows = [{"Size (m)": c.size, "Pieces": c.pieces, "Total (m)": round(c.total, 3)} for c in result.cuts]
        return pd.DataFrame(rows, columns=["Size (m)", "Pieces", "Total (m)"])

    @staticmethod
    def to_excel(result: CalculationResult, total_length: float) -> bytes:
        output = BytesIO()
        summary = pd.DataFrame([
            {"Field": "Total length (m)", "Value": total_length},
            {"Field": "Total used (m)", "Value": result.total_used},
            {"Field": "Total pieces", "Value": result.total_pieces},
            {"Field": "Leftover (m)", "Value": result.leftover},
            {"Field": "Panna (cm)", "Value": result.panna_size},
            {"Field": "Fabric area (m²)", "Value": result.fabric_area},
        ])
        with pd.ExcelWriter(output, engine='openpyxl') as writer:
            Exporter.cuts_to_dataframe(result).to_excel(writer, index=False, sheet_name='Cuts')
            summary.to_excel(writer, index=False, sheet_name='Summary')
        return output.getvalue()

    @staticmethod
    def to_pdf_cutlist(result: CalculationResult, total_length: float, title: str = "Fabric roll") -> bytes:
        if not PDF_AVAILABLE: return b""
        pdf = FPDF(orientation='P', unit='mm', format='A4')
        pdf.add_page()
        pdf.set_font("Helvetica", 'B', 16)
        pdf.cell(0, 10, f"Cut list: {Exporter.clean_text_for_pdf(title)}", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.set_font("Helvetica", 'I', 10)
        pdf.cell(0, 5, f"Created: {datetime.now().strftime('%d.%m.%Y %H:%M')}", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.ln(5)

        cols = ["Size (m)", "Pieces", "Total (m)"]
        widths = [50, 40, 50]
        pdf.set_font("Helvetica", 'B', 10)
        for i, c in enumerate(cols): pdf.cell(widths[i], 8, c, border=1)
        pdf.ln()
        pdf.set_font("Helvetica", size=10)
        for cut in result.cuts:
            vals = [format_length(cut.size), str(cut.pieces), f"{cut.total:.3f}"]
            for i, v in enumerate(vals):
                pdf.cell(widths[i], 8, v, border=1)
            pdf.ln()
        pdf.ln(5)

        def row_cell(lbl, val):
            pdf.cell(60, 8, Exporter.clean_text_for_pdf(lbl), border=1)
            pdf.cell(0, 8, Exporter.clean_text_for_pdf(str(val)), border=1, new_x=XPos.LMARGIN, new_y=YPos.NEXT)

        row_cell("Total length:", f"{total_length:.3f} m")
        row_cell("Total used:", f"{result.total_used:.3f} m")
        row_cell("Total pieces:", result.total_pieces)
        row_cell("Leftover:", f"{result.leftover:.3f} m" + (" (perfect cut)" if result.is_perfect else ""))
        row_cell("Panna / fabric area:", f"{format_length(result.panna_size)} cm / {result.fabric_area:.3f} m²")
        return bytes(pdf.output())
