"""Output generation for telework schedules (text, PDF)."""

from teleplan.output.pdf_report import PDFReportGenerator
from teleplan.output.text_report import TextReportGenerator

__all__ = [
    "PDFReportGenerator",
    "TextReportGenerator",
]
