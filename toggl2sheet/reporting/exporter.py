"""Report exporter for toggl2sheet.

Generates Word (.docx) timesheets using python-docx.
"""

import logging
import os

import pytz

from toggl2sheet.core.models import TimeSheet
from toggl2sheet.reporting.formatter import TextFormatter, headings, row_cells

logger = logging.getLogger(__name__)


class ReportExporter:
    """Exports a timesheet to a formatted Word document (.docx)."""

    def export_timesheet(self, timesheet: TimeSheet, output_path: str, user_name: str = "") -> str:
        """Generate a .docx file from *timesheet*.

        Args:
            timesheet: The timesheet to export.
            output_path: File path for the generated .docx file.
            user_name: Optional name printed below the title.

        Returns:
            The path to the generated file.

        Raises:
            ImportError: If python-docx is not installed.
        """
        try:
            from docx import Document
        except ImportError:
            raise ImportError(
                "python-docx is required for report export. "
                "Install it with: pip install python-docx"
            )

        parent_dir = os.path.dirname(output_path)
        if parent_dir:
            os.makedirs(parent_dir, exist_ok=True)

        doc = Document()
        self._add_title(doc, timesheet, user_name)

        doc.add_heading("Stundenzettel", level=1)
        self._add_row_table(doc, timesheet)

        doc.add_heading("Zusammenfassung", level=1)
        for line in TextFormatter.format_efforts(timesheet):
            doc.add_paragraph(line)

        for week, projects in timesheet.rollup.by_week_and_project.items():
            doc.add_heading(f"KW {week[1]}", level=2)
            self._add_week_table(doc, projects, timesheet.rollup.by_week[week])

        doc.save(output_path)
        logger.info("Exported timesheet with %d rows to %s", len(timesheet.rows), output_path)
        return output_path

    def _add_title(self, doc, timesheet: TimeSheet, user_name: str) -> None:
        """Add the report title, date range, and user name."""
        from docx.enum.text import WD_ALIGN_PARAGRAPH
        from docx.shared import Pt

        title_para = doc.add_paragraph()
        title_para.alignment = WD_ALIGN_PARAGRAPH.CENTER
        run = title_para.add_run("Stundenzettel")
        run.bold = True
        run.font.size = Pt(24)

        if timesheet.rows:
            first, last = timesheet.rows[0].day, timesheet.rows[-1].day
            date_para = doc.add_paragraph()
            date_para.alignment = WD_ALIGN_PARAGRAPH.CENTER
            run = date_para.add_run(f"{first.strftime('%d.%m.%Y')} - {last.strftime('%d.%m.%Y')}")
            run.font.size = Pt(14)

        if user_name:
            name_para = doc.add_paragraph()
            name_para.alignment = WD_ALIGN_PARAGRAPH.CENTER
            run = name_para.add_run(user_name)
            run.font.size = Pt(12)

    def _add_row_table(self, doc, timesheet: TimeSheet) -> None:
        tz = pytz.timezone(timesheet.request.timezone)
        columns = headings(timesheet.projects)

        table = doc.add_table(rows=1 + len(timesheet.rows), cols=len(columns))
        table.style = "Light Grid Accent 1"

        for cell, text in zip(table.rows[0].cells, columns):
            cell.text = text
        for i, row in enumerate(timesheet.rows, start=1):
            for cell, text in zip(table.rows[i].cells, row_cells(row, timesheet.projects, tz)):
                cell.text = text

        self._bold_row(table.rows[0])
        doc.add_paragraph()  # spacing after table

    def _add_week_table(self, doc, projects: dict[str, int], total_ms: int) -> None:
        fmt = TextFormatter.format_duration
        table = doc.add_table(rows=len(projects) + 1, cols=2)
        table.style = "Light Grid Accent 1"

        for i, (project, ms) in enumerate(projects.items()):
            cells = table.rows[i].cells
            cells[0].text = project
            cells[1].text = fmt(ms)

        total_row = table.rows[-1]
        total_row.cells[0].text = "Gesamt"
        total_row.cells[1].text = fmt(total_ms)
        self._bold_row(total_row)

    @staticmethod
    def _bold_row(row) -> None:
        for cell in row.cells:
            for paragraph in cell.paragraphs:
                for run in paragraph.runs:
                    run.bold = True
