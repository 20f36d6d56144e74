"""
Reporting and Export Module for Shift Reminder Engine

Builds a reminder status report for upcoming shifts (when each reminder
window opens, whether it is open now, whether the reminder went out) and
exports it to CSV, Excel or PDF.
"""

import pandas as pd
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, List, Optional
import logging

from .data_manager import ShiftRecord, ShiftStore
from .date_utils import Clock, format_date, system_clock
from .reminder_logic import ReminderTracker, is_eligible

logger = logging.getLogger(__name__)

REPORT_COLUMNS = [
    "Shift ID", "Employee", "Role", "Date", "Start", "End", "Status",
    "Shift Start", "Reminder Opens", "Hours Until Start", "Eligible Now", "Reminder Sent"
]


def upcoming_shifts(shifts: List[ShiftRecord], now: datetime) -> List[ShiftRecord]:
    """Shifts dated today or later, ordered by start"""
    today = format_date(now)
    return sorted((s for s in shifts if s.date >= today), key=lambda s: s.start_datetime())


class ReminderReportGenerator:
    """Generates reminder status reports from the shift store"""

    def __init__(self, store: ShiftStore, tracker: ReminderTracker,
                 clock: Optional[Clock] = None):
        self.store = store
        self.tracker = tracker
        self.clock = clock or system_clock
        self.styles = getSampleStyleSheet()
        self.styles.add(ParagraphStyle(
            name='ReportTitle',
            parent=self.styles['Heading1'],
            fontSize=18,
            spaceAfter=20,
            alignment=1  # Center alignment
        ))

    def build_reminder_dataframe(self) -> pd.DataFrame:
        """One row per shift dated today or later"""
        now = self.clock()
        lead_time = self.store.get_notification_preferences().lead_time

        rows = []
        for shift in upcoming_shifts(self.store.get_shifts(), now):
            start = shift.start_datetime()
            rows.append({
                "Shift ID": shift.id,
                "Employee": shift.employee_name,
                "Role": shift.role,
                "Date": shift.date,
                "Start": shift.start_time,
                "End": shift.end_time,
                "Status": shift.status,
                "Shift Start": start,
                "Reminder Opens": start - timedelta(hours=lead_time.hours),
                "Hours Until Start": round((start - now).total_seconds() / 3600, 2),
                "Eligible Now": is_eligible(now, shift, lead_time),
                "Reminder Sent": self.tracker.has_fired(shift.id)
            })

        return pd.DataFrame(rows, columns=REPORT_COLUMNS)

    def build_summary_dataframe(self, reminders: pd.DataFrame) -> pd.DataFrame:
        preferences = self.store.get_notification_preferences()
        data = [
            ["Generated At", self.clock().strftime("%Y-%m-%d %H:%M")],
            ["Notifications Enabled", preferences.enabled],
            ["Reminders Enabled", preferences.reminder_type_enabled],
            ["Lead Time", preferences.lead_time.value],
            ["Upcoming Shifts", len(reminders)],
            ["Eligible Now", int(reminders["Eligible Now"].sum()) if not reminders.empty else 0],
            ["Reminders Sent", int(reminders["Reminder Sent"].sum()) if not reminders.empty else 0],
        ]
        return pd.DataFrame(data, columns=["Metric", "Value"])

    def export_csv(self, output_path: str) -> bool:
        try:
            self.build_reminder_dataframe().to_csv(output_path, index=False)
            return True
        except Exception as e:
            logger.error(f"Error creating CSV: {e}", exc_info=True)
            return False

    def export_excel(self, output_path: str) -> bool:
        try:
            reminders = self.build_reminder_dataframe()
            summary = self.build_summary_dataframe(reminders)
            with pd.ExcelWriter(output_path, engine='openpyxl') as writer:
                reminders.to_excel(writer, sheet_name='Reminders', index=False)
                summary.to_excel(writer, sheet_name='Summary', index=False)
                self._format_excel_worksheets(writer)
            return True
        except Exception as e:
            logger.error(f"Error creating Excel file: {e}", exc_info=True)
            return False

    def _format_excel_worksheets(self, writer):
        """Widen columns to fit their contents"""
        for worksheet in writer.sheets.values():
            for column_cells in worksheet.columns:
                width = max(len(str(cell.value)) if cell.value is not None else 0 for cell in column_cells)
                worksheet.column_dimensions[column_cells[0].column_letter].width = min(width + 2, 40)

    def export_pdf(self, output_path: str) -> bool:
        try:
            doc = SimpleDocTemplate(
                output_path,
                pagesize=landscape(A4),
                rightMargin=0.5*inch,
                leftMargin=0.5*inch,
                topMargin=0.5*inch,
                bottomMargin=0.5*inch
            )

            reminders = self.build_reminder_dataframe()
            summary = self.build_summary_dataframe(reminders)

            story = [
                Paragraph("Shift Reminder Report", self.styles['ReportTitle']),
                self._create_table([["Metric", "Value"]] + summary.astype(str).values.tolist()),
                Spacer(1, 20),
            ]

            if reminders.empty:
                story.append(Paragraph("No upcoming shifts.", self.styles['Normal']))
            else:
                columns = ["Employee", "Role", "Date", "Start", "Reminder Opens", "Eligible Now", "Reminder Sent"]
                table_rows = [columns]
                for _, row in reminders.iterrows():
                    table_rows.append([
                        row["Employee"], row["Role"], row["Date"], row["Start"],
                        row["Reminder Opens"].strftime("%Y-%m-%d %H:%M"),
                        "Yes" if row["Eligible Now"] else "No",
                        "Yes" if row["Reminder Sent"] else "No"
                    ])
                story.append(self._create_table(table_rows))

            doc.build(story)
            return True

        except Exception as e:
            logger.error(f"Error creating PDF: {e}", exc_info=True)
            return False

    def _create_table(self, data: List[List[str]]) -> Table:
        table = Table(data)
        table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), colors.grey),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 9),
            ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.black),
            ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.lightgrey]),
        ]))
        return table


class ExportManager:
    """Manager class for handling all export operations"""

    def __init__(self, store: ShiftStore, tracker: ReminderTracker,
                 clock: Optional[Clock] = None):
        self.report_generator = ReminderReportGenerator(store, tracker, clock)

    def export(self, format_type: str, output_path: str) -> bool:
        """Export the reminder report in the given format"""
        if format_type.lower() == 'pdf':
            return self.report_generator.export_pdf(output_path)
        elif format_type.lower() == 'excel':
            return self.report_generator.export_excel(output_path)
        elif format_type.lower() == 'csv':
            return self.report_generator.export_csv(output_path)
        else:
            raise ValueError(f"Unsupported format: {format_type}")

    def get_default_filename(self, format_type: str) -> str:
        timestamp = self.report_generator.clock().strftime("%Y%m%d_%H%M%S")
        extension = 'xlsx' if format_type.lower() == 'excel' else format_type.lower()
        return f"shift_reminders_{timestamp}.{extension}"

    def batch_export(self, output_dir: str, formats: List[str] = None) -> Dict[str, bool]:
        """Export the report in several formats"""
        if formats is None:
            formats = ['pdf', 'excel', 'csv']

        results = {}
        output_path = Path(output_dir)
        output_path.mkdir(parents=True, exist_ok=True)

        for format_type in formats:
            file_path = output_path / self.get_default_filename(format_type)
            try:
                results[format_type] = self.export(format_type, str(file_path))
            except ValueError as e:
                logger.error(f"Error exporting {format_type}: {e}", exc_info=True)
                results[format_type] = False

        return results
