"""Export routes (bookings Excel export)."""
import io

from flask import Response, g, request
from flask_login import login_required
from openpyxl import Workbook
from openpyxl.cell.cell import MergedCell
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side

from models.booking import build_booking_filters, get_bookings_for_export
from models.booking_settings import get_or_create_booking_settings
from models.booking_state import describe_status
from utils.api_response import api_error
from utils.datetime_helpers import get_today
from utils.decorators import venue_access_required
from utils.results import ErrorKind

EXPORT_MIMETYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'

# (header, booking key, minimum column width)
EXPORT_COLUMNS = [
    ('Date', 'booking_date', 12),
    ('Start', 'start_time', 8),
    ('End', 'end_time', 8),
    ('Table', 'table_label', 8),
    ('Guest', 'guest_name', 22),
    ('Party', 'party_size', 8),
    ('Email', 'guest_email', 24),
    ('Phone', 'guest_phone', 16),
    ('Game', 'game_title', 18),
    ('Status', 'status', 14),
    ('Source', 'source', 10),
    ('Code', 'confirmation_code', 10),
]

CENTERED_COLUMNS = (1, 2, 3, 4, 6, 12)


def register_routes(bp):
    """Register export routes on the blueprint."""

    @bp.route('/venues/<int:venue_id>/bookings/export', methods=['GET'])
    @login_required
    @venue_access_required
    def export_bookings(venue_id):
        """
        Export a venue's bookings to Excel.

        Takes the same query params as the booking search; paging params
        are ignored and every matching booking is exported.
        """
        settings = get_or_create_booking_settings(venue_id)
        today = get_today(settings.get('timezone'))

        filters, error = build_booking_filters(request.args, today)
        if error:
            return api_error(error, code=ErrorKind.VALIDATION)

        bookings = get_bookings_for_export(venue_id, filters)
        output = build_bookings_workbook(g.venue['name'], bookings, filters)

        filename = f"bookings_{g.venue['slug']}_{today.isoformat()}.xlsx"
        return Response(
            output.getvalue(),
            mimetype=EXPORT_MIMETYPE,
            headers={'Content-Disposition': f'attachment; filename={filename}'}
        )


def _export_value(booking: dict, key: str):
    value = booking.get(key)
    if key == 'status' and value:
        return describe_status(value)
    if value is None or value == '':
        return '-'
    return value


def build_bookings_workbook(venue_name: str, bookings: list, filters: dict) -> io.BytesIO:
    """
    Bookings as a formatted Excel workbook.

    Args:
        venue_name: Shown in the title row
        bookings: Booking dicts from get_bookings_for_export
        filters: Filters used, summarised in the subtitle row

    Returns:
        BytesIO positioned at the start of the saved workbook
    """
    wb = Workbook()
    ws = wb.active
    ws.title = 'Bookings'

    # Styles
    header_font = Font(bold=True, color='FFFFFF', size=11)
    header_fill = PatternFill(start_color='2E4A3F', end_color='2E4A3F', fill_type='solid')
    header_alignment = Alignment(horizontal='center', vertical='center', wrap_text=True)
    thin_border = Border(
        left=Side(style='thin', color='D4D4D4'),
        right=Side(style='thin', color='D4D4D4'),
        top=Side(style='thin', color='D4D4D4'),
        bottom=Side(style='thin', color='D4D4D4')
    )
    data_alignment = Alignment(vertical='center')
    center_alignment = Alignment(horizontal='center', vertical='center')
    alt_fill = PatternFill(start_color='F5F5F5', end_color='F5F5F5', fill_type='solid')

    last_column = ws.cell(row=1, column=len(EXPORT_COLUMNS)).column_letter

    # Title row
    ws.merge_cells(f'A1:{last_column}1')
    title_cell = ws.cell(row=1, column=1, value=f'Bookings - {venue_name}')
    title_cell.font = Font(bold=True, size=14, color='2E4A3F')
    title_cell.alignment = Alignment(horizontal='center', vertical='center')

    # Subtitle with filter info
    subtitle_parts = []
    if filters.get('start_date') or filters.get('end_date'):
        subtitle_parts.append(
            f"Dates: {filters.get('start_date') or '...'} to {filters.get('end_date') or '...'}"
        )
    if filters.get('statuses'):
        subtitle_parts.append('Status: ' + ', '.join(describe_status(s) for s in filters['statuses']))
    if filters.get('search'):
        subtitle_parts.append(f"Search: {filters['search']}")
    subtitle_parts.append(f'Total: {len(bookings)} bookings')

    ws.merge_cells(f'A2:{last_column}2')
    subtitle_cell = ws.cell(row=2, column=1, value=' | '.join(subtitle_parts))
    subtitle_cell.font = Font(size=10, color='666666')
    subtitle_cell.alignment = Alignment(horizontal='center', vertical='center')

    # Headers (row 4)
    header_row = 4
    for col, (header, _, _) in enumerate(EXPORT_COLUMNS, 1):
        cell = ws.cell(row=header_row, column=col, value=header)
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = header_alignment
        cell.border = thin_border

    ws.freeze_panes = f'A{header_row + 1}'

    # Data rows
    for row_idx, booking in enumerate(bookings, header_row + 1):
        is_alt = (row_idx - header_row) % 2 == 0
        for col, (_, key, _) in enumerate(EXPORT_COLUMNS, 1):
            cell = ws.cell(row=row_idx, column=col, value=_export_value(booking, key))
            cell.border = thin_border
            cell.alignment = center_alignment if col in CENTERED_COLUMNS else data_alignment
            if is_alt:
                cell.fill = alt_fill

    # Column widths
    for col_cells in ws.columns:
        anchor_cell = next((c for c in col_cells if not isinstance(c, MergedCell)), None)
        if anchor_cell is None:
            continue

        max_length = EXPORT_COLUMNS[anchor_cell.column - 1][2]
        for cell in col_cells:
            if isinstance(cell, MergedCell) or cell.row < header_row:
                continue
            max_length = max(max_length, len(str(cell.value or '')))
        ws.column_dimensions[anchor_cell.column_letter].width = min(max_length + 3, 50)

    output = io.BytesIO()
    wb.save(output)
    output.seek(0)
    return output
