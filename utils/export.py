"""
utils/export.py — Excel export of a bed layout using openpyxl.

Generates an .xlsx workbook with two sheets:
- "Layout": one square column per foot, each planting's footprint merged
  into a single block filled with its plant-type color
- "Plantings": one row per planting (name, position, footprint, lock, status)

The layout sheet is drawn from the same occupancy grid as the web page, so
footprints past the bed edge are clipped here too.
"""

from io import BytesIO
from openpyxl.styles import Font, PatternFill, Alignment, Border, Side
from openpyxl.utils import get_column_letter

from layout_engine import build_occupancy, footprint_for
from bed_workspace import type_colors


HEADER_FONT = Font(name='Calibri', bold=True, color='FFFFFF', size=11)
HEADER_FILL = PatternFill(start_color='166534', end_color='166534', fill_type='solid')
HEADER_ALIGNMENT = Alignment(horizontal='center', vertical='center', wrap_text=True)
CELL_ALIGNMENT = Alignment(horizontal='center', vertical='center', wrap_text=True)
GRID_SIDE = Side(style='thin', color='CBD5E1')
GRID_BORDER = Border(left=GRID_SIDE, right=GRID_SIDE, top=GRID_SIDE, bottom=GRID_SIDE)
LOCKED_SIDE = Side(style='medium', color='000000')


def _fill(color):
    return PatternFill(start_color=color, end_color=color, fill_type='solid')


def _build_layout_sheet(ws, bed, plantings):
    """Draw the grid. Row 1 / column A hold 1-based foot markers."""
    cols, rows = bed.cols, bed.rows
    occupancy = build_occupancy(plantings, cols, rows)

    ws.column_dimensions['A'].width = 4
    for x in range(cols):
        letter = get_column_letter(x + 2)
        ws.column_dimensions[letter].width = 9
        marker = ws.cell(row=1, column=x + 2, value=x + 1)
        marker.font = HEADER_FONT
        marker.fill = HEADER_FILL
        marker.alignment = HEADER_ALIGNMENT

    for y in range(rows):
        ws.row_dimensions[y + 2].height = 48
        marker = ws.cell(row=y + 2, column=1, value=y + 1)
        marker.font = HEADER_FONT
        marker.fill = HEADER_FILL
        marker.alignment = HEADER_ALIGNMENT
        for x in range(cols):
            ws.cell(row=y + 2, column=x + 2).border = GRID_BORDER

    for y, row in enumerate(occupancy):
        for x, cell in enumerate(row):
            if cell.kind != 'anchor':
                continue
            planting = cell.planting
            fp = footprint_for(planting.spacing_inches)
            # Clip the merged block at the bed edge
            last_x = min(x + fp, cols) - 1
            last_y = min(y + fp, rows) - 1

            background, border, text = type_colors(planting.plant.plant_type if planting.plant else None)
            side = LOCKED_SIDE if planting.is_locked else Side(style='thin', color=border)
            owns_block = True
            for cy in range(y, last_y + 1):
                for cx in range(x, last_x + 1):
                    if occupancy[cy][cx].kind == 'empty' or occupancy[cy][cx].planting is not planting:
                        owns_block = False
                        continue
                    target = ws.cell(row=cy + 2, column=cx + 2)
                    target.fill = _fill(background)
                    target.border = Border(left=side, right=side, top=side, bottom=side)

            anchor = ws.cell(row=y + 2, column=x + 2)
            anchor.value = planting.plant.common_name if planting.plant else '?'
            anchor.font = Font(color=text, bold=True, size=9)
            anchor.alignment = CELL_ALIGNMENT

            # Overlapping footprints (never produced by the validator) stay unmerged
            if owns_block and (last_x > x or last_y > y):
                ws.merge_cells(
                    start_row=y + 2, start_column=x + 2,
                    end_row=last_y + 2, end_column=last_x + 2,
                )

    ws.freeze_panes = 'B2'


def _build_plantings_sheet(ws, plantings):
    columns = ['Plant', 'Type', 'Column', 'Row', 'Footprint (ft)', 'Locked', 'Status', 'Quantity']
    for col_idx, col_name in enumerate(columns, 1):
        cell = ws.cell(row=1, column=col_idx, value=col_name)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = HEADER_ALIGNMENT

    for row_idx, planting in enumerate(plantings, 2):
        fp = footprint_for(planting.spacing_inches)
        ws.cell(row=row_idx, column=1, value=planting.plant.common_name if planting.plant else '?')
        ws.cell(row=row_idx, column=2, value=(planting.plant.plant_type if planting.plant else None) or '')
        # Positions are shown 1-based, like the grid tooltips
        ws.cell(row=row_idx, column=3, value=planting.grid_x + 1 if planting.is_placed else None)
        ws.cell(row=row_idx, column=4, value=planting.grid_y + 1 if planting.is_placed else None)
        ws.cell(row=row_idx, column=5, value=f"{fp} x {fp}")
        ws.cell(row=row_idx, column=6, value='yes' if planting.is_locked else 'no')
        ws.cell(row=row_idx, column=7, value=planting.status)
        ws.cell(row=row_idx, column=8, value=planting.quantity)

    widths = [24, 12, 9, 9, 14, 9, 12, 10]
    for idx, width in enumerate(widths, 1):
        ws.column_dimensions[get_column_letter(idx)].width = width
    ws.freeze_panes = 'A2'


def generate_bed_excel(store, bed_id):
    """Generate an Excel workbook for one bed.

    Returns:
        (BytesIO buffer, filename) on success, (None, None) when the bed is
        missing or has no grid.
    """
    import openpyxl

    bed = store.get_bed(bed_id)
    if not bed or not bed.has_grid:
        return None, None

    plantings = store.list_plantings_for_bed(bed_id)

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = 'Layout'
    _build_layout_sheet(ws, bed, plantings)
    _build_plantings_sheet(wb.create_sheet('Plantings'), plantings)

    buffer = BytesIO()
    wb.save(buffer)
    buffer.seek(0)

    safe_name = ''.join(c if c.isalnum() else '_' for c in bed.name).strip('_') or 'bed'
    filename = f"layout_{safe_name}_{bed.id}.xlsx"
    return buffer, filename
