"""
routes/export.py — Excel export of bed layouts.

Provides:
- GET /export/bed/<bed_id> — Download the bed layout as .xlsx
"""

from flask import Blueprint, jsonify, send_file

import database
from utils.export import generate_bed_excel

export_bp = Blueprint('export', __name__, url_prefix='/export')


@export_bp.route('/bed/<int:bed_id>')
def export_bed(bed_id):
    """Export a bed's grid and plantings as Excel."""
    buffer, filename = generate_bed_excel(database, bed_id)
    if not buffer:
        return jsonify({'success': False, 'error': 'No layout to export for this bed.'}), 404

    return send_file(
        buffer,
        as_attachment=True,
        download_name=filename,
        mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
    )
