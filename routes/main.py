"""
routes/main.py — Homepage.

Provides:
- GET / — Gardens with their beds, linking to each bed's layout page
"""

from flask import Blueprint, render_template

from database import get_gardens, get_beds_for_garden

main_bp = Blueprint('main', __name__)


@main_bp.route('/')
def index():
    """Homepage — every garden and its beds."""
    gardens = [
        {'garden': garden, 'beds': get_beds_for_garden(garden.id)}
        for garden in get_gardens()
    ]
    return render_template('index.html', gardens=gardens)
