"""
Main routes.

Simple landing redirect.
"""

from flask import Blueprint, redirect, url_for

main_bp = Blueprint("main", __name__)


@main_bp.route("/")
def index():
    """Redirect root to the admin page."""
    return redirect(url_for("admin.index"))
