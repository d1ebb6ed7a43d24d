"""Page shell — ``/`` and ``/login``.

Both pages read the signed-in user from the access-token cookie that
``POST /api/v1/auth/login`` sets (resolved by the JWT middleware).
"""

from flask import Blueprint, g, redirect, render_template, url_for

pages_bp = Blueprint("pages_bp", __name__)


def _signed_in() -> bool:
    return getattr(g, "jwt_user_id", None) is not None


@pages_bp.route("/")
def index():
    if not _signed_in():
        return redirect(url_for("pages_bp.login_page"))
    return render_template("index.html", email=g.jwt_email)


@pages_bp.route("/login")
def login_page():
    if _signed_in():
        return redirect(url_for("pages_bp.index"))
    return render_template("login.html")
