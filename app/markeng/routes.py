from flask import Blueprint, g, redirect, render_template, url_for

from app.markeng.constants import SYSTEM_NAME, SYSTEM_VERSION

bp = Blueprint("routes", __name__)


@bp.get("/")
def index():
    if getattr(g, "current_user", None):
        return redirect(url_for("admin.index"))
    return render_template("public/index.html", system_name=SYSTEM_NAME, version=SYSTEM_VERSION)


@bp.get("/health")
def health():
    return {"ok": True, "version": SYSTEM_VERSION}


@bp.get("/healthz")
def healthz():
    """Probe endpoint; no DB access."""
    return "ok", 200
