"""Flask web interface for the finance tracker."""

from __future__ import annotations

import datetime as dt
import io
from functools import wraps
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import requests
from flask import (
    Flask,
    Response,
    g,
    jsonify,
    redirect,
    render_template,
    request,
    session,
    url_for,
)
from google.auth.exceptions import GoogleAuthError

from . import analytics as an
from .checks import CheckRunner, api_checks, data_validation_checks, persist_suite
from .config import PACKAGE_ROOT, PROJECT_ROOT, AppConfig
from .formatting import budget_status
from .goals import DEMO_GOALS, goal_analytics, goal_rows
from .models import CheckRun, User, db
from .records import parse_int
from .recommendations import recommend
from .reports import build_dashboard, export_payload, export_payload_csv, period_months
from .sheets import SheetsService
from .sources import GET_TYPES, POST_TYPES, PUT_TYPES, InvalidRecord, LocalSource, fetch_payload, write_payload
from .store import FinanceStore
from .validation import sanitize_chart_data

PROTECTED_PREFIXES = ("/dashboard", "/profile", "/budgeting", "/spending", "/analytics")


def _is_protected(path: str) -> bool:
    return any(path == p or path.startswith(p + "/") for p in PROTECTED_PREFIXES)


def _wants_json() -> bool:
    if request.is_json or request.path.startswith("/api/"):
        return True
    best = request.accept_mimetypes.best
    return best == "application/json"


def _safe_callback(target: Optional[str]) -> Optional[str]:
    if target and target.startswith("/") and target[1:2] not in ("/", "\\"):
        return target
    return None


def _unauthorized():
    if _wants_json():
        return jsonify({"error": "Authentication required"}), 401
    return redirect(url_for("signin", callbackUrl=request.path))


def login_required(view):
    @wraps(view)
    def wrapped_view(**kwargs):
        if g.user is None:
            return _unauthorized()
        return view(**kwargs)

    return wrapped_view


def _load_logged_in_user() -> None:
    user_id = session.get("user_id")
    if user_id is None:
        g.user = None
        return
    g.user = db.session.get(User, user_id)


def _guard_protected_paths():
    if _is_protected(request.path) and g.user is None:
        return _unauthorized()
    return None


def _categorize_error(exc: Exception) -> str:
    text = str(exc).lower()
    if isinstance(exc, GoogleAuthError) or "credential" in text or "private key" in text:
        return "Google Sheets configuration error. Please check your credentials."
    if isinstance(exc, requests.RequestException) or "network" in text or "timeout" in text:
        return "Network error. Please check your connection."
    if "permission" in text or "forbidden" in text or "403" in text:
        return "Permission denied. Please check spreadsheet sharing settings."
    return "Failed to process Google Sheets request"


def _period_args(clock) -> Tuple[int, int]:
    today = clock()
    month = parse_int(request.args.get("month"), today.month)
    year = parse_int(request.args.get("year"), today.year)
    return month, year


def create_app(
    config: Optional[AppConfig] = None,
    service: Optional[SheetsService] = None,
    config_path: Optional[str] = None,
    overrides: Optional[Dict] = None,
) -> Flask:
    config = config or AppConfig.load(_resolve_config_path(config_path))
    service = service or SheetsService(config)

    app = Flask(
        __name__,
        template_folder=str(PACKAGE_ROOT / "templates"),
    )
    app.config["SECRET_KEY"] = config.secret_key
    app.config["SQLALCHEMY_DATABASE_URI"] = config.database_url
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.config.update(overrides or {})
    app.extensions["finance_tracker.service"] = service

    db.init_app(app)
    app.before_request(_load_logged_in_user)
    app.before_request(_guard_protected_paths)
    with app.app_context():
        db.create_all()

    clock = service.clock

    def snapshot(month: int, year: int) -> Dict:
        prev_month, prev_year = an.previous_period(month, year)
        return {
            "income": service.get_monthly_income(month, year),
            "categories": service.get_budget_categories(month, year),
            "expenses": service.get_expenses(month, year),
            "previous_expenses": service.get_expenses(prev_month, prev_year),
            "previous_income": service.get_monthly_income(prev_month, prev_year),
            "assets": service.get_assets(),
            "historical": service.generate_historical_data(12),
        }

    # API

    @app.route("/api/sheets", methods=["GET"])
    def api_sheets_get():
        kind = request.args.get("type") or ""
        month, year = _period_args(clock)
        app.logger.info("GET /api/sheets type=%s month=%s year=%s", kind, month, year)
        if kind not in GET_TYPES:
            return jsonify({
                "error": "Invalid type parameter. Use: income, budget, expenses, assets, accounts, historical, or all"
            }), 400
        try:
            data = fetch_payload(service, kind, month, year)
        except Exception as exc:
            app.logger.exception("Sheets API error")
            return jsonify({"error": _categorize_error(exc), "details": str(exc)}), 500
        return jsonify({"data": data})

    def _write(method: str, allowed: Tuple[str, ...]):
        body = request.get_json(silent=True) or {}
        if not isinstance(body, dict):
            return jsonify({"error": "Request body must be a JSON object"}), 400
        kind, data = body.get("type"), body.get("data")
        app.logger.info("%s /api/sheets type=%s", method, kind)
        if not kind or data is None:
            return jsonify({"error": "Missing type or data"}), 400
        if kind not in allowed:
            return jsonify({"error": f"Invalid type parameter. Use: {', '.join(allowed)}"}), 400
        try:
            persisted = write_payload(service, method, kind, data)
        except InvalidRecord as exc:
            return jsonify({"error": "Invalid data", "details": exc.errors}), 400
        except Exception as exc:
            app.logger.exception("Sheets API error")
            return jsonify({"error": _categorize_error(exc), "details": str(exc)}), 500
        if not persisted:
            app.logger.warning("%s %s was not persisted", method, kind)
        return jsonify({"success": True, "persisted": persisted})

    @app.route("/api/sheets", methods=["POST"])
    def api_sheets_post():
        return _write("POST", POST_TYPES)

    @app.route("/api/sheets", methods=["PUT"])
    def api_sheets_put():
        return _write("PUT", PUT_TYPES)

    @app.route("/api/sheets/status")
    def api_sheets_status():
        return jsonify({
            "configured": service.is_configured,
            "mode": "sheets" if service.is_configured else "demo",
            "env": config.env_status(),
            "ranges": {
                "income": config.ranges.income,
                "budget": config.ranges.budget,
                "expenses": config.ranges.expenses,
                "assets": config.ranges.assets,
                "accounts": config.ranges.accounts,
                "settings": config.ranges.settings,
            },
        })

    @app.route("/api/export")
    def api_export():
        period = request.args.get("period") or "month"
        fmt = request.args.get("format") or "json"
        if fmt not in ("json", "csv"):
            return jsonify({"error": "Invalid format. Use: json or csv"}), 400
        try:
            period_months(period)
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400
        month, year = _period_args(clock)
        data = snapshot(month, year)
        payload = export_payload(
            period, month, year, data["income"], data["expenses"], data["categories"],
            data["assets"], data["historical"],
        )
        if fmt == "json":
            return jsonify(payload)
        buffer = io.StringIO()
        export_payload_csv(payload, buffer)
        filename = f"finance-{period}-{year}-{month:02d}.csv"
        return Response(
            buffer.getvalue(),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    # Auth

    @app.route("/auth/signin", methods=["GET", "POST"])
    def signin():
        callback = _safe_callback(request.values.get("callbackUrl")) or "/dashboard"
        if request.method == "GET":
            if g.user is not None:
                return redirect(callback)
            return render_template("signin.html", errors=[], callback=callback, email="")
        body = request.get_json(silent=True) if request.is_json else request.form
        body = body or {}
        if not isinstance(body, dict):
            return jsonify({"error": "Request body must be a JSON object"}), 400
        email = str(body.get("email") or "").strip()
        password = str(body.get("password") or "")
        if not email or not password:
            app.logger.info("Rejected sign-in with empty credentials")
            if _wants_json():
                return jsonify({"error": "CredentialsSignin"}), 401
            return redirect(url_for("auth_error", error="CredentialsSignin"))
        # Demo credentials path: any non-empty pair signs in.
        user = User.query.filter_by(email=email).first()
        if user is None:
            user = User(email=email, name=body.get("name") or email.split("@")[0])
            db.session.add(user)
        user.last_login_at = dt.datetime.utcnow()
        db.session.commit()
        session.clear()
        session["user_id"] = user.id
        app.logger.info("User %s signed in", user.id)
        if _wants_json():
            return jsonify({"user": user.to_dict()})
        return redirect(callback)

    @app.route("/auth/signout", methods=["POST"])
    @login_required
    def signout():
        session.clear()
        if _wants_json():
            return jsonify({"success": True})
        return redirect(url_for("signin"))

    @app.route("/auth/error")
    def auth_error():
        error = request.args.get("error") or "Default"
        messages = {
            "CredentialsSignin": "Sign in failed. Check the details you provided are correct.",
            "AccessDenied": "You do not have permission to sign in.",
        }
        message = messages.get(error, "Unable to sign in.")
        if _wants_json():
            return jsonify({"error": error, "message": message}), 401
        return render_template("signin.html", errors=[message], callback="/dashboard", email=""), 401

    # Protected views

    @app.route("/dashboard")
    def dashboard():
        month, year = _period_args(clock)
        data = snapshot(month, year)
        payload = build_dashboard(
            month, year, data["income"], data["categories"], data["expenses"], data["assets"], data["historical"],
        )
        payload["accounts"] = [a.to_dict() for a in service.get_bank_accounts()]
        payload["demoMode"] = not service.is_configured
        return jsonify(payload)

    @app.route("/budgeting")
    def budgeting():
        month, year = _period_args(clock)
        data = snapshot(month, year)
        rows = []
        for row in an.budget_variances(data["categories"], data["expenses"]):
            row["status"] = budget_status(row["usage"])
            rows.append(row)
        return jsonify({
            "month": month,
            "year": year,
            "categories": [c.to_dict() for c in data["categories"]],
            "variance": rows,
            "spentDrift": an.reconcile_spent(data["categories"], data["expenses"]),
            "goals": goal_rows(DEMO_GOALS, clock(), request.args.get("goalCategory") or "all"),
            "goalAnalytics": goal_analytics(DEMO_GOALS),
        })

    @app.route("/spending")
    def spending():
        month, year = _period_args(clock)
        data = snapshot(month, year)
        expenses = data["expenses"]
        category = request.args.get("category")
        if category:
            expenses = [e for e in expenses if e.category == category]
        return jsonify({
            "month": month,
            "year": year,
            "expenses": [e.to_dict() for e in expenses],
            "total": an.total_expenses(expenses),
            "categoryTotals": an.category_totals(expenses),
            "expensesByCategory": sanitize_chart_data(an.expenses_by_category(expenses, data["categories"])),
        })

    @app.route("/analytics")
    def analytics_view():
        period = request.args.get("period") or "month"
        try:
            months = period_months(period)
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400
        month, year = _period_args(clock)
        data = snapshot(month, year)
        trends = an.trend_analysis(data["historical"], data["categories"], data["expenses"], month, year)
        trends["riskLabel"] = an.risk_label(trends["riskScore"])
        recs = recommend(
            data["income"], data["expenses"], data["categories"], data["assets"], data["previous_expenses"],
            data["previous_income"],
            suppress=request.args.getlist("dismiss"),
        )
        return jsonify({
            "period": period,
            "month": month,
            "year": year,
            "monthlyTrend": sanitize_chart_data(an.monthly_trend(data["historical"], month, year, months=months)),
            "trendAnalysis": trends,
            "healthScores": an.health_scores(data["income"], data["expenses"], data["assets"]),
            "categoryScores": an.category_scores(data["income"], data["expenses"], data["categories"]),
            "recommendations": [r.to_dict() for r in recs],
        })

    @app.route("/profile")
    def profile():
        return jsonify({
            "user": g.user.to_dict(),
            "settings": service.get_settings().to_dict(),
            "accounts": [a.to_dict() for a in service.get_bank_accounts()],
        })

    @app.route("/dashboard/checks", methods=["GET", "POST"])
    def dashboard_checks():
        if request.method == "GET":
            runs = (
                CheckRun.query.filter_by(user_id=g.user.id)
                .order_by(CheckRun.created_at.desc(), CheckRun.id.desc())
                .limit(50)
                .all()
            )
            return jsonify({"runs": [r.to_dict() for r in runs]})
        source = LocalSource(service)
        store = FinanceStore(source, clock=clock)
        store.load_data()
        runner = CheckRunner()
        suites: List = [
            runner.run_suite("data-validation", data_validation_checks(store)),
            runner.run_suite("api", api_checks(source, store.current_month, store.current_year)),
        ]
        for suite in suites:
            persist_suite(suite, g.user.id)
        return jsonify({"suites": [s.to_dict() for s in suites]})

    return app


def _resolve_config_path(config_path: Optional[str]) -> Optional[Path]:
    if not config_path:
        return None
    path = Path(config_path)
    if path.is_absolute():
        return path
    return PROJECT_ROOT / path
