"""Web front end for toggl2sheet.

A lightweight Flask app with two endpoints:
- /current: the timesheet as an HTML page
- /timesheet: the timesheet as JSON

Both accept the optional query parameters ``start``, ``end`` (YYYY-MM-DD)
and ``grouping`` (NONE, PROJECT, CUSTOMER, TITLE, SINGLE).
"""

import logging
from datetime import date
from typing import Any, Callable, Optional

from flask import Flask, Response, jsonify, request

from toggl2sheet.core.errors import TimesheetError
from toggl2sheet.reporting.formatter import HtmlFormatter, timesheet_to_dict
from toggl2sheet.reporting.summary import build_timesheet

logger = logging.getLogger(__name__)


def create_flask_app(
    config: dict[str, Any],
    today: Optional[Callable[[], date]] = None,
) -> Flask:
    """Create the app serving timesheets for *config*.

    *today* returns the reference day for default ranges; when omitted the
    current day in the configured time zone is used.  *config* is only
    read, every request builds its own pipeline from it.
    """
    app = Flask(__name__)

    def _timesheet_from_args():
        return build_timesheet(
            config,
            start=request.args.get("start"),
            end=request.args.get("end"),
            grouping=request.args.get("grouping"),
            today=today() if today else None,
        )

    @app.errorhandler(TimesheetError)
    def handle_timesheet_error(exc: TimesheetError):
        logger.warning("%s %s failed: %s", request.method, request.full_path, exc)
        return jsonify({"error": str(exc)}), exc.status_code

    @app.route("/current")
    def current():
        timesheet = _timesheet_from_args()
        return Response(HtmlFormatter.render(timesheet), mimetype="text/html")

    @app.route("/timesheet")
    def timesheet():
        return jsonify(timesheet_to_dict(_timesheet_from_args()))

    return app


def run_server(config: dict[str, Any]) -> None:
    """Serve the app on the configured host/port until interrupted."""
    flask_app = create_flask_app(config)
    host = config.get("host", "127.0.0.1")
    port = int(config.get("port", 5000))
    logger.info("Serving timesheets at http://%s:%d", host, port)
    flask_app.run(host=host, port=port, debug=False, use_reloader=False, threaded=True)
