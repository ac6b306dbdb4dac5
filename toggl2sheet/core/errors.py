"""Error kinds raised while building a timesheet.

Each kind carries the HTTP status the web layer answers with.
"""


class TimesheetError(Exception):
    """Base class for all request-aborting failures."""
    status_code = 500


class BadRequest(TimesheetError):
    """Unparseable date or grouping value."""
    status_code = 400


class ConfigError(TimesheetError):
    """No usable source configured, or an inconsistent date range."""
    status_code = 400


class SourceUnavailable(TimesheetError):
    """File missing, network failure, or non-2xx page fetch."""
    status_code = 502


class MalformedInput(TimesheetError):
    """The source delivered data that violates its contract."""
    status_code = 502


class AuthFailed(TimesheetError):
    """The upstream API rejected the token."""
    status_code = 502
