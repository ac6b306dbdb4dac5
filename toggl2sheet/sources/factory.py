"""Factory for creating the EntrySource a request reads from."""

from datetime import date

from toggl2sheet.core.errors import ConfigError
from toggl2sheet.core.models import SourceSettings
from toggl2sheet.sources.base import EntrySource


def create_source(settings: SourceSettings, since: date, until: date, tz) -> EntrySource:
    """Return the source matching *settings*.

    The reports API is used when a token is configured, otherwise the CSV
    export.  *since*/*until* window the API query; the CSV path reads the
    whole file.

    Raises:
        ConfigError: If neither source is configured.
    """
    if settings.api_token:
        from toggl2sheet.sources.api_source import ApiSource, TogglReportsClient
        client = TogglReportsClient.from_settings(settings)
        return ApiSource(client, settings.workspace_id, since, until, tz)

    if settings.csv_file_path:
        from toggl2sheet.sources.csv_source import CsvSource
        return CsvSource(settings.csv_file_path, tz, delimiter=settings.csv_delimiter)

    raise ConfigError("No source configured: set api_token or csv_file_path")
