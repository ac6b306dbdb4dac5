"""Toggl reports API client and the paginated entry source built on it.

Uses the "detailed" report endpoint, which answers one page at a time
together with the total number of matching items.
"""

import base64
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from toggl2sheet.core.errors import AuthFailed, MalformedInput, SourceUnavailable
from toggl2sheet.core.models import RawEntry, SourceSettings
from toggl2sheet.sources.base import EntrySource

logger = logging.getLogger(__name__)


@dataclass
class DetailedPage:
    """One page of a detailed report."""
    total_count: int
    data: list[dict[str, Any]] = field(default_factory=list)


class TogglReportsClient:
    """Minimal client for the Toggl reports API (v2)."""

    def __init__(
        self,
        api_token: str,
        base_url: str = "https://api.track.toggl.com/reports/api/v2",
        user_agent: str = "toggl2sheet",
        timeout: float = 30.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent
        self.timeout = timeout
        credentials = f"{api_token}:api_token".encode("utf-8")
        self._auth_header = "Basic " + base64.b64encode(credentials).decode("ascii")

    @classmethod
    def from_settings(cls, settings: SourceSettings) -> "TogglReportsClient":
        return cls(
            settings.api_token or "",
            base_url=settings.api_url,
            user_agent=settings.user_agent,
            timeout=settings.timeout_seconds,
        )

    def detailed(self, workspace_id: int, since: date, until: date) -> "DetailedReport":
        return DetailedReport(self, workspace_id, since, until)

    def get_json(self, path: str, params: dict[str, Any]) -> Any:
        """GET ``base_url + path`` and decode the JSON body.

        Raises:
            AuthFailed: the API answered 401 or 403.
            SourceUnavailable: any other HTTP or network failure.
            MalformedInput: the body is not JSON.
        """
        query = dict(params, user_agent=self.user_agent)
        url = f"{self.base_url}{path}?{urllib.parse.urlencode(query)}"
        req = urllib.request.Request(url, headers={
            "Authorization": self._auth_header,
            "User-Agent": self.user_agent,
            "Accept": "application/json",
        })
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                body = resp.read()
        except urllib.error.HTTPError as exc:
            if exc.code in (401, 403):
                raise AuthFailed(f"Toggl API rejected the token (HTTP {exc.code})") from exc
            raise SourceUnavailable(f"Toggl API answered HTTP {exc.code} for {path}") from exc
        except (urllib.error.URLError, OSError) as exc:
            raise SourceUnavailable(f"Toggl API unreachable: {exc}") from exc

        try:
            return json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise MalformedInput(f"Toggl API returned invalid JSON for {path}") from exc


class DetailedReport:
    """A detailed report query over ``[since, until]``; fetch with page()."""

    def __init__(self, client: TogglReportsClient, workspace_id: int, since: date, until: date) -> None:
        self.client = client
        self.workspace_id = workspace_id
        self.since = since
        self.until = until

    def page(self, number: int) -> DetailedPage:
        payload = self.client.get_json("/details", {
            "workspace_id": self.workspace_id,
            "since": self.since.isoformat(),
            "until": self.until.isoformat(),
            "page": number,
        })
        if not isinstance(payload, dict):
            raise MalformedInput("Toggl API returned an unexpected payload")
        try:
            total = int(payload["total_count"])
        except (KeyError, TypeError, ValueError) as exc:
            raise MalformedInput("Toggl API page lacks total_count") from exc
        data = payload.get("data") or []
        if not isinstance(data, list):
            raise MalformedInput("Toggl API page data is not a list")
        return DetailedPage(total_count=total, data=data)


def _parse_instant(value: Any, name: str) -> datetime:
    if not isinstance(value, str):
        raise MalformedInput(f"Toggl API item lacks {name}")
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        moment = datetime.fromisoformat(text)
    except ValueError as exc:
        raise MalformedInput(f"Toggl API item has invalid {name} {value!r}") from exc
    if moment.tzinfo is None:
        raise MalformedInput(f"Toggl API item {name} {value!r} lacks a UTC offset")
    return moment


def entry_from_item(item: dict[str, Any], tz) -> RawEntry:
    """Convert one detailed-report item into a RawEntry expressed in *tz*."""
    if not isinstance(item, dict):
        raise MalformedInput("Toggl API item is not an object")
    start = _parse_instant(item.get("start"), "start").astimezone(tz)
    end = _parse_instant(item.get("end"), "end").astimezone(tz)
    if end < start:
        raise MalformedInput(f"Toggl API item {item.get('id')} ends before it starts")
    return RawEntry(
        user=str(item.get("user") or item.get("uid") or ""),
        email=item.get("user_email") or "",
        client=item.get("client") or "",
        project=item.get("project") or "",
        task=item.get("task") or "",
        description=item.get("description") or "",
        billable=bool(item.get("is_billable", False)),
        start=start,
        end=end,
    )


class ApiSource(EntrySource):
    """Collects every page of a detailed report."""

    def __init__(self, client: TogglReportsClient, workspace_id: int, since: date, until: date, tz) -> None:
        self.client = client
        self.workspace_id = workspace_id
        self.since = since
        self.until = until
        self.tz = tz

    def produce(self) -> list[RawEntry]:
        report = self.client.detailed(self.workspace_id, self.since, self.until)
        entries: list[RawEntry] = []
        page_number = 1
        while True:
            page = report.page(page_number)
            logger.info("Reading from Toggl API: %d/%d", len(entries), page.total_count)
            if not page.data and len(entries) < page.total_count:
                raise MalformedInput(
                    f"Toggl API page {page_number} is empty with "
                    f"{len(entries)}/{page.total_count} items received"
                )
            entries.extend(entry_from_item(item, self.tz) for item in page.data)
            page_number += 1
            if len(entries) >= page.total_count:
                break
        return entries
