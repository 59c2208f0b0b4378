"""Server-wide listings: the job list and the build queue."""

from __future__ import annotations

import logging

from jenkins_job.jenkins_client import JenkinsTransport
from jenkins_job.projection import parse_document

logger = logging.getLogger(__name__)

JOBS_PATH = "api/xml"
QUEUE_PATH = "queue/api/xml"
ACTIVE_MARKER = "anime"


def _job_entries(transport: JenkinsTransport) -> list[tuple[str, str]]:
    _, root = parse_document(transport.get_xml(JOBS_PATH))
    entries = []
    for job in root.findall("job"):
        name = job.findtext("name")
        if name:
            entries.append((name, job.findtext("color") or ""))
    return entries


def list_jobs(transport: JenkinsTransport) -> list[str]:
    """Return the names of all jobs on the server."""
    return [name for name, _ in _job_entries(transport)]


def list_active_jobs(transport: JenkinsTransport) -> list[str]:
    """Return the names of jobs whose color carries the activity marker."""
    return [name for name, color in _job_entries(transport) if ACTIVE_MARKER in color]


class BuildQueue:
    """Snapshot of the server build queue, refreshed with :meth:`load`."""

    def __init__(self, transport: JenkinsTransport) -> None:
        self._transport = transport
        self._names: list[str] = []

    def load(self) -> None:
        _, root = parse_document(self._transport.get_xml(QUEUE_PATH))
        self._names = [name for name in (item.findtext("task/name") for item in root.findall("item")) if name]
        logger.debug("Build queue holds %d item(s)", len(self._names))

    def list(self) -> list[str]:
        """Return the job names in the last loaded snapshot."""
        return list(self._names)

    def __contains__(self, name: object) -> bool:
        return name in self._names
