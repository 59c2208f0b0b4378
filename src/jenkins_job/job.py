"""A Jenkins job mirrored from its ``api/xml`` and ``config.xml`` documents."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Sequence

from jenkins_job.errors import APIError, InvalidEdit, MalformedDocument
from jenkins_job.jenkins_client import JenkinsTransport, ResponseKind, get_poll_interval, job_path
from jenkins_job.listing import BuildQueue, list_active_jobs
from jenkins_job.poller import CompletionPoller, PollOutcome
from jenkins_job.projection import (
    KIND_FIELDS,
    STATUS_PATHS,
    ConfigField,
    ProjectKind,
    SkippedParameter,
    StringParameter,
    apply_field_edit,
    parse_config,
    parse_status,
)

logger = logging.getLogger(__name__)

CREATE_ITEM_PATH = "createItem"
NO_DELAY = {"delay": "0sec"}


class Job:
    """A named Jenkins job.

    Construction fetches the status and config documents; failures to reach
    the server propagate as :class:`~jenkins_job.errors.TransportFailure`.
    Config setters edit the retained config document and push all of it
    back. They return False when the job has no such node or when Jenkins
    rejects the push.

    Args:
        name: Job name; ``/`` separates folders.
        transport: Transport to use; defaults to one built from the environment.
        queue: Build queue view; defaults to one on the same transport.
        refresh_parameters_before_build: Re-read the status document before
            :meth:`build` decides between a plain and a parameterized build.
            Off by default, so routing follows the parameters seen at load.
    """

    def __init__(
        self,
        name: str,
        transport: JenkinsTransport | None = None,
        queue: BuildQueue | None = None,
        *,
        refresh_parameters_before_build: bool = False,
    ) -> None:
        self._name = name
        self._transport = transport or JenkinsTransport()
        self._queue = queue or BuildQueue(self._transport)
        self.refresh_parameters_before_build = refresh_parameters_before_build

        base = job_path(name)
        self._info_path = f"{base}/api/xml"
        self._config_path = f"{base}/config.xml"
        self._build_path = f"{base}/build"
        self._build_with_parameters_path = f"{base}/buildWithParameters"
        self._disable_path = f"{base}/disable"
        self._enable_path = f"{base}/enable"
        self._delete_path = f"{base}/doDelete"
        self._wipe_out_workspace_path = f"{base}/doWipeOutWorkspace"

        self.kind = ProjectKind.UNKNOWN
        self.color: str | None = None
        self.last_build: str | None = None
        self.last_completed_build: str | None = None
        self.last_failed_build: str | None = None
        self.last_stable_build: str | None = None
        self.last_successful_build: str | None = None
        self.last_unsuccessful_build: str | None = None
        self.next_build_number: str | None = None
        self.string_parameters: list[StringParameter] = []
        self.skipped_parameters: list[SkippedParameter] = []

        self.config = ""
        self.repository_url: str | None = None
        self.repository_urls: list[str] = []
        self.repository_browser_location: str | None = None
        self.description: str | None = None

        self.load_info()
        self.load_config()

    def __repr__(self) -> str:
        return f"Job({self._name!r})"

    @property
    def name(self) -> str:
        return self._name

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    def load_info(self) -> None:
        """Fetch ``api/xml`` and refresh the status fields and parameters."""
        status = parse_status(self._transport.get_xml(self._info_path))
        self.kind = status.kind
        for field_name in STATUS_PATHS:
            setattr(self, field_name, getattr(status, field_name))
        self.string_parameters = status.parameters.parameters
        self.skipped_parameters = status.parameters.skipped
        logger.debug(
            "Loaded %s: kind=%s, fields=%s, %d string parameter(s)",
            self._name,
            self.kind.value,
            KIND_FIELDS[self.kind],
            len(self.string_parameters),
        )

    def load_config(self) -> None:
        """Fetch ``config.xml`` and refresh the config fields."""
        config = self._transport.get_xml(self._config_path)
        self._project_config(config)
        self.config = config

    def reload(self) -> None:
        self.load_info()
        self.load_config()

    def _project_config(self, text: str) -> None:
        config = parse_config(text)
        self.repository_url = config.repository_url
        self.repository_urls = config.repository_urls
        self.repository_browser_location = config.repository_browser_location
        self.description = config.description

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    def update(self, config: str | None = None) -> bool:
        """Push ``config`` (or the retained config) to ``config.xml``.

        Returns False without pushing if ``config`` is not well-formed XML;
        the retained config is then left unchanged.
        """
        if config is not None:
            try:
                self._project_config(config)
            except MalformedDocument as e:
                logger.warning("Not updating %s: %s", self._name, e)
                return False
            self.config = config
        return self._transport.post_xml(self._config_path, self.config).ok

    def _edit(self, config_field: ConfigField, value: str | Sequence[str]) -> bool:
        try:
            config = apply_field_edit(self.config, config_field, value)
        except InvalidEdit as e:
            logger.warning("Not updating %s: %s", self._name, e)
            return False
        self._project_config(config)
        self.config = config
        return self.update()

    def set_repository_url(self, repository_url: str) -> bool:
        """Set the Subversion location of a single-location job."""
        if self.repository_url is None:
            logger.warning("Not updating %s: job has no repository location", self._name)
            return False
        return self._edit(ConfigField.REPOSITORY_URL, repository_url)

    def set_repository_urls(self, repository_urls: Sequence[str]) -> bool:
        """Set the Subversion locations in order.

        Only existing locations are rewritten: surplus URLs are dropped and
        locations past the end of ``repository_urls`` keep their value.
        A bare string is refused rather than split into characters.
        """
        if isinstance(repository_urls, str):
            logger.warning("Not updating %s: repository_urls must be a sequence, not a string", self._name)
            return False
        return self._edit(ConfigField.REPOSITORY_URLS, list(repository_urls))

    def set_repository_browser_location(self, location: str) -> bool:
        return self._edit(ConfigField.REPOSITORY_BROWSER_LOCATION, location)

    def set_description(self, description: str) -> bool:
        return self._edit(ConfigField.DESCRIPTION, description)

    def copy(self, new_name: str | None = None) -> Job:
        """Copy this job on the server and return the new job.

        Raises:
            APIError: If Jenkins does not answer with a redirect.
        """
        new_name = new_name or f"copy_of_{self._name}"
        response = self._transport.post(
            CREATE_ITEM_PATH, {"name": new_name, "mode": "copy", "from": self._name}
        )
        if response.kind is not ResponseKind.REDIRECTION:
            raise APIError(f"Error copying job {self._name}: {response.body}", response.body)
        logger.info("Copied %s to %s", self._name, new_name)
        return Job(
            new_name,
            self._transport,
            self._queue,
            refresh_parameters_before_build=self.refresh_parameters_before_build,
        )

    # ------------------------------------------------------------------
    # Builds
    # ------------------------------------------------------------------
    def has_string_params(self) -> bool:
        return bool(self.string_parameters)

    def build(self, params: dict[str, Any] | None = None) -> bool:
        """Trigger a build, with parameters if the job defines string parameters."""
        if self.refresh_parameters_before_build:
            self.load_info()
        if self.has_string_params():
            return self.build_with_string_params(params)
        return self.build_with_no_params()

    def build_with_no_params(self) -> bool:
        return self._transport.post(self._build_path, dict(NO_DELAY)).ok

    def build_payload(self, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Return the build form: no delay, parameter defaults, then ``params``."""
        payload: dict[str, Any] = dict(NO_DELAY)
        payload.update({p.name: p.value for p in self.string_parameters})
        payload.update(params or {})
        return payload

    def build_with_string_params(self, params: dict[str, Any] | None = None) -> bool:
        payload = self.build_payload(params)
        logger.info("Building %s with parameters %s", self._name, payload)
        return self._transport.post(self._build_with_parameters_path, payload).ok

    # ------------------------------------------------------------------
    # State and lifecycle
    # ------------------------------------------------------------------
    def is_active(self) -> bool:
        """True while the job's color in the job list marks a running build."""
        return self._name in list_active_jobs(self._transport)

    def is_queued(self) -> bool:
        """Refresh the build queue and report whether the job is in it."""
        self._queue.load()
        return self._name in self._queue

    def wait_for_build_to_finish(
        self,
        poll_interval: float | None = None,
        *,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
        sleep: Callable[[float], object] | None = None,
    ) -> PollOutcome:
        """Block until the job is neither building nor queued.

        Without ``timeout`` or ``cancel_event`` this waits indefinitely.
        """
        if poll_interval is None:
            poll_interval = get_poll_interval()
        poller = CompletionPoller(
            self.is_active,
            self.is_queued,
            poll_interval,
            sleep=sleep,
            cancel_event=cancel_event,
            timeout=timeout,
            label=self._name,
        )
        return poller.wait()

    def enable(self) -> bool:
        return self._transport.post(self._enable_path).ok

    def disable(self) -> bool:
        return self._transport.post(self._disable_path).ok

    def delete(self) -> bool:
        """Delete this job from the server."""
        return self._transport.post(self._delete_path).ok

    def wipe_out_workspace(self, poll_interval: float | None = None, **wait_kwargs: Any) -> bool:
        """Wait for running builds, then wipe the workspace.

        Returns False without wiping if the job is still active after waiting.
        """
        self.wait_for_build_to_finish(poll_interval, **wait_kwargs)
        if self.is_active():
            logger.warning("Not wiping %s: a build is still running", self._name)
            return False
        return self._transport.post(self._wipe_out_workspace_path).ok
