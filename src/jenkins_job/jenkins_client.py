"""Jenkins client wrapper with environment-based configuration.

The job model talks to Jenkins through :class:`JenkinsTransport`, a thin
layer over ``jenkins.Jenkins.jenkins_request`` that returns raw XML for
reads and classifies the outcome of writes.
"""

from __future__ import annotations

import enum
import logging
import os
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import jenkins
import requests

from jenkins_job.errors import TransportFailure

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 10.0
XML_HEADERS = {"Content-Type": "text/xml; charset=utf-8"}


def _float_env(name: str, default: float | None) -> float | None:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}") from None


def get_client() -> jenkins.Jenkins:
    """Create a Jenkins client from environment variables.

    Environment variables:
        JENKINS_URL: Jenkins server URL (required)
        JENKINS_USERNAME: Jenkins username (optional)
        JENKINS_API_TOKEN: Jenkins API token (optional)
        JENKINS_TIMEOUT: Request timeout in seconds (optional)

    Returns:
        A configured Jenkins client instance.

    Raises:
        ValueError: If JENKINS_URL is not set or JENKINS_TIMEOUT is invalid.
    """
    url = os.environ.get("JENKINS_URL")
    if not url:
        raise ValueError(
            "JENKINS_URL environment variable is required. "
            "Please set it to your Jenkins server URL."
        )
    username = os.environ.get("JENKINS_USERNAME", "")
    token = os.environ.get("JENKINS_API_TOKEN", "")
    timeout = _float_env("JENKINS_TIMEOUT", None)
    if timeout is None:
        return jenkins.Jenkins(url, username=username, password=token)
    return jenkins.Jenkins(url, username=username, password=token, timeout=timeout)


def get_poll_interval() -> float:
    """Return the default completion poll interval (``JENKINS_POLL_INTERVAL``)."""
    interval = _float_env("JENKINS_POLL_INTERVAL", DEFAULT_POLL_INTERVAL)
    if interval < 0:
        raise ValueError("JENKINS_POLL_INTERVAL must not be negative")
    return interval


def job_path(name: str) -> str:
    """Return the server-relative path of a job, following folders.

    ``"team/app"`` becomes ``"job/team/job/app"``.
    """
    return "/".join(f"job/{quote(part, safe='')}" for part in name.split("/"))


class ResponseKind(enum.Enum):
    SUCCESS = "success"
    REDIRECTION = "redirection"
    OTHER = "other"


@dataclass(frozen=True)
class PostResponse:
    """Outcome of a POST request."""

    kind: ResponseKind
    status: int | None = None
    body: str = ""

    @property
    def ok(self) -> bool:
        """True for success and redirect responses."""
        return self.kind in (ResponseKind.SUCCESS, ResponseKind.REDIRECTION)


def classify(response: requests.Response) -> ResponseKind:
    """Classify a response; a followed redirect counts as a redirection."""
    if response.history or 300 <= response.status_code < 400:
        return ResponseKind.REDIRECTION
    if 200 <= response.status_code < 300:
        return ResponseKind.SUCCESS
    return ResponseKind.OTHER


class JenkinsTransport:
    """GET/POST access to Jenkins endpoints relative to the server URL."""

    def __init__(self, client: jenkins.Jenkins | None = None) -> None:
        self._client = client or get_client()

    @property
    def base_url(self) -> str:
        server = self._client.server
        return server if server.endswith("/") else server + "/"

    def url(self, path: str) -> str:
        return self.base_url + path.lstrip("/")

    def get_xml(self, path: str) -> str:
        """Fetch ``path`` and return the body decoded as UTF-8.

        Jenkins serves its XML as UTF-8, often without a charset in the
        content type, so the body is not left to ``requests`` to decode.

        Raises:
            TransportFailure: On network errors and HTTP error statuses.
        """
        url = self.url(path)
        logger.debug("GET %s", url)
        try:
            response = self._client.jenkins_request(requests.Request("GET", url))
        except (jenkins.JenkinsException, requests.exceptions.RequestException) as e:
            raise TransportFailure(f"GET {url} failed: {e}") from e
        return response.content.decode("utf-8", errors="replace")

    def post(self, path: str, data: dict[str, Any] | None = None) -> PostResponse:
        """POST form fields to ``path``."""
        return self._post(path, data=data)

    def post_xml(self, path: str, body: str) -> PostResponse:
        """POST an XML document to ``path``."""
        return self._post(path, data=body.encode("utf-8"), headers=dict(XML_HEADERS))

    def _post(self, path: str, **kwargs: Any) -> PostResponse:
        url = self.url(path)
        logger.info("POST %s", url)
        try:
            response = self._client.jenkins_request(requests.Request("POST", url, **kwargs))
        except jenkins.TimeoutException as e:
            raise TransportFailure(f"POST {url} timed out: {e}") from e
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            body = e.response.text if e.response is not None else str(e)
            logger.warning("POST %s rejected with status %s", url, status)
            return PostResponse(ResponseKind.OTHER, status, body)
        except jenkins.JenkinsException as e:
            # python-jenkins folds 401/403/404/500 into JenkinsException
            logger.warning("POST %s rejected: %s", url, e)
            return PostResponse(ResponseKind.OTHER, None, str(e))
        except requests.exceptions.RequestException as e:
            raise TransportFailure(f"POST {url} failed: {e}") from e
        return PostResponse(classify(response), response.status_code, response.text)
