"""Client-side model of a Jenkins job driven through the XML API."""

from jenkins_job.errors import (
    APIError,
    InvalidEdit,
    JenkinsJobError,
    MalformedDocument,
    TransportFailure,
)
from jenkins_job.job import Job
from jenkins_job.poller import CompletionPoller, PollOutcome, PollState
from jenkins_job.projection import ConfigField, ProjectKind, StringParameter

__all__ = [
    "APIError",
    "CompletionPoller",
    "ConfigField",
    "InvalidEdit",
    "JenkinsJobError",
    "Job",
    "MalformedDocument",
    "PollOutcome",
    "PollState",
    "ProjectKind",
    "StringParameter",
    "TransportFailure",
]
