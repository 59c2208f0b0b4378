"""Jenkins Job MCP Server — inspect, reconfigure and build Jenkins jobs via MCP tools."""

from __future__ import annotations

from typing import Any

from fastmcp import FastMCP

from jenkins_job.errors import JenkinsJobError
from jenkins_job.jenkins_client import JenkinsTransport, get_client
from jenkins_job.job import Job

mcp = FastMCP("Jenkins Job MCP Server")


def _format_error(e: Exception) -> dict[str, Any]:
    """Format an exception into a consistent error response."""
    return {"error": True, "message": str(e)}


def _load_job(job_name: str) -> Job:
    return Job(job_name, JenkinsTransport(get_client()))


def _job_summary(job: Job) -> dict[str, Any]:
    return {
        "job_name": job.name,
        "kind": job.kind.value,
        "color": job.color,
        "last_build": job.last_build,
        "last_completed_build": job.last_completed_build,
        "last_failed_build": job.last_failed_build,
        "last_stable_build": job.last_stable_build,
        "last_successful_build": job.last_successful_build,
        "last_unsuccessful_build": job.last_unsuccessful_build,
        "next_build_number": job.next_build_number,
        "description": job.description,
        "repository_url": job.repository_url,
        "repository_urls": job.repository_urls,
        "repository_browser_location": job.repository_browser_location,
        "string_parameters": [
            {"name": p.name, "description": p.description, "default_value": p.value}
            for p in job.string_parameters
        ],
        "skipped_parameters": [
            {"index": s.index, "reason": s.reason} for s in job.skipped_parameters
        ],
    }


def _action_result(job_name: str, ok: bool, action: str) -> dict[str, Any]:
    if ok:
        return {"success": True, "job_name": job_name, "message": f"Job '{job_name}': {action} done."}
    return {"success": False, "job_name": job_name, "message": f"Job '{job_name}': {action} was rejected."}


# ---------------------------------------------------------------------------
# Tool 1: get_job
# ---------------------------------------------------------------------------
@mcp.tool
def get_job(job_name: str) -> dict[str, Any]:
    """Get the status, configuration fields and string parameters of a job.

    Args:
        job_name: Full name of the Jenkins job (use '/' for folder paths).

    Returns:
        A dict with the job kind, color, last build numbers, config fields
        and string parameter definitions.
    """
    try:
        job = _load_job(job_name)
        return {"success": True, **_job_summary(job)}
    except JenkinsJobError as e:
        return _format_error(e)
    except ValueError as e:
        return _format_error(e)


# ---------------------------------------------------------------------------
# Tool 2: update_job_config
# ---------------------------------------------------------------------------
@mcp.tool
def update_job_config(
    job_name: str,
    description: str | None = None,
    repository_url: str | None = None,
    repository_urls: list[str] | None = None,
    repository_browser_location: str | None = None,
) -> dict[str, Any]:
    """Change selected configuration fields of a job.

    Each given field is written separately; the whole config document is
    pushed back to Jenkins after every change.

    Args:
        job_name: Full name of the Jenkins job.
        description: New job description.
        repository_url: New Subversion location (single-location jobs only).
        repository_urls: New Subversion locations, in order.
        repository_browser_location: New repository browser URL.

    Returns:
        A dict mapping each requested field to whether it was updated.
    """
    try:
        job = _load_job(job_name)
        updated: dict[str, bool] = {}
        if description is not None:
            updated["description"] = job.set_description(description)
        if repository_url is not None:
            updated["repository_url"] = job.set_repository_url(repository_url)
        if repository_urls is not None:
            updated["repository_urls"] = job.set_repository_urls(repository_urls)
        if repository_browser_location is not None:
            updated["repository_browser_location"] = job.set_repository_browser_location(
                repository_browser_location
            )
        return {
            "success": all(updated.values()),
            "job_name": job_name,
            "updated": updated,
        }
    except JenkinsJobError as e:
        return _format_error(e)
    except ValueError as e:
        return _format_error(e)


# ---------------------------------------------------------------------------
# Tool 3: trigger_job
# ---------------------------------------------------------------------------
@mcp.tool
def trigger_job(job_name: str, parameters: dict[str, Any] | None = None) -> dict[str, Any]:
    """Trigger a Jenkins job build.

    Jobs with string parameters are built with their default values,
    overridden by ``parameters``; other jobs ignore ``parameters``.

    Args:
        job_name: Full name of the Jenkins job.
        parameters: Optional dict of build parameters (key-value pairs).

    Returns:
        A dict telling whether Jenkins accepted the build request.
    """
    try:
        job = _load_job(job_name)
        parameterized = job.has_string_params()
        ok = job.build(parameters)
        result = _action_result(job_name, ok, "build")
        result["parameterized"] = parameterized
        if parameterized:
            result["parameters"] = job.build_payload(parameters)
        return result
    except JenkinsJobError as e:
        return _format_error(e)
    except ValueError as e:
        return _format_error(e)


# ---------------------------------------------------------------------------
# Tool 4: wait_for_job
# ---------------------------------------------------------------------------
@mcp.tool
def wait_for_job(
    job_name: str, poll_interval: float | None = None, timeout: float = 600.0
) -> dict[str, Any]:
    """Wait until a job has no running or queued builds.

    Args:
        job_name: Full name of the Jenkins job.
        poll_interval: Seconds between checks (default JENKINS_POLL_INTERVAL).
        timeout: Seconds to wait before giving up.

    Returns:
        A dict with the outcome: "idle" or "timed_out".
    """
    try:
        job = _load_job(job_name)
        outcome = job.wait_for_build_to_finish(poll_interval, timeout=timeout)
        return {"success": True, "job_name": job_name, "outcome": outcome.value}
    except JenkinsJobError as e:
        return _format_error(e)
    except ValueError as e:
        return _format_error(e)


# ---------------------------------------------------------------------------
# Tool 5: copy_job
# ---------------------------------------------------------------------------
@mcp.tool
def copy_job(job_name: str, new_name: str | None = None) -> dict[str, Any]:
    """Copy a job on the server.

    Args:
        job_name: Full name of the source job.
        new_name: Name of the copy (default ``copy_of_<job_name>``).

    Returns:
        A dict describing the newly created job.
    """
    try:
        copied = _load_job(job_name).copy(new_name)
        return {"success": True, "source": job_name, **_job_summary(copied)}
    except JenkinsJobError as e:
        return _format_error(e)
    except ValueError as e:
        return _format_error(e)


# ---------------------------------------------------------------------------
# Tools 6-9: enable / disable / delete / wipe out workspace
# ---------------------------------------------------------------------------
@mcp.tool
def enable_job(job_name: str) -> dict[str, Any]:
    """Enable a disabled Jenkins job."""
    try:
        return _action_result(job_name, _load_job(job_name).enable(), "enable")
    except JenkinsJobError as e:
        return _format_error(e)
    except ValueError as e:
        return _format_error(e)


@mcp.tool
def disable_job(job_name: str) -> dict[str, Any]:
    """Disable a Jenkins job."""
    try:
        return _action_result(job_name, _load_job(job_name).disable(), "disable")
    except JenkinsJobError as e:
        return _format_error(e)
    except ValueError as e:
        return _format_error(e)


@mcp.tool
def delete_job(job_name: str) -> dict[str, Any]:
    """Delete a Jenkins job."""
    try:
        return _action_result(job_name, _load_job(job_name).delete(), "delete")
    except JenkinsJobError as e:
        return _format_error(e)
    except ValueError as e:
        return _format_error(e)


@mcp.tool
def wipe_out_workspace(
    job_name: str, poll_interval: float | None = None, timeout: float = 600.0
) -> dict[str, Any]:
    """Wait for running builds to finish, then wipe the job workspace.

    The workspace is left alone if a build is still running after waiting.

    Args:
        job_name: Full name of the Jenkins job.
        poll_interval: Seconds between checks while waiting.
        timeout: Seconds to wait for running builds.
    """
    try:
        job = _load_job(job_name)
        ok = job.wipe_out_workspace(poll_interval, timeout=timeout)
        return _action_result(job_name, ok, "workspace wipe")
    except JenkinsJobError as e:
        return _format_error(e)
    except ValueError as e:
        return _format_error(e)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------
def main() -> None:
    mcp.run()


if __name__ == "__main__":
    main()
