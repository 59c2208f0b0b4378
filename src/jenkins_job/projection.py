"""XML projection of the job status and configuration documents.

Reading maps fixed element paths onto optional fields; absence of a node is
never an error. Editing re-parses the retained config text, replaces the
text of one known node and serializes the whole document again, so nodes
the model does not know about go back to Jenkins exactly as they came.
"""

from __future__ import annotations

import enum
import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Sequence, TypeGuard

from jenkins_job.errors import InvalidEdit, MalformedDocument

logger = logging.getLogger(__name__)

STRING_PARAMETER_TYPE = "StringParameterDefinition"
CONFIG_ROOT = "project"
SVN_LOCATION = "scm/locations/hudson.scm.SubversionSCM_-ModuleLocation"

STATUS_PATHS = {
    "color": "color",
    "last_build": "lastBuild/number",
    "last_completed_build": "lastCompletedBuild/number",
    "last_failed_build": "lastFailedBuild/number",
    "last_stable_build": "lastStableBuild/number",
    "last_successful_build": "lastSuccessfulBuild/number",
    "last_unsuccessful_build": "lastUnsuccessfulBuild/number",
    "next_build_number": "nextBuildNumber",
}

_DECLARATION = re.compile(r"^\s*(<\?xml[^>]*\?>)")


class ProjectKind(enum.Enum):
    FREESTYLE = "freeStyleProject"
    MAVEN_MODULE_SET = "mavenModuleSet"
    UNKNOWN = "unknown"


# Status fields each project kind exposes.
KIND_FIELDS = {
    ProjectKind.FREESTYLE: tuple(STATUS_PATHS),
    ProjectKind.MAVEN_MODULE_SET: ("last_build",),
    ProjectKind.UNKNOWN: (),
}


class ConfigField(enum.Enum):
    """Editable config fields."""

    REPOSITORY_URL = "repository_url"
    REPOSITORY_URLS = "repository_urls"
    REPOSITORY_BROWSER_LOCATION = "repository_browser_location"
    DESCRIPTION = "description"


# Paths under <project>, shared by reading and editing.
CONFIG_PATHS = {
    ConfigField.REPOSITORY_URL: f"{SVN_LOCATION}/remote",
    ConfigField.REPOSITORY_URLS: f"{SVN_LOCATION}/remote",
    ConfigField.REPOSITORY_BROWSER_LOCATION: "scm/browser/location",
    ConfigField.DESCRIPTION: "description",
}


@dataclass(frozen=True)
class StringParameter:
    name: str
    description: str | None
    param_type: str
    value: str | None


@dataclass(frozen=True)
class SkippedParameter:
    """A ``parameterDefinition`` entry that could not be decoded."""

    index: int
    reason: str


@dataclass
class ParameterParseResult:
    parameters: list[StringParameter] = field(default_factory=list)
    skipped: list[SkippedParameter] = field(default_factory=list)


@dataclass
class StatusProjection:
    kind: ProjectKind = ProjectKind.UNKNOWN
    color: str | None = None
    last_build: str | None = None
    last_completed_build: str | None = None
    last_failed_build: str | None = None
    last_stable_build: str | None = None
    last_successful_build: str | None = None
    last_unsuccessful_build: str | None = None
    next_build_number: str | None = None
    parameters: ParameterParseResult = field(default_factory=ParameterParseResult)


@dataclass
class ConfigProjection:
    repository_url: str | None = None
    repository_urls: list[str] = field(default_factory=list)
    repository_browser_location: str | None = None
    description: str | None = None


def is_element(value: ET.Element | None) -> TypeGuard[ET.Element]:
    """Return True if the value is an Element instance"""
    return value is not None


def parse_document(text: str) -> tuple[str | None, ET.Element]:
    """Parse ``text`` keeping comments; return its XML declaration and root.

    Raises:
        MalformedDocument: If ``text`` is not well-formed XML, such as an
            HTML login page served in place of the document.
    """
    declaration = None
    match = _DECLARATION.match(text)
    if match:
        # Kept verbatim: Jenkins writes version='1.1' declarations.
        declaration = match.group(1)
        text = text[match.end():]
    parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True, insert_pis=True))
    try:
        return declaration, ET.fromstring(text, parser=parser)
    except ET.ParseError as e:
        raise MalformedDocument(f"Not a well-formed XML document: {e}") from e


def serialize_document(declaration: str | None, root: ET.Element) -> str:
    body = ET.tostring(root, encoding="unicode")
    if declaration:
        return f"{declaration}\n{body}"
    return body


def _text(root: ET.Element, path: str) -> str | None:
    if is_element(node := root.find(path)):
        return node.text or ""
    return None


def parse_status(text: str) -> StatusProjection:
    """Project the ``api/xml`` status document of a job."""
    _, root = parse_document(text)
    try:
        kind = ProjectKind(root.tag)
    except ValueError:
        logger.debug("Unrecognised project root <%s>", root.tag)
        return StatusProjection()

    status = StatusProjection(kind=kind)
    for name in KIND_FIELDS[kind]:
        setattr(status, name, _text(root, STATUS_PATHS[name]))
    status.parameters = get_string_parameters(root)
    return status


def _parameter_definitions(root: ET.Element) -> list[ET.Element]:
    # Older servers list definitions under <action>, newer under <property>.
    return [
        definition
        for holder in root
        if holder.tag in ("action", "property")
        for definition in holder.findall("parameterDefinition")
    ]


def get_string_parameters(root: ET.Element) -> ParameterParseResult:
    """Collect the string parameter definitions under a project root.

    Entries are read by named child (``name``, ``type``, ``description`` and
    ``defaultParameterValue/value``). Entries without a name or type are
    reported in ``skipped``; parameters of other kinds are dropped.
    """
    result = ParameterParseResult()
    for index, definition in enumerate(_parameter_definitions(root)):
        name = _text(definition, "name")
        param_type = _text(definition, "type")
        if not param_type:
            param_type = definition.get("_class", "").rsplit(".", 1)[-1] or None
        if not name or not param_type:
            missing = "name" if not name else "type"
            skipped = SkippedParameter(index, f"parameterDefinition has no {missing}")
            logger.warning("Skipping parameter #%d: %s", index, skipped.reason)
            result.skipped.append(skipped)
            continue
        if param_type != STRING_PARAMETER_TYPE:
            continue
        result.parameters.append(
            StringParameter(
                name=name,
                description=_text(definition, "description"),
                param_type=param_type,
                value=_text(definition, "defaultParameterValue/value"),
            )
        )
    return result


def parse_config(text: str) -> ConfigProjection:
    """Project the ``config.xml`` document of a job."""
    _, root = parse_document(text)
    config = ConfigProjection()
    if root.tag != CONFIG_ROOT:
        return config

    remotes = root.findall(CONFIG_PATHS[ConfigField.REPOSITORY_URLS])
    if remotes:
        config.repository_url = remotes[0].text or ""
    config.repository_urls = [remote.text or "" for remote in remotes]
    config.repository_browser_location = _text(root, CONFIG_PATHS[ConfigField.REPOSITORY_BROWSER_LOCATION])
    config.description = _text(root, CONFIG_PATHS[ConfigField.DESCRIPTION])
    return config


def apply_field_edit(text: str, config_field: ConfigField, value: str | Sequence[str]) -> str:
    """Replace the text of ``config_field`` and return the whole document.

    ``REPOSITORY_URLS`` takes a sequence: values are written to the location
    nodes in order; values beyond the last node are dropped and nodes beyond
    the last value are left as they are.

    Raises:
        InvalidEdit: If the document has no node for ``config_field``.
    """
    declaration, root = parse_document(text)
    if root.tag != CONFIG_ROOT:
        raise InvalidEdit(config_field.value, f"Config root is <{root.tag}>, not <{CONFIG_ROOT}>")

    if config_field is ConfigField.REPOSITORY_URLS:
        if isinstance(value, str):
            raise TypeError("repository_urls must be a sequence of strings")
        remotes = root.findall(CONFIG_PATHS[config_field])
        if not remotes:
            raise InvalidEdit(config_field.value)
        for remote, url in zip(remotes, value):
            remote.text = url
    else:
        if not isinstance(value, str):
            raise TypeError(f"{config_field.value} must be a string")
        node = root.find(CONFIG_PATHS[config_field])
        if not is_element(node):
            raise InvalidEdit(config_field.value)
        node.text = value

    return serialize_document(declaration, root)
