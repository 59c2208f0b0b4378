"""Shared XML documents and fakes for the job model tests."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest

from jenkins_job.jenkins_client import JenkinsTransport, PostResponse, ResponseKind

FREESTYLE_STATUS = """\
<freeStyleProject _class="hudson.model.FreeStyleProject">
  <action _class="hudson.model.ParametersDefinitionProperty">
    <parameterDefinition _class="hudson.model.StringParameterDefinition">
      <defaultParameterValue _class="hudson.model.StringParameterValue">
        <name>BRANCH</name>
        <value>main</value>
      </defaultParameterValue>
      <description>Branch to build</description>
      <name>BRANCH</name>
      <type>StringParameterDefinition</type>
    </parameterDefinition>
    <parameterDefinition _class="hudson.model.BooleanParameterDefinition">
      <defaultParameterValue _class="hudson.model.BooleanParameterValue">
        <name>DEPLOY</name>
        <value>false</value>
      </defaultParameterValue>
      <description>Deploy after build</description>
      <name>DEPLOY</name>
      <type>BooleanParameterDefinition</type>
    </parameterDefinition>
  </action>
  <action _class="hudson.model.CauseAction"/>
  <color>blue_anime</color>
  <lastBuild><number>42</number></lastBuild>
  <lastCompletedBuild><number>41</number></lastCompletedBuild>
  <lastFailedBuild><number>39</number></lastFailedBuild>
  <lastStableBuild><number>41</number></lastStableBuild>
  <lastSuccessfulBuild><number>41</number></lastSuccessfulBuild>
  <lastUnsuccessfulBuild><number>39</number></lastUnsuccessfulBuild>
  <nextBuildNumber>43</nextBuildNumber>
</freeStyleProject>
"""

PLAIN_STATUS = """\
<freeStyleProject _class="hudson.model.FreeStyleProject">
  <color>blue</color>
  <lastBuild><number>7</number></lastBuild>
  <nextBuildNumber>8</nextBuildNumber>
</freeStyleProject>
"""

MAVEN_STATUS = """\
<mavenModuleSet _class="hudson.maven.MavenModuleSet">
  <color>red</color>
  <lastBuild><number>12</number></lastBuild>
  <lastFailedBuild><number>12</number></lastFailedBuild>
  <nextBuildNumber>13</nextBuildNumber>
</mavenModuleSet>
"""

SVN_CONFIG = """\
<?xml version='1.1' encoding='UTF-8'?>
<project>
  <actions/>
  <description>Nightly build</description>
  <!-- edited by hand -->
  <keepDependencies>false</keepDependencies>
  <scm class="hudson.scm.SubversionSCM" plugin="subversion@2.17.0">
    <locations>
      <hudson.scm.SubversionSCM_-ModuleLocation>
        <remote>https://svn.example.com/repo/trunk</remote>
        <local>.</local>
        <depthOption>infinity</depthOption>
      </hudson.scm.SubversionSCM_-ModuleLocation>
    </locations>
    <browser class="hudson.scm.browsers.ViewSVN">
      <location>https://viewsvn.example.com/repo</location>
    </browser>
  </scm>
  <builders>
    <hudson.tasks.Shell>
      <command>make &amp;&amp; make test</command>
    </hudson.tasks.Shell>
  </builders>
</project>
"""

MULTI_SVN_CONFIG = """\
<?xml version='1.1' encoding='UTF-8'?>
<project>
  <description></description>
  <scm class="hudson.scm.SubversionSCM">
    <locations>
      <hudson.scm.SubversionSCM_-ModuleLocation>
        <remote>https://svn.example.com/a</remote>
      </hudson.scm.SubversionSCM_-ModuleLocation>
      <hudson.scm.SubversionSCM_-ModuleLocation>
        <remote>https://svn.example.com/b</remote>
      </hudson.scm.SubversionSCM_-ModuleLocation>
      <hudson.scm.SubversionSCM_-ModuleLocation>
        <remote>https://svn.example.com/c</remote>
      </hudson.scm.SubversionSCM_-ModuleLocation>
    </locations>
  </scm>
</project>
"""

NO_SCM_CONFIG = """\
<?xml version='1.1' encoding='UTF-8'?>
<project>
  <description/>
  <scm class="hudson.scm.NullSCM"/>
</project>
"""


def job_list(colors: dict[str, str]) -> str:
    """Render the server-wide ``api/xml`` job list."""
    jobs = "".join(
        f"<job><name>{name}</name><url>http://j/job/{name}/</url><color>{color}</color></job>"
        for name, color in colors.items()
    )
    return f'<hudson _class="hudson.model.Hudson">{jobs}</hudson>'


def queue(*names: str) -> str:
    """Render the ``queue/api/xml`` document."""
    items = "".join(f"<item><task><name>{name}</name></task></item>" for name in names)
    return f"<queue>{items}</queue>"


def make_transport(documents: dict[str, Any]) -> MagicMock:
    """Return a transport whose GETs are served from ``documents``.

    A list value is served one element per request; its last element repeats.
    """
    served = {path: list(doc) if isinstance(doc, list) else [doc] for path, doc in documents.items()}

    def get_xml(path: str) -> str:
        docs = served[path]
        return docs.pop(0) if len(docs) > 1 else docs[0]

    transport = MagicMock(spec=JenkinsTransport)
    transport.get_xml.side_effect = get_xml
    transport.post.return_value = PostResponse(ResponseKind.SUCCESS, 200)
    transport.post_xml.return_value = PostResponse(ResponseKind.SUCCESS, 200)
    return transport


@pytest.fixture
def transport_for():
    """Factory building a transport around one job's documents."""

    def factory(
        status: str = FREESTYLE_STATUS,
        config: str = SVN_CONFIG,
        name: str = "my-job",
        extra: dict[str, Any] | None = None,
    ) -> MagicMock:
        documents = {
            f"job/{name}/api/xml": status,
            f"job/{name}/config.xml": config,
            "api/xml": job_list({name: "blue"}),
            "queue/api/xml": queue(),
        }
        documents.update(extra or {})
        return make_transport(documents)

    return factory
