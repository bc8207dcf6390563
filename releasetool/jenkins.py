__author__ = 'marko.kirves'

import logging
import os
import re

from jenkinsapi.jenkins import Jenkins

from releasetool import variables

logger = logging.getLogger(__name__)

VALID_BUILD_NUMBER = re.compile("^[0-9]+$")


class JenkinsContextError(Exception):
    pass


def get_build_number():
    build_number = os.getenv('BUILD_NUMBER')

    if build_number is None:
        raise JenkinsContextError("BUILD_NUMBER not defined")

    if not VALID_BUILD_NUMBER.match(build_number):
        raise JenkinsContextError("BUILD_NUMBER is not valid")

    return int(build_number)


def get_job_name():
    job_name = os.getenv('JOB_NAME')

    if job_name is None:
        raise JenkinsContextError("JOB_NAME not defined")

    return job_name


def get_jenkins_url():
    url = os.getenv('JENKINS_URL')

    if url is None:
        raise JenkinsContextError("JENKINS_URL not defined")

    return url


def connect(url=None, username=None, password=None):
    """
    :type url: str
    :rtype: jenkinsapi.jenkins.Jenkins
    """
    if url is None:
        url = get_jenkins_url()
    return Jenkins(url, username=username, password=password)


def get_build(url=None, job_name=None, build_number=None, username=None, password=None):
    """
    :rtype: jenkinsapi.build.Build
    """
    if job_name is None:
        job_name = get_job_name()

    if build_number is None:
        build_number = get_build_number()

    J = connect(url, username, password)
    if job_name not in J:
        raise JenkinsContextError("Job %s not found" % job_name)
    return J[job_name].get_build(build_number)


def get_changes(build):
    """
    :type build: jenkinsapi.build.Build
    :return: list
    """
    changes = []
    for change in build.get_changeset_items():
        changes.append({
            'commitId': change['commitId'][0:7],
            'author': change['author']['fullName'],
            'date': change['date'],
            'msg': change['msg'],
        })
    return changes


def format_changes(changes):
    """
    :type changes: list
    """

    def _format_change(change):
        """
        :type change: dict
        """
        return "* %(commitId)s - %(msg)s (%(date)s) <%(author)s>" % change

    return [_format_change(change) for change in changes]


def export_build_changes(url=None, job_name=None, build_number=None):
    build = get_build(url, job_name, build_number)
    return format_changes(get_changes(build))


def get_build_parameters(build):
    """
    :type build: jenkinsapi.build.Build
    :rtype: dict
    """
    return build.get_params() or {}


def build_variables(environ=None, build=None):
    """
    Variables of the running build: environment variables overridden by
    build parameters. Outside of Jenkins only the environment is used.

    :rtype: releasetool.variables.VariableResolver
    """
    environ = os.environ if environ is None else environ

    parameters = {}
    if build is None and 'JENKINS_URL' in environ and 'JOB_NAME' in environ and 'BUILD_NUMBER' in environ:
        build = get_build(environ['JENKINS_URL'], environ['JOB_NAME'], int(environ['BUILD_NUMBER']))
    if build is not None:
        parameters = get_build_parameters(build)
        logger.debug('Using %d build parameters', len(parameters))

    return variables.from_environment(environ, parameters)
