__author__ = 'marko.kirves'

from fabric import task

import releasetool.jenkins as jenkins


@task
def write_build_changes(c, url=None, job_name=None, build_number=None):
    """
    Write BUILD_CHANGES.properties file for Jenkins
    :type url: str
    """
    if build_number is not None:
        build_number = int(build_number)
    build_changes = jenkins.export_build_changes(url, job_name, build_number)
    formatted = "BUILD_CHANGES = {}".format("\\\n".join(build_changes))
    with open('BUILD_CHANGES.properties', 'w') as f:
        f.write(formatted)
