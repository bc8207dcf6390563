from invoke import Collection

from releasetool.tasks import confluence, github, influxdb, jenkins, jira, twitter

ns = Collection(confluence, github, influxdb, jenkins, jira, twitter)
