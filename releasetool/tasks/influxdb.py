__author__ = 'marko.kirves'

import logging

from fabric import task

from releasetool.config import connection_settings
from releasetool.helpers import find_files, load_environment
from releasetool.influxdb.parser import parse
from releasetool.influxdb.publisher import InfluxDBPublisher

logger = logging.getLogger(__name__)


def collect_content(patterns, variables):
    """
    Reads all files matching the glob patterns, with variables replaced.

    :rtype: list of str
    """
    contents = []
    for path in find_files(patterns, variables):
        with open(path) as f:
            contents.append(variables.replace(f.read()))
    return contents


@task(help={
    'environment': 'Environment name in the configuration file',
    'content': 'Line protocol content to publish',
    'files': 'Comma separated glob patterns of files with line protocol content',
})
def publish(c, environment, content=None, files=None):
    """Publish measurements in line protocol format to InfluxDB"""
    config, variables = load_environment(environment)
    settings = connection_settings(config, 'influxdb', variables)

    sources = []
    if content:
        sources.append(variables.replace(content))
    if settings.get('content'):
        sources.append(settings['content'])

    patterns = files.split(',') if files else settings.get('files', [])
    sources.extend(collect_content(patterns, variables))

    records = []
    for source in sources:
        records.extend(parse(source))

    publisher = InfluxDBPublisher(settings['url'], settings['database'],
                                  settings.get('username'), settings.get('password'),
                                  retention_policy=settings.get('retention_policy', 'default'))
    try:
        publisher.publish(records)
    finally:
        publisher.close()
