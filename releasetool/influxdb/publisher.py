__author__ = 'marko.kirves'

import logging

from releasetool.http import JsonHTTPClient

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_POLICY = 'default'
DEFAULT_CONSISTENCY = 'all'


def _escape_key(text):
    return text.replace(',', '\\,').replace('=', '\\=').replace(' ', '\\ ')


def _escape_string(text):
    return text.replace('\\', '\\\\').replace('"', '\\"')


def format_value(value):
    # bool before int, True is an int too
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, int):
        return '%di' % value
    if isinstance(value, float):
        return repr(value)
    return '"%s"' % _escape_string(str(value))


def format_record(record):
    """
    Write a record back in line protocol.

    The measurement is written verbatim, the parser keeps it in its escaped form.

    :type record: releasetool.influxdb.parser.ContentRecord
    :rtype: str
    """
    key = record.measurement
    for name in sorted(record.tags):
        key += ',%s=%s' % (_escape_key(name), _escape_key(record.tags[name]))

    fields = ','.join('%s=%s' % (_escape_key(name), format_value(record.fields[name]))
                      for name in sorted(record.fields))

    line = '%s %s' % (key, fields)
    if record.timestamp is not None:
        line += ' %d' % record.timestamp
    return line


def format_records(records):
    return '\n'.join(format_record(record) for record in records)


class InfluxDBPublisher(object):
    """Writes batches of records into an InfluxDB database over the HTTP API."""

    def __init__(self, url, database, user=None, password=None,
                 retention_policy=DEFAULT_RETENTION_POLICY, consistency=DEFAULT_CONSISTENCY, client=None):
        self.url = url
        self.database = database
        self.retention_policy = retention_policy
        self.consistency = consistency
        self.client = client if client is not None else JsonHTTPClient(url, user, password)

    def close(self):
        self.client.close()

    def publish(self, records):
        """
        :type records: list of releasetool.influxdb.parser.ContentRecord
        :return: number of records written
        """
        if not records:
            logger.info('Nothing to publish to InfluxDB at %s', self.url)
            return 0

        logger.info('Publishing %d points to InfluxDB at %s', len(records), self.url)
        params = {
            'db': self.database,
            'rp': self.retention_policy,
            'consistency': self.consistency,
            'precision': 'ns',
        }
        self.client.post_data('/write', format_records(records), params=params)
        return len(records)
