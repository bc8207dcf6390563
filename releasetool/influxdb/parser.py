"""
Parser for the InfluxDB line protocol

    measurement[,tag=value]* field=value[,field=value]* [timestamp]

The timestamp is either a nanosecond count or a UTC calendar date written as
YYYY-MM-DD[-HH[-MM[-SS]]].
"""

__author__ = 'marko.kirves'

import re
from collections import namedtuple
from datetime import datetime

from dateutil import tz

TRUE_BOOL_LITERALS = frozenset(['t', 'T', 'true', 'True', 'TRUE'])
FALSE_BOOL_LITERALS = frozenset(['f', 'F', 'false', 'False', 'FALSE'])

INT64_MIN = -2 ** 63
INT64_MAX = 2 ** 63 - 1

VALID_DIGITS = re.compile(r'^[0-9]+$')
VALID_INTEGER = re.compile(r'^[+-]?[0-9]+$')
VALID_FLOAT = re.compile(r'^[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?$')
UNESCAPED_COMMA = re.compile(r'(?<!\\),')
UNESCAPED_EQUALS = re.compile(r'(?<!\\)=')

# only these four characters can be escaped with a backslash
ESCAPES = [
    ('\\ ', ' '),
    ('\\,', ','),
    ('\\=', '='),
    ('\\"', '"'),
]


class ParseError(ValueError):

    def __init__(self, message, line):
        super(ParseError, self).__init__('%s: %s' % (message, line))
        self.line = line


class ContentRecord(namedtuple('ContentRecord', ['measurement', 'tags', 'fields', 'timestamp'])):
    """
    A single parsed line.

    timestamp is the number of nanoseconds since the epoch, or None if the
    point should be timestamped by the server.
    """

    __slots__ = ()

    def __new__(cls, measurement, tags, fields, timestamp=None):
        return super(ContentRecord, cls).__new__(cls, measurement, tags, fields, timestamp)


def parse(source):
    """
    Parse every non-blank line of the source. A malformed line fails the whole call.

    :type source: str
    :rtype: list of ContentRecord
    """
    records = []
    for raw_line in source.split('\n'):
        line = raw_line.strip()
        if not line:
            continue
        records.append(parse_line(line))
    return records


def parse_line(line):
    """
    :type line: str
    :rtype: ContentRecord
    """
    segments = split_considering_quotes(line)
    if len(segments) > 3:
        raise ParseError('invalid line', line)
    if len(segments) < 2:
        if not segments or len(_split(UNESCAPED_COMMA, segments[0])) < 2:
            raise ParseError('tags are missing', line)
        raise ParseError('fields are missing', line)

    measurement, tags = _parse_key(segments[0], line)
    fields = _parse_fields(segments[1], line)

    timestamp = None
    if len(segments) == 3:
        timestamp = _parse_timestamp(segments[2], line)

    return ContentRecord(measurement, tags, fields, timestamp)


def split_considering_quotes(line):
    """
    Split the line on spaces which are neither escaped nor inside quotes.

    Quotes are counted over the whole line, not per segment, so a quote in the
    tags shifts what is considered quoted in the fields.
    """
    positions = []
    prev_backslash = False
    quote_count = 0
    for i, char in enumerate(line):
        if char == ' ' and not prev_backslash and quote_count % 2 == 0:
            positions.append(i)
        if char == '"' and not prev_backslash:
            quote_count += 1
        prev_backslash = char == '\\'

    segments = []
    begin = 0
    for end in positions + [len(line)]:
        if begin != end:
            segments.append(line[begin:end])
        begin = end + 1
    return segments


def unescape(text):
    for escaped, literal in ESCAPES:
        text = text.replace(escaped, literal)
    return text


def _split(pattern, text):
    # trailing empty pieces are dropped, "a,b," splits into two
    parts = pattern.split(text)
    while len(parts) > 1 and parts[-1] == '':
        parts.pop()
    return parts


def _parse_key(segment, line):
    parts = _split(UNESCAPED_COMMA, segment)
    if len(parts) < 2:
        raise ParseError('tags are missing', line)
    if not parts[0]:
        raise ParseError('measurement is missing', line)

    tags = {}
    for pair in parts[1:]:
        key_value = _split(UNESCAPED_EQUALS, pair)
        if len(key_value) != 2:
            raise ParseError('invalid key value pair "%s"' % pair, line)
        tags[unescape(key_value[0])] = unescape(key_value[1])

    return parts[0], tags


def _parse_fields(segment, line):
    fields = {}
    for pair in _split(UNESCAPED_COMMA, segment):
        key_value = pair.split('=')
        while len(key_value) > 1 and key_value[-1] == '':
            key_value.pop()
        if len(key_value) != 2:
            raise ParseError('invalid key value pair "%s"' % pair, line)
        fields[key_value[0]] = _parse_field_value(key_value[1], line)
    return fields


def _parse_field_value(value, line):
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return unescape(value[1:-1])
    if value in TRUE_BOOL_LITERALS:
        return True
    if value in FALSE_BOOL_LITERALS:
        return False
    if value.endswith('i'):
        return _parse_integer(value[:-1], line)
    if not VALID_FLOAT.match(value):
        raise ParseError('invalid field value "%s"' % value, line)
    return float(value)


def _parse_integer(value, line):
    if not VALID_INTEGER.match(value):
        raise ParseError('invalid integer "%s"' % value, line)
    number = int(value)
    if number < INT64_MIN or number > INT64_MAX:
        raise ParseError('integer out of range "%s"' % value, line)
    return number


def _parse_timestamp(segment, line):
    if '-' not in segment:
        return _parse_integer(segment, line)

    parts = segment.split('-')
    if len(parts) < 3 or len(parts) > 6 or not all(VALID_DIGITS.match(p) for p in parts):
        raise ParseError('invalid timestamp "%s"' % segment, line)

    values = [int(p) for p in parts] + [0] * (6 - len(parts))
    try:
        moment = datetime(*values, tzinfo=tz.tzutc())
    except ValueError:
        raise ParseError('invalid timestamp "%s"' % segment, line)

    epoch = datetime(1970, 1, 1, tzinfo=tz.tzutc())
    delta = moment - epoch
    millis = (delta.days * 86400 + delta.seconds) * 1000
    return millis * 1000 * 1000
