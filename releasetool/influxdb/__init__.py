from releasetool.influxdb.parser import ContentRecord, ParseError, parse
from releasetool.influxdb.publisher import InfluxDBPublisher, format_record, format_records
