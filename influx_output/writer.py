import logging
from typing import Iterable, Mapping, Optional, Sequence

from influxdb_client import Point, WritePrecision

from influx_output.batch import BatchPoints
from influx_output.client import InfluxDB, create_influx_client
from influx_output.config import ResultTag, WriterConfig
from influx_output.model import Query, Result, Server

TAG_HOSTNAME = "hostname"
TAG_JMX_PORT = "JmxPort"

_FROM_MILLIS = {
    WritePrecision.NS: lambda epoch: epoch * 1_000_000,
    WritePrecision.US: lambda epoch: epoch * 1_000,
    WritePrecision.MS: lambda epoch: epoch,
    WritePrecision.S: lambda epoch: epoch // 1_000,
}


def result_to_point(
    result: Result,
    server: Server,
    result_tags: Iterable[ResultTag],
    extra_tags: Optional[Mapping[str, str]] = None,
    report_jmx_port: bool = False,
    precision: str = WritePrecision.MS,
) -> Point:
    """
    Translate one JMX result into a point named after its key alias.

    Only the selected result tags are emitted; `hostname` is always set from the server.
    """
    if result.key_alias is None:
        raise ValueError("Result has no key alias to use as measurement")
    if result.values is None:
        raise ValueError(f"Result {result.key_alias} has no values")

    point = Point(result.key_alias)
    for key, value in (extra_tags or {}).items():
        point.tag(key, value)
    for tag in result_tags:
        point.tag(tag.value, tag.read(result))
    if report_jmx_port and server.port:
        point.tag(TAG_JMX_PORT, str(server.port))
    point.tag(TAG_HOSTNAME, server.host)

    for key, value in result.values.items():
        point.field(key, value)

    point.time(_FROM_MILLIS[precision](result.epoch), precision)
    return point


class InfluxDbWriter:
    """Writes JMX results to InfluxDB, one batch per `do_write` call."""

    def __init__(self, config: WriterConfig, influx_db: Optional[InfluxDB] = None) -> None:
        self.config = config
        self.influx_db = influx_db if influx_db is not None else create_influx_client(config)

    def start(self) -> None:
        if self.config.create_database:
            self.influx_db.create_database(self.config.database)

    def do_write(self, server: Server, query: Query, results: Sequence[Result]) -> None:
        config = self.config
        batch = BatchPoints(
            database=config.database,
            consistency=config.write_consistency,
            retention_policy=config.retention_policy,
            precision=config.time_precision,
        )
        for result in results:
            batch.point(
                result_to_point(
                    result,
                    server,
                    config.result_tags,
                    extra_tags=config.tags,
                    report_jmx_port=config.report_jmx_port_as_tag,
                    precision=config.time_precision,
                )
            )

        logging.debug(
            "Writing %s point(s) for %s on %s to %s", len(batch.points), query.obj, server.host, config.database
        )
        self.influx_db.write(batch)
