from dataclasses import dataclass, field
from typing import List

from influxdb_client import Point, WritePrecision

from influx_output.config import DEFAULT_RETENTION_POLICY, ConsistencyLevel


@dataclass
class BatchPoints:
    """Points submitted together to one database with one consistency level."""

    database: str
    consistency: ConsistencyLevel = ConsistencyLevel.ALL
    retention_policy: str = DEFAULT_RETENTION_POLICY
    precision: str = WritePrecision.MS
    points: List[Point] = field(default_factory=list)

    def point(self, point: Point) -> "BatchPoints":
        self.points.append(point)
        return self

    def lines(self) -> List[str]:
        """Rendered points, without those that have no fields left to write."""
        rendered = (point.to_line_protocol() for point in self.points)
        return [line for line in rendered if line]

    def line_protocol(self) -> str:
        return "\n".join(self.lines())
