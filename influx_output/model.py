from dataclasses import dataclass, field
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class Server:
    """A monitored JVM, as far as the output writer cares about it."""

    host: str
    port: Optional[str] = None
    alias: Optional[str] = None


@dataclass(frozen=True)
class Query:
    obj: str
    result_alias: Optional[str] = None


@dataclass(frozen=True)
class Result:
    """One sampled JMX attribute. `epoch` is in milliseconds."""

    epoch: int
    attribute_name: str
    class_name: str
    obj_domain: str
    key_alias: str
    type_name: str
    values: Mapping[str, Any] = field(default_factory=dict)
