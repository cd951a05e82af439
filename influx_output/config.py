import json
import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from influxdb_client import WritePrecision

from influx_output.model import Result

SETTING_WRITE_CONSISTENCY = "writeConsistency"
SETTING_RESULT_TAGS = "resultTags"
SETTING_RETENTION_POLICY = "retentionPolicy"
SETTING_TAGS = "tags"
SETTING_CREATE_DATABASE = "createDatabase"
SETTING_REPORT_JMX_PORT_AS_TAG = "reportJmxPortAsTag"
SETTING_TIME_PRECISION = "timePrecision"

KNOWN_SETTINGS = (
    SETTING_WRITE_CONSISTENCY,
    SETTING_RESULT_TAGS,
    SETTING_RETENTION_POLICY,
    SETTING_TAGS,
    SETTING_CREATE_DATABASE,
    SETTING_REPORT_JMX_PORT_AS_TAG,
    SETTING_TIME_PRECISION,
)

DEFAULT_RETENTION_POLICY = "autogen"
TIME_PRECISIONS = (WritePrecision.NS, WritePrecision.US, WritePrecision.MS, WritePrecision.S)


class ConfigurationError(ValueError):
    """Raised when writer settings cannot be bound."""


class ResultTag(Enum):
    """Result metadata that may be emitted as a point tag, keyed by its tag name."""

    ATTRIBUTE_NAME = "attributeName"
    CLASS_NAME = "className"
    OBJ_DOMAIN = "objDomain"
    TYPE_NAME = "typeName"

    def read(self, result: Result) -> str:
        return _RESULT_TAG_READERS[self](result)

    @classmethod
    def parse(cls, name: str) -> "ResultTag":
        value = str(name).strip().lower()
        for tag in cls:
            if tag.value.lower() == value or tag.name.lower() == value:
                return tag
        raise ConfigurationError(f"Unknown result tag: {name!r}")


_RESULT_TAG_READERS = {
    ResultTag.ATTRIBUTE_NAME: lambda result: result.attribute_name,
    ResultTag.CLASS_NAME: lambda result: result.class_name,
    ResultTag.OBJ_DOMAIN: lambda result: result.obj_domain,
    ResultTag.TYPE_NAME: lambda result: result.type_name,
}


class ConsistencyLevel(Enum):
    ALL = "all"
    ANY = "any"
    ONE = "one"
    QUORUM = "quorum"

    @classmethod
    def parse(cls, raw: str) -> "ConsistencyLevel":
        value = str(raw).strip().lower()
        for level in cls:
            if level.value == value:
                return level
        raise ConfigurationError(f"Unknown write consistency level: {raw!r}")


def parse_result_tags(names: Optional[List[str]]) -> List[ResultTag]:
    if names is None:
        return list(ResultTag)
    if isinstance(names, str):
        raise ConfigurationError(f"{SETTING_RESULT_TAGS} must be a list, got {names!r}")
    tags: List[ResultTag] = []
    for name in names:
        tag = ResultTag.parse(name)
        if tag not in tags:
            tags.append(tag)
    return tags


def parse_time_precision(raw: str) -> str:
    value = str(raw).strip().lower()
    if value not in TIME_PRECISIONS:
        raise ConfigurationError(f"Unknown time precision: {raw!r}")
    return value


def _as_bool(raw: Any, setting: str) -> bool:
    if isinstance(raw, bool):
        return raw
    value = str(raw).strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ConfigurationError(f"Invalid boolean for {setting}: {raw!r}")


@dataclass
class WriterConfig:
    """Connection target and settings of one InfluxDB output writer."""

    url: str = "http://localhost:8086"
    username: str = ""
    password: str = ""
    database: str = "jmxtrans"
    write_consistency: ConsistencyLevel = ConsistencyLevel.ALL
    result_tags: List[ResultTag] = field(default_factory=lambda: list(ResultTag))
    retention_policy: str = DEFAULT_RETENTION_POLICY
    tags: Dict[str, str] = field(default_factory=dict)
    create_database: bool = True
    report_jmx_port_as_tag: bool = False
    time_precision: str = WritePrecision.MS

    @staticmethod
    def from_settings(
        url: str,
        username: str,
        password: str,
        database: str,
        settings: Optional[Mapping[str, Any]] = None,
    ) -> "WriterConfig":
        settings = dict(settings or {})
        for key in settings:
            if key not in KNOWN_SETTINGS:
                logging.debug("Ignoring unknown InfluxDB writer setting %s", key)

        tags = settings.get(SETTING_TAGS) or {}
        if not isinstance(tags, Mapping):
            raise ConfigurationError(f"{SETTING_TAGS} must be a mapping, got {tags!r}")

        return WriterConfig(
            url=url,
            username=username or "",
            password=password or "",
            database=database,
            write_consistency=ConsistencyLevel.parse(settings.get(SETTING_WRITE_CONSISTENCY, ConsistencyLevel.ALL.value)),
            result_tags=parse_result_tags(settings.get(SETTING_RESULT_TAGS)),
            retention_policy=settings.get(SETTING_RETENTION_POLICY) or DEFAULT_RETENTION_POLICY,
            tags={str(key): str(value) for key, value in tags.items()},
            create_database=_as_bool(settings.get(SETTING_CREATE_DATABASE, True), SETTING_CREATE_DATABASE),
            report_jmx_port_as_tag=_as_bool(
                settings.get(SETTING_REPORT_JMX_PORT_AS_TAG, False), SETTING_REPORT_JMX_PORT_AS_TAG
            ),
            time_precision=parse_time_precision(settings.get(SETTING_TIME_PRECISION, WritePrecision.MS)),
        )

    @staticmethod
    def from_env() -> "WriterConfig":
        def parse_list(env_name: str) -> Optional[List[str]]:
            raw = os.getenv(env_name)
            if not raw:
                return None
            parsed = [item.strip() for item in raw.split(",") if item.strip()]
            return parsed if parsed else None

        def parse_bool(env_name: str, fallback: bool) -> bool:
            raw = os.getenv(env_name)
            if raw is None:
                return fallback
            try:
                return _as_bool(raw, env_name)
            except ConfigurationError:
                logging.warning("Invalid value for %s=%s, using default %s", env_name, raw, fallback)
                return fallback

        config = WriterConfig(
            url=os.getenv("INFLUX_URL", "http://localhost:8086"),
            username=os.getenv("INFLUX_USERNAME", ""),
            password=os.getenv("INFLUX_PASSWORD", ""),
            database=os.getenv("INFLUX_DATABASE", "jmxtrans"),
            write_consistency=ConsistencyLevel.parse(os.getenv("INFLUX_WRITE_CONSISTENCY", ConsistencyLevel.ALL.value)),
            result_tags=parse_result_tags(parse_list("INFLUX_RESULT_TAGS")),
            retention_policy=os.getenv("INFLUX_RETENTION_POLICY") or DEFAULT_RETENTION_POLICY,
            create_database=parse_bool("INFLUX_CREATE_DATABASE", True),
            report_jmx_port_as_tag=parse_bool("INFLUX_REPORT_JMX_PORT", False),
            time_precision=parse_time_precision(os.getenv("INFLUX_TIME_PRECISION", WritePrecision.MS)),
        )
        logging.debug("Loaded InfluxDB writer config for %s/%s from environment", config.url, config.database)
        return config

    @staticmethod
    def from_json_file(path: str) -> "WriterConfig":
        """
        Load a single output writer block from a JSON file, e.g.
        {"url": "...", "username": "...", "password": "...", "database": "...", "settings": {...}}.
        """
        raw = json.loads(Path(path).read_text())
        if not isinstance(raw, dict):
            raise ConfigurationError(f"{path}: expected a JSON object, got {type(raw).__name__}")
        missing = [key for key in ("url", "database") if not raw.get(key)]
        if missing:
            raise ConfigurationError(f"{path}: missing required key(s): {', '.join(missing)}")
        return WriterConfig.from_settings(
            raw["url"],
            raw.get("username", ""),
            raw.get("password", ""),
            raw["database"],
            raw.get("settings"),
        )


def configure_logging(level: int = logging.INFO) -> None:
    """Configure root logger for the writer."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )
    logging.getLogger("urllib3").setLevel(logging.WARNING)
