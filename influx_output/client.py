import logging
from typing import Protocol

import requests

from influx_output.batch import BatchPoints
from influx_output.config import WriterConfig


class InfluxDB(Protocol):
    def write(self, batch: BatchPoints) -> None:
        ...

    def create_database(self, name: str) -> None:
        ...


class HttpInfluxDB:
    """Thin client for the InfluxDB 1.x HTTP API (/write and /query)."""

    def __init__(self, url: str, username: str = "", password: str = "", timeout: float = 10.0) -> None:
        self.url = url.rstrip("/")
        self.username = username
        self.password = password
        self.timeout = timeout
        self.session = requests.Session()

    def _auth_params(self) -> dict:
        if not self.username:
            return {}
        return {"u": self.username, "p": self.password}

    def write(self, batch: BatchPoints) -> None:
        lines = batch.lines()
        if not lines:
            logging.debug("Skipping InfluxDB write to %s: batch has no points", batch.database)
            return

        params = {
            "db": batch.database,
            "rp": batch.retention_policy,
            "precision": batch.precision,
            "consistency": batch.consistency.value,
        }
        params.update(self._auth_params())
        response = self.session.post(
            f"{self.url}/write",
            params=params,
            data="\n".join(lines).encode("utf-8"),
            headers={"Content-Type": "text/plain; charset=utf-8"},
            timeout=self.timeout,
        )
        response.raise_for_status()
        logging.debug("Wrote %s point(s) to InfluxDB database %s", len(lines), batch.database)

    def create_database(self, name: str) -> None:
        quoted = name.replace("\\", "\\\\").replace('"', '\\"')
        params = {"q": f'CREATE DATABASE "{quoted}"'}
        params.update(self._auth_params())
        response = self.session.post(f"{self.url}/query", params=params, timeout=self.timeout)
        response.raise_for_status()
        logging.info("Ensured InfluxDB database %s exists", name)


def create_influx_client(config: WriterConfig) -> HttpInfluxDB:
    return HttpInfluxDB(url=config.url, username=config.username, password=config.password)
