from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import mysql.connector
from mysql.connector import pooling
from mysql.connector.errors import PoolError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    pool_size: int = 5
    # MySQL session offset (IST)
    time_zone: str = "+05:30"

    @classmethod
    def from_dict(cls, db_config: dict) -> "DBConfig":
        return cls(
            host=str(db_config.get("host", "localhost")),
            port=int(db_config.get("port", 3306)),
            user=str(db_config.get("user", "root")),
            password=str(db_config.get("password", "")),
            database=str(db_config.get("database", "pg_manager")),
            pool_size=int(db_config.get("pool_size", 5)),
            time_zone=str(db_config.get("time_zone", "+05:30")),
        )

    def connect_args(self, *, with_database: bool = True) -> dict:
        args = {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": self.password,
            "time_zone": self.time_zone,
            "charset": "utf8mb4",
        }
        if with_database:
            args["database"] = self.database
        return args


class DatabaseConnection:
    """Process-wide connection factory backed by a small mysql-connector pool.

    Connections handed out by ``connect()`` go back to the pool on ``close()``.
    When every pooled connection is busy (scheduler job running next to a
    request burst) a plain connection is opened instead.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self._config = config
        self._pool: Optional[pooling.MySQLConnectionPool] = None

    @property
    def config(self) -> DBConfig:
        return self._config

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None or cls._instance._config != config:
            cls._instance = DatabaseConnection(config)
        return cls._instance

    def _get_pool(self) -> Optional[pooling.MySQLConnectionPool]:
        if self._pool is None and self._config.pool_size > 0:
            self._pool = pooling.MySQLConnectionPool(
                pool_name=f"pg_manager_{self._config.database}",
                pool_size=self._config.pool_size,
                pool_reset_session=True,
                **self._config.connect_args(),
            )
            logger.info("MySQL pool ready (size=%s, db=%s)", self._config.pool_size, self._config.database)
        return self._pool

    def connect(self):
        pool = self._get_pool()
        if pool is None:
            return mysql.connector.connect(**self._config.connect_args())
        try:
            return pool.get_connection()
        except PoolError:
            logger.warning("MySQL pool exhausted; opening a direct connection")
            return mysql.connector.connect(**self._config.connect_args())
