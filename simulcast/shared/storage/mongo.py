"""
MongoDB client manager for the credential store.

One Motor client per label, created lazily and closed on process exit.
"""

import atexit
import threading
from typing import Dict
from urllib.parse import parse_qs, urlsplit

from loguru import logger
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from ..config import config


class MongoManager:
    """
    Thread-safe singleton that tracks Motor clients by label.

    Connection string priority for the `default` label:
    1. MONGO_URL_DEFAULT
    2. MONGO_URL
    3. mongodb://localhost:27017
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if hasattr(self, "_initialized"):
            return

        self._clients: Dict[str, AsyncIOMotorClient] = {}
        self._clients_lock = threading.Lock()
        self._max_pool_size = config.get_mongo_max_pool_size()
        self._server_selection_timeout = config.get_mongo_server_selection_timeout()
        self._connect_timeout = config.get_mongo_connect_timeout()
        self._socket_timeout = config.get_mongo_socket_timeout()
        logger.info(
            "Loaded MongoDB parameters: pool={} server_selection={}ms connect={}ms socket={}ms",
            self._max_pool_size,
            self._server_selection_timeout,
            self._connect_timeout,
            self._socket_timeout,
        )

        atexit.register(self.close_all)
        self._initialized = True

    @staticmethod
    def hide_password(connection_string: str) -> str:
        """Replace the password part of a connection string with `***`."""
        parts = urlsplit(connection_string)
        if not parts.password:
            return connection_string
        netloc = parts.netloc.replace(f":{parts.password}@", ":***@", 1)
        return parts._replace(netloc=netloc).geturl()

    @staticmethod
    def _replica_set_name(connection_string: str) -> str | None:
        values = parse_qs(urlsplit(connection_string).query).get("replicaSet")
        return values[0] if values else None

    def _create_client(self, label: str) -> AsyncIOMotorClient:
        connection_string = config.get_mongo_url(label)
        if not connection_string:
            raise ValueError(f"No MongoDB connection string found for label '{label}'")
        options = dict(
            serverSelectionTimeoutMS=self._server_selection_timeout,
            connectTimeoutMS=self._connect_timeout,
            socketTimeoutMS=self._socket_timeout,
            maxPoolSize=self._max_pool_size,
            tz_aware=True,
        )
        replica_set = self._replica_set_name(connection_string)
        if replica_set:
            options["replicaSet"] = replica_set

        logger.info(
            "Open MongoDB client for label '{}': {}",
            label,
            self.hide_password(connection_string),
        )
        return AsyncIOMotorClient(connection_string, **options)

    def get_client(self, label: str | None = None) -> AsyncIOMotorClient:
        label = label or "default"
        with self._clients_lock:
            if label not in self._clients:
                self._clients[label] = self._create_client(label)
            return self._clients[label]

    def get_database(self, name: str | None = None, label: str | None = None) -> AsyncIOMotorDatabase:
        """Database `name`, or the one named in the connection string, or `simulcast`."""
        client = self.get_client(label)
        if name:
            return client[name]
        return client.get_default_database(default=config.get("MONGO_DATABASE", "simulcast"))

    def close_client(self, label: str):
        with self._clients_lock:
            client = self._clients.pop(label, None)
        if client is not None:
            client.close()
            logger.info("Closed MongoDB client for label '{}'", label)

    def close_all(self):
        with self._clients_lock:
            labels = list(self._clients.keys())
        for label in labels:
            self.close_client(label)


mongo_manager = MongoManager()


__all__ = ["MongoManager", "mongo_manager"]
