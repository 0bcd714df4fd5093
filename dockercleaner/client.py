"""Narrow view of the Docker daemon: the five calls a cleanup run makes."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Protocol, Tuple

import docker
import requests
from dateutil import parser as date_parser

from .exceptions import DaemonConnectionError, DaemonError

logger = logging.getLogger(__name__)

# Errors the SDK lets through: its own, and raw transport errors from requests
_CLIENT_ERRORS = (docker.errors.DockerException, requests.exceptions.RequestException)


@dataclass(frozen=True)
class ContainerSummary:
    identifier: str
    created: int  # epoch seconds
    status: str


@dataclass(frozen=True)
class ImageSummary:
    identifier: str
    created: int  # epoch seconds
    repo_tags: Tuple[str, ...] = ()


class DaemonClient(Protocol):
    """What the cleaner needs from a daemon. Tests provide their own doubles."""

    def system_time(self) -> int: ...

    def list_containers(self) -> List[ContainerSummary]: ...

    def list_images(self) -> List[ImageSummary]: ...

    def stop_container(self, identifier: str, timeout: int) -> None: ...

    def remove_image(self, identifier: str) -> List[Dict[str, str]]: ...


class DockerDaemonClient:
    """DaemonClient backed by the Docker SDK low-level API."""

    def __init__(self, raw_client: Any):
        self._client = raw_client

    def get_raw_client(self) -> Any:
        return self._client

    def system_time(self) -> int:
        """Returns the daemon clock in epoch seconds."""
        try:
            info = self._client.api.info()
        except _CLIENT_ERRORS as e:
            raise DaemonError(f"Failed to query daemon info: {e}") from e

        raw_time = info.get("SystemTime")
        if not raw_time:
            raise DaemonError("Daemon info did not include SystemTime")
        try:
            # RFC 3339 with nanoseconds, isoparse truncates to microseconds
            system_time = date_parser.isoparse(raw_time)
        except ValueError as e:
            raise DaemonError(f"Failed to parse daemon SystemTime {raw_time!r}: {e}") from e
        return int(system_time.timestamp())

    def list_containers(self) -> List[ContainerSummary]:
        """Lists running containers."""
        try:
            raw_containers = self._client.api.containers(all=False)
        except _CLIENT_ERRORS as e:
            raise DaemonError(f"Failed to list containers: {e}") from e
        return [
            ContainerSummary(
                identifier=c["Id"],
                created=int(c.get("Created", 0)),
                status=c.get("Status", ""),
            )
            for c in raw_containers
        ]

    def list_images(self) -> List[ImageSummary]:
        """Lists top-level images."""
        try:
            raw_images = self._client.api.images(all=False)
        except _CLIENT_ERRORS as e:
            raise DaemonError(f"Failed to list images: {e}") from e
        return [
            ImageSummary(
                identifier=i["Id"],
                created=int(i.get("Created", 0)),
                repo_tags=tuple(i.get("RepoTags") or ()),
            )
            for i in raw_images
        ]

    def stop_container(self, identifier: str, timeout: int) -> None:
        try:
            self._client.api.stop(identifier, timeout=timeout)
        except _CLIENT_ERRORS as e:
            raise DaemonError(f"Failed to stop container {identifier}: {e}", identifier) from e

    def remove_image(self, identifier: str) -> List[Dict[str, str]]:
        try:
            result = self._client.api.remove_image(identifier)
        except _CLIENT_ERRORS as e:
            raise DaemonError(f"Failed to remove image {identifier}: {e}", identifier) from e
        return result or []

    def close(self) -> None:
        self._client.close()


def connect(url: str) -> DockerDaemonClient:
    """Connects to the daemon at `url` and checks that it answers."""
    try:
        raw_client = docker.DockerClient(base_url=url)
        raw_client.ping()  # Verify connection
    except _CLIENT_ERRORS as e:
        error_msg = str(e)
        if "Permission denied" in error_msg:
            logger.error("Permission denied on the Docker socket. Please ensure the user is in the 'docker' group.")
        raise DaemonConnectionError(f"Could not connect to Docker daemon at {url}: {e}") from e
    logger.debug(f"Connected to Docker daemon at {url}")
    return DockerDaemonClient(raw_client)
