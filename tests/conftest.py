"""Shared fixtures: a scripted daemon and logging isolation."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

import pytest

from dockercleaner.client import ContainerSummary, ImageSummary
from dockercleaner.exceptions import DaemonError

NOW = 1_700_000_000


class FakeDaemon:
    """DaemonClient double that records every stop and remove call."""

    def __init__(
        self,
        containers: Optional[List[ContainerSummary]] = None,
        images: Optional[List[ImageSummary]] = None,
        system_time: int = NOW,
    ) -> None:
        self.containers = containers or []
        self.images = images or []
        self.now = system_time
        self.stopped: List[tuple[str, int]] = []
        self.removed: List[str] = []
        self.failing_stops: set[str] = set()
        self.closed = False
        self.listed_images = False

    def system_time(self) -> int:
        return self.now

    def list_containers(self) -> List[ContainerSummary]:
        return list(self.containers)

    def list_images(self) -> List[ImageSummary]:
        self.listed_images = True
        return list(self.images)

    def stop_container(self, identifier: str, timeout: int) -> None:
        self.stopped.append((identifier, timeout))
        if identifier in self.failing_stops:
            raise DaemonError(f"Failed to stop container {identifier}: boom", identifier)

    def remove_image(self, identifier: str) -> List[Dict[str, str]]:
        # A second removal of the same id fails like the real daemon does
        if identifier in self.removed or identifier not in {i.identifier for i in self.images}:
            raise DaemonError(f"Failed to remove image {identifier}: No such image", identifier)
        self.removed.append(identifier)
        image = next(i for i in self.images if i.identifier == identifier)
        result = [{"Untagged": tag} for tag in image.repo_tags if tag != "<none>:<none>"]
        result.append({"Deleted": identifier})
        return result

    def close(self) -> None:
        self.closed = True


class ScriptedConfirmation:
    """Answers prompts from a fixed list and remembers the questions."""

    def __init__(self, *answers: str) -> None:
        self.answers = list(answers)
        self.questions: List[str] = []

    def __call__(self, message: str) -> str:
        self.questions.append(message)
        return self.answers.pop(0)


@pytest.fixture(autouse=True)
def restore_root_logging():
    """Drops handlers that setup_logging attached during the test."""

    root = logging.getLogger()
    before = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        if handler not in before:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
