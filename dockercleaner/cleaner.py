import logging
import sys
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

import typer

from .client import ContainerSummary, DaemonClient, ImageSummary
from .config import Options, threshold_seconds
from .exceptions import DaemonError

logger = logging.getLogger(__name__)

STOP_GRACE_PERIOD_SECONDS = 10
UNTAGGED_SENTINEL = "<none>:<none>"
CONFIRMATION_ANSWER = "yes"

# Shows the question and returns the line the operator typed
Confirmation = Callable[[str], str]


@dataclass(frozen=True)
class ActionOutcome:
    """Result of one stop or remove call."""

    identifier: str
    error: Optional[str] = None
    deleted: Tuple[str, ...] = ()
    untagged: Tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class ActionReport:
    """Everything one action category (stop or delete) did."""

    action: str
    outcomes: Tuple[ActionOutcome, ...] = ()
    confirmed: bool = True
    dry_run: bool = False

    @property
    def errors(self) -> Tuple[ActionOutcome, ...]:
        return tuple(o for o in self.outcomes if not o.ok)


class StdinConfirmation:
    """Asks on the terminal and reads one line from standard input."""

    def __call__(self, message: str) -> str:
        typer.echo(message)
        typer.echo("Do you want to continue? (yes/no)")
        # readline returns "" at end of input, which counts as a refusal.
        # Ctrl-C raises KeyboardInterrupt and ends the run.
        return sys.stdin.readline().rstrip("\r\n")


def is_untagged(image: ImageSummary) -> bool:
    """True only when the single tag is the literal <none>:<none>."""
    return len(image.repo_tags) == 1 and image.repo_tags[0] == UNTAGGED_SENTINEL


def select_containers_to_stop(
    containers: Iterable[ContainerSummary], system_time: int, stop_old: timedelta
) -> List[str]:
    """Ids of containers running strictly longer than `stop_old`, by daemon time."""
    limit = threshold_seconds(stop_old)
    to_stop = []
    for container in containers:
        container_age = system_time - container.created
        logger.debug(f"Container {container.identifier} is {container_age}s old")
        if container_age > limit:
            logger.info(f"Going to stop container {container.identifier}, {container.status}")
            to_stop.append(container.identifier)
    return to_stop


def select_old_images(images: Iterable[ImageSummary], system_time: int, clean_old: timedelta) -> List[str]:
    limit = threshold_seconds(clean_old)
    to_delete = []
    for image in images:
        image_age = system_time - image.created
        if image_age > limit:
            logger.info(
                f"Going to delete {image.identifier} ({list(image.repo_tags)}) "
                f"because image is older than {clean_old}"
            )
            to_delete.append(image.identifier)
    return to_delete


def select_untagged_images(images: Iterable[ImageSummary]) -> List[str]:
    to_delete = []
    for image in images:
        if is_untagged(image):
            logger.info(f"Going to delete {image.identifier} ({list(image.repo_tags)}) because it is not tagged")
            to_delete.append(image.identifier)
    return to_delete


def select_images_to_delete(images: Sequence[ImageSummary], system_time: int, options: Options) -> List[str]:
    """Age matches first, then untagged matches. An id may appear twice."""
    to_delete = []
    if options.clean_old is not None:
        to_delete.extend(select_old_images(images, system_time, options.clean_old))
    if options.clean_none:
        to_delete.extend(select_untagged_images(images))
    return to_delete


def confirm_action(confirm: Confirmation, message: str) -> bool:
    answer = confirm(message)
    if answer != CONFIRMATION_ANSWER:
        logger.info(f"Not confirmed (answer: {answer!r}), skipping")
        return False
    return True


def _log_errors(report: ActionReport) -> None:
    for outcome in report.errors:
        logger.error(outcome.error)


def stop_containers(
    client: DaemonClient, container_ids: Sequence[str], options: Options, confirm: Confirmation
) -> ActionReport:
    """Stops each container in turn. A failure never stops the rest of the batch."""
    if not container_ids:
        logger.info("No containers to stop.")
        return ActionReport("stop")

    if options.dry_run:
        for container_id in container_ids:
            logger.info(f"Would stop container {container_id}")
        return ActionReport("stop", confirmed=False, dry_run=True)

    if not options.no_confirm:
        if not confirm_action(confirm, f"This will stop {len(container_ids)} containers"):
            return ActionReport("stop", confirmed=False)

    outcomes = []
    for container_id in container_ids:
        try:
            client.stop_container(container_id, STOP_GRACE_PERIOD_SECONDS)
        except DaemonError as e:
            outcomes.append(ActionOutcome(container_id, error=str(e)))
            continue
        logger.info(f"STOPPED: {container_id}")
        outcomes.append(ActionOutcome(container_id))

    report = ActionReport("stop", tuple(outcomes))
    _log_errors(report)
    return report


def delete_images(
    client: DaemonClient, image_ids: Sequence[str], options: Options, confirm: Confirmation
) -> ActionReport:
    """Removes each image in turn, logging every deleted layer and untagged reference."""
    if not image_ids:
        logger.info("No images to delete.")
        return ActionReport("delete")

    if options.dry_run:
        for image_id in image_ids:
            logger.info(f"Would delete image {image_id}")
        return ActionReport("delete", confirmed=False, dry_run=True)

    if not options.no_confirm:
        if not confirm_action(confirm, f"This will delete {len(image_ids)} images"):
            return ActionReport("delete", confirmed=False)

    outcomes = []
    for image_id in image_ids:
        try:
            removed = client.remove_image(image_id)
        except DaemonError as e:
            outcomes.append(ActionOutcome(image_id, error=str(e)))
            continue

        deleted = []
        untagged = []
        for entry in removed:
            if entry.get("Deleted"):
                logger.info(f"DELETED: {entry['Deleted']}")
                deleted.append(entry["Deleted"])
            if entry.get("Untagged"):
                logger.info(f"UNTAGGED: {entry['Untagged']!r}")
                untagged.append(entry["Untagged"])
        outcomes.append(ActionOutcome(image_id, deleted=tuple(deleted), untagged=tuple(untagged)))

    report = ActionReport("delete", tuple(outcomes))
    _log_errors(report)
    return report


def run_cleanup(
    options: Options, client: DaemonClient, confirm: Optional[Confirmation] = None
) -> List[ActionReport]:
    """Runs one cleanup pass: old containers first, then old and untagged images.

    Daemon time is the only clock used for ages. Errors from the daemon info
    and listing calls propagate; stop and remove failures end up in the
    returned reports.
    """
    if confirm is None:
        confirm = StdinConfirmation()

    # Use system time from the docker daemon for computing ages
    system_time = client.system_time()
    reports = []

    if options.stop_old is not None:
        logger.info(f"Stopping containers that are running longer than: {options.stop_old}")
        running = client.list_containers()
        to_stop = select_containers_to_stop(running, system_time, options.stop_old)
        reports.append(stop_containers(client, to_stop, options, confirm))

    # Get image list only when cleaning images
    if options.cleans_images:
        images = client.list_images()
        to_delete = select_images_to_delete(images, system_time, options)
        reports.append(delete_images(client, to_delete, options, confirm))

    return reports
