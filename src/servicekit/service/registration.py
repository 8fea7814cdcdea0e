"""On-disk service registration: a definition directory plus a live symlink.

The definition directory holds the ``run`` script. The symlink in the
supervisor's live tree points back at it; the supervisor daemon notices
the link on its own schedule.
"""

import logging
import os
import shutil
from enum import Enum
from pathlib import Path

from servicekit.service.errors import AlreadyExistsError, ServiceError

logger = logging.getLogger(__name__)

RUN_SCRIPT_NAME = "run"
RUN_SCRIPT_MODE = 0o755
DIRECTORY_MODE = 0o755


class RegistrationState(Enum):
    """How far a registration has been applied."""

    ABSENT = "absent"
    REGISTERED = "registered"
    LIVE = "live"


class Registration:
    """Definition directory and live symlink for one service."""

    def __init__(self, definition_path: Path, live_path: Path):
        self.definition_path = definition_path
        self.live_path = live_path

    @property
    def run_script_path(self) -> Path:
        return self.definition_path / RUN_SCRIPT_NAME

    @property
    def state(self) -> RegistrationState:
        """Current state, judged by whichever half is present.

        A dangling live link (definition removed) still counts as LIVE so
        that ``remove`` is attempted.
        """
        if self.live_path.is_symlink():
            return RegistrationState.LIVE
        if self.definition_path.exists():
            return RegistrationState.REGISTERED
        return RegistrationState.ABSENT

    @property
    def is_partial(self) -> bool:
        """True when exactly one of directory and symlink exists."""
        return self.definition_path.exists() != self.live_path.is_symlink()

    def create_directory(self) -> None:
        """Create the definition directory.

        Raises:
            AlreadyExistsError: If the definition path or the live path
                already exists.
            ServiceError: If the directory cannot be created.
        """
        for path in (self.definition_path, self.live_path):
            if path.exists() or path.is_symlink():
                raise AlreadyExistsError(path)
        try:
            self.definition_path.mkdir(mode=DIRECTORY_MODE, parents=True)
        except OSError as e:
            raise ServiceError(
                f"Failed to create service definition {self.definition_path}: {e}"
            ) from e
        logger.debug("Created %s", self.definition_path)

    def write_run_script(self, script: str) -> Path:
        """Write the executable run script into the definition directory."""
        path = self.run_script_path
        try:
            path.write_text(script)
            os.chmod(path, RUN_SCRIPT_MODE)
        except OSError as e:
            raise ServiceError(f"Failed to write run script {path}: {e}") from e
        logger.debug("Wrote %s", path)
        return path

    def activate(self) -> None:
        """Expose the definition to the supervisor via the live symlink."""
        try:
            self.live_path.symlink_to(self.definition_path, target_is_directory=True)
        except OSError as e:
            raise ServiceError(f"Failed to link {self.live_path}: {e}") from e
        logger.info("Linked %s -> %s", self.live_path, self.definition_path)

    def remove(self) -> None:
        """Remove the live symlink, then the definition directory.

        A missing symlink is not an error; failing to remove the
        definition directory is.

        Raises:
            ServiceError: If the definition directory cannot be removed.
        """
        try:
            self.live_path.unlink()
            logger.info("Removed %s", self.live_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Could not remove %s: %s", self.live_path, e)

        if not self.definition_path.exists() and not self.definition_path.is_symlink():
            return
        try:
            if self.definition_path.is_dir() and not self.definition_path.is_symlink():
                shutil.rmtree(self.definition_path)
            else:
                self.definition_path.unlink()
        except OSError as e:
            raise ServiceError(
                f"Failed to remove service definition {self.definition_path}: {e}"
            ) from e
        logger.info("Removed %s", self.definition_path)
