"""Backend construction settings.

Filesystem roots are explicit fields read once when the backend is built.
The environment variables below only feed the defaults in ``from_env``.
"""

import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict

RUN_SV_DIR_ENV = "RUN_SV_DIR"
RUN_IT_DIR_ENV = "RUN_IT_DIR"

DEFAULT_SERVICE_DIR = Path("/etc/service")
DEFAULT_DEFINITION_DIR = Path("/etc/runit")


class RunitSettings(BaseModel):
    """Locations and binaries used by the runit backend.

    ``service_dir`` is the live supervision tree watched by ``runsvdir``.
    ``definition_dir`` holds one directory per service with its ``run``
    script; live entries are symlinks back into it.
    """

    model_config = ConfigDict(frozen=True)

    service_dir: Path = DEFAULT_SERVICE_DIR
    definition_dir: Path = DEFAULT_DEFINITION_DIR
    control_binary: str = "sv"
    probe_binary: str = "runsvdir"

    @classmethod
    def from_env(cls) -> "RunitSettings":
        """Build settings, honouring RUN_SV_DIR and RUN_IT_DIR."""
        fields: dict[str, Path] = {}
        if value := os.environ.get(RUN_SV_DIR_ENV):
            fields["service_dir"] = Path(value)
        if value := os.environ.get(RUN_IT_DIR_ENV):
            fields["definition_dir"] = Path(value)
        return cls(**fields)
