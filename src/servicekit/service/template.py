"""Run script rendering.

Scripts use ``{{ name }}`` placeholders, leaving ``$`` free for shell
variables. The values substituted into them are already shell-escaped, so
custom templates get the same quoting as the default one.
"""

import shlex
from pathlib import Path
from string import Template

from servicekit.config.models import OPTION_RUNIT_SCRIPT, ServiceConfig
from servicekit.service.errors import TemplateError

DEFAULT_RUN_SCRIPT = """\
#!/bin/sh
exec 2>&1
cd {{ working_directory }}
exec {{ path }}{{ arguments }}
"""


class RunScriptTemplate(Template):
    """``string.Template`` with ``{{ name }}`` placeholders.

    ``{{{{`` renders a literal ``{{``. Any other ``{{`` not followed by an
    identifier and ``}}`` is malformed.
    """

    delimiter = "{{"
    pattern = r"""
    \{\{(?:
      (?P<escaped>\{\{)
      | \s*(?P<named>[_a-z][_a-z0-9]*)\s*\}\}
      | (?P<braced>(?!))
      | (?P<invalid>)
    )
    """


def shell_escape(value: str) -> str:
    """Quote a value for safe use as one POSIX shell word."""
    return shlex.quote(value)


def template_context(config: ServiceConfig, exec_path: Path) -> dict[str, str]:
    """Build the substitution values for a run script."""
    arguments = "".join(f" {shell_escape(arg)}" for arg in config.arguments)
    return {
        "name": shell_escape(config.name),
        "display_name": shell_escape(str(config)),
        "description": shell_escape(config.description),
        "working_directory": shell_escape(config.working_directory or "/"),
        "path": shell_escape(str(exec_path)),
        "arguments": arguments,
    }


def render_run_script(config: ServiceConfig, exec_path: Path) -> str:
    """Render the run script for a service.

    A non-empty ``RunItScript`` option replaces the default template
    entirely.

    Raises:
        TemplateError: If the template references an unknown placeholder
            or contains a malformed ``{{``.
    """
    source = config.option_str(OPTION_RUNIT_SCRIPT) or DEFAULT_RUN_SCRIPT
    try:
        context = template_context(config, exec_path)
        return RunScriptTemplate(source).substitute(context)
    except KeyError as e:
        raise TemplateError(f"Unknown placeholder in run script template: {e}") from e
    except ValueError as e:
        raise TemplateError(f"Malformed run script template: {e}") from e
