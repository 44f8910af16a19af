"""Tool-host launch strategies.

The locator's artifact kind (its file suffix) selects the interpreter
that runs the host. Resolution is pure and happens before anything is
spawned, so an unsupported or missing locator fails without side effects.
"""

from __future__ import annotations

import shutil
import sys
from dataclasses import dataclass, field
from pathlib import Path

from toolbridge.core.errors import HostConnectionError


@dataclass(frozen=True, slots=True)
class HostCommand:
    """Process invocation for one tool host."""

    command: str
    args: tuple[str, ...] = ()
    env: dict[str, str] = field(default_factory=dict)

    def describe(self) -> str:
        return " ".join([self.command, *self.args])


def _python() -> str:
    return sys.executable or "python3"


def _node() -> str:
    return shutil.which("node") or "node"


# suffix -> interpreter resolver
_STRATEGIES = {
    ".py": _python,
    ".js": _node,
    ".mjs": _node,
    ".cjs": _node,
}


def supported_kinds() -> list[str]:
    """Locator suffixes that can be launched."""
    return sorted(_STRATEGIES)


def resolve_command(locator: str, env: dict[str, str] | None = None) -> HostCommand:
    """Pick the launch command for a locator.

    Raises:
        HostConnectionError: If the locator's kind is unsupported or the
            file does not exist.
    """
    if not locator:
        raise HostConnectionError("Tool host locator is empty")

    path = Path(locator)
    resolver = _STRATEGIES.get(path.suffix.lower())
    if resolver is None:
        kinds = ", ".join(supported_kinds())
        msg = (
            f"Unsupported tool host kind {path.suffix or '(none)'!r} "
            f"for {locator} (expected one of: {kinds})"
        )
        raise HostConnectionError(msg)

    if not path.is_file():
        msg = f"Tool host script not found: {locator}"
        raise HostConnectionError(msg)

    return HostCommand(
        command=resolver(),
        args=(str(path),),
        env=dict(env or {}),
    )
