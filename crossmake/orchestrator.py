"""Build orchestration: catalog lookup, toolchain resolution, invocation."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from crossmake.catalog import TargetCatalog
from crossmake.errors import CrossmakeError
from crossmake.invoker import BuildInvoker
from crossmake.resolver import ToolchainResolver
from crossmake.toolchain import BuildResult, Target, ToolchainKind

logger = logging.getLogger(__name__)

# Native target whose toolchain handles clean and run.
HOST_TARGET = "build"


class BuildState(str, enum.Enum):
    REQUESTED = "requested"
    RESOLVING = "resolving"
    RESOLVED = "resolved"
    INVOKING = "invoking"
    FAILED = "failed"
    COMPLETED = "completed"


@dataclass(frozen=True)
class BuildReport:
    """Outcome of one orchestrator call.

    ``state`` is ``failed`` when nothing was run (unknown target, missing
    toolchain) and ``completed`` once a process was attempted, whatever its
    outcome.
    """
    target_name: str
    action: str
    state: BuildState
    result: BuildResult | None = None
    error: CrossmakeError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def exit_code(self) -> int:
        return 0 if self.error is None else self.error.exit_code

    @property
    def triple(self) -> str | None:
        if self.result is not None and self.result.target is not None:
            return self.result.target.triple
        return None

    def to_dict(self) -> dict:
        return {
            "target": self.target_name,
            "action": self.action,
            "state": self.state.value,
            "ok": self.ok,
            "exit_code": self.exit_code,
            "result": self.result.to_dict() if self.result else None,
            "error": self.error.to_dict() if self.error else None,
        }


class Orchestrator:
    """Runs one target at a time. Errors come back in the report; nothing is retried."""

    def __init__(self, catalog: TargetCatalog, resolver: ToolchainResolver, invoker: BuildInvoker):
        self.catalog = catalog
        self.resolver = resolver
        self.invoker = invoker

    def run(self, target_name: str, action: str = "build") -> BuildReport:
        self._transition(target_name, action, BuildState.RESOLVING)
        try:
            target = self.catalog.lookup(target_name)
            handle = self.resolver.resolve(target, action)
        except CrossmakeError as e:
            self._transition(target_name, action, BuildState.FAILED, e.kind)
            return BuildReport(target_name, action, BuildState.FAILED, error=e)
        self._transition(target_name, action, BuildState.RESOLVED)
        return self._invoke(target_name, action, handle)

    def _invoke(self, target_name: str, action: str, handle) -> BuildReport:
        self._transition(target_name, action, BuildState.INVOKING)
        try:
            result = self.invoker.invoke(handle)
        except CrossmakeError as e:
            self._transition(target_name, action, BuildState.COMPLETED, e.kind)
            result = getattr(e, "result", None)
            return BuildReport(target_name, action, BuildState.COMPLETED, result=result, error=e)
        self._transition(target_name, action, BuildState.COMPLETED, "success")
        return BuildReport(target_name, action, BuildState.COMPLETED, result=result)

    @staticmethod
    def _transition(target_name: str, action: str, state: BuildState, detail: str = "") -> None:
        suffix = f" ({detail})" if detail else ""
        logger.debug("%s %s: %s%s", action, target_name, state.value, suffix)

    def list_targets(self) -> list[Target]:
        return self.catalog.entries()

    def clean(self) -> BuildReport:
        """Remove build artifacts through the native toolchain's clean."""
        return self.run(HOST_TARGET, action="clean")

    def run_app(self) -> BuildReport:
        """Debug-build the application for the host and execute it."""
        return self.run(HOST_TARGET, action="run")

    def install_cross(self) -> BuildReport:
        """Install the containerized toolchain unless it is already on PATH."""
        if self.resolver.is_installed(ToolchainKind.CONTAINERIZED):
            logger.info("cross is already installed")
            return BuildReport("install-cross", "install", BuildState.COMPLETED)
        try:
            handle = self.resolver.install_handle()
        except CrossmakeError as e:
            return BuildReport("install-cross", "install", BuildState.FAILED, error=e)
        return self._invoke("install-cross", "install", handle)
