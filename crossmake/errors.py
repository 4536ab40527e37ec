"""Error taxonomy for crossmake builds."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from crossmake.toolchain import BuildResult


class CrossmakeError(Exception):
    """Structured build error with a classification kind and exit code."""

    kind = "error"
    exit_code = 1

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": self.message, "exit_code": self.exit_code}


class UnknownTarget(CrossmakeError):
    kind = "unknown-target"

    def __init__(self, name: str, available: list[str] | None = None):
        message = f"Unknown target: {name}"
        if available:
            message += f". Available: {', '.join(available)}"
        super().__init__(message)
        self.name = name


class ToolchainMissing(CrossmakeError):
    """The toolchain a target needs is not installed. Nothing was built."""

    kind = "toolchain-missing"
    exit_code = 2

    def __init__(self, toolchain: str, install_hint: str):
        super().__init__(f"{toolchain} not found on PATH. {install_hint}")
        self.toolchain = toolchain
        self.install_hint = install_hint

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["install_hint"] = self.install_hint
        return data


class BuildFailed(CrossmakeError):
    """The toolchain ran and returned non-zero."""

    kind = "build-failed"

    def __init__(self, result: BuildResult):
        super().__init__(f"Build exited with status {result.exit_code}")
        self.result = result

    @property
    def child_exit_code(self) -> int:
        return self.result.exit_code

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["result"] = self.result.to_dict()
        return data


class InvocationError(CrossmakeError):
    """The toolchain process could not be started, or was cancelled."""

    kind = "invocation-error"

    def __init__(self, cause: str | BaseException):
        super().__init__(f"Could not run toolchain: {cause}")
        self.cause = cause

    @property
    def cancelled(self) -> bool:
        return self.cause == "cancelled"


class UnsupportedAction(CrossmakeError, ValueError):
    """The toolchain cannot perform the requested action for this target."""

    kind = "unsupported-action"

    def __init__(self, toolchain: str, action: str, reason: str = ""):
        message = f"{toolchain} cannot {action}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.toolchain = toolchain
        self.action = action
