"""Toolchain abstraction and build data model for crossmake."""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass


class Profile(str, enum.Enum):
    DEBUG = "debug"
    RELEASE = "release"

    @property
    def cargo_profile(self) -> str:
        """Name of the cargo profile this build mode selects."""
        return "dev" if self is Profile.DEBUG else "release"


class ToolchainKind(str, enum.Enum):
    NATIVE = "native"
    CONTAINERIZED = "containerized"


NATIVE_TRIPLE = "native"


@dataclass(frozen=True)
class Target:
    """A named build configuration: platform triple plus profile."""
    name: str
    triple: str
    profile: Profile
    requires_container_toolchain: bool = False
    description: str = ""

    @property
    def kind(self) -> ToolchainKind:
        if self.requires_container_toolchain:
            return ToolchainKind.CONTAINERIZED
        return ToolchainKind.NATIVE

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "triple": self.triple,
            "profile": self.profile.value,
            "toolchain": self.kind.value,
            "description": self.description,
        }


@dataclass(frozen=True)
class ToolchainHandle:
    """A resolved, ready-to-run toolchain invocation."""
    kind: ToolchainKind
    installed: bool
    command: tuple[str, ...]
    target: Target | None = None


@dataclass(frozen=True)
class BuildResult:
    target: Target | None
    exit_code: int
    duration_ms: int
    stdout_tail: str = ""
    stderr_tail: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    def to_dict(self) -> dict:
        return {
            "target": self.target.to_dict() if self.target else None,
            "exit_code": self.exit_code,
            "duration_ms": self.duration_ms,
            "stdout_tail": self.stdout_tail,
            "stderr_tail": self.stderr_tail,
        }


class Toolchain(ABC):
    """Abstract base class for the toolchains a target can be built with."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Toolchain name (e.g., 'cargo', 'cross')."""

    @property
    @abstractmethod
    def kind(self) -> ToolchainKind:
        """Whether this toolchain runs on the host or inside a container."""

    @property
    @abstractmethod
    def executable(self) -> str:
        """Binary that must be on PATH for this toolchain to be usable."""

    @abstractmethod
    def command(self, target: Target, action: str = "build") -> list[str]:
        """Return the argv for running `action` against `target`."""

    def install_hint(self) -> str:
        """Return a one-line hint on how to install this toolchain."""
        return f"Install {self.executable} and make sure it is on PATH"

    def install_command(self) -> list[str] | None:
        """Return the argv that installs this toolchain, if it can self-install."""
        return None

    def doctor(self) -> dict:
        """Check if this toolchain is installed. Returns {"ok": bool, "message": str}."""
        return {"ok": True, "message": "No checks configured"}
