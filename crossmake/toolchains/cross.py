"""Containerized cross-compilation toolchain (cross-rs) for crossmake."""

import shutil

from crossmake.errors import UnsupportedAction
from crossmake.toolchain import NATIVE_TRIPLE, Target, Toolchain, ToolchainKind
from crossmake.toolchains import register_toolchain
from crossmake.toolchains.cargo import profile_args

CROSS_GIT_URL = "https://github.com/cross-rs/cross"

# Container engines cross can drive, in the order cross itself prefers them.
CONTAINER_ENGINES = ("docker", "podman")


class CrossToolchain(Toolchain):
    def __init__(self, git_url: str = CROSS_GIT_URL, engine: str | None = None):
        self._git_url = git_url
        self._engine = engine

    @property
    def name(self):
        return "cross"

    @property
    def kind(self):
        return ToolchainKind.CONTAINERIZED

    @property
    def executable(self):
        return "cross"

    def command(self, target: Target, action: str = "build") -> list[str]:
        if action != "build":
            raise UnsupportedAction(self.name, action, "only build runs inside the container")
        if target.triple == NATIVE_TRIPLE:
            raise UnsupportedAction(self.name, action, f"target {target.name} has no cross triple")
        return [self.executable, "build", "--target", target.triple, *profile_args(target)]

    def install_command(self) -> list[str]:
        return ["cargo", "install", "cross", "--git", self._git_url]

    def install_hint(self) -> str:
        return f"Install it with: {' '.join(self.install_command())} (or run `crossmake install-cross`)"

    def find_engine(self) -> str | None:
        """Return the container engine cross would use, if one is on PATH."""
        engines = (self._engine,) if self._engine else CONTAINER_ENGINES
        for engine in engines:
            if shutil.which(engine):
                return engine
        return None

    def doctor(self) -> dict:
        cross = shutil.which(self.executable)
        engine = self.find_engine()
        if cross and engine:
            return {"ok": True, "message": f"cross found, using {engine}"}
        missing = []
        if not cross:
            missing.append("cross")
        if not engine:
            missing.append(self._engine or "docker or podman")
        return {"ok": False, "message": f"Missing: {', '.join(missing)}"}


register_toolchain(CrossToolchain())
