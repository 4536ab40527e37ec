"""Native cargo toolchain for crossmake."""

import shutil

from crossmake.errors import UnsupportedAction
from crossmake.toolchain import Target, Toolchain, ToolchainKind
from crossmake.toolchains import register_toolchain

_ACTIONS = ("build", "run", "clean")


def profile_args(target: Target) -> list[str]:
    """Return the single cargo profile flag for a target's build mode."""
    return ["--profile", target.profile.cargo_profile]


class CargoToolchain(Toolchain):

    @property
    def name(self):
        return "cargo"

    @property
    def kind(self):
        return ToolchainKind.NATIVE

    @property
    def executable(self):
        return "cargo"

    def command(self, target: Target, action: str = "build") -> list[str]:
        if action not in _ACTIONS:
            raise UnsupportedAction(self.name, action)
        if action == "clean":
            return [self.executable, "clean"]
        return [self.executable, action, *profile_args(target)]

    def install_hint(self) -> str:
        return "Install Rust: curl --proto '=https' --tlsv1.2 -sSf https://sh.rustup.rs | sh"

    def doctor(self) -> dict:
        if shutil.which(self.executable):
            return {"ok": True, "message": "cargo found"}
        return {"ok": False, "message": f"cargo not found. {self.install_hint()}"}


register_toolchain(CargoToolchain())
