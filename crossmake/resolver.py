"""Toolchain resolution: pick the toolchain for a target and build its command."""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable, Mapping

from crossmake.errors import ToolchainMissing
from crossmake.toolchain import Target, Toolchain, ToolchainHandle, ToolchainKind
from crossmake.toolchains import toolchains_by_kind

logger = logging.getLogger(__name__)


class ToolchainResolver:
    """Maps targets to runnable toolchain handles.

    The toolchain kind is decided only by the target's
    ``requires_container_toolchain`` flag, so a containerized target can never
    fall through to the native toolchain.
    """

    def __init__(
        self,
        toolchains: Mapping[ToolchainKind, Toolchain] | None = None,
        which: Callable[[str], str | None] | None = None,
    ):
        self._toolchains = dict(toolchains) if toolchains is not None else toolchains_by_kind()
        self._which = which if which is not None else shutil.which

    def toolchain_for(self, kind: ToolchainKind) -> Toolchain:
        try:
            return self._toolchains[kind]
        except KeyError:
            raise LookupError(f"No {kind.value} toolchain registered") from None

    def is_installed(self, kind: ToolchainKind) -> bool:
        """Return True if the toolchain of this kind is on PATH. No side effects."""
        return self._which(self.toolchain_for(kind).executable) is not None

    def resolve(self, target: Target, action: str = "build") -> ToolchainHandle:
        toolchain = self.toolchain_for(target.kind)
        installed = self.is_installed(target.kind)
        if target.kind is ToolchainKind.CONTAINERIZED and not installed:
            logger.debug("%s needs %s, which is not installed", target.name, toolchain.executable)
            raise ToolchainMissing(toolchain.name, toolchain.install_hint())

        command = tuple(toolchain.command(target, action))
        logger.debug("Resolved %s (%s) to: %s", target.name, action, " ".join(command))
        return ToolchainHandle(kind=toolchain.kind, installed=installed, command=command, target=target)

    def install_handle(self) -> ToolchainHandle:
        """Return the handle that installs the containerized toolchain.

        Installing runs through the native toolchain, so that one must exist.
        """
        cross = self.toolchain_for(ToolchainKind.CONTAINERIZED)
        command = cross.install_command()
        if command is None:
            raise ToolchainMissing(cross.name, cross.install_hint())
        native = self.toolchain_for(ToolchainKind.NATIVE)
        if not self.is_installed(ToolchainKind.NATIVE):
            raise ToolchainMissing(native.name, native.install_hint())
        return ToolchainHandle(kind=ToolchainKind.NATIVE, installed=True, command=tuple(command))
