"""Built-in toolchains, keyed by name; each module registers itself on import."""

from crossmake.toolchain import Toolchain, ToolchainKind

_REGISTRY: dict[str, Toolchain] = {}


def register_toolchain(toolchain: Toolchain) -> None:
    _REGISTRY[toolchain.name] = toolchain


def get_toolchain(name: str) -> Toolchain | None:
    return _REGISTRY.get(name)


def toolchains_by_kind() -> dict[ToolchainKind, Toolchain]:
    """Map each toolchain kind to the first toolchain registered for it."""
    by_kind: dict[ToolchainKind, Toolchain] = {}
    for tc in _REGISTRY.values():
        by_kind.setdefault(tc.kind, tc)
    return by_kind


from crossmake.toolchains import cargo as _cargo  # noqa: F401, E402
from crossmake.toolchains import cross as _cross  # noqa: F401, E402
