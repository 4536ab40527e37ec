"""Target catalog: the fixed table of buildable targets."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType

from crossmake.errors import UnknownTarget
from crossmake.toolchain import NATIVE_TRIPLE, Profile, Target

BUILTIN_TARGETS = (
    Target("build", NATIVE_TRIPLE, Profile.DEBUG,
           description="Debug build for current platform"),
    Target("release", NATIVE_TRIPLE, Profile.RELEASE,
           description="Release build for current platform"),
    Target("windows", "x86_64-pc-windows-gnu", Profile.RELEASE, requires_container_toolchain=True,
           description="Cross-compile to Windows (x86_64)"),
    Target("linux-arm", "aarch64-unknown-linux-gnu", Profile.RELEASE, requires_container_toolchain=True,
           description="Cross-compile to Linux ARM64"),
)


class TargetCatalog:
    """Immutable name -> Target mapping, in insertion order."""

    def __init__(self, targets: Iterable[Target]):
        table: dict[str, Target] = {}
        for target in targets:
            if target.name in table:
                raise ValueError(f"Duplicate target name: {target.name}")
            table[target.name] = target
        self._targets: Mapping[str, Target] = MappingProxyType(table)

    def lookup(self, name: str) -> Target:
        try:
            return self._targets[name]
        except KeyError:
            raise UnknownTarget(name, available=self.names()) from None

    def names(self) -> list[str]:
        return list(self._targets)

    def entries(self) -> list[Target]:
        return list(self._targets.values())

    def __contains__(self, name: object) -> bool:
        return name in self._targets

    def __len__(self) -> int:
        return len(self._targets)


def target_from_config(name: str, data: dict) -> Target:
    """Build a cross-compiled Target from a [targets.<name>] table."""
    if not isinstance(data, Mapping):
        raise ValueError(f"targets.{name} must be a table, got: {data!r}")
    triple = data.get("triple")
    if not isinstance(triple, str) or not triple or triple == NATIVE_TRIPLE:
        raise ValueError(f"targets.{name}.triple must be a platform triple")
    try:
        profile = Profile(data.get("profile", Profile.RELEASE.value))
    except ValueError:
        raise ValueError(f"targets.{name}.profile must be 'debug' or 'release'") from None
    return Target(
        name=name,
        triple=triple,
        profile=profile,
        requires_container_toolchain=True,
        description=data.get("description", f"Cross-compile to {triple}"),
    )


def default_catalog(extra: Mapping[str, dict] | None = None) -> TargetCatalog:
    """Return the built-in catalog, plus any extra rows from crossmake.toml."""
    targets = list(BUILTIN_TARGETS)
    builtin_names = {t.name for t in BUILTIN_TARGETS}
    for name, data in (extra or {}).items():
        if name in builtin_names:
            raise ValueError(f"targets.{name} redefines a built-in target")
        targets.append(target_from_config(name, data))
    return TargetCatalog(targets)
