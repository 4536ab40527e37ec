"""Project configuration for crossmake."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore[no-redef]

from crossmake.toolchains.cross import CROSS_GIT_URL

CONFIG_FILENAME = "crossmake.toml"
DEFAULT_TAIL_LINES = 50


@dataclass
class BuildConfig:
    tail_lines: int = DEFAULT_TAIL_LINES


@dataclass
class CrossConfig:
    git: str = CROSS_GIT_URL
    engine: str | None = None


@dataclass
class ProjectConfig:
    build: BuildConfig = field(default_factory=BuildConfig)
    cross: CrossConfig = field(default_factory=CrossConfig)
    targets: dict[str, dict] = field(default_factory=dict)


def load_project_config(project_dir: Path | str) -> ProjectConfig:
    """Parse crossmake.toml and return a typed ProjectConfig.

    A missing file yields the defaults; crossmake works without any config.
    """
    toml_path = Path(project_dir) / CONFIG_FILENAME
    if not toml_path.exists():
        return ProjectConfig()

    with open(toml_path, "rb") as f:
        data = tomllib.load(f)

    build_data = _table(data, "build")
    cross_data = _table(data, "cross")
    targets = _table(data, "targets")
    for name, row in targets.items():
        if not isinstance(row, dict):
            raise ValueError(f"targets.{name} must be a table, got: {row!r}")

    tail_lines = build_data.get("tail_lines", DEFAULT_TAIL_LINES)
    if isinstance(tail_lines, bool) or not isinstance(tail_lines, int) or tail_lines < 1:
        raise ValueError(f"build.tail_lines must be a positive integer, got: {tail_lines!r}")

    git = cross_data.get("git", CROSS_GIT_URL)
    engine = cross_data.get("engine")
    if not isinstance(git, str) or not (engine is None or isinstance(engine, str)):
        raise ValueError("cross.git and cross.engine must be strings")

    return ProjectConfig(
        build=BuildConfig(tail_lines=tail_lines),
        cross=CrossConfig(git=git, engine=engine),
        targets=targets,
    )


def _table(data: dict, key: str) -> dict:
    value = data.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"[{key}] must be a table, got: {value!r}")
    return value
