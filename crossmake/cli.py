"""CLI entry point for crossmake."""

import json as jsonmod
import logging
from pathlib import Path

import click

from crossmake.catalog import default_catalog
from crossmake.config import load_project_config
from crossmake.errors import BuildFailed
from crossmake.invoker import BuildInvoker
from crossmake.orchestrator import BuildReport, Orchestrator
from crossmake.resolver import ToolchainResolver
from crossmake.toolchain import ToolchainKind
from crossmake.toolchains import get_toolchain
from crossmake.toolchains.cross import CrossToolchain


def _make_orchestrator(project_dir: Path) -> Orchestrator:
    """Wire catalog, resolver and invoker from crossmake.toml in project_dir."""
    try:
        config = load_project_config(project_dir)
        catalog = default_catalog(config.targets)
    except ValueError as e:
        raise click.UsageError(f"Invalid crossmake.toml: {e}")
    toolchains = {
        ToolchainKind.NATIVE: get_toolchain("cargo"),
        ToolchainKind.CONTAINERIZED: CrossToolchain(git_url=config.cross.git, engine=config.cross.engine),
    }
    return Orchestrator(
        catalog=catalog,
        resolver=ToolchainResolver(toolchains),
        invoker=BuildInvoker(cwd=project_dir, tail_lines=config.build.tail_lines),
    )


def _report(report: BuildReport, use_json: bool) -> None:
    """Print the outcome of a build and exit with its code."""
    if use_json:
        click.echo(jsonmod.dumps(report.to_dict(), indent=2))
    elif report.ok:
        if report.result is not None:
            seconds = report.result.duration_ms / 1000
            click.echo(f"[OK] {report.target_name} ({report.action}) finished in {seconds:.1f}s")
        else:
            click.echo(f"[OK] {report.target_name}: nothing to do")
    else:
        error = report.error
        click.echo(f"Error [{error.kind}]: {error.message}", err=True)
        if isinstance(error, BuildFailed):
            tail = error.result.stderr_tail or error.result.stdout_tail
            if tail:
                click.echo("Last output:", err=True)
                for line in tail.splitlines():
                    click.echo(f"  {line}", err=True)
    raise SystemExit(report.exit_code)


_json_option = click.option("--json", "use_json", is_flag=True, help="Output a JSON report.")


@click.group()
@click.option("--project-dir", type=click.Path(exists=True, file_okay=False, path_type=Path),
              default=None, help="Project directory (default: current directory).")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx, project_dir, verbose):
    """Build and cross-compile the application for every supported target."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = {"project_dir": project_dir or Path.cwd()}


def _orchestrator(ctx) -> Orchestrator:
    return _make_orchestrator(ctx.obj["project_dir"])


@main.command()
@_json_option
@click.pass_context
def build(ctx, use_json):
    """Debug build for current platform."""
    _report(_orchestrator(ctx).run("build"), use_json)


@main.command()
@_json_option
@click.pass_context
def release(ctx, use_json):
    """Release build for current platform."""
    _report(_orchestrator(ctx).run("release"), use_json)


@main.command()
@_json_option
@click.pass_context
def windows(ctx, use_json):
    """Cross-compile to Windows (x86_64)."""
    _report(_orchestrator(ctx).run("windows"), use_json)


@main.command("linux-arm")
@_json_option
@click.pass_context
def linux_arm(ctx, use_json):
    """Cross-compile to Linux ARM64."""
    _report(_orchestrator(ctx).run("linux-arm"), use_json)


@main.command("target")
@click.argument("name")
@_json_option
@click.pass_context
def target_cmd(ctx, name, use_json):
    """Build any catalog target by name, including ones from crossmake.toml."""
    _report(_orchestrator(ctx).run(name), use_json)


@main.command("run")
@_json_option
@click.pass_context
def run_cmd(ctx, use_json):
    """Build and run the application."""
    _report(_orchestrator(ctx).run_app(), use_json)


@main.command()
@_json_option
@click.pass_context
def clean(ctx, use_json):
    """Clean build artifacts."""
    _report(_orchestrator(ctx).clean(), use_json)


@main.command("install-cross")
@_json_option
@click.pass_context
def install_cross(ctx, use_json):
    """Install the cross toolchain (cross-rs) if it is missing."""
    _report(_orchestrator(ctx).install_cross(), use_json)


@main.command()
@_json_option
@click.pass_context
def targets(ctx, use_json):
    """List available targets."""
    try:
        entries = _orchestrator(ctx).list_targets()
    except click.UsageError as e:
        click.echo(f"Warning: {e.message}. Showing built-in targets only.", err=True)
        entries = default_catalog().entries()
    if use_json:
        click.echo(jsonmod.dumps([t.to_dict() for t in entries], indent=2))
        return
    click.echo("Available targets:")
    for t in entries:
        click.echo(f"  {t.name:<12} {t.description}")
    click.echo(f"  {'run':<12} Run the application")
    click.echo(f"  {'clean':<12} Clean build artifacts")


@main.command()
@click.pass_context
def doctor(ctx):
    """Check your environment for native and cross builds."""
    resolver = _orchestrator(ctx).resolver
    ok = True
    for kind in ToolchainKind:
        tc = resolver.toolchain_for(kind)
        result = tc.doctor()
        if result["ok"]:
            click.echo(f"[OK] {tc.name}: {result['message']}")
        else:
            click.echo(f"[!!] {tc.name}: {result['message']}")
            ok = False

    if ok:
        click.echo("\nAll checks passed. Ready to build every target.")
    else:
        click.echo("\nSome checks failed. Fix the issues above.")
        raise SystemExit(1)
