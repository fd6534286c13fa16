"""bale CLI - command-line orchestrator for the bale bundling engine."""

import asyncio
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

import click
from click.core import ParameterSource

from . import __version__
from .engine import load_engine
from .errors import BaleError
from .events import EventLog
from .invocation import DEFAULT_ENTRY_TYPE
from .invocation import BuildTarget
from .invocation import Invocation
from .logging_setup import init_json_logging
from .logging_setup import log_event
from .modes import filter_globs
from .modes import looks_like_file
from .modes import plan_build
from .orchestrator import BuildOrchestrator
from .paths import find_root
from .plugin_resolution import load_plugins
from .settings import ProjectSettings
from .settings import load_settings
from .settings import split_plugin_spec
from .subcommands import dispatch

logger = logging.getLogger(__name__)

# Options that consume the following token as their value
_VALUE_OPTIONS = frozenset({"--global", "--output", "--root", "--type", "--use"})

RAW_ARGS_KEY = "bale.raw_args"


class BaleCommand(click.Command):
    """Click command that keeps the unparsed argument list.

    Subcommands receive the tokens after their name exactly as typed, which
    the parsed parameters can no longer reproduce.
    """

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        ctx.meta[RAW_ARGS_KEY] = list(args)
        return super().parse_args(ctx, args)


def forwarded_args(raw_args: Sequence[str], subcommand: str) -> list[str]:
    """Tokens following the subcommand name in the raw argument list.

    Values of bale's own options are skipped so ``--use build build`` finds
    the second ``build``.
    """
    skip_next = False
    for i, token in enumerate(raw_args):
        if skip_next:
            skip_next = False
            continue
        if token == "--":
            continue
        if token.startswith("-"):
            skip_next = token in _VALUE_OPTIONS
            continue
        if token == subcommand:
            return list(raw_args[i + 1 :])
    return []


def _stdin_is_tty() -> bool:
    return sys.stdin is None or sys.stdin.isatty()


def _pick(ctx: click.Context, name: str, cli_value, setting_value):
    """Command-line value when given explicitly, else the bale.yaml value."""
    if ctx.get_parameter_source(name) is ParameterSource.COMMANDLINE or setting_value is None:
        return cli_value
    return setting_value


def build_invocation(
    ctx: click.Context,
    params: dict,
    settings: ProjectSettings,
    root: Path,
    args: Sequence[str],
) -> Invocation:
    """Merge command-line parameters over project settings."""
    output = params["output"]
    if output is None and settings.output:
        output = root / settings.output

    use = split_plugin_spec(params["use"]) if params["use"] else settings.use

    return Invocation(
        copy_files=_pick(ctx, "copy_files", params["copy_files"], settings.copy_files),
        development=_pick(ctx, "development", params["development"], settings.development),
        global_name=params["global_name"] or settings.global_name,
        output=output,
        quiet=params["quiet"],
        verbose=params["verbose"],
        watch=params["watch"],
        root=params["root"],
        entry_type=params["entry_type"] or settings.entry_type or DEFAULT_ENTRY_TYPE,
        use=tuple(use),
        engine=settings.engine,
        args=tuple(args),
    )


@click.command(
    cls=BaleCommand,
    context_settings={"ignore_unknown_options": True, "help_option_names": ["-h", "--help"]},
)
@click.version_option(version=__version__, prog_name="bale")
@click.option("--copy", "copy_files", is_flag=True, help="Copy files into the output rather than symlinking")
@click.option("--development", is_flag=True, help="Include development-only dependencies")
@click.option("--global", "global_name", metavar="NAME", help="Expose the built entry as the named global export")
@click.option("--output", type=click.Path(path_type=Path), help="Output directory")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-error output")
@click.option("--root", type=click.Path(path_type=Path), help="Project root (skips bale.yaml discovery)")
@click.option("--type", "entry_type", metavar="TYPE", help="Content type of a build read from stdin [default: js]")
@click.option("--use", metavar="PLUGIN,...", help="Comma-separated transform plugins")
@click.option("--verbose", "-v", is_flag=True, help="Show resolution events")
@click.option("--watch", "-w", is_flag=True, help="Rebuild when files under the project root change")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def cli(ctx: click.Context, args: tuple[str, ...], **params):
    """Bundle ENTRY files to stdout or into an output directory.

    \b
    bale index.js > bundle.js        build one entry to stdout
    bale a.js b.js dist              build entries into dist/
    cat style.css | bale --type css  build stdin to stdout
    bale NAME [ARGS]...              run the bale-NAME subcommand
    """
    events = EventLog(quiet=params["quiet"], verbose=params["verbose"])
    if init_json_logging():
        events.subscribe(log_event)
    positional = filter_globs(args)

    # A first argument that is not a file names an external subcommand
    if positional and not positional[0].startswith("-") and not looks_like_file(positional[0]):
        subcommand = positional[0]
        try:
            code = dispatch(subcommand, forwarded_args(ctx.meta.get(RAW_ARGS_KEY, args), subcommand))
        except BaleError as e:
            events.error(e)
            ctx.exit(1)
        ctx.exit(code)

    unknown = [arg for arg in positional if arg.startswith("-")]
    if unknown:
        raise click.NoSuchOption(unknown[0], ctx=ctx)

    root = find_root(params["root"])
    settings = load_settings(root)
    invocation = build_invocation(ctx, params, settings, root, positional)
    logger.debug(f"[cli] root={root} invocation={invocation.model_dump()}")

    plan = plan_build(
        invocation.args,
        root=root,
        output=invocation.output,
        stdin_is_tty=_stdin_is_tty(),
    )
    if plan.target is BuildTarget.HELP:
        click.echo(ctx.get_help())
        ctx.exit(0)

    plugins = load_plugins(invocation.use, root, events)

    try:
        orchestrator = BuildOrchestrator(
            invocation,
            root,
            plugins,
            events,
            session_factory=load_engine(invocation.engine),
        )
        asyncio.run(orchestrator.run(plan))
    except BaleError as e:
        events.error(e)
        ctx.exit(1)
    except KeyboardInterrupt:
        ctx.exit(130)

    # Plugin load failures do not stop the build but still fail the run
    if events.error_count:
        ctx.exit(1)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
