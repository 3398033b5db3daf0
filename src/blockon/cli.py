"""
blockon CLI

Command line wiring: builds the abort flag and runtime, routes Ctrl-C to the
abort flag and runs the bundled tasks.
"""

import json
import signal
import sys
from contextlib import contextmanager
from typing import Iterator, List, Optional

import click
import yaml

from . import __version__
from .config import (
    RuntimeConfig,
    configure_logging,
    load_config_from_env,
    load_config_from_file,
    merge_configs,
    validate_config,
)
from .core.abort import AbortFlag
from .core.errors import BlockOnError
from .core.future import adapt
from .executor.runtime import SimpleRuntime
from .executor.tracing import PollTracer
from .plan import execute_plan, load_plan
from .tasks.counter import count
from .tasks.permute import permute


@contextmanager
def abort_on_sigint(flag: AbortFlag) -> Iterator[None]:
    """Set ``flag`` on SIGINT while the block runs, then restore the old handler"""

    def _handler(signum, frame):
        flag.set()

    previous = signal.signal(signal.SIGINT, _handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


class AppContext:
    """Objects shared by all commands"""

    def __init__(self, config: RuntimeConfig):
        self.config = config
        self.abort = AbortFlag()
        self.tracer = PollTracer() if config.enable_tracing else None
        self.runtime = SimpleRuntime(self.abort, tracer=self.tracer)

    @contextmanager
    def session(self) -> Iterator[SimpleRuntime]:
        """Run commands with Ctrl-C wired to the abort flag"""
        try:
            if self.config.handle_sigint:
                with abort_on_sigint(self.abort):
                    yield self.runtime
            else:
                yield self.runtime
        except BlockOnError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)
        finally:
            if self.tracer:
                summary = self.tracer.get_trace_summary()
                click.echo(json.dumps(summary, indent=2), err=True)


def _parse_sequence(ctx, param, value: Optional[str]) -> Optional[List[int]]:
    if value is None:
        return None
    try:
        return [int(item) for item in value.split(",") if item.strip()]
    except ValueError:
        raise click.BadParameter("expected comma separated integers, e.g. 1,6,4")


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config", "-c", "config_path",
    type=click.Path(exists=True),
    help="Configuration file (YAML or JSON)"
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Logging level"
)
@click.option("--trace/--no-trace", default=None, help="Print a poll trace summary")
@click.pass_context
def cli(ctx, config_path, log_level, trace):
    """blockon - drive futures to completion on the calling thread"""
    try:
        config = load_config_from_file(config_path) if config_path else None
        config = load_config_from_env(config)
        config = merge_configs(config, {"log_level": log_level, "enable_tracing": trace})
    except BlockOnError as e:
        raise click.UsageError(str(e))

    issues = validate_config(config)
    if issues:
        raise click.UsageError("; ".join(issues))

    configure_logging(config)
    ctx.obj = AppContext(config)


@cli.command()
@click.pass_obj
def demo(app: AppContext):
    """Count to 10 inside a coroutine, then permute a fixed sequence"""

    async def async_main():
        res = await count(10)
        click.echo(f"async_main {res}")

    with app.session() as runtime:
        runtime.block_on(adapt(async_main()))
        permutations = runtime.block_on(
            permute(
                [1, 6, 4, 3, 2, 5],
                [1, 2, 3, 4, 5, 6],
                delay=app.config.permute_delay_seconds,
            )
        )
        click.echo(f"permutations: {permutations}")


@cli.command(name="count")
@click.argument("max", type=click.IntRange(min=0))
@click.pass_obj
def count_command(app: AppContext, max):
    """Count to MAX, one step per poll"""
    with app.session() as runtime:
        result = runtime.block_on(adapt(count(max)))
        click.echo(f"count: {result}")


@cli.command(name="permute")
@click.option("--base", "-b", required=True, callback=_parse_sequence, help="Start sequence, e.g. 1,6,4")
@click.option("--target", "-t", required=True, callback=_parse_sequence, help="Target sequence, e.g. 1,4,6")
@click.option("--delay", type=click.FloatRange(min=0), help="Seconds of simulated work per step")
@click.pass_obj
def permute_command(app: AppContext, base, target, delay):
    """Permute BASE into TARGET, one transposition per poll"""
    if delay is None:
        delay = app.config.permute_delay_seconds

    with app.session() as runtime:
        future = permute(base, target, delay=delay)
        steps = runtime.block_on(future)
        if future.aborted:
            click.echo(f"aborted after {steps} steps: {future.current}")
        click.echo(f"permutations: {steps}")


@cli.command()
@click.argument("plan", type=click.Path(exists=True))
@click.option(
    "--format", "fmt",
    type=click.Choice(["json", "yaml"]),
    default="json",
    help="Output format"
)
@click.pass_obj
def run(app: AppContext, plan, fmt):
    """Run every task of a PLAN file in sequence"""
    with app.session() as runtime:
        run_plan = load_plan(plan)
        results = execute_plan(runtime, run_plan, app.config.permute_delay_seconds)
        data = [result.model_dump() for result in results]

        if fmt == "json":
            output_str = json.dumps(data, indent=2, ensure_ascii=False)
        else:
            output_str = yaml.dump(data, allow_unicode=True, sort_keys=False)
        click.echo(output_str)


def main():
    """CLI entry point"""
    cli()


if __name__ == "__main__":
    main()
