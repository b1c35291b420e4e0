"""CLI for sysinspect."""

import sys
from pathlib import Path

import click

from sysinspect import logging as console
from sysinspect.config import Config
from sysinspect.metrics import read_cpuinfo
from sysinspect.models import ViewOptions
from sysinspect.procfs import DataUnavailable, ProcFS
from sysinspect.report import attempt, build_report, cpu_count_for


def select_views(
    show_all: bool, live: bool, hardware: bool, system: bool, tasks: bool
) -> ViewOptions:
    """Turn view flags into ViewOptions.

    Live view excludes every other view. Without any view flag, or with
    --all, hardware, system and task information are all shown.
    """
    if live:
        return ViewOptions(live=True)
    if show_all or not (hardware or system or tasks):
        return ViewOptions.all()
    return ViewOptions(hardware=hardware, system=system, tasks=tasks)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "-a", "--all", "show_all", is_flag=True, help="Display all (equivalent to -rst, default)."
)
@click.option(
    "-l", "--live", is_flag=True, help="Live view. Cannot be used with other view options."
)
@click.option(
    "-p",
    "--procfs",
    "procfs_dir",
    type=click.Path(path_type=Path),
    default=None,
    help="Change the expected procfs mount point (default: /proc).",
)
@click.option("-r", "--hardware", is_flag=True, help="Hardware information.")
@click.option("-s", "--system", is_flag=True, help="System information.")
@click.option("-t", "--tasks", is_flag=True, help="Task information.")
@click.option("--dashboard", is_flag=True, help="Full screen live dashboard.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: ~/.config/sysinspect/config.toml).",
)
@click.version_option(package_name="sysinspect")
@click.pass_context
def main(
    ctx: click.Context,
    show_all: bool,
    live: bool,
    procfs_dir: Path | None,
    hardware: bool,
    system: bool,
    tasks: bool,
    dashboard: bool,
    config_path: Path | None,
) -> None:
    """Inspect the system and print a summarized report from procfs.

    CPU usage divides the kernel's idle time, which is summed over every
    logical CPU, by the number of processing units in cpuinfo. Set
    normalize_cpu = false under [sampling] in the config file to use the
    raw idle counter instead.
    """
    try:
        config = Config.load(config_path)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--config") from e

    console.configure(config)
    options = select_views(show_all, live, hardware, system, tasks)

    procfs = ProcFS(procfs_dir if procfs_dir is not None else config.procfs_root)
    try:
        procfs.check()
    except DataUnavailable as e:
        console.procfs_unavailable(str(procfs.root), e.reason)
        ctx.exit(1)

    if dashboard or options.live:
        cpu_count = cpu_count_for(attempt(read_cpuinfo, procfs), config.sampling.normalize_cpu)
        if dashboard:
            _run_dashboard(procfs, config, cpu_count)
        else:
            _run_live(ctx, procfs, config, cpu_count)
        return

    click.echo(
        build_report(
            procfs,
            options,
            interval=config.sampling.interval,
            normalize_cpu=config.sampling.normalize_cpu,
            bar_width=config.display.bar_width,
        ),
        nl=False,
    )


def _run_live(ctx: click.Context, procfs: ProcFS, config: Config, cpu_count: int) -> None:
    from sysinspect.live import LiveLoop

    loop = LiveLoop(
        procfs,
        interval=config.sampling.interval,
        cpu_count=cpu_count,
        bar_width=config.display.bar_width,
    )
    try:
        loop.run(sys.stdout)
    except DataUnavailable as e:
        console.procfs_unavailable(str(procfs.root), e.reason)
        ctx.exit(1)
    except KeyboardInterrupt:
        console.live_view_stopped(loop.frames)


def _run_dashboard(procfs: ProcFS, config: Config, cpu_count: int) -> None:
    from sysinspect.app import InspectorApp

    InspectorApp(
        procfs,
        interval=config.sampling.interval,
        cpu_count=cpu_count,
        bar_width=config.display.bar_width,
    ).run()


if __name__ == "__main__":
    main()
