"""
Module containing the primary commands for use in the CLI. The simulation logic itself is kept in
Engine so that it can be used programmatically, e.g. from tests or notebooks. These functions just
handle loading, printing the reports and writing results to files.
"""
import json
import sys
import warnings

import pandas as pd
from rich.progress import track

from schedsim.dataloaders import TraceLoadError
from schedsim.engine import Engine
from schedsim.plotting import Plotter
from schedsim.sim_config import SingleSimConfig, SweepSimConfig, SINGLE_SHORTCUTS, SWEEP_SHORTCUTS
from schedsim.stats import (
    get_engine_report,
    get_engine_stats,
    get_scheduler_stats,
    print_formatted_report,
    reports_to_dataframe,
)
from schedsim.utils import pydantic_add_args, SubParsers, read_yaml_parsed

SWEEP_PLOT_METRICS = {
    "wait": ("avg_wait", "Average Wait (s)"),
    "util": ("utilization", "Utilization (%)"),
    "makespan": ("makespan", "Makespan (s)"),
}


def run_sim_add_parser(subparsers: SubParsers):
    parser = subparsers.add_parser("run", description="""
        Replay a workload trace through one scheduling policy on a cluster of a given size.
        Prints makespan, wait time and utilization figures and optionally writes the job
        history and plots.
    """)
    parser.add_argument("config_file", nargs="?", default=None, help="""
        YAML sim config file, can be used to configure an experiment instead of using CLI
        flags. Pass "-" to read from stdin.
    """)
    model_validate = pydantic_add_args(parser, SingleSimConfig, model_config={
        "cli_shortcuts": SINGLE_SHORTCUTS,
    })
    parser.set_defaults(
        impl=lambda args: run_sim(model_validate(args, read_yaml_parsed(SingleSimConfig, args.config_file)))
    )


def run_sim(sim_config: SingleSimConfig):
    if sim_config.verbose or sim_config.debug:
        print(f"SingleSimConfig: {sim_config.model_dump_json(indent=4)}")

    try:
        engine = Engine.from_sim_config(sim_config)
    except TraceLoadError as e:
        print(f"Error during engine initialization: {e}")
        sys.exit(1)

    print(f"Simulating {engine.total_initial_jobs} jobs with {engine.scheduler.name} "
          f"on {sim_config.nodes} nodes.")
    for _ in engine.run_simulation():
        pass

    engine_stats = get_engine_stats(engine)
    report = get_engine_report(engine)
    scheduler_stats = get_scheduler_stats(engine)

    print_formatted_report(
        engine_stats=engine_stats,
        report=report,
        scheduler_stats=scheduler_stats,
    )

    out = sim_config.get_output()
    if out:
        out.mkdir(parents=True, exist_ok=True)
        (out / 'sim_config.yaml').write_text(sim_config.dump_yaml())

        job_history = pd.DataFrame(engine.get_job_history_dict())
        job_history.to_csv(out / "job_history.csv", index=False)
        queue_history = pd.DataFrame(engine.get_scheduler_queue_history())
        queue_history.to_csv(out / "queue_history.csv", index=False)
        usage_history = pd.DataFrame(engine.get_node_usage_history())
        usage_history.to_csv(out / "node_usage_history.csv", index=False)

        with open(out / 'stats.json', 'w') as f:
            json.dump({
                'engine': engine_stats,
                'report': report.model_dump(),
                'scheduler': scheduler_stats,
            }, f, indent=4)

        for plot in sim_config.plot or []:
            save_path = out / f"{plot}.{sim_config.imtype}"
            if plot == "wait" and not job_history.empty:
                pl = Plotter('Wait Time (s)', 'Jobs', f'Wait Times ({report.scheduler_name}, '
                             f'{report.total_nodes} nodes)', save_path)
                pl.plot_histogram(job_history['wait_time'])
            elif plot == "util":
                pl = Plotter('Time (s)', 'Allocated Nodes (%)',
                             f'Utilization ({report.scheduler_name}, {report.total_nodes} nodes)', save_path)
                pl.plot_history(usage_history['time'], usage_history['utilization'])
            elif plot == "queue" and not queue_history.empty:
                pl = Plotter('Time (s)', 'Pending Jobs', 'Queue Length History', save_path)
                pl.plot_history(queue_history['time'], queue_history['queue_length'])
        print("Output directory is: ", out)  # If output is enabled, the user wants this information as last output

    return report


def sweep_add_parser(subparsers: SubParsers):
    parser = subparsers.add_parser("sweep", description="""
        Replay a workload trace for every combination of cluster size and scheduling policy.
        Every combination runs on its own fresh engine. Prints one row per run and optionally
        writes the table and plots comparing the policies.
    """)
    parser.add_argument("config_file", nargs="?", default=None, help="""
        YAML sweep config file. Pass "-" to read from stdin.
    """)
    model_validate = pydantic_add_args(parser, SweepSimConfig, model_config={
        "cli_shortcuts": SWEEP_SHORTCUTS,
    })
    parser.set_defaults(
        impl=lambda args: run_sweep(model_validate(args, read_yaml_parsed(SweepSimConfig, args.config_file)))
    )


def run_sweep(sweep_config: SweepSimConfig) -> pd.DataFrame:
    reports = []
    runs = sweep_config.runs
    if len(runs) == 1:
        warnings.warn(
            "sweep is usually for several cluster sizes or policies. Did you mean to use run?",
            UserWarning
        )
    for run_config in track(runs, description="Simulating...", disable=sweep_config.debug):
        try:
            engine = Engine.from_sim_config(run_config)
        except TraceLoadError as e:
            # Only this combination is lost, the others own their own engines
            print(f"[WARN] Skipping {run_config.policy} on {run_config.nodes} nodes: {e}")
            continue
        report = engine.run()
        if sweep_config.verbose:
            print_formatted_report(report=report)
        reports.append(report)

    df = reports_to_dataframe(reports)
    with pd.option_context("display.max_columns", None, "display.width", 200):
        print(df.to_string(index=False) if not df.empty else "No runs completed.")

    out = sweep_config.get_output()
    if out:
        out.mkdir(parents=True, exist_ok=True)
        (out / 'sim_config.yaml').write_text(sweep_config.dump_yaml())
        df.to_csv(out / "sweep.csv", index=False)
        if sweep_config.plot and not df.empty:
            for plot in sweep_config.plot:
                metric, label = SWEEP_PLOT_METRICS[plot]
                pl = Plotter('Nodes', label, f'{label} by Cluster Size', out / f'{plot}.{sweep_config.imtype}')
                pl.plot_sweep(df, metric)
        print("Output directory is: ", out)

    return df


def show_add_parser(subparsers: SubParsers):
    parser = subparsers.add_parser("show", description="""
        Outputs the given CLI args as a YAML config file that can be used to re-run the same
        simulation.
    """)
    parser.add_argument("config_file", nargs="?", default=None, help="""
        Input YAML sim config file. Can be used to slightly modify an existing sim config.
    """)
    parser.add_argument("--show-defaults", action="store_true", help="""
        Include defaults in the output YAML
    """)
    model_validate = pydantic_add_args(parser, SingleSimConfig, model_config={
        "cli_shortcuts": SINGLE_SHORTCUTS,
    })

    def impl(args):
        sim_config = model_validate(args, read_yaml_parsed(SingleSimConfig, args.config_file))
        show(sim_config, show_defaults=args.show_defaults)

    parser.set_defaults(impl=impl)


def show(sim_config: SingleSimConfig, show_defaults=False):
    print(sim_config.dump_yaml(exclude_unset=not show_defaults), end='')
