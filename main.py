#!/usr/bin/env python3
# PYTHON_ARGCOMPLETE_OK
"""
schedsim: trace-driven simulator for comparing batch scheduling policies
"""
import argparse
import os
import textwrap

import argcomplete


def shell_completion_add_parser(subparsers):
    parser = subparsers.add_parser("shell-completion", description=textwrap.dedent("""
        Register shell completion for schedsim.
    """).strip(), formatter_class=argparse.RawDescriptionHelpFormatter)

    # Run the command from argcomplete, this edits ~/.bash_completion to register argcomplete
    def impl(args):
        os.system("activate-global-python-argcomplete")

    parser.set_defaults(impl=impl)


def build_parser() -> argparse.ArgumentParser:
    from schedsim.run_sim import run_sim_add_parser, sweep_add_parser, show_add_parser

    parser = argparse.ArgumentParser(
        description="""
            Replay a workload trace through batch scheduling policies (FCFS, FF, SJF,
            FCFS with EASY backfilling) and report makespan, wait times and utilization.
        """,
        allow_abbrev=False,
    )
    subparsers = parser.add_subparsers(required=True)

    run_sim_add_parser(subparsers)
    sweep_add_parser(subparsers)
    show_add_parser(subparsers)
    shell_completion_add_parser(subparsers)
    return parser


def main(cli_args: list[str] | None = None):
    parser = build_parser()
    argcomplete.autocomplete(parser, always_complete_options=False)

    args = parser.parse_args(cli_args)
    assert args.impl, "subparsers should add an impl function to args"
    args.impl(args)


if __name__ == "__main__":
    main()
