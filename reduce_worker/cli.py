#!/usr/bin/env python3
"""
Command line entry point for running one reduce task
"""

import sys
import logging
import argparse

from reduce_worker.config import ReduceConfig
from reduce_worker.reduce_executor import ReduceExecutor


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Run a MapReduce reduce task')
    parser.add_argument('--job-name', required=True,
                        help='Name of the MapReduce job')
    parser.add_argument('--reduce-task', type=int, required=True,
                        help='Partition index to reduce')
    parser.add_argument('--n-map', type=int, required=True,
                        help='Number of map tasks that ran')
    parser.add_argument('--output', required=True,
                        help='Output file path')
    parser.add_argument('--job-file', required=True,
                        help="Python file defining reduce_function(key, values)")
    parser.add_argument('--intermediate-dir', default=None,
                        help='Directory holding intermediate files (env: MR_INTERMEDIATE_DIR)')
    parser.add_argument('--strict', action='store_true', default=None,
                        help='Fail on malformed intermediate records (env: MR_STRICT_DECODE)')
    parser.add_argument('--atomic', action='store_true', default=None,
                        help='Write output to a temp file and rename it (env: MR_ATOMIC_OUTPUT)')
    parser.add_argument('--log-level', default=None,
                        help='Logging level (env: MR_LOG_LEVEL)')
    return parser.parse_args(argv)


def build_config(args) -> ReduceConfig:
    """Environment settings with command line overrides applied"""
    config = ReduceConfig.from_env()
    if args.intermediate_dir is not None:
        config.intermediate_dir = args.intermediate_dir
    if args.strict is not None:
        config.strict_decode = args.strict
    if args.atomic is not None:
        config.atomic_output = args.atomic
    if args.log_level is not None:
        config.log_level = args.log_level.upper()
    return config


def main(argv=None) -> int:
    args = parse_args(argv)
    config = build_config(args)

    logging.basicConfig(
        level=config.log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    if args.n_map < 0:
        logging.error(f"--n-map must be >= 0, got {args.n_map}")
        return 2

    executor = ReduceExecutor(
        job_name=args.job_name,
        reduce_task=args.reduce_task,
        n_map=args.n_map,
        output_path=args.output,
        job_file=args.job_file,
        config=config,
    )
    result = executor.execute()
    if not result.success:
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
