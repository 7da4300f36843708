"""Command line entry point for gittenure."""

import argparse
import logging
import sys

from gittenure import __version__
from gittenure.logging import add_file_handler, add_stream_handler, set_log_level
from gittenure.project import ExperienceProject


def _build_parser():
    p = argparse.ArgumentParser(
        prog="gittenure",
        description="Measure how long contributors stay active in each repository of a directory.",
    )
    p.add_argument(
        "repos_dir",
        help="Directory containing one git repository per subdirectory",
    )
    p.add_argument(
        "--output",
        "-o",
        default=None,
        help="CSV file to write (default: standard output)",
    )
    p.add_argument(
        "--jobs",
        "-j",
        type=int,
        default=None,
        help="Number of worker threads (default: processor count minus two, at least one)",
    )
    p.add_argument(
        "--ignore",
        action="append",
        default=None,
        metavar="NAME",
        help="Repository name to skip. Can be repeated.",
    )
    p.add_argument(
        "--rev",
        default="HEAD",
        help="Revision to analyze in every repository (default: HEAD)",
    )
    p.add_argument(
        "--log-file",
        default=None,
        metavar="PATH",
        help="Also write the log to this file",
    )
    p.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log per-repository detail to standard error",
    )
    p.add_argument(
        "--version",
        action="version",
        version=f"gittenure {__version__}",
    )
    return p


def main(argv=None):
    args = _build_parser().parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    set_log_level(level)
    add_stream_handler(level=level, stream=sys.stderr)
    if args.log_file:
        add_file_handler(args.log_file, level=level)

    try:
        project = ExperienceProject(args.repos_dir, ignore_repos=args.ignore, n_workers=args.jobs, rev=args.rev)
    except (NotADirectoryError, ValueError) as e:
        sys.stderr.write(f"Error: {e}\n")
        return 1

    try:
        report = project.to_csv(args.output or sys.stdout)
    except KeyboardInterrupt:
        project.stop()
        sys.stderr.write("Interrupted.\n")
        return 130

    if report["repositories_failed"]:
        failed = ", ".join(sorted(report["failures"]))
        sys.stderr.write(f"Skipped {report['repositories_failed']} unreadable repositories: {failed}\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
