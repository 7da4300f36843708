"""
Example of measuring contributor experience across a directory of repositories.

This example demonstrates:
1. Building a project from a directory with one git repository per subdirectory
2. Running the analysis on a pool of worker threads
3. Inspecting the run report and the per-repository statistics
"""

import sys

from gittenure import ExperienceProject
from gittenure.logging import add_stream_handler, set_log_level

__author__ = "willmcginnis"


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("usage: experience_report.py REPOS_DIR [OUTPUT.csv]")
        sys.exit(1)

    set_log_level("INFO")
    add_stream_handler()

    project = ExperienceProject(working_dir=sys.argv[1])
    print(f"\nAnalyzing {len(project.repo_dirs)} repositories with {project.pool.n_workers} workers")

    df = project.experience()
    report = project.last_run

    print(f"\nFinished in {report['execution_time']:.2f} seconds")
    print(f"  analyzed: {report['repositories_processed']}")
    print(f"  skipped:  {report['repositories_failed']}")
    for name, error in sorted(report["failures"].items()):
        print(f"    {name}: {error}")

    print("\nRepositories with the longest median tenure:")
    print(df.sort_values("middle", ascending=False).head(10).to_string(index=False))

    if len(sys.argv) > 2:
        project.results.to_csv(sys.argv[2], sort=True)
        print(f"\nReport written to {sys.argv[2]}")
