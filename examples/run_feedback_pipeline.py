#!/usr/bin/env python3
"""Example: Scoring a Foods class survey export with the Python API."""

import sys
from pathlib import Path

from team_feedback import FeedbackPipeline, load_config


def main():
    """Main entry point."""
    if len(sys.argv) < 2:
        print("Usage: run_feedback_pipeline.py RESPONSES.csv [SOURCE=TARGET ...]")
        sys.exit(1)

    export_path = Path(sys.argv[1])
    project_root = Path(__file__).parent.parent

    pipeline = FeedbackPipeline(load_config(project_root=project_root))
    result = pipeline.load_file(export_path)

    print("=" * 60)
    print("Team Feedback")
    print("=" * 60)
    print(f"Layout: {result.variant.value if result.variant else 'unknown'}")

    for issue in result.issues:
        if issue.is_blocking:
            print(f"  {issue.severity}: {issue.message}")

    # Fold misspelled names into their canonical spelling
    for pair in sys.argv[2:]:
        source, _, target = pair.partition("=")
        event = pipeline.merge(source, target)
        print(f"Merged {source} -> {target}: {event.matched} records")

    print()
    for student, group in pipeline.groups().items():
        print(
            f"  {student:<20} planning {group.mean_planning:.2f}  "
            f"cooking {group.mean_cooking:.2f}  cleaning {group.mean_cleaning:.2f}"
        )

    outcomes = pipeline.reflection_outcomes()
    if outcomes:
        print()
        print("Self-reflections:")
        for name, outcome in outcomes.items():
            print(
                f"  {name:<20} professionalism {outcome.professionalism:.2f}  "
                f"interest {outcome.interest:.2f}  project {outcome.special_project:.2f}"
            )

    written = pipeline.export()
    if written is not None:
        print(f"\nExport saved to: {written}")


if __name__ == "__main__":
    main()
