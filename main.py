"""StudyBrief - topic research summaries

Simple CLI for summarizing a list of study topics.
"""

import argparse
import asyncio
import sys
from pathlib import Path

from app.agents.orchestrator import SubmissionOrchestrator
from app.models.events import Failure, Progress, Result


async def run_summary(text: str) -> int:
    """Summarize the topics in text, printing progress as it arrives."""
    orchestrator = SubmissionOrchestrator()
    print(f"Submission: {orchestrator.submission_id}")
    print("-" * 50)

    exit_code = 0
    async for event in orchestrator.run(text):
        if isinstance(event, Progress):
            print(f"[~] {event.text}")

        elif isinstance(event, Result):
            if event.message:
                print(f"\n[*] {event.message}")
                continue
            print(f"\n[*] {len(event.results)} topic(s) summarized")
            for item in event.results:
                print(f"\n{'=' * 50}")
                print(f"{item.topic} ({item.translated})")
                print(f"{'=' * 50}")
                print(item.summary)
                if item.sources:
                    print("\nSources:")
                    for url in item.sources:
                        print(f"  - {url}")

        elif isinstance(event, Failure):
            print(f"\n[!] Error: {event.message}")
            exit_code = 1

    return exit_code


def main():
    parser = argparse.ArgumentParser(description="StudyBrief topic summarizer")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--text", "-t", help="Topics, one per line")
    source.add_argument("--file", "-f", type=Path, help="File with one topic per line")

    args = parser.parse_args()
    text = args.text if args.text is not None else args.file.read_text(encoding="utf-8")

    sys.exit(asyncio.run(run_summary(text)))


if __name__ == "__main__":
    main()
