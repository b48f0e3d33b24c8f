#!/usr/bin/env python3
"""
Example script demonstrating a newsletter pipeline built with flowline.

The pipeline fetches candidate articles, enriches them in parallel, and
publishes through a primary channel with a backup. This example shows:
- How to chain sequential, parallel and fallback stages
- How task log calls end up in the pipeline log
- How to render the execution trace and the structure graph

Usage:
    python examples/newsletter_pipeline.py

Set FLOWLINE_LOG_DIR to choose where pipeline.log is written (defaults to
./output here) and FLOWLINE_VERBOSE=true to echo task logs live.
"""

import asyncio
import logging
from pathlib import Path

from flowline import Workflow, WorkflowError
from flowline.config import get_config
from flowline.ui import ConsoleManager
from flowline.utils import LoggingFactory


async def fetch_candidates(value, signal, log):
    log("Fetching candidates for", value["topic"])
    await asyncio.sleep(0.05)
    return [
        {"title": "Async Python in practice", "words": 1800},
        {"title": "Graphs for pipelines", "words": 950},
    ]


async def summarize(articles, signal, log):
    await asyncio.sleep(0.03)
    return [f"{article['title']} ({article['words']} words)" for article in articles]


def estimate_reading_time(articles, signal, log):
    # Plain functions run in a worker thread
    minutes = sum(article["words"] for article in articles) // 200
    log("Estimated minutes:", minutes)
    return minutes


async def publish_email(enriched, signal, log):
    log("Email gateway unavailable")
    raise ConnectionError("SMTP relay refused connection")


async def publish_archive(enriched, signal, log):
    log("Writing issue to archive", {"items": len(enriched["summary"])})
    return {"channel": "archive", "items": enriched["summary"]}


async def main() -> None:
    """Build, visualize and run the newsletter pipeline."""
    config = get_config()
    LoggingFactory.initialize(level=config.log_level_value)
    console = ConsoleManager(verbose=config.verbose)
    console.setup_logging(logging.getLogger("flowline"))

    workflow = (
        Workflow.start(config.to_workflow_options(), log_dir=config.log_dir or Path("output"))
        .step("fetch", fetch_candidates)
        .parallel("enrich", {"summary": summarize, "minutes": estimate_reading_time})
        .tap("preview", lambda enriched: print(f"Preview: {enriched['summary'][0]}"))
        .fallback("publish", publish_email, publish_archive)
    )

    print(workflow.visualize_graph("mermaid"))
    graph_path = await workflow.write_graph_visualization(Path("output") / "newsletter.dot", fmt="dot")
    print(f"Graph written to {graph_path}")

    try:
        result = await workflow.run({"topic": "python"})
    except WorkflowError as e:
        console.print_error(e)
        console.print_trace(e.trace, title="Failed Run")
        return

    console.print_trace(result.trace)
    print(f"Published via {result.output['channel']}")


if __name__ == "__main__":
    asyncio.run(main())
