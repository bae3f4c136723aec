"""
Archie command line.

    archie analyze --inputs DIR [--query Q]
    archie ask TEXT
    archie build-context --name NAME --inputs DIR
    archie resume THREAD_ID ANSWER
    archie graph [--json]

Global options (--memory, --model, --checkpoints, --verbose) go before the
subcommand. Memory is loaded before the command and flushed after it, even
when the command fails.
"""
import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from archie.commands import managed_memory, resume_analysis, run_analysis, run_ask, run_build_context
from archie.commands.common import CommandResult
from archie.core.config import settings
from archie.core.logging_config import configure_logging
from archie.core.tracing import configure_tracing
from archie.domain.exceptions import ArchieError
from archie.workflows.archie_flow import build_archie_graph, create_runner, create_services
from archie.workflows.utils.checkpointer import create_checkpointer

logger = logging.getLogger("archie.cli")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_PARKED = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="archie",
        description="Archie architecture assistant",
    )
    parser.add_argument(
        "--memory",
        default=settings.MEMORY_FILE_PATH,
        help=f"Memory file (default: {settings.MEMORY_FILE_PATH})",
    )
    parser.add_argument("--model", default="", help="Model name override")
    parser.add_argument(
        "--provider",
        choices=["openai", "anthropic"],
        default=None,
        help=f"LLM provider (default: {settings.LLM_PROVIDER})",
    )
    parser.add_argument(
        "--checkpoints",
        default=None,
        help="Checkpoint database URL, or memory:// (default: CHECKPOINT_DATABASE_URL)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="Interactive analysis of a documents directory")
    analyze.add_argument("--inputs", required=True, help="Directory with .txt/.md documents")
    analyze.add_argument("--query", default="", help="Analysis query (default: architecture overview)")
    analyze.add_argument(
        "--no-input",
        action="store_true",
        help="Do not prompt; park the thread at the first question",
    )

    ask = subparsers.add_parser("ask", help="Single-turn request")
    ask.add_argument("text", nargs="+", help="Input text")

    build = subparsers.add_parser("build-context", help="Build a context document for a system")
    build.add_argument("--name", required=True, help="System name")
    build.add_argument("--inputs", required=True, help="Directory with .txt/.md documents")

    resume = subparsers.add_parser("resume", help="Answer the pending question of a parked analysis")
    resume.add_argument("thread_id")
    resume.add_argument("answer", nargs="+")
    resume.add_argument("--interactive", action="store_true", help="Keep prompting after this answer")

    graph = subparsers.add_parser("graph", help="Print the workflow graph as a Mermaid diagram")
    graph.add_argument("--json", action="store_true", help="Print nodes and edges as JSON instead")

    return parser


async def prompt_user(question: str) -> Optional[str]:
    """
    Show the agent's question and read one answer; None on EOF.

    The read runs in a worker thread so the event loop is not blocked.
    """
    print(f"\nAgent: {question or 'Agent needs input...'}")
    try:
        return await asyncio.to_thread(input, "Your response: ")
    except EOFError:
        return None


def report(result: CommandResult, heading: str) -> int:
    if not result.completed:
        print(f"\nAgent: {result.pending_question}")
        print(f"Thread {result.thread_id} is waiting for input. Continue with:")
        print(f"  archie resume {result.thread_id} \"<answer>\"")
        return EXIT_PARKED

    print(f"\n--- {heading} ---")
    print(result.output or "No output generated.")
    print("-" * (len(heading) + 8))
    if result.output_path:
        print(f"Saved to: {result.output_path}")
    return EXIT_OK


async def dispatch(args: argparse.Namespace) -> int:
    if args.command == "graph":
        graph = build_archie_graph()
        if args.json:
            print(json.dumps(graph.describe(), indent=2))
        else:
            print(graph.to_mermaid(), end="")
        return EXIT_OK

    checkpointer = create_checkpointer(args.checkpoints)

    if args.command == "ask":
        # Echo needs no model client
        runner = create_runner(None, checkpointer=checkpointer)
        result = await run_ask(runner, " ".join(args.text), model_name=args.model)
        print(f"Agent: {result.output}")
        return EXIT_OK

    services = create_services(provider=args.provider, model=args.model)
    runner = create_runner(services, checkpointer=checkpointer)

    with managed_memory(args.memory) as memory:
        if args.command == "analyze":
            result = await run_analysis(
                runner,
                memory,
                inputs_dir=args.inputs,
                query=args.query,
                ask_user=None if args.no_input else prompt_user,
                model_name=args.model,
            )
            return report(result, "Final Analysis Output")

        if args.command == "build-context":
            result = await run_build_context(
                runner,
                memory,
                system_name=args.name,
                inputs_dir=args.inputs,
                model_name=args.model,
            )
            return report(result, f"Context for {args.name}")

        if args.command == "resume":
            result = await resume_analysis(
                runner,
                memory,
                thread_id=args.thread_id,
                answer=" ".join(args.answer),
                ask_user=prompt_user if args.interactive else None,
            )
            return report(result, "Final Analysis Output")

    return EXIT_ERROR


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(level=settings.LOG_LEVEL, verbose=args.verbose)
    configure_tracing(settings)

    try:
        return asyncio.run(dispatch(args))
    except ArchieError as e:
        logger.error(str(e))
        return EXIT_ERROR
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
