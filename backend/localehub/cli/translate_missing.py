#!/usr/bin/env python3
"""CLI tool to fill missing translations with the configured AI provider.

Usage:
    python -m localehub.cli.translate_missing
    python -m localehub.cli.translate_missing --project-id <uuid> --locales fr,de
    python -m localehub.cli.translate_missing --feature-id <uuid> --timeout 600

Without a feature or project, every project is processed. Press Ctrl-C to
stop after the current provider call; translations obtained so far are saved.
"""
import argparse
import asyncio
import signal
import sys
from typing import List, Optional
from uuid import UUID

from localehub.database import AsyncSessionLocal, init_db
from localehub.exceptions import InvalidInputError, NotFoundError
from localehub.logging_config import configure_logging
from localehub.services.ai_translator import get_translation_client, request_interval_for
from localehub.services.orchestrator import TranslationOrchestrator
from localehub.services.repository import SqlTranslationRepository
from localehub.services.scope import resolve_scope


def parse_locales(value: Optional[str]) -> Optional[List[str]]:
    if value is None:
        return None
    return [code.strip() for code in value.split(",") if code.strip()]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Fill missing translations with AI")
    target = parser.add_mutually_exclusive_group()
    target.add_argument("--feature-id", type=UUID, help="Only keys of this feature")
    target.add_argument("--project-id", type=UUID, help="Only keys of this project")
    parser.add_argument("--locales", help="Comma-separated target locales (default: all active)")
    parser.add_argument("--timeout", type=float, default=None, help="Stop after this many seconds")
    return parser


async def run(args: argparse.Namespace) -> int:
    cancel_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, cancel_event.set)
    except NotImplementedError:
        # Windows event loops have no signal handlers; Ctrl-C aborts instead
        pass

    await init_db()
    client = get_translation_client()
    async with AsyncSessionLocal() as db:
        repository = SqlTranslationRepository(db)
        orchestrator = TranslationOrchestrator(
            repository,
            client,
            pacing_delay=request_interval_for(client.provider),
        )
        try:
            scope = await resolve_scope(repository, feature_id=args.feature_id, project_id=args.project_id)
            print(f"Translating missing values in {scope.describe()} with {client.provider_name}...")
            result = await orchestrator.translate_batch(
                scope,
                target_locales=parse_locales(args.locales),
                cancel_event=cancel_event,
                timeout_seconds=args.timeout,
            )
        except (NotFoundError, InvalidInputError) as e:
            print(f"\nError: {e}")
            return 2

    stats = result.statistics
    print()
    print("=" * 60)
    print("CANCELLED" if result.cancelled else ("DONE" if result.success else "DONE WITH ERRORS"))
    print("=" * 60)
    print(f"Keys processed: {stats.processed_keys}/{stats.total_keys}")
    print(f"Translated:     {result.translated_count}")
    print(f"Skipped:        {result.skipped_count}")
    print(f"Errors:         {len(result.errors)}")
    print(f"Elapsed:        {stats.elapsed_seconds:.1f}s")
    for error in result.errors:
        print(f"  - key {error.key_id} [{error.locale or '*'}]: {error.error}")
    return 0 if result.success else 1


def main(argv: Optional[List[str]] = None):
    """Entry point for CLI."""
    configure_logging(json_logs=False)
    args = build_parser().parse_args(argv)
    try:
        sys.exit(asyncio.run(run(args)))
    except KeyboardInterrupt:
        print("\n\nTranslation aborted.")
        sys.exit(130)


if __name__ == "__main__":
    main()
