#!/usr/bin/env python3
"""
Gmail Purge - Archive and delete every message older than a cutoff date
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import Dict, List, Optional

from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from gmail_purge.config import DEFAULT_ARCHIVE_DIRECTORY, DEFAULT_CUTOFF_DATE, load_config
from gmail_purge.driver import PurgeDriver
from gmail_purge.errors import ConfigError
from gmail_purge.gmail_service import GmailService
from gmail_purge.models import ARCHIVE_FORMATS, PurgeConfig, RunResult


logger = logging.getLogger(__name__)

console = Console()

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG_ERROR = 2
EXIT_INTERRUPTED = 130


def configure_logging() -> None:
    """Configure root logging from LOG_LEVEL"""
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Gmail purge - archive and permanently delete messages older than a date'
    )

    parser.add_argument('--before', type=str,
                        help=f'Cutoff date YYYY-MM-DD, messages strictly before it are purged (default: {DEFAULT_CUTOFF_DATE})')
    parser.add_argument('--archive', dest='archive', action='store_true',
                        help='Archive every message before deleting it (default)')
    parser.add_argument('--no-archive', dest='archive', action='store_false',
                        help='Delete without archiving')
    parser.add_argument('--archive-dir', type=str,
                        help=f'Directory for archived messages (default: {DEFAULT_ARCHIVE_DIRECTORY})')
    parser.add_argument('--archive-format', type=str, choices=ARCHIVE_FORMATS,
                        help='json keeps the full API representation, eml keeps the raw RFC 822 message (default: json)')
    parser.add_argument('--dry-run', dest='dry_run', action='store_true',
                        help='List and archive, but do not delete')
    parser.add_argument('--no-dry-run', dest='dry_run', action='store_false',
                        help='Actually delete messages')
    parser.add_argument('--credentials', type=str,
                        default=os.getenv('GMAIL_CREDENTIALS_PATH', 'credentials.json'),
                        help='OAuth client secrets file (default: credentials.json)')
    parser.add_argument('--token', type=str,
                        default=os.getenv('GMAIL_TOKEN_PATH', 'token.json'),
                        help='Where the OAuth token is stored (default: token.json)')
    parser.set_defaults(archive=None, dry_run=None)

    return parser


# === Console output ===

async def print_progress(event: str, data: Dict) -> None:
    """Render pipeline progress events on the console"""
    if event == "run_started":
        mode = "DRY RUN (nothing will be deleted)" if data["dry_run"] else "LIVE (messages will be permanently deleted)"
        console.print(f"\n[bold blue]Searching for messages: {data['query']}[/bold blue]")
        console.print(f"[yellow]Mode: {mode}[/yellow]")
        console.print(f"[cyan]Archiving: {'on' if data['archive_enabled'] else 'off'}[/cyan]")
    elif event == "batch_completed":
        console.print(
            f"[green]Batch {data['batch']}:[/green] {data['message_count']} messages "
            f"[dim]({data['total_processed']:,} total)[/dim]"
        )
    elif event == "would_delete":
        console.print(f"[red]WOULD DELETE[/red] {data['message_count']} messages")
    elif event == "batch_pause":
        console.print(f"[dim]Pausing {data['seconds']:.0f}s before the next page...[/dim]")
    elif event == "run_interrupted":
        console.print("\n[yellow]Interrupted. Summary shows messages processed before the stop.[/yellow]")
    elif event == "run_failed":
        console.print(f"\n[red]Purge aborted ({data['error_type']}): {data['error']}[/red]")


def print_summary(result: RunResult, config: PurgeConfig) -> None:
    """Print final summary table"""
    summary = result.summary

    table = Table(title="Gmail Purge Results", show_header=True, header_style="bold cyan")
    table.add_column("Metric", style="cyan", width=25)
    table.add_column("Count", justify="right", style="green", width=10)

    table.add_row("Batches", f"{summary.total_batches:,}")
    table.add_row("Messages Processed", f"{summary.total_processed:,}")
    if config.archive_enabled:
        table.add_row("Messages Archived", f"{summary.total_archived:,}")

    console.print(table)

    if config.dry_run:
        console.print(f"\n[bold yellow]DRY RUN MODE:[/bold yellow] {summary.total_processed:,} messages would be deleted")
    if config.archive_enabled and summary.total_archived:
        console.print(f"Archive: [cyan]{config.archive_directory}[/cyan]")


def exit_code_for(result: RunResult) -> int:
    if not result.succeeded:
        return EXIT_FAILED
    if result.summary.interrupted:
        return EXIT_INTERRUPTED
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    load_dotenv()
    configure_logging()

    args = build_parser().parse_args(argv)

    try:
        config = load_config(args)
    except ConfigError as error:
        console.print(f"[red]Configuration error: {error}[/red]")
        return EXIT_CONFIG_ERROR

    gmail_service = GmailService(credentials_path=args.credentials, token_path=args.token)
    if not gmail_service.authenticate():
        console.print("[red]Error: could not authenticate with Gmail[/red]")
        console.print("Download credentials.json from Google Cloud Console and place it in the project directory")
        return EXIT_FAILED

    driver = PurgeDriver(
        gmail_service.mailbox(),
        config,
        progress_callback=print_progress,
        stop_event=gmail_service.stop_event
    )
    result = asyncio.run(driver.run())

    print_summary(result, config)
    return exit_code_for(result)


if __name__ == "__main__":
    sys.exit(main())
