"""
Feedback Pipeline - CLI.

============================================================
RESPONSIBILITY
============================================================
Command-line entry point for operators and batch jobs.

- score:   score a single text and print the result
- replay:  feed a JSON-lines file of submissions through the
           full pipeline and print a summary
- stats:   print reputation and alert statistics from the database
- summary: send the daily alert summary to the configured senders
- remind:  send overdue and unassigned-critical reminders
- resolve: resolve one alert and announce the resolution

============================================================
USAGE
============================================================
python -m pipeline.cli score "The driver was very rude and late"
python -m pipeline.cli replay feedback.jsonl --database-url sqlite:///./rep.db
python -m pipeline.cli stats --database-url sqlite:///./rep.db
python -m pipeline.cli remind --database-url sqlite:///./rep.db
python -m pipeline.cli resolve <alert-id> --actor ops --notes "coached" --database-url sqlite:///./rep.db

============================================================
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from alerting.notifications import AlertNotifier, create_alert_notifier
from core.exceptions import AlertError
from sentiment.providers import create_sentiment_provider
from sentiment.schemas import FeedbackSubmission

from .config import PipelineConfig, configure_logging
from .events import EventType, alert_notification_handler, resolution_notification_handler
from .service import FeedbackPipeline, create_pipeline


logger = logging.getLogger(__name__)


# ============================================================
# CLI ARGUMENT PARSER
# ============================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="feedback-reputation",
        description="Feedback sentiment, reputation tracking and alerting",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s score "Great driver, very friendly" --rating 5
  %(prog)s replay feedback.jsonl --database-url sqlite:///./rep.db
  %(prog)s stats --database-url sqlite:///./rep.db
  %(prog)s summary --database-url sqlite:///./rep.db
        """
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Logging level (default: LOG_LEVEL or INFO)",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version="%(prog)s 1.0.0",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    # --------------------------------------------------------
    # score
    # --------------------------------------------------------
    score = commands.add_parser("score", help="Score one feedback text")
    score.add_argument("text", type=str)
    score.add_argument("--rating", type=int, default=None, help="Star rating 1-5")

    # --------------------------------------------------------
    # replay
    # --------------------------------------------------------
    replay = commands.add_parser("replay", help="Process a JSON-lines feedback file")
    replay.add_argument("path", type=Path, metavar="FILE")
    replay.add_argument(
        "--database-url",
        type=str,
        default=None,
        help="Persist to this SQLAlchemy URL (default: DATABASE_URL, else in memory)",
    )

    # --------------------------------------------------------
    # stats
    # --------------------------------------------------------
    stats = commands.add_parser("stats", help="Print stored statistics")
    stats.add_argument("--database-url", type=str, default=None)

    # --------------------------------------------------------
    # summary / remind
    # --------------------------------------------------------
    summary = commands.add_parser("summary", help="Send the daily alert summary")
    summary.add_argument("--database-url", type=str, default=None)

    remind = commands.add_parser("remind", help="Send overdue and unassigned-critical reminders")
    remind.add_argument("--database-url", type=str, default=None)

    # --------------------------------------------------------
    # resolve
    # --------------------------------------------------------
    resolve = commands.add_parser("resolve", help="Resolve an alert and announce it")
    resolve.add_argument("alert_id", type=str)
    resolve.add_argument("--actor", type=str, required=True)
    resolve.add_argument("--notes", type=str, default=None)
    resolve.add_argument("--database-url", type=str, default=None)

    return parser


# ============================================================
# PIPELINE WIRING
# ============================================================

def build_pipeline(config: PipelineConfig, database_url: Optional[str]) -> FeedbackPipeline:
    """Pipeline over SQL stores when a URL is known, in-memory otherwise."""
    url = database_url or config.database_url
    if not url:
        return create_pipeline(config)

    from database import (
        SqlAlertStore,
        SqlFeedbackHistory,
        SqlSubjectStatsStore,
        create_database_engine,
        initialize_database,
    )

    factory = initialize_database(create_database_engine(url))
    return create_pipeline(
        config,
        stats_store=SqlSubjectStatsStore(factory),
        alert_store=SqlAlertStore(factory),
        history=SqlFeedbackHistory(factory),
    )


def read_submissions(path: Path) -> List[FeedbackSubmission]:
    """Parse a JSON-lines file, skipping lines that fail validation."""
    submissions = []
    with path.open("r", encoding="utf-8") as handle:
        for number, line in enumerate(handle, 1):
            line = line.strip()
            if not line:
                continue
            try:
                submissions.append(FeedbackSubmission.model_validate_json(line))
            except ValidationError as e:
                logger.warning(f"{path}:{number}: skipped invalid submission: {e.error_count()} error(s)")
    return submissions


# ============================================================
# COMMANDS
# ============================================================

async def run_score(config: PipelineConfig, text: str, rating: Optional[int]) -> Dict[str, Any]:
    provider = create_sentiment_provider(config.sentiment)
    try:
        scored = await provider.evaluate(text, rating)
    finally:
        close = getattr(provider, "close", None)
        if close is not None:
            await close()
    return scored.to_dict()


def subscribe_notifier(pipeline: FeedbackPipeline, notifier: AlertNotifier) -> None:
    """Send new alerts and resolutions through the notifier."""
    pipeline.dispatcher.subscribe(EventType.ALERT_RAISED, alert_notification_handler(notifier))
    pipeline.dispatcher.subscribe(EventType.ALERT_UPDATED, resolution_notification_handler(notifier))


async def run_replay(config: PipelineConfig, path: Path, database_url: Optional[str]) -> Dict[str, Any]:
    pipeline = build_pipeline(config, database_url)
    subscribe_notifier(pipeline, create_alert_notifier(config.alerting))

    submissions = read_submissions(path)
    try:
        results = await pipeline.process_many(
            s.to_record(pipeline.clock.now()) for s in submissions
        )
    finally:
        await pipeline.close()

    return {
        "processed": len(results),
        "alerts_raised": sum(1 for r in results if r.alert is not None),
        "reputation": pipeline.tracker.overall_statistics().to_dict(),
        "alerts": pipeline.coordinator.statistics().to_dict(),
    }


def run_stats(config: PipelineConfig, database_url: Optional[str]) -> Dict[str, Any]:
    pipeline = build_pipeline(config, database_url)
    return {
        "reputation": pipeline.tracker.overall_statistics().to_dict(),
        "alerts": pipeline.coordinator.statistics().to_dict(),
        "critical_subjects": [s.subject_id for s in pipeline.tracker.critical_subjects()],
    }


async def run_summary(
    config: PipelineConfig,
    database_url: Optional[str],
    notifier: Optional[AlertNotifier] = None,
) -> Dict[str, Any]:
    pipeline = build_pipeline(config, database_url)
    notifier = notifier or create_alert_notifier(config.alerting)

    stats = pipeline.coordinator.statistics()
    try:
        delivered = await notifier.send_daily_summary(stats)
    finally:
        await pipeline.close()
    return {"delivered": delivered, "alerts": stats.to_dict()}


async def run_remind(
    config: PipelineConfig,
    database_url: Optional[str],
    notifier: Optional[AlertNotifier] = None,
) -> Dict[str, Any]:
    pipeline = build_pipeline(config, database_url)
    notifier = notifier or create_alert_notifier(config.alerting)

    overdue = pipeline.coordinator.overdue_alerts()
    unassigned = pipeline.coordinator.unassigned_critical_alerts()
    try:
        overdue_delivered = await notifier.send_overdue_reminder(
            overdue, config.alerting.overdue_after_hours
        )
        unassigned_delivered = await notifier.send_unassigned_critical(unassigned)
    finally:
        await pipeline.close()

    return {
        "overdue": [a.alert_id for a in overdue],
        "overdue_delivered": overdue_delivered,
        "unassigned_critical": [a.alert_id for a in unassigned],
        "unassigned_delivered": unassigned_delivered,
    }


async def run_resolve(
    config: PipelineConfig,
    alert_id: str,
    actor: str,
    notes: Optional[str],
    database_url: Optional[str],
    notifier: Optional[AlertNotifier] = None,
) -> Dict[str, Any]:
    pipeline = build_pipeline(config, database_url)
    subscribe_notifier(pipeline, notifier or create_alert_notifier(config.alerting))
    try:
        alert = await pipeline.resolve_alert(alert_id, actor, notes)
    finally:
        await pipeline.close()
    return alert.to_dict()


# ============================================================
# MAIN ENTRY POINT
# ============================================================

def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Command line arguments (default: sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    config = PipelineConfig.from_env()
    configure_logging(args.log_level or config.log_level)

    errors = config.validate()
    if errors:
        for error in errors:
            print(f"Error: {error}", file=sys.stderr)
        return 1

    try:
        if args.command == "score":
            output = asyncio.run(run_score(config, args.text, args.rating))
        elif args.command == "replay":
            if not args.path.exists():
                print(f"Error: no such file: {args.path}", file=sys.stderr)
                return 1
            output = asyncio.run(run_replay(config, args.path, args.database_url))
        elif args.command == "summary":
            output = asyncio.run(run_summary(config, args.database_url))
        elif args.command == "remind":
            output = asyncio.run(run_remind(config, args.database_url))
        elif args.command == "resolve":
            output = asyncio.run(run_resolve(
                config, args.alert_id, args.actor, args.notes, args.database_url
            ))
        else:
            output = run_stats(config, args.database_url)
    except AlertError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1

    print(json.dumps(output, indent=2, default=str))
    return 0


# ============================================================
# MODULE EXECUTION
# ============================================================

if __name__ == "__main__":
    sys.exit(main())
