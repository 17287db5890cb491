"""
Feedback Pipeline - scoring, reputation and alerting in one pass.

============================================================
FLOW
============================================================
    FeedbackRecord
        │  provider.evaluate()            (outside any lock, may hit AI)
        ▼
    ScoredFeedback
        │  ┌── subject lock ─────────────────────────────┐
        │  │ history.append()                            │
        │  │ tracker.update()      -> StatsUpdate        │
        │  │ coordinator.evaluate() -> Alert | None      │
        │  └─────────────────────────────────────────────┘
        ▼
    events (stats_transitioned, alert_raised)   fire-and-forget

============================================================
CONCURRENCY
============================================================
- Different subjects run in parallel
- Same-subject work is serialized by one reentrant lock held across
  the stats update and the alert check-then-create
- The locked section runs in a worker thread so the event loop is
  never blocked by store I/O

============================================================
"""

import asyncio
import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional
from uuid import uuid4

from alerting.coordinator import AlertCoordinator
from alerting.models import Alert, AlertAction
from alerting.store import AlertStore
from core.clock import ClockFactory, ClockProtocol
from core.locks import SubjectLocks
from reputation.models import StatsUpdate, SubjectStats
from reputation.store import SubjectStatsStore
from reputation.tracker import ReputationTracker
from sentiment.base import SentimentProvider
from sentiment.models import FeedbackCategory, FeedbackRecord, ScoredFeedback
from sentiment.providers import create_sentiment_provider
from sentiment.schemas import FeedbackSubmission
from sentiment.scorer import LexicalSentimentScorer

from .config import PipelineConfig
from .events import EventDispatcher, EventType, PipelineEvent
from .history import (
    FeedbackEntry,
    FeedbackHistoryStore,
    InMemoryFeedbackHistory,
    recent_negative_ids,
)


logger = logging.getLogger(__name__)


# ============================================================
# RESULT
# ============================================================

@dataclass(frozen=True)
class ProcessedFeedback:
    """Everything one feedback produced."""

    record: FeedbackRecord
    scored: ScoredFeedback
    update: StatsUpdate
    alert: Optional[Alert] = None

    @property
    def stats(self) -> SubjectStats:
        return self.update.stats

    @property
    def transitioned(self) -> bool:
        return self.update.transitioned

    @property
    def requires_attention(self) -> bool:
        return self.scored.requires_attention

    @property
    def category(self) -> FeedbackCategory:
        return self.scored.category

    def to_dict(self) -> Dict[str, Any]:
        return {
            "feedback": self.record.to_dict(),
            "sentiment": self.scored.to_dict(),
            "stats": self.stats.to_dict(),
            "transitioned": self.transitioned,
            "previous_status": self.update.previous_status.value,
            "alert": self.alert.to_dict() if self.alert else None,
        }


# ============================================================
# PIPELINE
# ============================================================

class FeedbackPipeline:
    """
    Composes provider, tracker and coordinator.

    The tracker and coordinator must share ``locks`` with the
    pipeline; ``create_pipeline`` wires this up.
    """

    def __init__(
        self,
        tracker: ReputationTracker,
        coordinator: AlertCoordinator,
        provider: Optional[SentimentProvider] = None,
        history: Optional[FeedbackHistoryStore] = None,
        dispatcher: Optional[EventDispatcher] = None,
        clock: Optional[ClockProtocol] = None,
    ) -> None:
        self._tracker = tracker
        self._coordinator = coordinator
        self._lexical = LexicalSentimentScorer()
        self._provider: SentimentProvider = provider or self._lexical
        self._history = history if history is not None else InMemoryFeedbackHistory()
        self._dispatcher = dispatcher or EventDispatcher()
        self._clock = clock or ClockFactory.get_clock()
        self._locks = tracker.locks

    @property
    def tracker(self) -> ReputationTracker:
        return self._tracker

    @property
    def coordinator(self) -> AlertCoordinator:
        return self._coordinator

    @property
    def dispatcher(self) -> EventDispatcher:
        return self._dispatcher

    @property
    def history(self) -> FeedbackHistoryStore:
        return self._history

    @property
    def clock(self) -> ClockProtocol:
        return self._clock

    # --------------------------------------------------------
    # Ingestion
    # --------------------------------------------------------

    async def submit(self, submission: FeedbackSubmission) -> ProcessedFeedback:
        """Process a validated boundary submission."""
        return await self.process(submission.to_record(self._clock.now()))

    async def process(self, record: FeedbackRecord) -> ProcessedFeedback:
        """Score one feedback and fold it into reputation and alerts."""
        if record.feedback_id is None:
            record = dataclasses.replace(record, feedback_id=str(uuid4()))

        scored = await self._score(record)
        result = await asyncio.to_thread(self._apply, record, scored)
        await self._emit_processed(result)
        return result

    async def process_many(self, records: Iterable[FeedbackRecord]) -> List[ProcessedFeedback]:
        """
        Process a batch.

        Subjects run concurrently; records for the same subject keep
        their order. Results come back in input order.
        """
        records = list(records)
        by_subject: Dict[str, List[int]] = {}
        for index, record in enumerate(records):
            by_subject.setdefault(record.subject_id, []).append(index)

        results: List[Optional[ProcessedFeedback]] = [None] * len(records)

        async def run_subject(indexes: List[int]) -> None:
            for i in indexes:
                results[i] = await self.process(records[i])

        await asyncio.gather(*(run_subject(ix) for ix in by_subject.values()))
        return [r for r in results if r is not None]

    async def _score(self, record: FeedbackRecord) -> ScoredFeedback:
        try:
            return await self._provider.evaluate(record.text, record.rating)
        except Exception as e:
            logger.error(
                f"Provider {getattr(self._provider, 'name', self._provider)} raised, "
                f"using lexical scorer: {e}"
            )
            return self._lexical.score(record.text)

    def _apply(self, record: FeedbackRecord, scored: ScoredFeedback) -> ProcessedFeedback:
        subject_id = record.subject_id
        with self._locks.hold(subject_id):
            self._history.append(FeedbackEntry.from_record(record, scored))
            update = self._tracker.update(
                subject_id,
                scored,
                rating=record.rating,
                observed_at=record.submitted_at,
            )

            alert = None
            if update.transitioned:
                related = recent_negative_ids(
                    self._history.list_for_subject(subject_id),
                    self._coordinator.config.related_feedback_limit,
                )
                alert = self._coordinator.evaluate(
                    subject_id, update.stats, update.transitioned, related
                )

        return ProcessedFeedback(record=record, scored=scored, update=update, alert=alert)

    async def _emit_processed(self, result: ProcessedFeedback) -> None:
        now = self._clock.now()
        subject_id = result.record.subject_id

        if result.transitioned:
            await self._dispatcher.emit(PipelineEvent(
                event_type=EventType.STATS_TRANSITIONED,
                subject_id=subject_id,
                occurred_at=now,
                stats=result.stats,
                previous_status=result.update.previous_status,
            ))

        if result.alert is not None:
            await self._dispatcher.emit(PipelineEvent(
                event_type=EventType.ALERT_RAISED,
                subject_id=subject_id,
                occurred_at=now,
                stats=result.stats,
                alert=result.alert,
            ))

    # --------------------------------------------------------
    # Correction
    # --------------------------------------------------------

    async def recompute_subject(self, subject_id: str) -> SubjectStats:
        """Rebuild a subject's stats from stored history. Raises no alerts."""

        def rebuild() -> SubjectStats:
            with self._locks.hold(subject_id):
                entries = self._history.list_for_subject(subject_id)
                return self._tracker.recompute(
                    subject_id, [e.to_observation() for e in entries]
                )

        return await asyncio.to_thread(rebuild)

    # --------------------------------------------------------
    # Operator actions
    # --------------------------------------------------------

    async def apply_alert_action(
        self,
        alert_id: str,
        action: AlertAction,
        actor: str,
        notes: Optional[str] = None,
    ) -> Alert:
        """
        Apply an operator action and announce the change.

        Raises AlertNotFoundError or InvalidAlertTransitionError.
        """
        alert = await asyncio.to_thread(self._coordinator.apply, alert_id, action, actor, notes)
        await self._dispatcher.emit(PipelineEvent(
            event_type=EventType.ALERT_UPDATED,
            subject_id=alert.subject_id,
            occurred_at=self._clock.now(),
            alert=alert,
            context={"action": action.value, "actor": actor},
        ))
        return alert

    async def acknowledge_alert(self, alert_id: str, actor: str, notes: Optional[str] = None) -> Alert:
        return await self.apply_alert_action(alert_id, AlertAction.ACKNOWLEDGE, actor, notes)

    async def assign_alert(self, alert_id: str, assignee: str) -> Alert:
        return await self.apply_alert_action(alert_id, AlertAction.ASSIGN, assignee)

    async def resolve_alert(self, alert_id: str, actor: str, notes: Optional[str] = None) -> Alert:
        return await self.apply_alert_action(alert_id, AlertAction.RESOLVE, actor, notes)

    async def dismiss_alert(self, alert_id: str, actor: str, reason: Optional[str] = None) -> Alert:
        return await self.apply_alert_action(alert_id, AlertAction.DISMISS, actor, reason)

    async def escalate_alert(self, alert_id: str, actor: str, reason: Optional[str] = None) -> Alert:
        return await self.apply_alert_action(alert_id, AlertAction.ESCALATE, actor, reason)

    # --------------------------------------------------------
    # Lifecycle
    # --------------------------------------------------------

    async def close(self) -> None:
        """Flush background events and release provider resources."""
        await self._dispatcher.drain()
        close = getattr(self._provider, "close", None)
        if close is not None:
            await close()


# ============================================================
# FACTORY
# ============================================================

def create_pipeline(
    config: Optional[PipelineConfig] = None,
    stats_store: Optional[SubjectStatsStore] = None,
    alert_store: Optional[AlertStore] = None,
    history: Optional[FeedbackHistoryStore] = None,
    provider: Optional[SentimentProvider] = None,
    dispatcher: Optional[EventDispatcher] = None,
    clock: Optional[ClockProtocol] = None,
) -> FeedbackPipeline:
    """
    Wire a pipeline with one shared lock registry.

    Stores default to in-memory ones; pass SQL stores from
    database.repositories for persistence.
    """
    config = (config or PipelineConfig()).ensure_valid()
    clock = clock or ClockFactory.get_clock()
    locks = SubjectLocks()

    tracker = ReputationTracker(
        store=stats_store,
        config=config.reputation,
        clock=clock,
        locks=locks,
    )
    coordinator = AlertCoordinator(
        store=alert_store,
        config=config.alerting,
        reputation_config=config.reputation,
        clock=clock,
        locks=locks,
    )

    logger.info(f"Feedback pipeline configured: {config.to_dict()}")
    return FeedbackPipeline(
        tracker=tracker,
        coordinator=coordinator,
        provider=provider or create_sentiment_provider(config.sentiment),
        history=history,
        dispatcher=dispatcher or EventDispatcher(background=config.background_events),
        clock=clock,
    )


__all__ = ["ProcessedFeedback", "FeedbackPipeline", "create_pipeline"]
