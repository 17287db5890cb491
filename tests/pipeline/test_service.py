"""
Tests for the Feedback Pipeline.

Tests cover:
- Single feedback flow (score, stats, alert, history)
- Escalation scenarios from raw text
- Provider failure isolation
- Event delivery and handler failure isolation
- Batch processing and same-subject serialization
- Recompute from history
- Operator actions through the pipeline
"""

from unittest.mock import AsyncMock

import pytest

from alerting.models import AlertSeverity, AlertStatus, AlertType
from core.exceptions import AlertNotFoundError
from pipeline.config import PipelineConfig
from pipeline.events import EventDispatcher, EventType
from pipeline.service import create_pipeline
from reputation.models import SubjectStatus
from sentiment.models import FeedbackRecord, ScoreSource, SentimentLabel
from sentiment.schemas import FeedbackSubmission

from tests.conftest import FIXED_TIME


VERY_RUDE = "The driver was very rude and late"   # -0.975
MILD_COMPLAINT = "good but slow and late and issue"  # -0.25
PRAISE = "Excellent driver, very friendly"


def record(text: str, subject_id: str = "driver-1", **kwargs) -> FeedbackRecord:
    return FeedbackRecord(subject_id=subject_id, text=text, submitted_at=FIXED_TIME, **kwargs)


class BrokenProvider:
    name = "broken"

    async def evaluate(self, text, rating=None):
        raise RuntimeError("model offline")


# =============================================================
# TEST: Single feedback
# =============================================================

class TestProcess:
    """Test the per-feedback flow."""

    @pytest.mark.asyncio
    async def test_positive_feedback(self, pipeline):
        result = await pipeline.process(record(PRAISE, rating=5))

        assert result.scored.label == SentimentLabel.VERY_POSITIVE
        assert result.stats.total_count == 1
        assert result.stats.average_rating == 5
        assert result.transitioned is False
        assert result.alert is None
        # lexical confidence on a four-word praise stays below review level
        assert result.scored.confidence < 0.7
        assert result.requires_attention is True

    @pytest.mark.asyncio
    async def test_feedback_id_assigned_and_history_kept(self, pipeline):
        result = await pipeline.process(record(PRAISE))

        assert result.record.feedback_id
        entries = pipeline.history.list_for_subject("driver-1")
        assert [e.feedback_id for e in entries] == [result.record.feedback_id]
        assert entries[0].scored == result.scored

    @pytest.mark.asyncio
    async def test_critical_on_first_feedback(self, pipeline):
        result = await pipeline.process(record(VERY_RUDE, feedback_id="fb-1"))

        assert result.scored.score == pytest.approx(-0.975)
        assert result.stats.alert_status == SubjectStatus.CRITICAL
        assert result.transitioned is True
        assert result.alert is not None
        assert result.alert.severity == AlertSeverity.CRITICAL
        assert result.alert.related_feedback_ids == ("fb-1",)

    @pytest.mark.asyncio
    async def test_repeated_critical_raises_one_alert(self, pipeline):
        results = [await pipeline.process(record(VERY_RUDE)) for _ in range(3)]

        assert [r.transitioned for r in results] == [True, False, False]
        assert sum(1 for r in results if r.alert is not None) == 1
        assert len(pipeline.coordinator.alerts_for_subject("driver-1")) == 1

    @pytest.mark.asyncio
    async def test_negative_streak_raises_warning_alert(self, pipeline):
        results = [
            await pipeline.process(record(MILD_COMPLAINT, feedback_id=f"fb-{i}"))
            for i in range(3)
        ]

        assert [r.scored.label for r in results] == [SentimentLabel.NEGATIVE] * 3
        assert results[1].alert is None
        alert = results[2].alert
        assert results[2].stats.alert_status == SubjectStatus.WARNING
        assert alert.severity == AlertSeverity.HIGH
        assert alert.alert_type == AlertType.CONSECUTIVE_NEGATIVE
        assert alert.related_feedback_ids == ("fb-2", "fb-1", "fb-0")

    @pytest.mark.asyncio
    async def test_provider_failure_uses_lexical(self, tracker, coordinator, mock_clock):
        from pipeline.service import FeedbackPipeline

        pipeline = FeedbackPipeline(tracker, coordinator, provider=BrokenProvider(), clock=mock_clock)
        result = await pipeline.process(record(VERY_RUDE))

        assert result.scored.source == ScoreSource.LEXICAL
        assert result.scored.score == pytest.approx(-0.975)
        assert result.alert is not None

    @pytest.mark.asyncio
    async def test_submit_validated_submission(self, pipeline, mock_clock):
        submission = FeedbackSubmission(subject_id=" driver-9 ", text="nice", rating=4)
        result = await pipeline.submit(submission)

        assert result.record.subject_id == "driver-9"
        assert result.record.submitted_at == mock_clock.now()
        assert pipeline.tracker.get("driver-9").total_count == 1

    @pytest.mark.asyncio
    async def test_to_dict(self, pipeline):
        data = (await pipeline.process(record(VERY_RUDE))).to_dict()

        assert data["transitioned"] is True
        assert data["previous_status"] == "normal"
        assert data["sentiment"]["label"] == "very_negative"
        assert data["alert"]["severity"] == "critical"


# =============================================================
# TEST: Events
# =============================================================

class TestPipelineEvents:
    """Test outbound events."""

    @pytest.mark.asyncio
    async def test_events_emitted(self, pipeline):
        seen = []

        async def handler(event):
            seen.append(event.event_type)

        pipeline.dispatcher.subscribe_all(handler)
        await pipeline.process(record(VERY_RUDE))

        assert seen == [EventType.STATS_TRANSITIONED, EventType.ALERT_RAISED]

    @pytest.mark.asyncio
    async def test_failing_handler_keeps_alert(self, pipeline):
        handler = AsyncMock(side_effect=RuntimeError("telegram down"))
        pipeline.dispatcher.subscribe(EventType.ALERT_RAISED, handler)

        result = await pipeline.process(record(VERY_RUDE))

        handler.assert_awaited_once()
        assert result.alert is not None
        assert pipeline.coordinator.get(result.alert.alert_id) is not None
        assert pipeline.dispatcher.failures == 1


# =============================================================
# TEST: Batches
# =============================================================

class TestProcessMany:
    """Test batch processing."""

    @pytest.mark.asyncio
    async def test_results_in_input_order(self, pipeline):
        records = [
            record(PRAISE, subject_id="a", feedback_id="1"),
            record(VERY_RUDE, subject_id="b", feedback_id="2"),
            record(PRAISE, subject_id="a", feedback_id="3"),
        ]
        results = await pipeline.process_many(records)

        assert [r.record.feedback_id for r in results] == ["1", "2", "3"]
        assert pipeline.tracker.get("a").total_count == 2
        assert pipeline.tracker.get("b").alert_status == SubjectStatus.CRITICAL

    @pytest.mark.asyncio
    async def test_same_subject_burst_raises_one_alert(self, pipeline):
        records = [record(VERY_RUDE, feedback_id=f"fb-{i}") for i in range(10)]
        results = await pipeline.process_many(records)

        assert len(results) == 10
        assert pipeline.tracker.get("driver-1").total_count == 10
        assert sum(1 for r in results if r.alert is not None) == 1
        assert len(pipeline.coordinator.alerts_for_subject("driver-1")) == 1

    @pytest.mark.asyncio
    async def test_empty_batch(self, pipeline):
        assert await pipeline.process_many([]) == []


# =============================================================
# TEST: Recompute
# =============================================================

class TestRecompute:
    """Test stats rebuild from history."""

    @pytest.mark.asyncio
    async def test_recompute_matches_live_stats(self, pipeline):
        for text in (PRAISE, MILD_COMPLAINT, VERY_RUDE, PRAISE):
            await pipeline.process(record(text, rating=3))
        live = pipeline.tracker.get("driver-1")

        rebuilt = await pipeline.recompute_subject("driver-1")

        assert rebuilt == live

    @pytest.mark.asyncio
    async def test_recompute_raises_no_alert(self, pipeline):
        await pipeline.process(record(VERY_RUDE))
        alert = pipeline.coordinator.active_alert_for_subject("driver-1")
        await pipeline.resolve_alert(alert.alert_id, "ops")

        await pipeline.recompute_subject("driver-1")

        assert len(pipeline.coordinator.alerts_for_subject("driver-1")) == 1


# =============================================================
# TEST: Operator actions
# =============================================================

class TestAlertActions:
    """Test operator actions through the pipeline."""

    @pytest.mark.asyncio
    async def test_actions_emit_updates(self, pipeline):
        updates = []

        async def handler(event):
            updates.append(event.context["action"])

        pipeline.dispatcher.subscribe(EventType.ALERT_UPDATED, handler)
        alert = (await pipeline.process(record(VERY_RUDE))).alert

        await pipeline.acknowledge_alert(alert.alert_id, "ops")
        await pipeline.assign_alert(alert.alert_id, "sam")
        await pipeline.escalate_alert(alert.alert_id, "sam", "repeat offender")
        final = await pipeline.dismiss_alert(alert.alert_id, "manager", "customer retracted")

        assert updates == ["acknowledge", "assign", "escalate", "dismiss"]
        assert final.status == AlertStatus.DISMISSED

    @pytest.mark.asyncio
    async def test_unknown_alert(self, pipeline):
        with pytest.raises(AlertNotFoundError):
            await pipeline.acknowledge_alert("missing", "ops")


# =============================================================
# TEST: Factory
# =============================================================

class TestCreatePipeline:
    """Test pipeline wiring."""

    @pytest.mark.asyncio
    async def test_default_wiring(self, mock_clock):
        pipeline = create_pipeline(PipelineConfig(), clock=mock_clock)
        result = await pipeline.process(record(VERY_RUDE))

        assert result.alert is not None
        assert pipeline.tracker.locks is pipeline.coordinator._locks
        await pipeline.close()

    @pytest.mark.asyncio
    async def test_background_events(self, mock_clock):
        pipeline = create_pipeline(
            PipelineConfig(background_events=True),
            clock=mock_clock,
        )
        seen = []

        async def handler(event):
            seen.append(event.alert.alert_id)

        pipeline.dispatcher.subscribe(EventType.ALERT_RAISED, handler)
        result = await pipeline.process(record(VERY_RUDE))
        await pipeline.close()

        assert seen == [result.alert.alert_id]

    def test_custom_dispatcher_kept(self, mock_clock):
        dispatcher = EventDispatcher()
        pipeline = create_pipeline(dispatcher=dispatcher, clock=mock_clock)
        assert pipeline.dispatcher is dispatcher
