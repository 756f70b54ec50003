"""Leave approval prediction.

Pipeline: statistics -> calendar analysis -> risk score -> confidence ->
decision -> explanation, plus the advisory pattern scan.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from ..academic_calendar.analyzer import CalendarAnalyzer
from ..common.datetime_utils import now_local
from ..core.constants import DASHBOARD_HIGH_RISK_SAMPLE
from ..core.enums import DecisionAction, LeaveStatus, LeaveType, RiskCategory, Role
from ..core.exceptions import NotFoundError, ScoringError
from ..core.permissions import Capability, ensure_capability
from ..leaves.model import REVIEWABLE_STATUSES, LeaveRow
from ..leaves.repository import LeaveRepository
from ..stats.service import StatsService
from ..users.model import StudentScope
from ..users.repository import UserRepository
from .base import RiskAssessment, RiskScorer
from .confidence import Confidence, estimate_confidence
from .config import DEFAULT_SCORING_CONFIG, ScoringConfig
from .decision_engine import Decision, DecisionEngine
from .explanation import Explanation, explain
from .features import FeatureBundle, build_features, build_request_features
from .pattern_detector import PatternDetector, PatternReport
from .weighted_scorer import WeightedRiskScorer

logger = logging.getLogger(__name__)

DASHBOARD_WINDOW_DAYS = 30


@dataclass(frozen=True)
class LeaveQuery:
    """A leave to be scored: either a draft application or a stored request."""

    student_id: int
    leave_type: LeaveType
    start: datetime
    end: datetime
    reason: str = ""


@dataclass(frozen=True)
class Prediction:
    assessment: RiskAssessment
    confidence: Confidence
    decision: Decision
    explanation: Explanation
    patterns: PatternReport
    features: FeatureBundle
    model_version: str
    timestamp: datetime

    @property
    def risk_score(self) -> int:
        return self.assessment.score

    @property
    def risk_category(self) -> RiskCategory:
        return self.assessment.category

    def as_dict(self) -> dict:
        return {
            "risk_score": self.assessment.score,
            "risk_category": self.assessment.category.value,
            "decision": self.decision.action.value,
            "confidence": self.confidence.rounded,
            "confidence_factors": self.confidence.as_dict()["factors"],
            "explanation": self.explanation.as_dict(),
            "patterns": self.patterns.as_dict(),
            "features": self.features.as_dict(),
            "component_scores": self.assessment.components_dict(),
            "calendar_modifier": self.assessment.calendar_modifier,
            "recommendation": self.decision.as_dict(),
            "model_version": self.model_version,
            "timestamp": self.timestamp.isoformat(),
        }

    def summary(self) -> dict:
        return {
            "decision": self.decision.action.value,
            "risk_score": self.assessment.score,
            "risk_category": self.assessment.category.value,
            "confidence": self.confidence.rounded,
        }


def approval_likelihood(score: int) -> str:
    if score <= 30:
        return "HIGH"
    if score <= 60:
        return "MEDIUM"
    return "LOW"


def student_tips(prediction: Prediction) -> list[str]:
    f = prediction.features
    tips = []
    if prediction.risk_score <= 20:
        tips.append("Your profile qualifies for quick approval!")
    if f.student.attendance_percentage < 80:
        tips.append("Improving your attendance can help future leave approvals")
    if f.student.leaves_this_month >= 3:
        tips.append("You have multiple leaves this month - consider spacing them out")
    if f.calendar.warnings:
        tips.append("Consider choosing dates without academic conflicts")
    if f.request.days_until_leave < 2:
        tips.append("Applying earlier gives better chances of approval")
    if prediction.patterns.detected:
        tips.append("Varying your leave patterns may improve approval chances")
    return tips


def student_view(prediction: Prediction) -> dict:
    """What a student sees: no weights, no attention points."""

    return {
        "risk_score": prediction.risk_score,
        "risk_category": prediction.risk_category.value,
        "likelihood": approval_likelihood(prediction.risk_score),
        "message": prediction.decision.suggested_response,
        "warnings": list(prediction.explanation.negative_factors),
        "positives": list(prediction.explanation.positive_factors),
        "tips": student_tips(prediction),
    }


def _leave_brief(row: LeaveRow) -> dict:
    leave = row.leave
    return {
        "leave_id": leave.leave_id,
        "student_id": leave.student_id,
        "student_name": row.student_name,
        "student_email": row.email,
        "hostel_block": row.hostel_block,
        "from_datetime": leave.from_datetime.isoformat(),
        "to_datetime": leave.to_datetime.isoformat(),
        "leave_type": leave.leave_type.value,
        "reason": leave.reason,
        "status": leave.status.value,
        "created_at": leave.created_at.isoformat() if leave.created_at else None,
    }


class PredictionService:
    def __init__(
        self,
        users: UserRepository,
        leaves: LeaveRepository,
        stats_service: StatsService,
        analyzer: CalendarAnalyzer,
        *,
        config: ScoringConfig = DEFAULT_SCORING_CONFIG,
        scorer: RiskScorer | None = None,
        detector: PatternDetector | None = None,
    ):
        self._users = users
        self._leaves = leaves
        self._stats = stats_service
        self._analyzer = analyzer
        self._config = config
        self._scorer = scorer or WeightedRiskScorer(config)
        self._engine = DecisionEngine(config.thresholds)
        self._detector = detector or PatternDetector()

    # --- core ---------------------------------------------------------

    def predict(
        self,
        query: LeaveQuery,
        *,
        scope: Optional[StudentScope] = None,
        now: Optional[datetime] = None,
        exclude_leave_id: Optional[int] = None,
    ) -> Prediction:
        """Score one leave. `exclude_leave_id` keeps a stored leave out of its own history."""

        now = now or now_local()
        stats = self._stats.get_or_init(query.student_id, now=now)
        analysis = self._analyzer.analyze(query.start, query.end, scope)
        history = [l for l in self._leaves.list_for_student(query.student_id) if l.leave_id != exclude_leave_id]

        try:
            request = build_request_features(
                leave_type=query.leave_type,
                start=query.start,
                end=query.end,
                reason=query.reason,
                now=now,
            )
            features = build_features(
                stats=stats,
                analysis=analysis,
                request=request,
                history=history,
                start=query.start,
                now=now,
            )
            assessment = self._scorer.score(features)
            confidence = estimate_confidence(features)
            decision = self._engine.decide(
                risk_score=assessment.score,
                confidence=confidence.overall,
                features=features,
            )
            explanation = explain(features, assessment, decision)
            patterns = self._detector.detect(history, now=now)
        except (ArithmeticError, LookupError, TypeError, ValueError) as e:
            logger.error("Prediction failed for student %s: %s", query.student_id, e)
            raise ScoringError(f"Could not score leave request: {e}") from e

        logger.debug(
            "Prediction for student %s: score=%s decision=%s",
            query.student_id,
            assessment.score,
            decision.action.value,
        )
        return Prediction(
            assessment=assessment,
            confidence=confidence,
            decision=decision,
            explanation=explanation,
            patterns=patterns,
            features=features,
            model_version=self._config.model_version,
            timestamp=now,
        )

    def _scope_for(self, student_id: int) -> Optional[StudentScope]:
        user = self._users.get_by_id(int(student_id))
        return user.scope if user else None

    def predict_for_student(self, query: LeaveQuery, *, now: Optional[datetime] = None) -> Prediction:
        return self.predict(query, scope=self._scope_for(query.student_id), now=now)

    def _predict_row(self, row: LeaveRow, *, now: datetime) -> Prediction:
        leave = row.leave
        query = LeaveQuery(
            student_id=leave.student_id,
            leave_type=leave.leave_type,
            start=leave.from_datetime,
            end=leave.to_datetime,
            reason=leave.reason,
        )
        scope = StudentScope(hostel_block=row.hostel_block, course=row.course, year=row.year)
        return self.predict(query, scope=scope, now=now, exclude_leave_id=leave.leave_id)

    # --- warden tools -------------------------------------------------

    def predict_for_leave(self, *, current_role: Role, leave_id: int, now: Optional[datetime] = None) -> dict:
        ensure_capability(current_role, Capability.REVIEW_LEAVES)
        leave = self._leaves.get_by_id(int(leave_id))
        if not leave:
            raise NotFoundError("Leave not found")
        student = self._users.get_by_id(leave.student_id)
        if not student:
            raise NotFoundError("Student not found")

        query = LeaveQuery(
            student_id=leave.student_id,
            leave_type=leave.leave_type,
            start=leave.from_datetime,
            end=leave.to_datetime,
            reason=leave.reason,
        )
        prediction = self.predict(query, scope=student.scope, now=now, exclude_leave_id=leave.leave_id)
        return {
            "leave": {
                "leave_id": leave.leave_id,
                "student_name": student.name,
                "from_datetime": leave.from_datetime.isoformat(),
                "to_datetime": leave.to_datetime.isoformat(),
                "leave_type": leave.leave_type.value,
                "current_status": leave.status.value,
            },
            "prediction": prediction.as_dict(),
        }

    def predict_batch(self, *, current_role: Role, now: Optional[datetime] = None) -> tuple[list[dict], dict]:
        """Score every PENDING/FLAGGED leave; failures are reported per item."""

        ensure_capability(current_role, Capability.REVIEW_LEAVES)
        now = now or now_local()
        rows = list(reversed(self._leaves.list_rows(statuses=REVIEWABLE_STATUSES)))

        results = []
        for row in rows:
            try:
                prediction = self._predict_row(row, now=now)
            except Exception as e:
                logger.warning("Batch prediction failed for leave %s: %s", row.leave.leave_id, e)
                results.append({"leave": {"leave_id": row.leave.leave_id}, "error": str(e)})
                continue
            results.append(
                {
                    "leave": _leave_brief(row),
                    "prediction": prediction.summary(),
                    "recommendation": prediction.decision.as_dict(),
                    "patterns": prediction.patterns.as_dict(),
                }
            )

        # stable: equal scores keep oldest-first order
        results.sort(key=lambda r: r.get("prediction", {}).get("risk_score", 0), reverse=True)

        decisions = [r["prediction"]["decision"] for r in results if "prediction" in r]
        summary = {
            "total": len(results),
            "auto_approve": decisions.count(DecisionAction.AUTO_APPROVE.value),
            "needs_review": decisions.count(DecisionAction.MANUAL_REVIEW.value),
            "flagged": decisions.count(DecisionAction.FLAG.value),
            "rejected": decisions.count(DecisionAction.REJECT.value),
            "errors": len(results) - len(decisions),
        }
        logger.info("Batch prediction: %s leaves, %s errors", summary["total"], summary["errors"])
        return results, summary

    def patterns(self, *, current_role: Role, student_id: int, now: Optional[datetime] = None) -> PatternReport:
        ensure_capability(current_role, Capability.REVIEW_LEAVES)
        history = self._leaves.list_for_student(int(student_id), limit=self._detector.sample_size)
        return self._detector.detect(history, now=now or now_local())

    def model_info(self) -> dict:
        c = self._config
        return {
            "name": c.model_name,
            "version": c.model_version,
            "type": "Rule-based Scoring System",
            "features": list(c.risk_weights.as_dict()),
            "weights": c.risk_weights.as_dict(),
            "profile_weights": c.profile_weights.as_dict(),
            "thresholds": c.thresholds.as_dict(),
            "description": (
                "Interpretable leave approval prediction based on student history, "
                "calendar events, and request patterns."
            ),
        }

    def dashboard(self, *, current_role: Role, now: Optional[datetime] = None) -> dict:
        ensure_capability(current_role, Capability.REVIEW_LEAVES)
        now = now or now_local()
        since = now - timedelta(days=DASHBOARD_WINDOW_DAYS)

        recent = {
            status: self._leaves.count_by_status(status, created_from=since)
            for status in (LeaveStatus.AUTO_APPROVED, LeaveStatus.FLAGGED, LeaveStatus.APPROVED, LeaveStatus.REJECTED)
        }

        high_risk = 0
        open_rows = list(reversed(self._leaves.list_rows(statuses=REVIEWABLE_STATUSES)))
        for row in open_rows[:DASHBOARD_HIGH_RISK_SAMPLE]:
            try:
                if self._predict_row(row, now=now).risk_category == RiskCategory.HIGH:
                    high_risk += 1
            except Exception as e:
                logger.warning("Dashboard prediction failed for leave %s: %s", row.leave.leave_id, e)

        return {
            "pending_leaves": self._leaves.count_by_status(LeaveStatus.PENDING),
            "last_30_days": {
                "auto_approved": recent[LeaveStatus.AUTO_APPROVED],
                "flagged": recent[LeaveStatus.FLAGGED],
                "manually_approved": recent[LeaveStatus.APPROVED],
                "rejected": recent[LeaveStatus.REJECTED],
                "total": sum(recent.values()),
            },
            "high_risk_pending": high_risk,
            "model_version": self._config.model_version,
        }
