"""Tests for validating stored goal documents."""

from datetime import datetime

import pytest
from bson import ObjectId

from app.models.goal_model import GoalDocumentError, GoalModel


def stored_goal(**overrides):
    doc = {
        "_id": ObjectId(),
        "user_id": "recipient",
        "experience_gift_id": ObjectId(),
        "empowered_by": "giver",
        "title": "Attend Yoga Sessions",
        "category": "Yoga",
        "target_count": 3,
        "current_count": 1,
        "sessions_per_week": 2,
        "weekly_count": 1,
        "weekly_log_dates": ["2025-03-12"],
        "week_start_at": datetime(2025, 3, 10),
        "last_session_date": "2025-03-12",
        "approval_status": "approved",
        "updated_at": datetime(2025, 3, 12, 8, 0),
    }
    doc.update(overrides)
    return doc


class TestFromDocument:

    def test_valid_document(self):
        doc = stored_goal()
        goal = GoalModel.from_document(doc)
        assert goal.id == str(doc["_id"])
        assert goal.experience_gift_id == str(doc["experience_gift_id"])
        assert goal.week_start_at == datetime(2025, 3, 10)
        assert goal.frequency == "weekly"

    def test_missing_counters_default(self):
        doc = stored_goal()
        for key in (
            "current_count", "weekly_count", "weekly_log_dates", "week_start_at", "last_session_date",
        ):
            doc.pop(key)
        goal = GoalModel.from_document(doc)
        assert goal.current_count == 0
        assert goal.weekly_count == 0
        assert goal.weekly_log_dates == []
        assert goal.week_start_at is None
        assert goal.last_session_date is None

    @pytest.mark.parametrize("overrides", [
        {"weekly_count": 3},
        {"current_count": 4},
        {"current_count": 3},                       # counts say done, flag says not
        {"is_completed": True},                     # flag says done, counts say not
        {"sessions_per_week": 8},
        {"target_count": 0},
        {"approval_status": "suggested_change"},
        {"weekly_log_dates": ["12/03/2025"]},
        {"last_session_date": "March 12"},
        {"target_count": "three"},
    ])
    def test_shape_mismatch_fails_loudly(self, overrides):
        with pytest.raises(GoalDocumentError):
            GoalModel.from_document(stored_goal(**overrides))

    def test_missing_required_field(self):
        doc = stored_goal()
        del doc["user_id"]
        with pytest.raises(GoalDocumentError):
            GoalModel.from_document(doc)

    def test_not_a_document(self):
        with pytest.raises(GoalDocumentError):
            GoalModel.from_document(None)

    def test_completed_document(self):
        goal = GoalModel.from_document(stored_goal(current_count=3, weekly_count=0, is_completed=True))
        assert goal.is_completed


class TestToDocument:

    def test_excludes_id_and_keeps_datetimes(self):
        goal = GoalModel.from_document(stored_goal())
        doc = goal.to_document()
        assert "id" not in doc and "_id" not in doc
        assert doc["week_start_at"] == datetime(2025, 3, 10)
        assert doc["weekly_log_dates"] == ["2025-03-12"]
        assert doc["last_session_date"] == "2025-03-12"
