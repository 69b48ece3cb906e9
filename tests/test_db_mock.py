"""Tests for database operations with mocked Supabase."""

import hashlib
from unittest.mock import MagicMock, patch

import pytest

from momentum.db.documents import list_documents
from momentum.db.extraction_queue import (
    claim_job,
    content_hash,
    enqueue_job,
    fail_attempt,
    find_next_pending_job,
    queue_source,
    reset_stuck_jobs,
)
from momentum.db.goals import GoalLimitError, create_goal, with_current_micro_win
from momentum.db.micro_wins import promote_next_micro_win
from momentum.db.user_settings import get_setting

from tests.conftest import USER_ID


class PostgrestError(Exception):
    def __init__(self, message, code=None):
        super().__init__(message)
        self.message = message
        self.code = code


def _response(data):
    response = MagicMock()
    response.data = data
    return response


@pytest.fixture
def queue_supabase():
    with patch("momentum.db.extraction_queue.get_supabase") as mock:
        yield mock.return_value


class TestExtractionQueue:
    def test_content_hash_is_sha256(self):
        assert content_hash("hello") == hashlib.sha256(b"hello").hexdigest()

    def test_enqueue_ignores_duplicate_snapshot(self, queue_supabase):
        queue_supabase.table.return_value.upsert.return_value.execute.return_value = _response([])

        assert enqueue_job(USER_ID, "document", "d1", "text") is None

        row = queue_supabase.table.return_value.upsert.call_args.args[0]
        assert row["content_hash"] == content_hash("text")
        assert queue_supabase.table.return_value.upsert.call_args.kwargs["ignore_duplicates"] is True

    @patch("momentum.db.extraction_queue.enqueue_job")
    @patch("momentum.db.extraction_queue.refresh_pending_snapshot")
    @patch("momentum.db.extraction_queue.find_active_job", return_value={"id": "job-1", "status": "pending"})
    def test_queue_source_refreshes_active_job(self, mock_find, mock_refresh, mock_enqueue):
        job, queued = queue_source(USER_ID, "document", "d1", "new text")

        assert (job["id"], queued) == ("job-1", False)
        mock_refresh.assert_called_once_with(USER_ID, "document", "d1", "new text")
        mock_enqueue.assert_not_called()

    @patch("momentum.db.extraction_queue.enqueue_job", return_value={"id": "job-2"})
    @patch("momentum.db.extraction_queue.find_active_job", return_value=None)
    def test_queue_source_enqueues(self, mock_find, mock_enqueue):
        job, queued = queue_source(USER_ID, "coaching_session", "s1", "transcript", priority=-1)

        assert (job, queued) == ({"id": "job-2"}, True)
        mock_enqueue.assert_called_once_with(USER_ID, "coaching_session", "s1", "transcript", -1)

    def test_claim_specific_job(self, queue_supabase):
        queue_supabase.rpc.return_value.execute.return_value = _response([{"id": "job-1", "attempts": 1}])

        assert claim_job("job-1")["id"] == "job-1"
        queue_supabase.rpc.assert_called_once_with("claim_extraction_job", {"target_id": "job-1"})

    def test_claim_when_empty(self, queue_supabase):
        queue_supabase.rpc.return_value.execute.return_value = _response([])

        assert claim_job() is None
        queue_supabase.rpc.assert_called_once_with("claim_extraction_job", {})

    @pytest.mark.parametrize("attempts,expected", [(1, "pending"), (2, "pending"), (3, "failed")])
    def test_fail_attempt_retries_until_max(self, queue_supabase, attempts, expected):
        job = {"id": "job-1", "attempts": attempts, "max_attempts": 3}

        assert fail_attempt(job, "boom") == expected

        update = queue_supabase.table.return_value.update.call_args.args[0]
        assert update == {"status": expected, "error_message": "boom", "started_at": None}

    def test_reset_stuck_counts_rows(self, queue_supabase):
        chain = queue_supabase.table.return_value.update.return_value.eq.return_value.eq.return_value
        chain.lt.return_value.execute.return_value = _response([{"id": "a"}, {"id": "b"}])

        assert reset_stuck_jobs(USER_ID, 5) == 2
        assert queue_supabase.table.return_value.update.call_args.args[0] == {
            "status": "pending",
            "started_at": None,
        }


class TestGoals:
    def test_with_current_micro_win(self):
        goal = {
            "id": "g1",
            "micro_wins": [
                {"id": "b", "position": 1, "is_current": True},
                {"id": "a", "position": 0, "is_current": False},
            ],
        }

        result = with_current_micro_win(goal)

        assert [mw["id"] for mw in result["micro_wins"]] == ["a", "b"]
        assert result["current_micro_win"]["id"] == "b"

    def test_goal_without_micro_wins(self):
        assert with_current_micro_win({"id": "g1", "micro_wins": None})["current_micro_win"] is None

    def test_rule_of_three_violation(self):
        with patch("momentum.db.goals.get_supabase") as mock:
            insert = mock.return_value.table.return_value.insert.return_value
            insert.execute.side_effect = PostgrestError("Cannot have more than 3 active goals")

            with pytest.raises(GoalLimitError):
                create_goal(USER_ID, "Fourth", None, "active", 3)

    def test_other_errors_propagate(self):
        with patch("momentum.db.goals.get_supabase") as mock:
            insert = mock.return_value.table.return_value.insert.return_value
            insert.execute.side_effect = PostgrestError("connection reset")

            with pytest.raises(PostgrestError):
                create_goal(USER_ID, "Goal", None, "active", 0)


class TestMicroWins:
    def test_promote_next(self):
        with patch("momentum.db.micro_wins.get_supabase") as mock:
            table = mock.return_value.table.return_value
            select = table.select.return_value.eq.return_value.is_.return_value.order.return_value.limit.return_value
            select.execute.return_value = _response([{"id": "mw-2", "is_current": False}])

            promoted = promote_next_micro_win("g1")

            assert promoted == {"id": "mw-2", "is_current": True}
            table.update.assert_called_once_with({"is_current": True})

    def test_nothing_left_to_promote(self):
        with patch("momentum.db.micro_wins.get_supabase") as mock:
            table = mock.return_value.table.return_value
            select = table.select.return_value.eq.return_value.is_.return_value.order.return_value.limit.return_value
            select.execute.return_value = _response([])

            assert promote_next_micro_win("g1") is None
            table.update.assert_not_called()


class TestSettings:
    def test_missing_setting_is_none(self):
        with patch("momentum.db.user_settings.get_supabase") as mock:
            query = mock.return_value.table.return_value.select.return_value.eq.return_value.eq.return_value
            query.single.return_value.execute.side_effect = PostgrestError("no rows", code="PGRST116")

            assert get_setting(USER_ID, "theme") is None

    def test_stored_value(self):
        with patch("momentum.db.user_settings.get_supabase") as mock:
            query = mock.return_value.table.return_value.select.return_value.eq.return_value.eq.return_value
            query.single.return_value.execute.return_value = _response({"value": ["compost"]})

            assert get_setting(USER_ID, "word_cloud_hidden") == ["compost"]


class TestDocuments:
    @pytest.mark.parametrize(
        "query,pattern",
        [
            ("garden", '"%garden%"'),
            ("tea, coffee", '"%tea, coffee%"'),
            ("(draft)", '"%(draft)%"'),
            ('say "hi"', '"%say \\"hi\\"%"'),
        ],
    )
    def test_search_is_quoted(self, query, pattern):
        with patch("momentum.db.documents.get_supabase") as mock:
            request = mock.return_value.table.return_value.select.return_value.eq.return_value.eq.return_value
            request.or_.return_value.order.return_value.execute.return_value = _response([{"id": "d1"}])

            assert list_documents(USER_ID, query) == [{"id": "d1"}]
            request.or_.assert_called_once_with(f"title.ilike.{pattern},content.ilike.{pattern}")

    def test_no_search_skips_filter(self):
        with patch("momentum.db.documents.get_supabase") as mock:
            request = mock.return_value.table.return_value.select.return_value.eq.return_value.eq.return_value
            request.order.return_value.execute.return_value = _response(None)

            assert list_documents(USER_ID) == []
            request.or_.assert_not_called()


class TestNextPendingJob:
    def test_returns_users_next_job(self, queue_supabase):
        query = queue_supabase.table.return_value.select.return_value.eq.return_value.eq.return_value
        query.order.return_value.order.return_value.limit.return_value.execute.return_value = _response(
            [{"id": "job-1"}]
        )

        assert find_next_pending_job(USER_ID) == {"id": "job-1"}
        queue_supabase.table.return_value.select.return_value.eq.assert_called_once_with("user_id", USER_ID)
        query.order.assert_called_once_with("priority", desc=True)

    def test_nothing_pending(self, queue_supabase):
        query = queue_supabase.table.return_value.select.return_value.eq.return_value.eq.return_value
        query.order.return_value.order.return_value.limit.return_value.execute.return_value = _response([])

        assert find_next_pending_job(USER_ID) is None
