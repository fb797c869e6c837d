from datetime import datetime, timedelta, timezone

import pytest

from task_api.errors import ValidationError
from task_api.schemas import (
    INVALID_DESCRIPTION,
    INVALID_DUE_DATE,
    INVALID_TASK_ID,
    MISSING_CREATE_FIELDS,
    MISSING_STATUS,
    TaskCreate,
    parse_due_date,
    parse_status_update,
    parse_task_create,
    parse_task_id,
    serialize_task,
)
from task_api.utils import format_timestamp, next_timestamp, to_utc, utcnow

UTC = timezone.utc


class TestParseTaskId:
    @pytest.mark.parametrize(
        "raw,expected",
        [("1", 1), ("42", 42), ("  7", 7), ("-3", -3), ("+5", 5), ("12abc", 12), ("1.5", 1), (9, 9)],
    )
    def test_valid(self, raw, expected):
        assert parse_task_id(raw) == expected

    @pytest.mark.parametrize("raw", ["not-a-number", "", " ", "abc12", "--1", "٣", None, True])
    def test_invalid(self, raw):
        with pytest.raises(ValidationError) as exc:
            parse_task_id(raw)
        assert exc.value.message == INVALID_TASK_ID
        assert exc.value.status_code == 400


class TestParseDueDate:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("2024-12-31T23:59:59.000Z", datetime(2024, 12, 31, 23, 59, 59, tzinfo=UTC)),
            ("2024-12-31", datetime(2024, 12, 31, tzinfo=UTC)),
            ("2024-12-31T10:00", datetime(2024, 12, 31, 10, 0, tzinfo=UTC)),
            ("2024-12-31 10:00:05", datetime(2024, 12, 31, 10, 0, 5, tzinfo=UTC)),
            ("2024-12-31T10:00:00+02:00", datetime(2024, 12, 31, 8, 0, tzinfo=UTC)),
            ("2024-12-31T23:59:59.1234567Z", datetime(2024, 12, 31, 23, 59, 59, 123000, tzinfo=UTC)),
            (1735689599000, datetime(2024, 12, 31, 23, 59, 59, tzinfo=UTC)),
            (0, datetime(1970, 1, 1, tzinfo=UTC)),
        ],
    )
    def test_valid(self, raw, expected):
        assert parse_due_date(raw) == expected

    @pytest.mark.parametrize(
        "raw",
        [
            "31st December 2024",
            "2024-02-30",
            "2024-13-01",
            "2024-12-31T25:00:00Z",
            "",
            "12/31/2024",
            True,
            None,
            {},
            [],
            float("nan"),
            10**20,
        ],
    )
    def test_invalid(self, raw):
        with pytest.raises(ValueError):
            parse_due_date(raw)

    def test_naive_datetime_is_utc(self):
        assert parse_due_date(datetime(2025, 1, 1, 12, 0)) == datetime(2025, 1, 1, 12, 0, tzinfo=UTC)


class TestParseTaskCreate:
    def test_valid(self):
        data = parse_task_create({"title": "A", "status": "To Do", "dueDate": "2024-12-31T23:59:59.000Z"})
        assert isinstance(data, TaskCreate)
        assert data.title == "A"
        assert data.description is None
        assert data.status == "To Do"
        assert data.due_date == datetime(2024, 12, 31, 23, 59, 59, tzinfo=UTC)

    def test_values_are_kept_verbatim(self):
        data = parse_task_create({"title": "  spaced  ", "status": "x", "dueDate": "2024-12-31", "description": ""})
        assert data.title == "  spaced  "
        assert data.description == ""

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"status": "To Do", "dueDate": "2024-12-31"},
            {"title": "A", "dueDate": "2024-12-31"},
            {"title": "A", "status": "To Do"},
            {"title": "A", "status": "To Do", "dueDate": 0},
            {"title": "A", "status": "To Do", "dueDate": False},
            {"title": "A", "status": "", "dueDate": "2024-12-31"},
            {"title": True, "status": "To Do", "dueDate": "2024-12-31"},
            {"title": 42, "status": "To Do", "dueDate": "2024-12-31"},
            {"title": "\ud800", "status": "To Do", "dueDate": "2024-12-31"},
        ],
    )
    def test_missing_fields(self, payload):
        with pytest.raises(ValidationError) as exc:
            parse_task_create(payload)
        assert exc.value.message == MISSING_CREATE_FIELDS

    def test_bad_date(self):
        with pytest.raises(ValidationError) as exc:
            parse_task_create({"title": "A", "status": "To Do", "dueDate": "31st December 2024"})
        assert exc.value.message == INVALID_DUE_DATE

    def test_missing_fields_reported_before_bad_date(self):
        with pytest.raises(ValidationError) as exc:
            parse_task_create({"status": "To Do", "dueDate": "31st December 2024"})
        assert exc.value.message == MISSING_CREATE_FIELDS

    def test_non_string_description(self):
        with pytest.raises(ValidationError) as exc:
            parse_task_create({"title": "A", "status": "To Do", "dueDate": "2024-12-31", "description": 5})
        assert exc.value.message == INVALID_DESCRIPTION

    def test_model_accepts_alias_and_raw_date(self):
        data = TaskCreate(title="A", status="B", dueDate="2024-12-31")
        assert data.due_date == datetime(2024, 12, 31, tzinfo=UTC)


class TestParseStatusUpdate:
    def test_valid(self):
        assert parse_status_update({"status": "Done", "title": "ignored"}).status == "Done"

    @pytest.mark.parametrize("payload", [{}, {"status": ""}, {"status": None}, {"status": 1}, {"status": "\udc00"}])
    def test_missing(self, payload):
        with pytest.raises(ValidationError) as exc:
            parse_status_update(payload)
        assert exc.value.message == MISSING_STATUS


class TestSerialization:
    def test_serialize_task(self):
        entity = {
            "id": 3,
            "title": "A",
            "description": None,
            "status": "To Do",
            "due_date": datetime(2024, 12, 31, 23, 59, 59, tzinfo=UTC),
            "created_at": datetime(2025, 1, 2, 3, 4, 5, 678901, tzinfo=UTC),
            "updated_at": datetime(2025, 1, 2, 3, 4, 5, 679000),
        }
        assert serialize_task(entity) == {
            "id": 3,
            "title": "A",
            "description": None,
            "status": "To Do",
            "dueDate": "2024-12-31T23:59:59.000Z",
            "createdAt": "2025-01-02T03:04:05.678Z",
            "updatedAt": "2025-01-02T03:04:05.679Z",
        }

    def test_format_timestamp_converts_offsets(self):
        value = datetime(2025, 1, 1, 2, 0, tzinfo=timezone(timedelta(hours=2)))
        assert format_timestamp(value) == "2025-01-01T00:00:00.000Z"


class TestTimestamps:
    def test_utcnow_is_aware_and_millisecond_precise(self):
        now = utcnow()
        assert now.tzinfo is not None
        assert now.microsecond % 1000 == 0

    def test_to_utc_truncates(self):
        assert to_utc(datetime(2025, 1, 1, 0, 0, 0, 999999)).microsecond == 999000

    def test_next_timestamp_advances_past_future_value(self):
        future = utcnow() + timedelta(hours=1)
        assert next_timestamp(future) == future + timedelta(milliseconds=1)

    def test_next_timestamp_uses_clock_for_old_value(self):
        before = utcnow()
        result = next_timestamp(datetime(2000, 1, 1, tzinfo=UTC))
        assert result >= before
