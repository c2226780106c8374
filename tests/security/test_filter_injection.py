from unittest.mock import AsyncMock

import pytest

from tasukun.core import db_client
from tasukun.domain.task import TaskFilters
from tasukun.services import oauth_service, task_service


@pytest.fixture
def capture_db():
    """DBClient double capturing query parameters."""
    db = AsyncMock()
    db.list_all_records.return_value = []
    db.get_first_record.return_value = None
    return db


@pytest.mark.asyncio
class TestFilterInjection:
    async def test_sanitize_param_escapes_quotes(self):
        """Verify sanitize_param correctly escapes double quotes."""
        malicious_input = 'foo" || true || "'
        sanitized = db_client.sanitize_param(malicious_input)

        assert sanitized == r'foo\" || true || \"'

        query = f'field = "{sanitized}"'
        assert query == r'field = "foo\" || true || \""'

    async def test_list_tasks_owner_injection(self, capture_db):
        """A hostile owner id cannot widen the listing."""
        malicious_owner = 'user1" || owner_id != "'

        await task_service.list_tasks(db=capture_db, owner_id=malicious_owner, filters=TaskFilters())

        filter_query = capture_db.list_all_records.call_args.kwargs["filter_query"]
        assert filter_query == r'owner_id = "user1\" || owner_id != \""'
        node = db_client.parse_filter(filter_query)
        assert node == db_client.Comparison(field="owner_id", op="=", value=malicious_owner)

    async def test_search_injection(self, capture_db):
        """A hostile search term stays a single literal."""
        malicious_search = 'x" || owner_id != "'

        await task_service.list_tasks(
            db=capture_db,
            owner_id="user1",
            filters=TaskFilters(search=malicious_search),
        )

        filter_query = capture_db.list_all_records.call_args.kwargs["filter_query"]
        sql, params = db_client.compile_filter(db_client.parse_filter(filter_query))
        assert sql == (
            "(owner_id = ? AND "
            "(instr(casefold(title), casefold(?)) > 0 OR instr(casefold(description), casefold(?)) > 0))"
        )
        assert params == ["user1", malicious_search, malicious_search]

    async def test_get_task_id_injection(self, capture_db):
        """A hostile task id cannot escape the ownership check."""
        malicious_id = 'abc" || id != "'

        with pytest.raises(db_client.RecordNotFoundError):
            await task_service.get_task(db=capture_db, owner_id="user1", task_id=malicious_id)

        filter_query = capture_db.get_first_record.call_args.kwargs["filter_query"]
        expected_part = r'id = "abc\" || id != \"" && owner_id = "user1"'
        assert expected_part == filter_query

    async def test_token_lookup_injection(self, capture_db):
        """Token lookups quote the user id."""
        await oauth_service.get_token_record(db=capture_db, user_id='u1" || user_id != "')

        filter_query = capture_db.get_first_record.call_args.kwargs["filter_query"]
        assert filter_query == r'user_id = "u1\" || user_id != \""'
