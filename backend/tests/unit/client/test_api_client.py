"""
Unit Tests for CampusApiClient against the application over ASGI
"""
import pytest
from httpx import ASGITransport

from app.main import app
from campus_client import ApiError, AuthStore, CampusApiClient, IssueQuery, IssuesStore

from conftest import TEST_PASSWORD, create_issue


@pytest.fixture
async def api(client):
    """A client wired to the app; ``client`` installs the database override"""
    async with CampusApiClient("http://test/api", transport=ASGITransport(app=app)) as api_client:
        yield api_client


class TestCampusApiClient:

    @pytest.mark.asyncio
    async def test_health(self, api):
        body = await api.health()

        assert body["status"] == "success"

    @pytest.mark.asyncio
    async def test_login_and_me(self, api, test_user):
        data = await api.login(test_user.email, TEST_PASSWORD)
        api.set_token(data["token"])

        me = await api.me()

        assert me["email"] == test_user.email
        assert me["_id"] == test_user.id

    @pytest.mark.asyncio
    async def test_error_carries_status_and_message(self, api, test_user):
        with pytest.raises(ApiError) as exc_info:
            await api.login(test_user.email, "nope-nope")

        assert exc_info.value.status == 401
        assert exc_info.value.message == "Invalid email or password"
        assert exc_info.value.data == {"message": "Invalid email or password"}

    @pytest.mark.asyncio
    async def test_unauthenticated(self, api):
        with pytest.raises(ApiError) as exc_info:
            await api.list_issues()

        assert exc_info.value.status == 401
        assert exc_info.value.message == "Not authorized, no token"

    @pytest.mark.asyncio
    async def test_issue_round_trip(self, api, test_user, authority_user):
        api.set_token((await api.login(test_user.email, TEST_PASSWORD))["token"])

        created = await api.create_issue(
            {"title": "Water cooler", "description": "Not cooling", "category": "maintenance"},
            image=("cooler.png", b"\x89PNG\r\n\x1a\n", "image/png"),
        )
        commented = await api.add_comment(created["_id"], "Still broken")
        loose = await api.post_comment(created["_id"], "Side note")

        assert created["imageUrl"].startswith("/uploads/")
        assert [c["text"] for c in commented["comments"]] == ["Still broken"]
        assert [c["_id"] for c in await api.list_comments(created["_id"])] == [loose["_id"]]
        assert [i["_id"] for i in await api.list_my_issues()] == [created["_id"]]

        api.set_token((await api.login(authority_user.email, TEST_PASSWORD))["token"])
        updated = await api.update_status(created["_id"], "resolved")
        resolved = await api.list_issues(IssueQuery(status="resolved"))

        assert updated["status"] == "resolved"
        assert [i["_id"] for i in resolved] == [created["_id"]]

    @pytest.mark.asyncio
    async def test_admin_calls(self, api, db_session, test_user, authority_user):
        await create_issue(db_session, test_user)
        api.set_token((await api.login(authority_user.email, TEST_PASSWORD))["token"])

        stats = await api.analytics()
        users = await api.list_users()
        deleted = await api.delete_user(test_user.id)

        assert stats["totalIssues"] == 1
        assert len(users) == 2
        assert deleted["success"] is True


class TestStoresOnRealApi:

    @pytest.mark.asyncio
    async def test_login_then_fetch(self, api, db_session, test_user, authority_user):
        await create_issue(db_session, test_user)

        auth = AuthStore(api)
        await auth.login(authority_user.email, TEST_PASSWORD)
        issues = IssuesStore(api)
        fetched = await issues.fetch_issues()

        assert auth.state.user["role"] == "authority"
        assert api.token == auth.state.token
        # authority_user only handles maintenance
        assert [i["category"] for i in fetched] == ["maintenance"]

    @pytest.mark.asyncio
    async def test_fetch_failure_is_swallowed(self, api):
        issues = IssuesStore(api)

        fetched = await issues.fetch_issues(IssueQuery(status="closed"))

        assert fetched == ()
        assert issues.state.error
