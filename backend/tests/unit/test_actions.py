"""
Unit tests for the action validator wrappers.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from api.schemas.auth import SignInForm, UpdateAccountForm, UpdatePasswordForm
from api.schemas.team import InviteTeamMemberForm, RemoveTeamMemberForm
from core.exceptions import ConflictError, Redirect
from services.actions import (
    ActionContext,
    validated_action,
    validated_action_with_user,
)


@pytest.fixture
def ctx():
    db = SimpleNamespace(commit=AsyncMock(), rollback=AsyncMock())
    return ActionContext(db=db, session=SimpleNamespace(), ip_address="203.0.113.7")


class TestValidatedAction:
    """Tests for validated_action."""

    async def test_invalid_form_short_circuits(self, ctx):
        handler = AsyncMock()
        action = validated_action(SignInForm)(handler)

        result = await action({"email": "someone@example.com", "password": "short"}, ctx)

        assert "error" in result
        handler.assert_not_called()
        ctx.db.commit.assert_not_called()

    async def test_handler_receives_parsed_data_and_raw_form(self, ctx):
        seen = {}

        @validated_action(SignInForm)
        async def handler(data, form, context):
            seen["data"] = data
            seen["form"] = form
            seen["ctx"] = context
            return {"success": "ok"}

        form = {"email": "Someone@Example.com", "password": "password123", "redirect": "checkout"}
        result = await handler(form, ctx)

        assert result == {"success": "ok"}
        assert seen["data"].email == "someone@example.com"
        assert seen["form"]["redirect"] == "checkout"
        assert seen["ctx"] is ctx
        ctx.db.commit.assert_awaited_once()

    async def test_action_error_becomes_value_and_rolls_back(self, ctx):
        @validated_action(SignInForm)
        async def handler(data, form, context):
            raise ConflictError("Already there", email=data.email)

        result = await handler({"email": "a@example.com", "password": "password123"}, ctx)

        assert result == {"error": "Already there", "email": "a@example.com"}
        ctx.db.rollback.assert_awaited_once()
        ctx.db.commit.assert_not_called()

    async def test_redirect_commits_and_propagates(self, ctx):
        @validated_action(SignInForm)
        async def handler(data, form, context):
            raise Redirect("/dashboard")

        with pytest.raises(Redirect) as exc_info:
            await handler({"email": "a@example.com", "password": "password123"}, ctx)

        assert exc_info.value.url == "/dashboard"
        ctx.db.commit.assert_awaited_once()

    async def test_infrastructure_errors_propagate(self, ctx):
        @validated_action(SignInForm)
        async def handler(data, form, context):
            raise RuntimeError("database went away")

        with pytest.raises(RuntimeError):
            await handler({"email": "a@example.com", "password": "password123"}, ctx)


class TestValidatedActionWithUser:
    """Tests for validated_action_with_user."""

    async def test_no_session_is_unauthorized(self, ctx):
        handler = AsyncMock()
        action = validated_action_with_user(UpdateAccountForm)(handler)

        with patch("services.actions.get_user", new=AsyncMock(return_value=None)):
            result = await action({"name": "A", "email": "a@example.com"}, ctx)

        assert result == {"error": "Unauthorized"}
        handler.assert_not_called()

    async def test_unauthorized_is_checked_before_validation(self, ctx):
        handler = AsyncMock()
        action = validated_action_with_user(UpdateAccountForm)(handler)

        with patch("services.actions.get_user", new=AsyncMock(return_value=None)):
            result = await action({}, ctx)

        assert result == {"error": "Unauthorized"}

    async def test_user_is_passed_to_handler(self, ctx):
        user = SimpleNamespace(id=3)

        @validated_action_with_user(UpdateAccountForm)
        async def handler(data, form, current_user, context):
            return {"success": f"{current_user.id}:{data.name}"}

        with patch("services.actions.get_user", new=AsyncMock(return_value=user)):
            result = await handler({"name": "Ann", "email": "ann@example.com"}, ctx)

        assert result == {"success": "3:Ann"}


class TestFormMessages:
    """Tests for the first-error messages surfaced to forms."""

    async def run(self, schema, form, ctx):
        action = validated_action(schema)(AsyncMock(return_value={"success": "ok"}))
        return await action(form, ctx)

    async def test_name_required(self, ctx):
        result = await self.run(UpdateAccountForm, {"name": "", "email": "a@example.com"}, ctx)
        assert result == {"error": "Name is required"}

    async def test_invalid_email_address(self, ctx):
        result = await self.run(UpdateAccountForm, {"name": "A", "email": "nope"}, ctx)
        assert result == {"error": "Invalid email address"}

        result = await self.run(InviteTeamMemberForm, {"email": "nope", "role": "MEMBER"}, ctx)
        assert result == {"error": "Invalid email address"}

    async def test_passwords_must_match(self, ctx):
        result = await self.run(
            UpdatePasswordForm,
            {
                "currentPassword": "password123",
                "newPassword": "password456",
                "confirmPassword": "password789",
            },
            ctx,
        )
        assert "Passwords don't match" in result["error"]

    async def test_invite_role_must_be_known(self, ctx):
        result = await self.run(
            InviteTeamMemberForm, {"email": "b@example.com", "role": "GUEST"}, ctx
        )
        assert "error" in result

    async def test_member_id_must_be_integer(self, ctx):
        result = await self.run(RemoveTeamMemberForm, {"memberId": "abc"}, ctx)
        assert "error" in result

        result = await self.run(RemoveTeamMemberForm, {"memberId": "12"}, ctx)
        assert result == {"success": "ok"}
