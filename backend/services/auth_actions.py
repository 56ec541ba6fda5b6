"""
Authentication and account actions.

Every action takes the raw submitted form plus an ``ActionContext`` and
returns a result value (see ``services.actions``). Successful sign-in,
sign-up and account deletion end in a ``Redirect``.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, func, select, update

from adapters.payments.checkout import CheckoutError, create_checkout_session
from api.schemas.auth import (
    DeleteAccountForm,
    SignInForm,
    SignUpForm,
    UpdateAccountForm,
    UpdatePasswordForm,
)
from core.exceptions import AuthError, ConflictError, Redirect, StateError
from core.security.password import password_hasher
from infrastructure.database.models import (
    ActivityType,
    MAX_ID,
    Invitation,
    InvitationStatus,
    Team,
    TeamMember,
    TeamRole,
    User,
)
from services.actions import (
    ActionContext,
    ActionResult,
    FormData,
    validated_action,
    validated_action_with_user,
)
from services.activity import log_activity
from services.queries import get_user, get_user_by_email, get_user_with_team

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password. Please try again."
SIGN_UP_FAILED = "Failed to create user. Please try again."
INVALID_INVITATION = "Invalid or expired invitation."

# Verified against when the email is unknown so both failure paths cost one bcrypt check
_DUMMY_HASH = "$2b$10$N9qo8uLOickgx2ZMRZoMyeIjZAgcfl7p92ldGxad68LJZdL17lhWy"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def _redirect_after_auth(
    ctx: ActionContext, form: FormData, team: Optional[Team], user: User
) -> None:
    """
    Resume a pending checkout when the form asked for one, else go to the dashboard.

    The action's rows are committed before Stripe is contacted; a failed
    checkout leaves the user signed in on the dashboard.
    """
    if form.get("redirect") == "checkout":
        await ctx.db.commit()
        price_id = str(form.get("priceId") or "")
        try:
            url = await create_checkout_session(team, price_id, user)
        except CheckoutError as exc:
            logger.error("Checkout failed for user_id=%s: %s", user.id, exc)
            raise Redirect("/dashboard")
        raise Redirect(url)
    raise Redirect("/dashboard")


@validated_action(SignInForm)
async def sign_in(data: SignInForm, form: FormData, ctx: ActionContext) -> ActionResult:
    """
    Sign a user in with email and password.

    Unknown emails and wrong passwords produce the same error so the response
    never reveals whether an account exists.
    """
    db = ctx.db
    user = await get_user_by_email(db, data.email)

    password_ok = await password_hasher.verify_async(
        data.password, user.password_hash if user else _DUMMY_HASH
    )
    if user is None:
        return {"error": INVALID_CREDENTIALS, "email": data.email}

    if not password_ok:
        user.failed_login_attempts = (user.failed_login_attempts or 0) + 1
        logger.info("Failed sign-in for user_id=%s", user.id)
        return {"error": INVALID_CREDENTIALS, "email": data.email}

    user.failed_login_attempts = 0
    user.last_login = _utcnow()
    user.last_ip = ctx.ip_address
    if password_hasher.needs_rehash(user.password_hash):
        user.password_hash = await password_hasher.hash_async(data.password)

    user_with_team = await get_user_with_team(db, user.id)
    team_id = user_with_team[1] if user_with_team else None
    team = await db.get(Team, team_id) if team_id is not None else None

    ctx.session.set_session(user)
    await log_activity(db, team_id, user.id, ActivityType.SIGN_IN, ctx.ip_address)
    logger.info("User signed in: user_id=%s", user.id)

    await _redirect_after_auth(ctx, form, team, user)


async def _accept_invitation(ctx: ActionContext, invite_id: str, user: User) -> Invitation:
    """Consume the pending invitation ``invite_id`` addressed to ``user``."""
    # ASCII digits only; int() rejects other Unicode digits such as "²"
    if not (invite_id.isascii() and invite_id.isdigit()) or not 1 <= int(invite_id) <= MAX_ID:
        raise StateError(INVALID_INVITATION, email=user.email)

    result = await ctx.db.execute(
        select(Invitation)
        .where(
            Invitation.id == int(invite_id),
            func.lower(Invitation.email) == user.email,
            Invitation.status == InvitationStatus.PENDING.value,
        )
        .limit(1)
    )
    invitation = result.scalar_one_or_none()
    if invitation is None:
        raise StateError(INVALID_INVITATION, email=user.email)

    # Conditional update so a concurrent sign-up cannot consume it a second time
    accepted = await ctx.db.execute(
        update(Invitation)
        .where(
            Invitation.id == invitation.id,
            Invitation.status == InvitationStatus.PENDING.value,
        )
        .values(status=InvitationStatus.ACCEPTED.value, accepted_at=_utcnow())
    )
    if accepted.rowcount != 1:
        raise StateError(INVALID_INVITATION, email=user.email)
    return invitation


@validated_action(SignUpForm)
async def sign_up(data: SignUpForm, form: FormData, ctx: ActionContext) -> ActionResult:
    """
    Register a new user.

    With a pending invitation for the same email the user joins the inviting
    team with the invited role; otherwise a new team named after the email's
    local part is created with the user as owner. All rows are written in the
    action's transaction, so a rejected invitation leaves nothing behind.
    """
    db = ctx.db

    if await get_user_by_email(db, data.email) is not None:
        raise ConflictError(SIGN_UP_FAILED, email=data.email)

    password_hash = await password_hasher.hash_async(data.password)
    user = User(
        email=data.email,
        password_hash=password_hash,
        role=TeamRole.OWNER.value,
        last_login=_utcnow(),
        last_ip=ctx.ip_address,
    )
    db.add(user)
    await db.flush()

    if data.invite_id:
        invitation = await _accept_invitation(ctx, data.invite_id, user)
        team = await db.get(Team, invitation.team_id)
        role = invitation.role
        user.role = role
        await log_activity(db, team.id, user.id, ActivityType.ACCEPT_INVITATION, ctx.ip_address)
    else:
        team = Team(name=f"{data.email.split('@')[0]}'s Team")
        db.add(team)
        await db.flush()
        role = TeamRole.OWNER.value
        await log_activity(db, team.id, user.id, ActivityType.CREATE_TEAM, ctx.ip_address)

    db.add(TeamMember(user_id=user.id, team_id=team.id, role=role))
    await log_activity(db, team.id, user.id, ActivityType.SIGN_UP, ctx.ip_address)
    ctx.session.set_session(user)
    logger.info("User signed up: user_id=%s team_id=%s role=%s", user.id, team.id, role)

    await _redirect_after_auth(ctx, form, team, user)


async def sign_out(ctx: ActionContext) -> ActionResult:
    """Log the sign-out for the user's team and clear the session cookie."""
    user = await get_user(ctx.db, ctx.session)
    if user is not None:
        user_with_team = await get_user_with_team(ctx.db, user.id)
        team_id = user_with_team[1] if user_with_team else None
        await log_activity(ctx.db, team_id, user.id, ActivityType.SIGN_OUT, ctx.ip_address)
        await ctx.db.commit()
        logger.info("User signed out: user_id=%s", user.id)

    ctx.session.clear_session()
    return {"success": "Signed out successfully."}


async def _team_id_for(ctx: ActionContext, user: User) -> Optional[int]:
    user_with_team = await get_user_with_team(ctx.db, user.id)
    return user_with_team[1] if user_with_team else None


@validated_action_with_user(UpdatePasswordForm)
async def update_password(
    data: UpdatePasswordForm, form: FormData, user: User, ctx: ActionContext
) -> ActionResult:
    """Change the password after re-checking the current one."""
    if not await password_hasher.verify_async(data.current_password, user.password_hash):
        raise AuthError("Current password is incorrect.")

    if data.current_password == data.new_password:
        raise StateError("New password must be different from the current password.")

    user.password_hash = await password_hasher.hash_async(data.new_password)
    await log_activity(
        ctx.db, await _team_id_for(ctx, user), user.id, ActivityType.UPDATE_PASSWORD, ctx.ip_address
    )
    logger.info("Password updated: user_id=%s", user.id)
    return {"success": "Password updated successfully."}


@validated_action_with_user(DeleteAccountForm)
async def delete_account(
    data: DeleteAccountForm, form: FormData, user: User, ctx: ActionContext
) -> ActionResult:
    """
    Soft-delete the account.

    The row is kept with ``deleted_at`` set and its email rewritten so the
    address can be registered again. Team membership is removed and the
    session cookie cleared before redirecting to sign-in.
    """
    if not await password_hasher.verify_async(data.password, user.password_hash):
        raise AuthError("Incorrect password. Account deletion failed.")

    team_id = await _team_id_for(ctx, user)
    await log_activity(ctx.db, team_id, user.id, ActivityType.DELETE_ACCOUNT, ctx.ip_address)

    user.email = user.deleted_email
    user.deleted_at = _utcnow()

    if team_id is not None:
        await ctx.db.execute(
            delete(TeamMember).where(
                TeamMember.user_id == user.id,
                TeamMember.team_id == team_id,
            )
        )

    ctx.session.clear_session()
    logger.info("Account deleted: user_id=%s", user.id)
    raise Redirect("/sign-in")


@validated_action_with_user(UpdateAccountForm)
async def update_account(
    data: UpdateAccountForm, form: FormData, user: User, ctx: ActionContext
) -> ActionResult:
    """Update the user's display name and email."""
    if data.email != user.email.lower():
        other = await get_user_by_email(ctx.db, data.email)
        if other is not None and other.id != user.id:
            raise ConflictError("Email is already in use.", name=data.name, email=data.email)

    user.name = data.name
    user.email = data.email
    await log_activity(
        ctx.db, await _team_id_for(ctx, user), user.id, ActivityType.UPDATE_ACCOUNT, ctx.ip_address
    )
    return {"success": "Account updated successfully."}
