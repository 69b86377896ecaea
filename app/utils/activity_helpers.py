from sqlalchemy.ext.asyncio import AsyncSession
from app.models.support.activity_models import UserActivity
from app.constants.activity_templates import ACTIVITY_TEMPLATES
from app.constants.activity_codes import ActivityCode


async def emit_activity(
    db: AsyncSession,
    *,
    user_id: int | None,
    username: str,
    code: ActivityCode,
    company_id: int | None = None,
    **context,
):
    """Queue an activity row on the session; the caller's commit persists it."""
    template = ACTIVITY_TEMPLATES.get(code)
    if not template:
        raise ValueError(f"No activity template for code {code}")

    try:
        message = template.format(**context)
    except KeyError as e:
        raise ValueError(
            f"Missing activity context key: {e.args[0]} for {code}"
        )

    db.add(
        UserActivity(
            company_id=company_id,
            user_id=user_id,
            username_snapshot=username,
            code=code.value,
            message=message,
        )
    )


async def emit_user_activity(db: AsyncSession, user, code: ActivityCode, **context):
    await emit_activity(
        db,
        user_id=user.id,
        username=user.username,
        code=code,
        company_id=user.company_id,
        actor_role=user.role.capitalize(),
        actor_email=user.username,
        **context,
    )
