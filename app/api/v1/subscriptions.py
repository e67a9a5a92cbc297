import logging
from datetime import timedelta

from fastapi import APIRouter, Depends

from app.api.deps import get_storage
from app.core.exceptions import NotFoundError, ValidationError
from app.db.models import utcnow
from app.db.storage import Storage
from app.schemas.records import NewSubscription, Subscription
from app.schemas.requests import SUBSCRIPTION_PLANS, UpdatePlanRequest, UpdatePlanResponse

logger = logging.getLogger(__name__)

subscriptions_router = APIRouter()

SUBSCRIPTION_PERIOD = timedelta(days=365)


@subscriptions_router.post("/update-plan", response_model=UpdatePlanResponse)
def update_plan(payload: UpdatePlanRequest, storage: Storage = Depends(get_storage)):
    """Record a plan change for a user (bookkeeping only, no payment processing)."""
    plan = payload.plan.strip().lower()
    if plan not in SUBSCRIPTION_PLANS:
        raise ValidationError(f"Unknown plan: {payload.plan}", {"supported": list(SUBSCRIPTION_PLANS)})

    user = storage.get_user(payload.user_id)
    if user is None:
        raise NotFoundError("User not found", {"user_id": payload.user_id})

    storage.update_user(user.id, plan=plan)

    if storage.get_subscription_by_user(user.id) is not None:
        storage.update_subscription(user.id, plan=plan, status="active")
    else:
        period_start = utcnow()
        storage.create_subscription(
            NewSubscription(
                user_id=user.id,
                plan=plan,
                status="active",
                current_period_start=period_start,
                current_period_end=period_start + SUBSCRIPTION_PERIOD,
            )
        )

    logger.info(f"User {user.id} moved to plan '{plan}'")
    return UpdatePlanResponse(success=True, plan=plan)


@subscriptions_router.get("/subscriptions/user/{user_id}", response_model=Subscription)
def get_user_subscription(user_id: int, storage: Storage = Depends(get_storage)):
    subscription = storage.get_subscription_by_user(user_id)
    if subscription is None:
        raise NotFoundError("Subscription not found", {"user_id": user_id})
    return subscription
