"""Server-rendered pages — premium dashboard, subscribe form and admin account listing."""

import logging
from pathlib import Path

import stripe
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, get_optional_user
from app.billing.checkout import start_checkout
from app.billing.dependencies import has_active_subscription
from app.billing.errors import AlreadySubscribedError, BillingNotConfiguredError
from app.config import settings
from app.models.user import User
from app.services.admin_service import list_accounts
from app.services.subscription_service import get_subscription_for_user
from app.services.video_service import list_videos

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

router = APIRouter(tags=["pages"], include_in_schema=False)


@router.get("/dashboard", response_class=HTMLResponse)
async def dashboard(
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: User | None = Depends(get_optional_user),
) -> Response:
    """Premium dashboard; unsubscribed accounts get the subscribe prompt."""
    if user is None:
        return RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)

    subscription = await get_subscription_for_user(db, user.id)
    if not has_active_subscription(subscription):
        return templates.TemplateResponse(
            request,
            "subscribe.html",
            {"app_name": settings.app_name, "user": user},
            status_code=status.HTTP_403_FORBIDDEN,
        )

    videos = await list_videos(db, user)
    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            "app_name": settings.app_name,
            "user": user,
            "subscription": subscription,
            "videos": videos,
        },
    )


@router.post("/subscribe", response_class=HTMLResponse)
async def subscribe(
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: User | None = Depends(get_optional_user),
) -> Response:
    """Form target of the subscribe prompt: send the browser on to checkout."""
    if user is None:
        return RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)

    try:
        result = await start_checkout(db, user)
    except AlreadySubscribedError:
        return RedirectResponse("/dashboard", status_code=status.HTTP_303_SEE_OTHER)
    except (BillingNotConfiguredError, stripe.StripeError) as e:
        logger.error("Checkout from subscribe page failed for user %s: %s", user.id, e)
        return templates.TemplateResponse(
            request,
            "subscribe.html",
            {"app_name": settings.app_name, "user": user, "error": "Unable to start checkout. Please try again."},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return RedirectResponse(result.url, status_code=status.HTTP_303_SEE_OTHER)


@router.get("/admin", response_class=HTMLResponse)
async def admin_accounts(
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: User | None = Depends(get_optional_user),
) -> Response:
    """Account listing for administrators; everyone else goes to the dashboard."""
    if user is None or not user.is_admin:
        return RedirectResponse("/dashboard", status_code=status.HTTP_303_SEE_OTHER)

    accounts = await list_accounts(db)
    return templates.TemplateResponse(
        request,
        "admin.html",
        {"app_name": settings.app_name, "user": user, "accounts": accounts},
    )
