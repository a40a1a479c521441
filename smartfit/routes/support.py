from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from smartfit.database import get_db
from smartfit.models import Faq, SupportIssue, User
from smartfit.schemas import FaqOut, ResponseSchema, SupportIssueOut, SupportIssueRequest
from smartfit.security import ensure_owner, get_current_user

router = APIRouter()


@router.get("/faqs", response_model=ResponseSchema[list[FaqOut]])
async def list_faqs(category: Optional[str] = None, db: AsyncSession = Depends(get_db)):
    query = select(Faq)
    if category:
        query = query.where(func.lower(Faq.category) == category.lower())
    faqs = (await db.execute(query.order_by(Faq.order, Faq.id))).scalars().all()
    return ResponseSchema(
        data=[FaqOut.model_validate(f) for f in faqs],
        message="FAQs retrieved successfully",
        count=len(faqs),
    )


@router.get("/issues/user/{user_id}", response_model=ResponseSchema[list[SupportIssueOut]])
async def user_issues(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = await db.execute(
        select(SupportIssue)
        .where(SupportIssue.user_id == user_id)
        .order_by(SupportIssue.created_at.desc(), SupportIssue.id.desc())
    )
    issues = result.scalars().all()
    return ResponseSchema(
        data=[SupportIssueOut.model_validate(i) for i in issues],
        message="User support issues retrieved successfully",
        count=len(issues),
    )


@router.post("/issues", status_code=201, response_model=ResponseSchema[SupportIssueOut])
async def submit_issue(
    payload: SupportIssueRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_owner(current_user, payload.user_id, "submit issues for another user")

    issue = SupportIssue(
        user_id=payload.user_id,
        subject=payload.subject or "Support request",
        description=payload.message,
        category=payload.category or "General",
        priority=payload.priority or "medium",
        status="open",
    )
    db.add(issue)
    await db.commit()
    await db.refresh(issue)
    return ResponseSchema(
        data=SupportIssueOut.model_validate(issue),
        message="Support issue submitted successfully",
    )
