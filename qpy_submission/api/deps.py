"""API Dependencies"""

from typing import AsyncGenerator, Optional

from fastapi import Depends, HTTPException, Path, Query, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from qpy_submission.core.security import HOST_TOKEN_TYPE, decode_token
from qpy_submission.database import get_db
from qpy_submission.schemas.assignment import AssignmentContext
from qpy_submission.services.question_engine import HttpQuestionEngine, QuestionEngine
from qpy_submission.services.usage_lifecycle_service import UsageLifecycleManager

# Security scheme for bearer token
security = HTTPBearer()

__all__ = [
    "get_db",
    "get_host",
    "get_assignment",
    "get_question_engine",
    "get_lifecycle",
]


async def get_host(credentials: HTTPAuthorizationCredentials = Depends(security)) -> str:
    """
    Identify the host platform calling a hook.

    Raises:
        HTTPException: If the token is invalid or not a host token
    """
    payload = decode_token(credentials.credentials)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if payload.get("type") != HOST_TOKEN_TYPE:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type",
            headers={"WWW-Authenticate": "Bearer"},
        )

    host: Optional[str] = payload.get("sub")
    if not host:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return host


def get_assignment(
    assignment_id: int = Path(..., gt=0),
    context_id: int = Query(..., gt=0),
    default_instance_id: Optional[int] = Query(None, gt=0),
) -> AssignmentContext:
    return AssignmentContext(
        context_id=context_id,
        instance_id=assignment_id,
        default_instance_id=default_instance_id,
    )


async def get_question_engine() -> AsyncGenerator[QuestionEngine, None]:
    engine = HttpQuestionEngine()
    try:
        yield engine
    finally:
        await engine.aclose()


def get_lifecycle(
    db: AsyncSession = Depends(get_db),
    assignment: AssignmentContext = Depends(get_assignment),
    engine: QuestionEngine = Depends(get_question_engine),
) -> UsageLifecycleManager:
    return UsageLifecycleManager(db, assignment, engine)
