"""
User registration and creator self-service endpoints.
"""
import secrets
import string
import time
from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from reelpay.api.deps import get_db, get_current_user, get_request_id, require_creator
from reelpay.models.db import User
from reelpay.models.schemas.users import UserCreate, UserRead, EarningsRead
from reelpay.services import payouts
from reelpay.utils import get_logger, log_business_event, log_performance

router = APIRouter()
logger = get_logger(__name__)

def generate_api_key() -> str:
    """Generate a secure API key."""
    alphabet = string.ascii_letters + string.digits
    return "rp_" + ''.join(secrets.choice(alphabet) for _ in range(32))

@router.post(
    "/",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    summary="Register user",
    description="Register a creator or host and issue its API key"
)
async def create_user(
    user_data: UserCreate,
    request: Request,
    db: Session = Depends(get_db)
) -> UserRead:
    start_time = time.time()
    request_id = get_request_id(request)

    logger.info(
        "User creation started",
        user_email=user_data.email,
        user_role=user_data.role.value,
        request_id=request_id
    )

    existing = db.query(User).filter(User.email == user_data.email).first()
    if existing:
        logger.warning(
            "User creation failed: duplicate email",
            existing_user_id=existing.id,
            request_id=request_id
        )
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"User with email '{user_data.email}' already exists"
        )

    new_user = User(
        name=user_data.name,
        email=user_data.email,
        api_key=generate_api_key(),
        role=user_data.role,
    )
    db.add(new_user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"User with email '{user_data.email}' already exists"
        )
    db.refresh(new_user)

    log_business_event(
        event_type="user_created",
        details={"user_id": new_user.id, "user_role": new_user.role.value},
        request_id=request_id
    )
    log_performance(
        operation="create_user",
        duration_ms=(time.time() - start_time) * 1000,
        additional_data={"user_id": new_user.id}
    )
    return UserRead.model_validate(new_user)

@router.get(
    "/me",
    response_model=UserRead,
    summary="Current user"
)
async def read_me(current_user: User = Depends(get_current_user)) -> UserRead:
    return UserRead.model_validate(current_user)

@router.get(
    "/me/earnings",
    response_model=EarningsRead,
    summary="Creator earnings",
    description="Verified-but-unbatched, in-flight and paid totals in paise"
)
async def read_my_earnings(
    current_user: User = Depends(require_creator),
    db: Session = Depends(get_db)
) -> EarningsRead:
    summary = payouts.creator_earnings(db, current_user.id)
    return EarningsRead.model_validate(summary)
