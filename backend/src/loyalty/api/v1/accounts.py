"""Account API endpoints: signup, login, ride logging and dashboard."""

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, ConfigDict, Field

from loyalty.accounts.models import LoyaltyTier
from loyalty.accounts.service import MAX_RIDE_POINTS, AccountService
from loyalty.auth.middleware import get_current_identity
from loyalty.auth.tokens import TokenIdentity

router = APIRouter(tags=["accounts"])


def get_account_service(request: Request) -> AccountService:
    return request.app.state.account_service


# ==================== MODELS ====================


class SignupRequest(BaseModel):
    """Account signup request."""
    model_config = ConfigDict(populate_by_name=True)

    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1)
    referral_code: str | None = Field(default=None, alias="referralCode")


class LoginRequest(BaseModel):
    """Login request."""
    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1)


class RideRequest(BaseModel):
    """Points earned on a ride."""
    points: int = Field(..., ge=1, le=MAX_RIDE_POINTS)


class TokenResponse(BaseModel):
    """Session token response."""
    token: str


class RideResponse(BaseModel):
    """Totals after logging a ride."""
    points: int
    tier: LoyaltyTier


class DashboardResponse(BaseModel):
    """Current account state."""
    model_config = ConfigDict(populate_by_name=True)

    email: str
    points: int
    tier: LoyaltyTier
    referral_code: str = Field(alias="referralCode")


# ==================== ENDPOINTS ====================


@router.post("/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def signup(body: SignupRequest, accounts: AccountService = Depends(get_account_service)):
    """Register a new account.

    A known referral code credits the referring account with bonus points.
    """
    token = accounts.signup(body.email, body.password, body.referral_code)
    return TokenResponse(token=token)


@router.post("/login", response_model=TokenResponse)
def login(body: LoginRequest, accounts: AccountService = Depends(get_account_service)):
    """Login with email and password."""
    token = accounts.login(body.email, body.password)
    return TokenResponse(token=token)


@router.post("/logRide", response_model=RideResponse)
def log_ride(
    body: RideRequest,
    identity: TokenIdentity = Depends(get_current_identity),
    accounts: AccountService = Depends(get_account_service),
):
    """Add ride points and return the new total and tier."""
    result = accounts.log_ride(identity, body.points)
    return RideResponse(points=result.points, tier=result.tier)


@router.get("/dashboard", response_model=DashboardResponse)
def dashboard(
    identity: TokenIdentity = Depends(get_current_identity),
    accounts: AccountService = Depends(get_account_service),
):
    """Get the authenticated account's points and tier."""
    summary = accounts.dashboard(identity)
    return DashboardResponse(
        email=summary.email,
        points=summary.points,
        tier=summary.tier,
        referral_code=summary.referral_code,
    )
