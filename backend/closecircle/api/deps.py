"""API dependencies."""
from fastapi import Depends, HTTPException, UploadFile, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from closecircle.domain.circle.services import CloseCircleService, FriendRequestService
from closecircle.domain.identity.models import User
from closecircle.domain.identity.services import AuthService, UserRepository, UserService
from closecircle.domain.identity.stats import StatsService
from closecircle.domain.journal.feed import FeedService
from closecircle.domain.journal.services import JournalService
from closecircle.domain.media.models import ImageUpload
from closecircle.domain.media.services import MediaHost, ProfileImageService
from closecircle.domain.reaction.services import ReactionService
from closecircle.infra.db.repositories.circle_repo import CircleRepositoryImpl
from closecircle.infra.db.repositories.friend_request_repo import FriendRequestRepositoryImpl
from closecircle.infra.db.repositories.journal_repo import JournalRepositoryImpl
from closecircle.infra.db.repositories.reaction_repo import ReactionRepositoryImpl
from closecircle.infra.db.repositories.user_repo import UserRepositoryImpl
from closecircle.infra.db.session import get_db
from closecircle.infra.db.unit_of_work import SqlAlchemyUnitOfWork
from closecircle.infra.messaging.email_base import EmailService, get_email_service
from closecircle.infra.security.jwt import JwtTokenIssuer, decode_token
from closecircle.infra.security.password import BcryptPasswordHasher
from closecircle.infra.vendors.google_oauth import GoogleOAuthClient
from closecircle.infra.vendors.media_host import CloudinaryMediaHost
from closecircle.settings import settings

__all__ = ["get_db", "get_current_user"]

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def get_media_host() -> MediaHost:
    """Image host used for uploads."""
    return CloudinaryMediaHost()


def get_mailer() -> EmailService:
    """Email delivery (SendGrid or console)."""
    return get_email_service()


def get_google_oauth() -> GoogleOAuthClient:
    """Google OAuth client."""
    return GoogleOAuthClient()


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Get current authenticated user."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_token(token)
    if payload is None:
        raise credentials_exception

    user_id: str = payload.get("sub")
    token_type: str = payload.get("type")
    if user_id is None or token_type != "access":
        raise credentials_exception

    user_repo: UserRepository = UserRepositoryImpl(db)
    user = await user_repo.get_by_id(user_id)
    if user is None or not user.is_active:
        raise credentials_exception

    return user


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    mailer: EmailService = Depends(get_mailer),
) -> AuthService:
    return AuthService(UserRepositoryImpl(db), BcryptPasswordHasher(), JwtTokenIssuer(), mailer)


def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(UserRepositoryImpl(db))


def get_stats_service(db: AsyncSession = Depends(get_db)) -> StatsService:
    return StatsService(JournalRepositoryImpl(db), UserRepositoryImpl(db))


def get_friend_request_service(db: AsyncSession = Depends(get_db)) -> FriendRequestService:
    return FriendRequestService(
        FriendRequestRepositoryImpl(db),
        CircleRepositoryImpl(db),
        UserRepositoryImpl(db),
        SqlAlchemyUnitOfWork(db),
    )


def get_close_circle_service(
    db: AsyncSession = Depends(get_db),
    requests: FriendRequestService = Depends(get_friend_request_service),
) -> CloseCircleService:
    return CloseCircleService(
        CircleRepositoryImpl(db),
        FriendRequestRepositoryImpl(db),
        UserRepositoryImpl(db),
        requests,
        SqlAlchemyUnitOfWork(db),
    )


def get_journal_service(
    db: AsyncSession = Depends(get_db),
    media_host: MediaHost = Depends(get_media_host),
) -> JournalService:
    return JournalService(
        JournalRepositoryImpl(db),
        CircleRepositoryImpl(db),
        UserRepositoryImpl(db),
        media_host=media_host,
        media_folder=settings.media_journal_folder,
        max_upload_bytes=settings.max_upload_bytes,
    )


def get_feed_service(db: AsyncSession = Depends(get_db)) -> FeedService:
    return FeedService(
        JournalRepositoryImpl(db),
        CircleRepositoryImpl(db),
        UserRepositoryImpl(db),
        ReactionRepositoryImpl(db),
        SqlAlchemyUnitOfWork(db),
        max_limit=settings.feed_max_limit,
    )


def get_reaction_service(db: AsyncSession = Depends(get_db)) -> ReactionService:
    return ReactionService(
        ReactionRepositoryImpl(db),
        JournalRepositoryImpl(db),
        CircleRepositoryImpl(db),
        UserRepositoryImpl(db),
        SqlAlchemyUnitOfWork(db),
    )


async def read_image_upload(file: UploadFile) -> ImageUpload:
    """Buffer a multipart file into an ImageUpload."""
    data = await file.read()
    return ImageUpload(
        filename=file.filename or "upload",
        content_type=file.content_type or "application/octet-stream",
        data=data,
    )


def get_profile_image_service(
    db: AsyncSession = Depends(get_db),
    media_host: MediaHost = Depends(get_media_host),
) -> ProfileImageService:
    return ProfileImageService(
        media_host,
        UserRepositoryImpl(db),
        folder=settings.media_profile_folder,
        transformation=settings.media_profile_transformation,
        max_upload_bytes=settings.max_upload_bytes,
    )
