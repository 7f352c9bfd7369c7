"""Database models."""
from closecircle.infra.db.models.user import UserModel, close_circle_members
from closecircle.infra.db.models.friend_request import FriendRequestModel
from closecircle.infra.db.models.journal import JournalModel
from closecircle.infra.db.models.reaction import ReactionModel

__all__ = [
    "UserModel",
    "close_circle_members",
    "FriendRequestModel",
    "JournalModel",
    "ReactionModel",
]
