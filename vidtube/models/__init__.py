from vidtube.models.user import User
from vidtube.models.video import Video, VideoCategory
from vidtube.models.comment import Comment
from vidtube.models.like import Like, ReactionKind
from vidtube.models.subscription import Subscription
from vidtube.models.history import History

__all__ = ["User", "Video", "VideoCategory", "Comment", "Like", "ReactionKind", "Subscription", "History"]
