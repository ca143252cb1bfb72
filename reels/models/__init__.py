from reels.models.comments import Comment
from reels.models.follows import Follow
from reels.models.likes import Like
from reels.models.users import Users
from reels.models.videos import Video

__all__ = ["Comment", "Follow", "Like", "Users", "Video"]
