# Repositories package.
#
# Thin data-access wrappers, one per aggregate.  Each repository is
# constructed with the AsyncSession of the caller's unit of work, so a
# repository used inside ``Database.transaction()`` takes part in that
# transaction and one used inside ``Database.session()`` does not.  There is
# no "maybe a transaction" parameter anywhere.
#
#   user_repo     users, credentials, friend counters
#   friend_repo   directed friendship rows and the friend listing query
#   post_repo     posts, tags, comments and the feed queries
from socialgraph.repositories.friend_repo import FriendRepository
from socialgraph.repositories.post_repo import PostRepository
from socialgraph.repositories.user_repo import UserRepository

__all__ = ["FriendRepository", "PostRepository", "UserRepository"]
