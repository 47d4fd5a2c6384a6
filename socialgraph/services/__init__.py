# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# business logic for a single area:
#
#   friend_service   friendship edges, friend counters, friend listing
#   post_service     post creation, comments, the aggregated feed
#   user_service     registration, login, credentials, profile
#   pagination       limit/offset defaults shared by the listings
#
# All service functions accept a ``Database`` as their first argument and
# open their own sessions or transactions from it, so every unit of work
# (and its rollback) is owned by the operation that needs it.
