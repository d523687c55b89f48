# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# business logic and database access for a single domain aggregate:
#
#   article_service  — CRUD, pagination and favorites for Article
#   comment_service  — comments under an Article
#   user_service     — registration and account updates for User
#   auth_service     — login and bearer-token principal resolution
#   profile_service  — public profiles and follows
#
# ``ownership`` and ``membership`` hold the guard and the atomic set
# operations the aggregates share.
#
# All service functions accept an AsyncSession as their first argument
# so that the router layer controls the transaction boundary via the
# ``get_db`` dependency.  Failures are raised as ``blog_api.exceptions``
# errors and mapped to HTTP responses in ``blog_api.main``.
