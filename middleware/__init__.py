from middleware.request_id import RequestIDMiddleware, get_request_id
from middleware.rate_limiter import limiter, get_user_id

__all__ = ["RequestIDMiddleware", "get_request_id", "limiter", "get_user_id"]
