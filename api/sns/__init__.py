"""SNS user endpoints.

Maps an email address to its SNS name and tracks the amount the user has
staked. Users are never deleted through the API.
"""
from api.models import SnsUserPayload
from api.resources import build_router

router = build_router('sns', SnsUserPayload, "SNS", allow_delete=False)
