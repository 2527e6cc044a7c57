"""Dashboard sign-in."""

from africastalking_account.identity.auth import login  # noqa: F401
