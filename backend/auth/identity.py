"""
Identity provider adapter over Supabase Auth.

Sign-up, sign-in and token verification are delegated to Supabase; this
module only links the verified account to a local User row. Provider
failures are returned as AuthResult.error rather than raised, so callers
can map them straight to a 401.
"""

import os
from typing import Any

from pydantic import BaseModel
from supabase import AuthError, Client

from models import User
from stores.user_store import UserStore


class AuthResult(BaseModel):
    """Outcome of an auth flow: a linked local user, or an error message."""

    user: User | None = None
    error: str | None = None


class IdentityService:
    """Verifies credentials with Supabase Auth and links them to local users."""

    def __init__(self, auth_client: Client, users: UserStore, app_url: str | None = None):
        self.auth_client = auth_client
        self.users = users
        self.app_url = app_url or os.getenv("APP_URL", "http://localhost:3000")

    def _link(self, provider_user: Any, missing_error: str) -> AuthResult:
        if not provider_user or not getattr(provider_user, "email", None):
            return AuthResult(error=missing_error)
        user = self.users.link_identity(provider_user.id, provider_user.email)
        return AuthResult(user=user)

    def verify_token(self, access_token: str) -> AuthResult:
        """Resolve a bearer token to the local user it belongs to."""
        if not access_token:
            return AuthResult(error="Access token required")
        try:
            response = self.auth_client.auth.get_user(access_token)
        except AuthError as e:
            return AuthResult(error=str(e) or "Token verification failed")
        return self._link(getattr(response, "user", None), "Invalid token")

    def sign_up(self, email: str, password: str) -> AuthResult:
        try:
            response = self.auth_client.auth.sign_up({"email": email, "password": password})
        except AuthError as e:
            return AuthResult(error=str(e) or "Sign up failed")
        return self._link(response.user, "Failed to create user")

    def sign_in(self, email: str, password: str) -> AuthResult:
        try:
            response = self.auth_client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except AuthError as e:
            return AuthResult(error=str(e) or "Sign in failed")
        return self._link(response.user, "Sign in failed")

    def sign_in_with_google(self, redirect_url: str | None = None) -> dict[str, str | None]:
        """Start the Google OAuth flow; returns the provider URL to redirect to."""
        try:
            response = self.auth_client.auth.sign_in_with_oauth(
                {
                    "provider": "google",
                    "options": {
                        "redirect_to": redirect_url or self.app_url,
                        "scopes": "email profile",
                    },
                }
            )
        except AuthError as e:
            return {"url": None, "error": str(e) or "Google sign in failed"}
        return {"url": response.url, "error": None}

    def handle_oauth_callback(self, code: str) -> AuthResult:
        if not code:
            return AuthResult(error="Authorization code required")
        try:
            response = self.auth_client.auth.exchange_code_for_session({"auth_code": code})
        except AuthError as e:
            return AuthResult(error=str(e) or "OAuth callback failed")
        return self._link(response.user, "OAuth callback failed")

    def sign_out(self) -> str | None:
        """Sign out the current session. Returns an error message or None."""
        try:
            self.auth_client.auth.sign_out()
        except AuthError as e:
            return str(e) or "Sign out failed"
        return None
