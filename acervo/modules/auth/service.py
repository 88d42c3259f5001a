import hashlib
import logging
import time
from typing import Dict

from fastapi import HTTPException
from supabase import Client

from acervo.modules.auth.schemas import Identity, LoginRequest, RegisterRequest, RegisterResponse, TokenResponse

logger = logging.getLogger(__name__)

# In-memory cache for get_current_identity to reduce Supabase auth calls (e.g. page + API requests with same token)
_AUTH_USER_CACHE: Dict[str, tuple] = {}
_AUTH_CACHE_TTL_SEC = 60
_AUTH_CACHE_MAX_SIZE = 500


def _cache_key(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        """Register a new user using Supabase Auth. The profile starts unapproved."""
        try:
            user_metadata = {}
            if register_data.full_name:
                user_metadata["full_name"] = register_data.full_name

            auth_response = self.supabase.auth.sign_up({
                "email": register_data.email,
                "password": register_data.password,
                "options": {
                    "data": user_metadata
                }
            })

            if not auth_response.user:
                raise HTTPException(status_code=400, detail="Failed to register user")

            logger.info(f"Registered user {auth_response.user.id}")
            return RegisterResponse(
                user_id=auth_response.user.id,
                email=auth_response.user.email or register_data.email,
                message="User registered successfully; awaiting administrator approval"
            )
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e)
            if "already registered" in error_message.lower() or "already exists" in error_message.lower():
                raise HTTPException(status_code=400, detail="User already exists")
            logger.error(f"Registration failed: {error_message}")
            raise HTTPException(status_code=500, detail=f"Registration failed: {error_message}")

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate user using Supabase Auth"""
        try:
            auth_response = self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })

            if not auth_response.user or not auth_response.session:
                raise HTTPException(status_code=401, detail="Invalid credentials")

            return TokenResponse(
                access_token=auth_response.session.access_token,
                token_type="bearer",
                user_id=auth_response.user.id,
                email=auth_response.user.email or login_data.email
            )
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e)
            if "invalid" in error_message.lower() or "credentials" in error_message.lower():
                raise HTTPException(status_code=401, detail="Invalid email or password")
            logger.error(f"Login failed: {error_message}")
            raise HTTPException(status_code=500, detail=f"Login failed: {error_message}")

    def get_current_identity(self, token: str) -> Identity:
        """Identity behind a Supabase Auth token. Uses short TTL cache to reduce auth API calls."""
        try:
            cache_key = _cache_key(token)
            now = time.monotonic()
            if cache_key in _AUTH_USER_CACHE:
                identity, expiry = _AUTH_USER_CACHE[cache_key]
                if now < expiry:
                    return identity
                del _AUTH_USER_CACHE[cache_key]
            user_response = self.supabase.auth.get_user(jwt=token)
            if not user_response or not user_response.user:
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            identity = Identity(id=user_response.user.id, email=user_response.user.email)
            if len(_AUTH_USER_CACHE) < _AUTH_CACHE_MAX_SIZE:
                _AUTH_USER_CACHE[cache_key] = (identity, now + _AUTH_CACHE_TTL_SEC)
            return identity
        except HTTPException:
            raise
        except Exception as e:
            error_msg = str(e)
            if "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower():
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            raise HTTPException(status_code=401, detail="Authentication failed")

    def logout(self, token: str) -> bool:
        """Logout user using Supabase Auth"""
        _AUTH_USER_CACHE.pop(_cache_key(token), None)
        try:
            # Supabase tokens are stateless JWTs; they stay valid until they expire
            self.supabase.auth.sign_out()
            return True
        except Exception as e:
            logger.warning(f"Supabase sign_out failed: {e}")
            return False
