"""
HTTP client for the medicine identification service
"""

import aiohttp
import asyncio
import json
import time
from enum import Enum
from typing import Dict, Any, List, Optional, Union
from urllib.parse import quote

from config import API_CONFIG, AUTH_CONFIG, SEARCH_CONFIG, STORAGE_CONFIG
from core.exceptions import StorageError
from core.logging_config import get_logger, log_api_call
from core.state_manager import SessionStateManager, SessionState
from events import event_bus, EventTypes
from storage import KeyValueStore
from .models import (
    ApiResponse, ErrorKind, User, LoginResponse, RegisterData, ProfileUpdate,
    MedicineResult, HistoryEntry, ImageFile, unwrap_list
)
from .request_guard import LatestRequestGuard

logger = get_logger(__name__)


class AuthMode(Enum):
    """How a call uses the stored bearer token"""
    NONE = "none"
    OPTIONAL = "optional"  # Sent when present
    REQUIRED = "required"  # Short-circuits without a token


class ApiClient:
    """
    Thin client over the REST API.

    Every operation returns an ``ApiResponse``; expected HTTP and network
    failures never raise.
    """

    def __init__(self,
                 base_url: Optional[str] = None,
                 store: Optional[KeyValueStore] = None,
                 session_state: Optional[SessionStateManager] = None,
                 request_guard: Optional[LatestRequestGuard] = None,
                 request_timeout: Optional[float] = None):
        self.base_url = (base_url or API_CONFIG["base_url"]).rstrip("/")
        self.store = store if store is not None else KeyValueStore(STORAGE_CONFIG["path"])
        self.request_guard = request_guard or LatestRequestGuard()
        self.request_timeout = request_timeout if request_timeout is not None else API_CONFIG.get("request_timeout")
        self.token_key = AUTH_CONFIG["token_storage_key"]
        self.guard_keys = SEARCH_CONFIG["guard_keys"]

        if session_state is None:
            initial = SessionState.AUTHENTICATED if self.get_auth_token() else SessionState.ANONYMOUS
            session_state = SessionStateManager(initial)
        self.session_state = session_state

        # Request stats
        self.request_count = 0
        self.error_count = 0

    # Token management

    def get_auth_token(self) -> Optional[str]:
        """Stored token, or None when there is none or storage is unreadable"""
        try:
            return self.store.get_item(self.token_key)
        except StorageError as e:
            logger.error(f"Failed to read stored token: {e}")
            return None

    def set_auth_token(self, token: str) -> bool:
        """Persist the bearer token and mark the session authenticated"""
        try:
            self.store.set_item(self.token_key, token)
        except StorageError as e:
            logger.error(f"Failed to store token: {e}")
            return False
        if not self.session_state.is_authenticated():
            self.session_state.transition_to(SessionState.AUTHENTICATED, "Token stored")
        return True

    def clear_auth_token(self, reason: str = "Token cleared") -> None:
        try:
            self.store.remove_item(self.token_key)
        except StorageError as e:
            logger.error(f"Failed to remove stored token: {e}")
        if self.session_state.reset(reason):
            event_bus.emit(EventTypes.SESSION_CLEARED, {"reason": reason}, source="api_client")

    def is_authenticated(self) -> bool:
        return self.get_auth_token() is not None

    # URL helpers

    def medicine_image_url(self, filename: Optional[str]) -> Optional[str]:
        if not filename:
            return None
        return f"{self.base_url}{API_CONFIG['image_base_path']}/{filename}"

    def profile_image_url(self, filename: Optional[str]) -> Optional[str]:
        if not filename:
            return None
        if filename.startswith(("http://", "https://")):
            return filename
        return f"{self.base_url}{API_CONFIG['profile_image_path']}/{filename}"

    # Request pipeline

    async def _request(self,
                       endpoint: str,
                       method: str = "GET",
                       json_body: Optional[Dict[str, Any]] = None,
                       image: Optional[ImageFile] = None,
                       params: Optional[Dict[str, Any]] = None,
                       auth: AuthMode = AuthMode.NONE,
                       guard_key: Optional[str] = None) -> ApiResponse:
        """Send one request and normalize the outcome into an ApiResponse"""
        headers: Dict[str, str] = {}
        token = self.get_auth_token() if auth != AuthMode.NONE else None

        if auth == AuthMode.REQUIRED and not token:
            logger.debug(f"Skipping {method} {endpoint}: no stored token")
            return ApiResponse.failure(API_CONFIG["not_authenticated_message"], ErrorKind.PRECONDITION)

        if token:
            headers["Authorization"] = f"Bearer {token}"

        ticket = self.request_guard.begin(guard_key) if guard_key else None
        response = await self._send(endpoint, method, headers, json_body, image, params)

        if response.status in AUTH_CONFIG["session_clear_status_codes"] and token:
            # A token replaced while the request was in flight stays
            if self.get_auth_token() == token:
                logger.warning(f"{method} {endpoint} rejected the stored token; clearing session")
                self.clear_auth_token(f"Server rejected token ({response.status})")
            else:
                logger.info(f"{method} {endpoint} rejected an older token; keeping the current one")

        if ticket and not self.request_guard.resolve(ticket):
            logger.debug(f"Discarding superseded response for {guard_key} #{ticket.number}")
            event_bus.emit(EventTypes.API_REQUEST_SUPERSEDED, {
                "guard_key": guard_key,
                "ticket": ticket.number
            }, source="api_client")
            return ApiResponse(status=response.status, superseded=True)

        return response

    async def _send(self, endpoint: str, method: str, headers: Dict[str, str],
                    json_body: Optional[Dict[str, Any]], image: Optional[ImageFile],
                    params: Optional[Dict[str, Any]]) -> ApiResponse:
        url = f"{self.base_url}{endpoint}"
        request_kwargs: Dict[str, Any] = {"headers": headers}

        if json_body is not None:
            headers["Content-Type"] = "application/json"
            request_kwargs["data"] = json.dumps(json_body)
        elif image is not None:
            form = aiohttp.FormData()
            form.add_field("image", image.content, filename=image.filename, content_type=image.content_type)
            request_kwargs["data"] = form

        if params:
            request_kwargs["params"] = {k: str(v) for k, v in params.items()}

        self.request_count += 1
        start_time = time.time()
        event_bus.emit(EventTypes.API_REQUEST_START, {"method": method, "endpoint": endpoint}, source="api_client")

        try:
            timeout_config = aiohttp.ClientTimeout(total=self.request_timeout)

            async with aiohttp.ClientSession(timeout=timeout_config) as session:
                async with session.request(method, url, **request_kwargs) as response:
                    status = response.status
                    reason = response.reason or ""
                    body = await response.read()

        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            return self._network_failure(method, endpoint, e, start_time)

        except Exception as e:
            self.error_count += 1
            logger.error(f"Unexpected error calling {method} {endpoint}", exc_info=True)
            event_bus.emit(EventTypes.API_REQUEST_ERROR, {
                "method": method,
                "endpoint": endpoint,
                "error_type": type(e).__name__
            }, source="api_client")
            return ApiResponse.failure(API_CONFIG["unexpected_error_message"], ErrorKind.NETWORK)

        duration_ms = (time.time() - start_time) * 1000
        log_api_call(logger, method, endpoint, status, duration_ms)
        result = self._parse_response(status, reason, body)

        if result.error:
            self.error_count += 1
            event_bus.emit(EventTypes.API_REQUEST_ERROR, {
                "method": method,
                "endpoint": endpoint,
                "status": status,
                "error": result.error
            }, source="api_client")
        else:
            event_bus.emit(EventTypes.API_REQUEST_COMPLETE, {
                "method": method,
                "endpoint": endpoint,
                "status": status,
                "duration_ms": duration_ms
            }, source="api_client")

        return result

    def _network_failure(self, method: str, endpoint: str, error: Exception, start_time: float) -> ApiResponse:
        self.error_count += 1
        duration_ms = (time.time() - start_time) * 1000
        logger.warning(f"Network error calling {method} {endpoint} after {duration_ms:.0f}ms: {error}")
        event_bus.emit(EventTypes.API_REQUEST_ERROR, {
            "method": method,
            "endpoint": endpoint,
            "error_type": type(error).__name__
        }, source="api_client")
        return ApiResponse.failure(API_CONFIG["network_error_message"], ErrorKind.NETWORK)

    @staticmethod
    def _parse_response(status: int, reason: str, body: bytes) -> ApiResponse:
        """Turn status and raw body into data or an error message"""
        status_message = f"Server error: {status} {reason}"
        is_success = 200 <= status < 300

        if status == 204 and is_success:
            return ApiResponse(data=None, status=status)

        try:
            data = json.loads(body)
        except ValueError:
            return ApiResponse.failure(status_message, ErrorKind.SERVER, status)

        if not is_success:
            message = data.get("message") if isinstance(data, dict) else None
            if isinstance(message, list):
                message = ", ".join(str(m) for m in message)
            return ApiResponse.failure(message or status_message, ErrorKind.SERVER, status)

        message = data.get("message") if isinstance(data, dict) and isinstance(data.get("message"), str) else None
        return ApiResponse(data=data, message=message, status=status)

    # Authentication

    async def send_otp(self, email: str) -> ApiResponse[Dict[str, Any]]:
        response = await self._request("/auth/send-otp", "POST", json_body={"email": email})
        if response.ok:
            self.session_state.transition_to(SessionState.OTP_PENDING, "OTP sent")
        return response

    async def verify_otp(self, email: str, otp: str) -> ApiResponse[LoginResponse]:
        response = await self._request("/auth/verify-otp", "POST", json_body={"email": email, "otp": otp})
        return self._finish_login(response)

    async def login(self, email: str, password: str) -> ApiResponse[LoginResponse]:
        response = await self._request("/auth/login", "POST", json_body={"email": email, "password": password})
        return self._finish_login(response)

    async def logout(self) -> ApiResponse[None]:
        """Tell the server, then drop the local session whatever it answered"""
        response = await self._request("/auth/logout", "POST", auth=AuthMode.REQUIRED)
        self.clear_auth_token("Logout")
        return response

    async def register(self, data: RegisterData) -> ApiResponse[LoginResponse]:
        response = await self._request("/auth/register", "POST", json_body=data.to_payload())
        return self._finish_login(response)

    async def send_otp_for_signup(self, name: str, email: str) -> ApiResponse[Dict[str, Any]]:
        response = await self._request("/auth/send-otp-for-signup", "POST", json_body={"name": name, "email": email})
        if response.ok:
            self.session_state.transition_to(SessionState.OTP_PENDING, "Signup OTP sent")
        return response

    async def verify_otp_for_signup(self, email: str, otp: str) -> ApiResponse[LoginResponse]:
        response = await self._request("/auth/verify-otp-for-signup", "POST", json_body={"email": email, "otp": otp})
        return self._finish_login(response)

    def _finish_login(self, response: ApiResponse) -> ApiResponse:
        """Convert a login body and store the token when one was issued"""
        if not response.ok or not isinstance(response.data, dict):
            return response

        login = LoginResponse.from_dict(response.data)
        stored = bool(login.access_token) and self.set_auth_token(login.access_token)
        if not stored and self.session_state.is_otp_pending():
            self.session_state.transition_to(SessionState.ANONYMOUS, "Verified without a session")
        return response.with_data(login)

    # Profile

    async def get_profile(self) -> ApiResponse[User]:
        response = await self._request("/users/profile", auth=AuthMode.REQUIRED,
                                       guard_key=self.guard_keys["profile"])
        return self._as_user(response)

    async def update_profile(self, update: Union[ProfileUpdate, Dict[str, Any]]) -> ApiResponse[User]:
        payload = update.to_payload() if isinstance(update, ProfileUpdate) else dict(update)
        response = await self._request("/users/profile", "PUT", json_body=payload, auth=AuthMode.REQUIRED)
        return self._as_user(response)

    async def upload_profile_image(self, image: ImageFile) -> ApiResponse[Union[User, Dict[str, Any]]]:
        response = await self._request("/users/profile/image", "PUT", image=image, auth=AuthMode.REQUIRED)
        return self._as_user(response)

    async def remove_profile_image(self) -> ApiResponse[Union[User, Dict[str, Any]]]:
        response = await self._request("/users/profile/image", "DELETE", auth=AuthMode.REQUIRED)
        return self._as_user(response)

    async def get_history(self, limit: Optional[int] = None) -> ApiResponse[List[HistoryEntry]]:
        limit = limit or SEARCH_CONFIG["history_limit"]
        response = await self._request("/users/profile/history", params={"limit": limit},
                                       auth=AuthMode.REQUIRED, guard_key=self.guard_keys["history"])
        if not response.ok:
            return response
        return response.with_data([HistoryEntry.from_dict(item) for item in unwrap_list(response.data)])

    @staticmethod
    def _as_user(response: ApiResponse) -> ApiResponse:
        """Profile bodies are the user itself or wrap it under ``user``"""
        if not response.ok or not isinstance(response.data, dict):
            return response
        data = response.data
        if isinstance(data.get("user"), dict):
            data = data["user"]
        if "id" in data:
            return response.with_data(User.from_dict(data))
        return response

    # Medicines

    async def search_medicines(self, term: str, guard_key: Optional[str] = None) -> ApiResponse[List[MedicineResult]]:
        response = await self._request("/medicines", params={"search": term}, auth=AuthMode.OPTIONAL,
                                       guard_key=guard_key or self.guard_keys["search"])
        return self._as_medicines(response)

    async def search_by_image(self, image: ImageFile) -> ApiResponse[List[MedicineResult]]:
        response = await self._request("/medicines/search-by-image", "POST", image=image,
                                       auth=AuthMode.REQUIRED, guard_key=self.guard_keys["image_search"])
        return self._as_medicines(response)

    async def get_medicine(self, medicine_id: Union[str, int]) -> ApiResponse[MedicineResult]:
        response = await self._request(f"/medicines/{quote(str(medicine_id), safe='')}")
        if not response.ok or not isinstance(response.data, dict):
            return response
        return response.with_data(MedicineResult.from_dict(response.data))

    @staticmethod
    def _as_medicines(response: ApiResponse) -> ApiResponse:
        if not response.ok:
            return response
        return response.with_data([MedicineResult.from_dict(item) for item in unwrap_list(response.data)])

    def get_stats(self) -> Dict[str, Any]:
        return {
            "base_url": self.base_url,
            "request_count": self.request_count,
            "error_count": self.error_count,
            "superseded_count": self.request_guard.superseded_count,
            "session_state": self.session_state.get_state().value,
        }
