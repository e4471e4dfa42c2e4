"""
Login, signup and logout flows
"""

import re
from typing import Optional

from api.models import LoginResponse, RegisterData, User
from config import AUTH_CONFIG
from core.logging_config import get_logger
from ui.alerts import AlertType
from ui.context import AppContext

logger = get_logger(__name__)


class _OtpFlow:
    """Shared OTP entry handling"""

    def __init__(self, context: AppContext, otp_length: int = AUTH_CONFIG["otp_length"]):
        self.context = context
        self.api = context.api
        self.otp_length = otp_length
        self._otp_pattern = re.compile(rf"^\d{{{otp_length}}}$")

        self.email = ""
        self.show_otp_input = False
        self.is_loading = False
        self.user: Optional[User] = None

    def _valid_otp(self, otp: str) -> bool:
        if self._otp_pattern.match(otp or ""):
            return True
        t = self.context.language.t
        self.context.alerts.show_alert(t("error"), t("enter4DigitOtp", length=self.otp_length), AlertType.ERROR)
        return False

    def _fail(self, response) -> bool:
        self.context.alerts.show_error(response, self.context.language.t("error"))
        return False

    def cancel(self):
        """Leave OTP entry and return to the e-mail step"""
        self.show_otp_input = False
        if self.api.session_state.is_otp_pending():
            self.api.session_state.reset("OTP entry cancelled")


class AuthFlow(_OtpFlow):
    """Login by e-mail OTP or password, and logout"""

    async def send_otp(self, email: str) -> bool:
        t = self.context.language.t
        email = (email or "").strip()
        if not email:
            self.context.alerts.show_alert(t("error"), t("enterEmail"), AlertType.ERROR)
            return False

        self.is_loading = True
        try:
            response = await self.api.send_otp(email)
        finally:
            self.is_loading = False

        if not response.ok:
            return self._fail(response)

        self.email = email
        self.show_otp_input = True
        logger.info("Login OTP sent")
        self.context.alerts.show_alert(t("success"), t("otpSentSuccessfully", email=email), AlertType.SUCCESS)
        return True

    async def verify_otp(self, otp: str) -> bool:
        if not self._valid_otp(otp):
            return False

        self.is_loading = True
        try:
            response = await self.api.verify_otp(self.email, otp)
        finally:
            self.is_loading = False

        if not response.ok:
            return self._fail(response)

        self._logged_in(response.data)
        return True

    async def login_with_password(self, email: str, password: str) -> bool:
        t = self.context.language.t
        email = (email or "").strip()
        if not email or not password:
            self.context.alerts.show_alert(t("error"), t("enterEmailAndPassword"), AlertType.ERROR)
            return False

        self.is_loading = True
        try:
            response = await self.api.login(email, password)
        finally:
            self.is_loading = False

        if not response.ok:
            return self._fail(response)

        self.email = email
        self._logged_in(response.data)
        return True

    def _logged_in(self, login: Optional[LoginResponse]):
        self.show_otp_input = False
        self.user = login.user if isinstance(login, LoginResponse) else None
        name = self.user.name if self.user else self.email
        logger.info(f"Logged in (role={self.user.role if self.user else 'unknown'})")
        t = self.context.language.t
        self.context.alerts.show_alert(t("success"), t("loginSuccessful", name=name), AlertType.SUCCESS)

    async def logout(self) -> bool:
        """Drop the session; the local token is cleared even if the server call fails"""
        response = await self.api.logout()
        self.user = None
        self.email = ""
        self.show_otp_input = False

        if not response.ok:
            logger.warning(f"Server logout failed: {response.error}")

        t = self.context.language.t
        self.context.alerts.show_alert(t("success"), t("loggedOut"), AlertType.SUCCESS)
        return True


class SignupFlow(_OtpFlow):
    """Signup by name and e-mail verified with an OTP, or full registration"""

    def __init__(self, context: AppContext, otp_length: int = AUTH_CONFIG["otp_length"]):
        super().__init__(context, otp_length)
        self.name = ""

    async def send_otp(self, name: str, email: str) -> bool:
        t = self.context.language.t
        name = (name or "").strip()
        email = (email or "").strip()
        if not name or not email:
            self.context.alerts.show_alert(t("error"), t("enterNameAndEmail"), AlertType.ERROR)
            return False

        self.is_loading = True
        try:
            response = await self.api.send_otp_for_signup(name, email)
        finally:
            self.is_loading = False

        if not response.ok:
            return self._fail(response)

        self.name = name
        self.email = email
        self.show_otp_input = True
        self.context.alerts.show_alert(t("success"), t("otpSentSuccessfully", email=email), AlertType.SUCCESS)
        return True

    async def verify_otp(self, otp: str) -> bool:
        if not self._valid_otp(otp):
            return False

        self.is_loading = True
        try:
            response = await self.api.verify_otp_for_signup(self.email, otp)
        finally:
            self.is_loading = False

        if not response.ok:
            return self._fail(response)

        self._signed_up(response.data)
        return True

    async def register(self, data: RegisterData) -> bool:
        t = self.context.language.t
        if not data.name.strip() or not data.email.strip():
            self.context.alerts.show_alert(t("error"), t("enterNameAndEmail"), AlertType.ERROR)
            return False
        if not data.password:
            self.context.alerts.show_alert(t("error"), t("enterEmailAndPassword"), AlertType.ERROR)
            return False

        self.is_loading = True
        try:
            response = await self.api.register(data)
        finally:
            self.is_loading = False

        if not response.ok:
            return self._fail(response)

        self.name = data.name
        self.email = data.email
        self._signed_up(response.data)
        return True

    def _signed_up(self, login: Optional[LoginResponse]):
        self.show_otp_input = False
        self.user = login.user if isinstance(login, LoginResponse) else None
        name = self.user.name if self.user else self.name
        t = self.context.language.t
        self.context.alerts.show_alert(t("success"), t("signupSuccessful", name=name), AlertType.SUCCESS)
