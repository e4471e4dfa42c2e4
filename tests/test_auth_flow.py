import pytest

from api import RegisterData
from core.state_manager import SessionState
from flows import AuthFlow, SignupFlow
from ui import AlertType, create_app_context


@pytest.mark.asyncio
async def test_blank_email_is_rejected_locally(context, fake_api):
    flow = AuthFlow(context)

    assert not await flow.send_otp("  ")
    assert fake_api.requests == []
    assert context.alerts.current.message == "Please enter your email"


@pytest.mark.asyncio
async def test_otp_login(context, fake_api, user_payload):
    fake_api.reply("POST", "/auth/send-otp", json={"message": "OTP sent"})
    fake_api.reply("POST", "/auth/verify-otp", json={"access_token": "tok", "user": user_payload})
    flow = AuthFlow(context)

    assert await flow.send_otp(" rahim@example.com ")
    assert flow.show_otp_input
    assert context.alerts.current.message == "OTP sent successfully to rahim@example.com"

    assert await flow.verify_otp("1234")
    assert not flow.show_otp_input
    assert flow.user.email == "rahim@example.com"
    assert context.api.get_auth_token() == "tok"
    assert context.alerts.current.type == AlertType.SUCCESS
    assert context.alerts.current.message == "Welcome back, Rahim Uddin!"


@pytest.mark.asyncio
@pytest.mark.parametrize("otp", ["", "123", "12345", "12a4"])
async def test_malformed_otp_never_reaches_server(context, fake_api, otp):
    flow = AuthFlow(context)
    flow.email = "rahim@example.com"

    assert not await flow.verify_otp(otp)
    assert fake_api.requests == []
    assert context.alerts.current.message == "Please enter a 4-digit OTP"


@pytest.mark.asyncio
async def test_wrong_otp_keeps_otp_entry_open(context, fake_api):
    fake_api.reply("POST", "/auth/send-otp", json={"message": "OTP sent"})
    fake_api.reply("POST", "/auth/verify-otp", status=401, json={"message": "Invalid OTP"})
    flow = AuthFlow(context)
    await flow.send_otp("rahim@example.com")

    assert not await flow.verify_otp("0000")
    assert flow.show_otp_input
    assert context.alerts.current.message == "Invalid OTP"
    assert context.api.session_state.get_state() == SessionState.OTP_PENDING


@pytest.mark.asyncio
async def test_cancel_returns_to_email_step(context, fake_api):
    fake_api.reply("POST", "/auth/send-otp", json={"message": "OTP sent"})
    flow = AuthFlow(context)
    await flow.send_otp("rahim@example.com")

    flow.cancel()

    assert not flow.show_otp_input
    assert context.api.session_state.get_state() == SessionState.ANONYMOUS


@pytest.mark.asyncio
async def test_password_login_requires_both_fields(context, fake_api):
    flow = AuthFlow(context)

    assert not await flow.login_with_password("rahim@example.com", "")
    assert fake_api.requests == []
    assert context.alerts.current.message == "Please enter your email and password"


@pytest.mark.asyncio
async def test_network_failure_is_a_warning(store):
    context = create_app_context(base_url="http://127.0.0.1:1", store=store)
    flow = AuthFlow(context)

    assert not await flow.login_with_password("rahim@example.com", "secret")
    assert context.alerts.current.type == AlertType.WARNING


@pytest.mark.asyncio
async def test_logout_always_signs_out(context, fake_api):
    fake_api.reply("POST", "/auth/logout", status=500, json={"message": "boom"})
    context.api.set_auth_token("tok")
    flow = AuthFlow(context)

    assert await flow.logout()
    assert context.api.get_auth_token() is None
    assert context.alerts.current.message == "You have been logged out"


@pytest.mark.asyncio
async def test_signup_with_otp(context, fake_api, user_payload):
    fake_api.reply("POST", "/auth/send-otp-for-signup", json={"message": "OTP sent"})
    fake_api.reply("POST", "/auth/verify-otp-for-signup", json={"access_token": "new", "user": user_payload})
    flow = SignupFlow(context)

    assert await flow.send_otp("Rahim Uddin", "rahim@example.com")
    assert fake_api.calls("POST", "/auth/send-otp-for-signup")[0].json == {
        "name": "Rahim Uddin", "email": "rahim@example.com"}

    assert await flow.verify_otp("4321")
    assert context.api.is_authenticated()
    assert context.alerts.current.message == "Your account is ready, Rahim Uddin!"


@pytest.mark.asyncio
async def test_signup_needs_name(context, fake_api):
    flow = SignupFlow(context)

    assert not await flow.send_otp("", "rahim@example.com")
    assert context.alerts.current.message == "Please enter your name and email"
    assert fake_api.requests == []


@pytest.mark.asyncio
async def test_register_with_password(context, fake_api, user_payload):
    fake_api.reply("POST", "/auth/register", status=201, json={"access_token": "new", "user": user_payload})
    flow = SignupFlow(context)

    assert await flow.register(RegisterData(name="Rahim Uddin", email="rahim@example.com", password="secret1"))
    assert flow.user.id == "7"
    assert context.api.get_auth_token() == "new"
