from core.state_manager import SessionState, SessionStateManager


def test_otp_login_path():
    manager = SessionStateManager()

    assert manager.transition_to(SessionState.OTP_PENDING, "OTP sent")
    assert manager.transition_to(SessionState.OTP_PENDING, "OTP resent")
    assert manager.transition_to(SessionState.AUTHENTICATED, "Verified")
    assert manager.is_authenticated()


def test_invalid_transition_is_refused():
    manager = SessionStateManager(SessionState.AUTHENTICATED)

    assert not manager.transition_to(SessionState.OTP_PENDING)
    assert manager.get_state() == SessionState.AUTHENTICATED


def test_reset_is_noop_when_anonymous():
    manager = SessionStateManager()

    assert not manager.reset()
    assert manager.get_transition_history() == []


def test_listeners_see_old_and_new_state():
    manager = SessionStateManager(SessionState.AUTHENTICATED)
    seen = []
    manager.add_listener(lambda old, new: seen.append((old, new)))

    manager.reset("Logout")

    assert seen == [(SessionState.AUTHENTICATED, SessionState.ANONYMOUS)]
    history = manager.get_transition_history()
    assert history[-1]["reason"] == "Logout"
    assert history[-1]["to"] == "anonymous"


def test_failing_listener_does_not_block_transition():
    manager = SessionStateManager()

    def broken(old, new):
        raise RuntimeError("boom")

    manager.add_listener(broken)

    assert manager.transition_to(SessionState.AUTHENTICATED)
    assert manager.is_authenticated()
