import pytest

import main
from storage import KeyValueStore
from ui import create_app_context


@pytest.fixture
def console(fake_api, monkeypatch):
    store = KeyValueStore()
    monkeypatch.setattr(main, "create_app_context",
                        lambda: create_app_context(base_url=fake_api.base_url, store=store))
    return main.MediVisionConsole()


@pytest.mark.asyncio
async def test_search_command_prints_results(console, fake_api, medicines_payload, capsys):
    fake_api.reply("GET", "/medicines", json={"data": medicines_payload})

    assert await console.dispatch("search napa")

    out = capsys.readouterr().out
    assert "Found 2 medicines" in out
    assert "Napa (Beximco) - 93% match" in out
    assert fake_api.requests[0].query == {"search": "napa"}


@pytest.mark.asyncio
async def test_alert_action_is_answered_by_number(console, fake_api, image_file, medicines_payload, capsys):
    console.context.api.set_auth_token("tok")
    fake_api.reply("POST", "/medicines/search-by-image", status=500, json={"message": "Model not loaded"})
    fake_api.reply("POST", "/medicines/search-by-image", json=medicines_payload)

    await console.dispatch(f"scan '{image_file}'")
    assert "[0] Retry" in capsys.readouterr().out

    await console.dispatch("0")
    await console.scanner.retry_task

    assert "Found 2 medicines" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_theme_and_language_commands(console, capsys):
    await console.dispatch("theme")
    await console.dispatch("lang bn")

    out = capsys.readouterr().out
    assert "Switched to dark mode" in out
    assert console.context.language.language == "bn"
    assert console.context.store.get_item("theme") == "dark"


@pytest.mark.asyncio
async def test_unknown_and_quit_commands(console, capsys):
    assert await console.dispatch("frobnicate")
    assert "Unknown command" in capsys.readouterr().out
    assert not await console.dispatch("quit")


@pytest.mark.asyncio
async def test_profile_command_when_signed_out(console, fake_api, capsys):
    await console.dispatch("profile")

    assert "Not authenticated" in capsys.readouterr().out
    assert fake_api.requests == []
