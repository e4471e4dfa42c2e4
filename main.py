#!/usr/bin/env python3
"""
Main application - Console front-end driving the MediVision flows
"""

import asyncio
import shlex
import signal
import sys
from typing import List

from config import DISPLAY_CONFIG, LOGGING_CONFIG, SEARCH_CONFIG
from core.logging_config import setup_logging, get_logger, log_error_with_context
from core.config_validator import validate_startup_config, ConfigValidationError
from events import event_bus, EventTypes
from flows import (
    AuthFlow, SignupFlow, MedicineSearchController, FileImageSource,
    ImageSearchFlow, ProfileController, HistoryController
)
from ui import AlertOptions, create_app_context
from api.models import MedicineResult

HELP_TEXT = """
Commands:
  otp <email>                 Send a login OTP
  verify <code>               Verify the login OTP
  login <email> <password>    Log in with a password
  signup <name> <email>       Send a signup OTP
  signup-verify <code>        Verify the signup OTP
  logout                      Log out
  profile                     Show your profile
  avatar <path>               Upload a profile picture
  avatar-remove               Remove the profile picture
  type <text>                 Type into the search box (shows suggestions)
  pick <n>                    Pick suggestion n
  search [text]               Full search for text or the typed query
  scan <path>                 Identify a medicine from a photo
  medicine <id>               Show a medicine
  history [n]                 Show your last n history entries
  theme                       Toggle light/dark mode
  lang <en|bn>                Switch language
  help                        Show this help
  quit                        Exit
"""


class MediVisionConsole:
    def __init__(self):
        self.logger = get_logger(__name__)
        self.context = create_app_context().initialize()
        self.running = False

        self.auth = AuthFlow(self.context)
        self.signup = SignupFlow(self.context)
        self.search = MedicineSearchController(
            self.context,
            on_select=self._show_medicine,
            on_results=self._show_results,
        )
        self.scanner = ImageSearchFlow(
            self.context,
            on_results=self._show_results,
            on_detail=self._show_medicine,
        )
        self.profile = ProfileController(self.context)
        self.history = HistoryController(self.context)

        self.context.alerts.add_listener(self._render_alert)

        self.commands = {
            "otp": self._cmd_otp,
            "verify": self._cmd_verify,
            "login": self._cmd_login,
            "signup": self._cmd_signup,
            "signup-verify": self._cmd_signup_verify,
            "logout": self._cmd_logout,
            "profile": self._cmd_profile,
            "avatar": self._cmd_avatar,
            "avatar-remove": self._cmd_avatar_remove,
            "type": self._cmd_type,
            "pick": self._cmd_pick,
            "search": self._cmd_search,
            "scan": self._cmd_scan,
            "medicine": self._cmd_medicine,
            "history": self._cmd_history,
            "theme": self._cmd_theme,
            "lang": self._cmd_lang,
        }

    # Rendering

    def _render_alert(self, options: AlertOptions, visible: bool):
        if not visible:
            return
        colors = DISPLAY_CONFIG["colors"]
        emojis = DISPLAY_CONFIG["emojis"]
        kind = options.type.value
        print(f"{colors[kind]}{emojis[kind]} {options.title}: {options.message}{colors['reset']}")
        for index, action in enumerate(options.actions):
            print(f"   [{index}] {action.text}")

    def _show_results(self, results: List[MedicineResult]):
        emojis = DISPLAY_CONFIG["emojis"]
        language = self.context.language
        print(f"{emojis['search']} {language.t('medicinesFound', count=len(results))}")
        for index, medicine in enumerate(results):
            brand = medicine.display_brand(language.language)
            line = f"  {index}. {medicine.display_name(language.language)}"
            if brand:
                line += f" ({brand})"
            if medicine.similarity is not None:
                line += f" - {medicine.similarity:.0%} match"
            print(line)

    def _show_medicine(self, medicine: MedicineResult):
        emojis = DISPLAY_CONFIG["emojis"]
        language = self.context.language.language
        print(f"{emojis['pill']} {medicine.display_name(language)} [{medicine.id}]")
        brand = medicine.display_brand(language)
        if brand:
            print(f"   Brand: {brand}")
        image_url = self.context.api.medicine_image_url(medicine.primary_image)
        if image_url:
            print(f"   Image: {image_url}")
        for key, value in medicine.extra.items():
            print(f"   {key}: {value}")

    # Commands

    async def _cmd_otp(self, args: List[str]):
        await self.auth.send_otp(args[0] if args else "")

    async def _cmd_verify(self, args: List[str]):
        await self.auth.verify_otp(args[0] if args else "")

    async def _cmd_login(self, args: List[str]):
        email = args[0] if args else ""
        password = args[1] if len(args) > 1 else ""
        await self.auth.login_with_password(email, password)

    async def _cmd_signup(self, args: List[str]):
        name = " ".join(args[:-1]) if len(args) > 1 else ""
        email = args[-1] if args else ""
        await self.signup.send_otp(name, email)

    async def _cmd_signup_verify(self, args: List[str]):
        await self.signup.verify_otp(args[0] if args else "")

    async def _cmd_logout(self, args: List[str]):
        await self.auth.logout()
        self.profile.user = None

    async def _cmd_profile(self, args: List[str]):
        user = await self.profile.load()
        if user is None:
            return
        print(f"{user.name} <{user.email}> ({user.role})")
        for label, value in (("Phone", user.phone), ("Gender", user.gender), ("Born", user.date_of_birth)):
            if value:
                print(f"   {label}: {value}")
        if self.profile.image_url:
            print(f"   Picture: {self.profile.image_url}")
        print(f"   Menu: {', '.join(self.profile.menu_items())}")

    async def _cmd_avatar(self, args: List[str]):
        if not args:
            print("Usage: avatar <path>")
            return
        await self.profile.upload_image(FileImageSource(args[0]))

    async def _cmd_avatar_remove(self, args: List[str]):
        await self.profile.remove_image()

    async def _cmd_type(self, args: List[str]):
        self.search.on_text_change(" ".join(args))
        await self.search.wait_idle()
        if not self.search.show_suggestions:
            return
        language = self.context.language.language
        for index, medicine in enumerate(self.search.suggestions):
            print(f"  [{index}] {medicine.display_name(language)}")

    async def _cmd_pick(self, args: List[str]):
        try:
            self.search.select_suggestion(int(args[0]) if args else 0)
        except (IndexError, ValueError) as e:
            print(f"Cannot pick: {e}")

    async def _cmd_search(self, args: List[str]):
        if args:
            self.search.clear()
            self.search.query = " ".join(args)
        await self.search.submit()

    async def _cmd_scan(self, args: List[str]):
        if not args:
            print("Usage: scan <path>")
            return
        emojis = DISPLAY_CONFIG["emojis"]
        print(f"{emojis['camera']} Analyzing {args[0]}...")
        await self.scanner.scan(FileImageSource(args[0]))

    async def _cmd_medicine(self, args: List[str]):
        if not args:
            print("Usage: medicine <id>")
            return
        response = await self.context.api.get_medicine(args[0])
        if not response.ok:
            self.context.alerts.show_error(response, self.context.language.t("error"))
            return
        self._show_medicine(response.data)

    async def _cmd_history(self, args: List[str]):
        try:
            limit = int(args[0]) if args else SEARCH_CONFIG["history_limit"]
        except ValueError:
            print("Usage: history [n]")
            return
        entries = await self.history.load(limit)
        for entry in entries:
            action = getattr(entry.action_type, "value", entry.action_type)
            when = entry.created_at.strftime("%Y-%m-%d %H:%M") if entry.created_at else "-"
            top = entry.top_result.name if entry.top_result else (entry.error_message or "-")
            mark = "ok" if entry.is_successful else "failed"
            print(f"  {when}  {action:<6}  {mark:<6}  {top}")

    async def _cmd_theme(self, args: List[str]):
        theme = self.context.theme.toggle_theme()
        print(self.context.language.t("themeChanged", theme=theme))

    async def _cmd_lang(self, args: List[str]):
        language = self.context.language
        if not args or args[0] not in language.available_languages:
            print(f"Usage: lang <{'|'.join(language.available_languages)}>")
            return
        language.set_language(args[0])
        print(language.t("languageChanged"))

    # Main loop

    async def dispatch(self, line: str) -> bool:
        """Run one command line; returns False when the user asked to quit"""
        try:
            parts = shlex.split(line)
        except ValueError as e:
            print(f"Could not parse input: {e}")
            return True

        if not parts:
            return True

        command, args = parts[0].lower(), parts[1:]

        # An open alert with actions takes a numeric answer
        alerts = self.context.alerts
        if alerts.visible and alerts.current.actions and command.isdigit():
            try:
                alerts.press(int(command))
            except IndexError as e:
                print(e)
            return True

        if command in ("quit", "exit"):
            return False
        if command == "help":
            print(HELP_TEXT)
            return True

        handler = self.commands.get(command)
        if handler is None:
            print(f"Unknown command: {command} (type 'help')")
            return True

        alerts.hide_alert()
        try:
            await handler(args)
        except Exception as e:
            log_error_with_context(self.logger, e, f"command {command}")
            print(f"{DISPLAY_CONFIG['colors']['error']}Command failed: {e}{DISPLAY_CONFIG['colors']['reset']}")
        return True

    async def run(self):
        colors = DISPLAY_CONFIG["colors"]
        emojis = DISPLAY_CONFIG["emojis"]

        self.running = True
        api = self.context.api
        event_bus.emit(EventTypes.SYSTEM_START, {"base_url": api.base_url}, source="main")
        self.logger.info(f"Starting MediVision console against {api.base_url}")

        print(f"\n{colors['info']}{emojis['pill']} MediVision{colors['reset']}")
        print(f"Server: {api.base_url}")
        print(f"Session: {api.session_state.get_state().value}")
        print("Type 'help' for commands.\n")

        loop = asyncio.get_running_loop()
        while self.running:
            try:
                line = await loop.run_in_executor(None, input, "medivision> ")
            except EOFError:
                break
            if not await self.dispatch(line):
                break

        await self.stop()

    async def stop(self):
        if not self.running:
            return
        self.running = False

        self.search.clear()
        await self.search.wait_idle()

        stats = self.context.api.get_stats()
        self.logger.info("MediVision console stopped", extra={"extra_data": stats})
        event_bus.emit(EventTypes.SYSTEM_STOP, stats, source="main")
        event_bus.wait_until_idle()
        event_bus.shutdown()


def signal_handler(sig, frame):
    """Handle Ctrl+C gracefully"""
    try:
        print("\n\nShutting down gracefully...")
        event_bus.shutdown()
    except Exception as e:
        print(f"Error during shutdown: {e}")
    finally:
        sys.exit(0)


def main() -> int:
    # Validate configuration first (before logging setup)
    try:
        validate_startup_config()
    except ConfigValidationError as e:
        print(f"❌ Configuration validation failed: {e}")
        print("Please fix the configuration errors and try again.")
        return 1

    setup_logging(LOGGING_CONFIG)
    logger = get_logger(__name__)
    logger.info("Starting MediVision client")

    signal.signal(signal.SIGINT, signal_handler)

    try:
        console = MediVisionConsole()
        asyncio.run(console.run())
    except Exception as e:
        logger.error("MediVision console crashed", exc_info=True, extra={
            "extra_data": {"error_type": type(e).__name__, "error_message": str(e)}
        })
        event_bus.emit(EventTypes.SYSTEM_ERROR, {"error_type": type(e).__name__}, source="main")
        event_bus.wait_until_idle()
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
