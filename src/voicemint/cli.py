"""
Command-line interface for Voicemint.
"""

import argparse
import asyncio
import getpass
import logging
import sys

from .app import DubbingFlow, SpeechToTextFlow, TextToSpeechFlow, build_services
from .config import PROVIDERS, Settings, load_env
from .errors import VoicemintError
from .models import LANGUAGE_OPTIONS, Voice
from .panels import Panel
from .session import SessionContext, UserStore

logger = logging.getLogger("voicemint")

AI_VOICES = [v.value for v in Voice if v is not Voice.CUSTOM]


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")


def _percent(value: str) -> int:
    n = int(value)
    if not 0 <= n <= 100:
        raise argparse.ArgumentTypeError("must be between 0 and 100")
    return n


def _add_voice_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--voice", choices=AI_VOICES, default=Voice.ZEPHYR.value)
    p.add_argument("--emotion", type=_percent, default=50, help="0 = sad, 100 = happy")
    p.add_argument("--speed", type=_percent, default=50, help="0 = slow, 100 = fast")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    ap = argparse.ArgumentParser(
        prog="voicemint", description="AI voice dubbing for short videos"
    )
    ap.add_argument("--provider", choices=PROVIDERS, default=None, help="AI service provider")
    ap.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    sub = ap.add_subparsers(dest="command", required=True)

    for name in ("signup", "login"):
        p = sub.add_parser(name, help=f"{name.capitalize()} with email and password")
        p.add_argument("email")
        p.add_argument("--password", default=None, help="Prompted for when omitted")
    sub.add_parser("logout", help="End the current session")
    sub.add_parser("whoami", help="Show the logged-in user")

    dub = sub.add_parser("dub", help="Generate a dubbed voice-over for a video")
    dub.add_argument("video")
    dub.add_argument(
        "--language", choices=[opt.code for opt in LANGUAGE_OPTIONS], default="en"
    )
    _add_voice_args(dub)
    dub.add_argument("--script", default=None, help="Use this script instead of generating one")
    dub.add_argument(
        "--custom-audio", default=None, help="Use an uploaded recording instead of AI speech"
    )
    dub.add_argument("--wav", default=None, help="Write the dub track to this WAV file")
    dub.add_argument("--output", default=None, help="Write the dubbed video to this file")
    dub.add_argument("--play", action="store_true", help="Preview video and dub together")

    tts = sub.add_parser("tts", help="Text to speech")
    tts.add_argument("text")
    _add_voice_args(tts)
    tts.add_argument("--output", default=None, help="Copy the WAV here (default: preview dir)")

    stt = sub.add_parser("stt", help="Speech to text")
    stt.add_argument("audio")

    return ap.parse_args(argv)


def _report(panel: Panel) -> None:
    """Raise the panel's failure so main() prints it."""
    if panel.error is not None:
        raise VoicemintError(panel.error)


async def run_dub(args: argparse.Namespace, settings: Settings) -> None:
    flow = DubbingFlow(build_services(settings))
    needs_script = args.custom_audio is None and args.script is None
    await flow.load_video(args.video, generate_script=needs_script)
    _report(flow.script_panel)

    if args.custom_audio:
        await flow.load_custom_audio(args.custom_audio)
    else:
        if args.script is not None:
            flow.use_script(args.script)
        print(f"Script:\n{flow.script}\n")
        await flow.generate(args.language, Voice(args.voice), args.emotion, args.speed)
    _report(flow.dub_panel)

    if flow.result.translated_script:
        print(f"Translated script:\n{flow.result.translated_script}\n")
    if args.wav:
        flow.export_wav(args.wav)
    if args.output:
        await flow.export_video(args.output)
    if args.play:
        await flow.play()


async def run_tts(args: argparse.Namespace, settings: Settings) -> None:
    flow = TextToSpeechFlow(build_services(settings), settings.previews_dir)
    await flow.generate(args.text, Voice(args.voice), args.emotion, args.speed)
    _report(flow.panel)
    if args.output:
        with open(args.output, "wb") as f:
            f.write(flow.preview.read_bytes())
        flow.close()
        print(args.output)
    else:
        print(flow.preview)


async def run_stt(args: argparse.Namespace, settings: Settings) -> None:
    flow = SpeechToTextFlow(build_services(settings))
    await flow.transcribe(args.audio)
    _report(flow.panel)
    print(flow.panel.result)


def run_account(args: argparse.Namespace, settings: Settings, session: SessionContext) -> None:
    if args.command == "logout":
        session.clear()
        logger.info("Logged out")
        return
    if args.command == "whoami":
        print(session.user.email if session.user else "Not logged in")
        return
    password = args.password if args.password is not None else getpass.getpass("Password: ")
    users = UserStore(settings.users_path)
    if args.command == "signup":
        user = users.register(args.email, password)
    else:
        user = users.authenticate(args.email, password)
    session.login(user)
    logger.info(f"Logged in as {user.email}")


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    load_env()
    args = parse_args(argv)
    setup_logging(args.verbose)

    settings = Settings.from_env()
    if args.provider:
        settings.provider = args.provider

    session = SessionContext(settings.session_path)
    session.load()

    try:
        if args.command in ("signup", "login", "logout", "whoami"):
            run_account(args, settings, session)
            return
        session.require_user()
        runner = {"dub": run_dub, "tts": run_tts, "stt": run_stt}[args.command]
        asyncio.run(runner(args, settings))
    except VoicemintError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(1) from None
    except KeyboardInterrupt:
        raise SystemExit(130) from None


if __name__ == "__main__":
    main()
