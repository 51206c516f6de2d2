"""CLI for the Wordy voice vocabulary assistant."""

import argparse
import logging
import sys
import threading
from pathlib import Path

from wordy.audio.config import AudioConfig
from wordy.config import WordyConfig
from wordy.dispatch import MainQueue
from wordy.recognition.nemo_model import DEFAULT_MODEL
from wordy.speech import SpeechConfig, SpeechSynthesizer, SynthesisQueue
from wordy.speech.synthesizer import DEFAULT_VOICE
from wordy.storage.word_store import DEFAULT_DB_PATH, WordStore


def _config_from_args(args: argparse.Namespace) -> WordyConfig:
    return WordyConfig(
        audio=AudioConfig(input_device=args.device),
        speech=SpeechConfig(voice=args.voice),
        model=args.model,
        db_path=args.db,
    )


def cmd_devices(args: argparse.Namespace) -> int:
    try:
        import sounddevice as sd
    except (ImportError, OSError):
        print("sounddevice not installed: pip install sounddevice", file=sys.stderr)
        return 1
    print(sd.query_devices())
    return 0


def cmd_listen(args: argparse.Namespace) -> int:
    from wordy.app import build_app, run_listen

    run_listen(build_app(_config_from_args(args)))
    return 0


def cmd_learn(args: argparse.Namespace) -> int:
    from wordy.app import build_app, run_learn
    from wordy.conversation import SpeakingDefinition

    state = run_learn(build_app(_config_from_args(args)), timeout=args.timeout)
    # Only a turn that got as far as reading the definition counts.
    return 0 if isinstance(state, SpeakingDefinition) else 1


def cmd_words(args: argparse.Namespace) -> int:
    store = WordStore(args.db)
    if args.clear:
        print(f"Deleted {store.delete_all()} words.")
        return 0
    if args.delete:
        if not store.delete(args.delete):
            print(f"No word with id {args.delete}", file=sys.stderr)
            return 1
        return 0

    records = store.fetch_all()
    if not records:
        print("No saved words yet.")
        return 0
    for r in records:
        reviewed = r.last_reviewed_at.strftime("%Y-%m-%d") if r.last_reviewed_at else "never"
        print(f"{r.id}  {r.word:<16} reviews={r.review_count:<3} last={reviewed}  {r.definition}")

    if args.review:
        review_aloud(store, records, args.voice)
    return 0


def review_aloud(store: WordStore, records: list, voice: str) -> None:
    """Read each word and its definition in order, marking each one reviewed."""
    main = MainQueue()
    speech = SynthesisQueue(SpeechSynthesizer(voice), main, config=SpeechConfig(voice=voice))
    done = threading.Event()
    spoken = [0]

    def on_finished(_utterance) -> None:
        record = records[spoken[0]]
        store.mark_reviewed(record.id)
        spoken[0] += 1
        if spoken[0] == len(records):
            done.set()

    speech.on_finished = on_finished
    speech.on_cancelled = lambda _utterance, _reason: done.set()
    main.start()
    main.post(speech.enqueue_sequence, [f"{r.word}. {r.definition}" for r in records])
    try:
        done.wait()
    except KeyboardInterrupt:
        main.post(speech.stop)
    finally:
        main.stop()
    print(f"Reviewed {spoken[0]} of {len(records)} words.")


def main() -> None:
    parser = argparse.ArgumentParser(description="Learn words hands-free: say a word, hear its definition")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument(
        "--db",
        type=Path,
        default=DEFAULT_DB_PATH,
        help=f"Word database path (default: {DEFAULT_DB_PATH})",
    )
    parser.add_argument(
        "--voice",
        type=str,
        default=DEFAULT_VOICE,
        help=f"Edge TTS voice (default: {DEFAULT_VOICE})",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("devices", help="List audio devices and exit").set_defaults(func=cmd_devices)

    for name, func, help_text in (
        ("listen", cmd_listen, "Wait for 'Hey Wordy', then learn the word you say"),
        ("learn", cmd_learn, "Learn one word now"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument(
            "--model",
            type=str,
            default=DEFAULT_MODEL,
            help=f"NeMo checkpoint name or .nemo path (default: {DEFAULT_MODEL})",
        )
        p.add_argument("--device", "-d", type=int, default=None, help="Microphone device index")
        p.set_defaults(func=func)
        if name == "learn":
            p.add_argument("--timeout", type=float, default=120.0, help="Give up after this many seconds")

    p = sub.add_parser("words", help="List saved words")
    p.add_argument("--review", action="store_true", help="Read the saved words aloud")
    p.add_argument("--delete", metavar="ID", help="Delete one word by id")
    p.add_argument("--clear", action="store_true", help="Delete every saved word")
    p.set_defaults(func=cmd_words)

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
