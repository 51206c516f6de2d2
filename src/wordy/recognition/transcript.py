"""Transcript text helpers: normalization, window stitching, word extraction."""

import string
from typing import Iterable

# Tokens people put in front of the word they actually mean ("an apple",
# "um, ephemeral", "the word quixotic").
FILLER_WORDS = frozenset(
    (
        "a", "an", "the", "um", "uh", "er", "erm", "hmm", "uhm",
        "so", "well", "like", "okay", "ok", "please", "word",
    )
)

_PUNCTUATION = string.punctuation + "‘’“”…"


def normalize(text: str) -> str:
    """Lowercase, trim, collapse whitespace."""
    return " ".join(text.lower().split())


def stitch_transcript(accumulated: str, window_text: str) -> str:
    """Merge the transcript of a new rolling window into the running transcript.

    Finds the longest word overlap between the end of `accumulated` and the
    start of `window_text` and appends only the new words.
    E.g. accumulated='hey there', window_text='there wordy' -> 'hey there wordy'.

    A window entirely contained in the tail of the transcript adds nothing;
    a window with no overlap is new speech and is appended.
    """
    window_text = " ".join(window_text.split())
    if not window_text:
        return accumulated
    if not accumulated:
        return window_text

    acc_words = accumulated.split()
    new_words = window_text.split()

    best_overlap = 0
    for overlap in range(1, min(len(acc_words), len(new_words)) + 1):
        if acc_words[-overlap:] == new_words[:overlap]:
            best_overlap = overlap

    if best_overlap > 0:
        suffix = new_words[best_overlap:]
        return accumulated + " " + " ".join(suffix) if suffix else accumulated

    tail = " ".join(acc_words[-len(new_words) * 2 :])
    if f" {window_text} " in f" {tail} ":
        return accumulated
    return accumulated + " " + window_text


def _clean_token(token: str) -> str:
    return token.strip(_PUNCTUATION).lower()


def extract_word(transcript: str, fillers: Iterable[str] = FILLER_WORDS) -> str:
    """Pick the word the user meant from a capture transcript.

    extract_word("apple") == "apple"
    extract_word("an apple please") == "apple"
    extract_word("  Apple!  ") == "apple"

    Returns "" when nothing usable was said.
    """
    fillers = frozenset(fillers)
    tokens = [t for t in (_clean_token(raw) for raw in transcript.split()) if t]
    if not tokens:
        return ""
    for token in tokens:
        if token not in fillers:
            return token
    return tokens[0]
