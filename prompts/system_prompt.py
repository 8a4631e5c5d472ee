"""System prompts used by the summarizer.

The model is asked for plain text only; the summary is returned to the caller
verbatim, so any commentary around it would leak into the response.
"""

# ── Length-bounded summary ─────────────────────────────────────────────

SUMMARY_PROMPT = (
    "You are a summarizer. When given text, you produce an accurate summary "
    "no longer than {word_limit} long. You respond only with the summary and "
    "no other commentary whatsoever."
)


def word_limit(count: int) -> str:
    """``1`` → ``"1 word"``, anything else → ``"N words"``."""
    return f"{count} word" if count == 1 else f"{count} words"


def build_instruction(target_word_count: int) -> str:
    return SUMMARY_PROMPT.format(word_limit=word_limit(target_word_count))
