# healthchat/llm/prompt.py
"""
System prompt and message assembly.

The persona lives here so it is easy to modify. It is rebuilt on every
request and never stored in a session transcript.
"""

from typing import Dict, List, Optional

SYSTEM_PROMPT = (
    "You are a certified healthy living advisor. Provide friendly, concise, "
    "and evidence-based advice on fitness, nutrition, mental wellness, sleep, "
    "and general lifestyle improvements. Tailor responses to the user's needs "
    "and avoid giving medical diagnoses."
)


def build_messages(history: List[Dict[str, str]],
                   user_text: Optional[str]) -> List[Dict[str, str]]:
    """
    Assemble the provider message list for one request.

    Parameters
    ----------
    history : list[dict]
        Stored user/assistant turns for the session, oldest first.
    user_text : str | None
        The new user utterance. None is sent as empty content.

    Returns
    -------
    list[dict]
        `[system] + history + [user]`, i.e. 2 + len(history) messages.
    """
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        *({"role": m["role"], "content": m["content"]} for m in history),
        {"role": "user", "content": user_text or ""},
    ]
