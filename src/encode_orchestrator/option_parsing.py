"""Parsing of user supplied "key=value" codec and container options."""

import logging
from collections.abc import Iterable

from encode_orchestrator.dictionary import OptionDictionary

logger = logging.getLogger(__name__)

# Virtual key accepted from users and rewritten into the rate-control key.
QSCALE_KEY = "qscale"
GLOBAL_QUALITY_KEY = "global_quality"
FLAGS_KEY = "flags"

# Keys longer than this are rejected, like the library's own key buffer.
MAX_KEY_LENGTH = 1023


def _qscale_expression(value: str) -> str:
    """Rewrite a qscale value into a global_quality expression.

    A leading sign is kept outside the parentheses so the library treats
    the result as a flag-style adjustment rather than an assignment.
    """
    if value[:1] in ("+", "-"):
        return f"{value[0]}({value[1:]})*QP2LAMBDA"
    return f"({value})*QP2LAMBDA"


def set_option(
    dictionary: OptionDictionary, key: str | None, value: str
) -> bool:
    """Set an option in a dictionary.

    Args:
        dictionary: Target dictionary.
        key: Option name, or None to split value at the first "=".
        value: Option value, or a "key=value" string when key is None.
            A leading "+" or "-" appends to the existing value; an empty
            value removes the key.

    Returns:
        True if the option was applied.
    """
    if key is None:
        key, sep, value = value.partition("=")
        if not sep or len(key) > MAX_KEY_LENGTH:
            logger.warning("option '%s' does not contain an equals sign", key)
            return False

    if key == QSCALE_KEY:
        key = GLOBAL_QUALITY_KEY
        value = _qscale_expression(value)

    logger.debug("setting value '%s' for key '%s'", value, key)

    dictionary.set(key, value or None, append=value[:1] in ("+", "-"))
    return True


def apply_option_strings(
    dictionary: OptionDictionary, entries: Iterable[str], label: str
) -> None:
    """Apply a list of "key=value" strings, warning about bad entries."""
    for entry in entries:
        if not set_option(dictionary, None, entry):
            logger.warning("%s: could not set option %s", label, entry)


def value_has_flag(value: str, flag: str) -> bool:
    """Check whether a "+a-b+c" style flag string enables a flag.

    The last mention of the flag wins. A token without a preceding sign
    counts as enabled.

    Args:
        value: Flag string, e.g. "+pass1-qscale".
        flag: Flag name to look for.

    Returns:
        True if the flag ends up set.
    """
    state = True
    result = False
    token = ""
    for char in value + "+":
        if char in "+-":
            if token == flag:
                result = state
            token = ""
            state = char == "+"
        else:
            token += char
    return result
