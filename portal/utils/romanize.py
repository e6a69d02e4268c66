"""
Hangul to Latin romanization for Slack channel names.
Simplified Revised Romanization: each syllable is split into its initial,
medial and final jamo and mapped through fixed tables.
"""

import re

CHOSUNG = [
    "g", "kk", "n", "d", "tt", "r", "m", "b", "pp",
    "s", "ss", "", "j", "jj", "ch", "k", "t", "p", "h",
]

JUNGSUNG = [
    "a", "ae", "ya", "yae", "eo", "e", "yeo", "ye", "o", "wa",
    "wae", "oe", "yo", "u", "wo", "we", "wi", "yu", "eu", "ui", "i",
]

JONGSUNG = [
    "", "g", "kk", "gs", "n", "nj", "nh", "d", "l", "lg",
    "lm", "lb", "ls", "lt", "lp", "lh", "m", "b", "bs",
    "s", "ss", "ng", "j", "ch", "k", "t", "p", "h",
]

HANGUL_START = 0xAC00
HANGUL_END = 0xD7A3

SLACK_CHANNEL_MAX_LENGTH = 80


def korean_to_roman(text: str) -> str:
    result = []
    for char in text:
        code = ord(char)
        if HANGUL_START <= code <= HANGUL_END:
            index = code - HANGUL_START
            result.append(CHOSUNG[index // 588])
            result.append(JUNGSUNG[(index % 588) // 28])
            result.append(JONGSUNG[index % 28])
        else:
            result.append(char)
    return "".join(result)


def to_slack_channel_name(text: str) -> str:
    """Romanize, lowercase, keep [a-z0-9_-] only and cap at 80 characters"""
    name = korean_to_roman(text).lower()
    name = re.sub(r"\s+", "_", name)
    name = re.sub(r"[^a-z0-9_\-]", "", name)
    return name[:SLACK_CHANNEL_MAX_LENGTH]
