"""
Command Parser
scat_engine/commands/parser.py

Turns one recognized utterance into a Command, or None when nothing
matches. Matching runs from most to least specific:

    1. exact phrase table
    2. month / day names
    3. digit answers ("seven two four", "answer 4-2-7")
    4. word recall ("recall apple elbow"), word toggles ("toggle apple")
    5. symptom commands ("headache four", "80 percent", "physical yes")
    6. standalone ratings 0-6 ("three", "rate 3")
    7. contained phrases, longest first
    8. fuzzy match against the exact table (rapidfuzz)
"""

import re
from typing import Dict, List, Optional

import structlog
from rapidfuzz import fuzz, process

from scat_engine.commands.command import Command
from scat_engine.config import get_settings
from scat_engine.models.enumerations import CommandType, Symptom

logger = structlog.get_logger(__name__)

_T = CommandType

EXACT_PHRASES: Dict[str, CommandType] = {
    "help": _T.SHOW_HELP,
    "show help": _T.SHOW_HELP,
    "show commands": _T.SHOW_HELP,
    "what can i say": _T.SHOW_HELP,
    "hide help": _T.HIDE_HELP,
    "close help": _T.HIDE_HELP,
    "repeat": _T.REPEAT,
    "repeat that": _T.REPEAT,
    "say again": _T.REPEAT,
    "exit": _T.EXIT,
    "exit test": _T.EXIT,
    "close": _T.EXIT,
    "close test": _T.EXIT,
    "go back": _T.GO_BACK,
    "back": _T.GO_BACK,
    "previous": _T.GO_BACK,
    "previous question": _T.GO_BACK,
    "previous stance": _T.GO_BACK,
    "next": _T.NEXT,
    "next question": _T.NEXT,
    "next item": _T.NEXT,
    "next stance": _T.NEXT,
    "next trial": _T.NEXT_TRIAL,
    "continue": _T.NEXT_TRIAL,
    "correct": _T.MARK_CORRECT,
    "yes": _T.MARK_CORRECT,
    "true": _T.MARK_CORRECT,
    "incorrect": _T.MARK_INCORRECT,
    "wrong": _T.MARK_INCORRECT,
    "no": _T.MARK_INCORRECT,
    "false": _T.MARK_INCORRECT,
    "complete": _T.COMPLETE_MODULE,
    "complete test": _T.COMPLETE_MODULE,
    "finish": _T.COMPLETE_MODULE,
    "finish test": _T.COMPLETE_MODULE,
    "done": _T.COMPLETE_MODULE,
    "skip": _T.SKIP_MODULE,
    "skip test": _T.SKIP_MODULE,
    "skip module": _T.SKIP_MODULE,
    "reset": _T.RESET,
    "reset test": _T.RESET,
    "start over": _T.RESET,
    "start": _T.START_TIMER,
    "begin": _T.START_TIMER,
    "start timer": _T.START_TIMER,
    "start test": _T.START_TIMER,
    "resume": _T.START_TIMER,
    "stop": _T.STOP_TIMER,
    "pause": _T.STOP_TIMER,
    "stop timer": _T.STOP_TIMER,
    "pause timer": _T.STOP_TIMER,
    "add error": _T.ADD_ERROR,
    "error": _T.ADD_ERROR,
    "plus one": _T.ADD_ERROR,
    "mistake": _T.ADD_ERROR,
    "submit": _T.SUBMIT_ANSWER,
    "confirm": _T.SUBMIT_ANSWER,
}

# Contained phrases, matched longest first so "next trial" wins over "next"
PARTIAL_PHRASES: Dict[str, CommandType] = {
    "next trial": _T.NEXT_TRIAL,
    "next question": _T.NEXT,
    "next stance": _T.NEXT,
    "previous question": _T.GO_BACK,
    "previous stance": _T.GO_BACK,
    "complete test": _T.COMPLETE_MODULE,
    "finish test": _T.COMPLETE_MODULE,
    "skip test": _T.SKIP_MODULE,
    "add error": _T.ADD_ERROR,
    "start timer": _T.START_TIMER,
    "stop timer": _T.STOP_TIMER,
    "exit test": _T.EXIT,
    "incorrect": _T.MARK_INCORRECT,
    "correct": _T.MARK_CORRECT,
    "mistake": _T.ADD_ERROR,
    "help": _T.SHOW_HELP,
}
_PARTIAL_ORDER: List[str] = sorted(PARTIAL_PHRASES, key=len, reverse=True)

SYMPTOM_KEYWORDS: Dict[str, Symptom] = {
    "headache": Symptom.HEADACHE,
    "pressure in head": Symptom.PRESSURE_IN_HEAD,
    "neck pain": Symptom.NECK_PAIN,
    "nausea": Symptom.NAUSEA_OR_VOMITING,
    "dizziness": Symptom.DIZZINESS,
    "blurred vision": Symptom.BLURRED_VISION,
    "balance problem": Symptom.BALANCE_PROBLEMS,
    "sensitivity to light": Symptom.LIGHT_SENSITIVITY,
    "sensitivity to noise": Symptom.NOISE_SENSITIVITY,
    "feeling slowed down": Symptom.FEELING_SLOWED_DOWN,
    "fog": Symptom.FEELING_IN_A_FOG,
    "dont feel right": Symptom.DONT_FEEL_RIGHT,
    "difficulty concentrating": Symptom.DIFFICULTY_CONCENTRATING,
    "difficulty remembering": Symptom.DIFFICULTY_REMEMBERING,
    "fatigue": Symptom.FATIGUE,
    "confusion": Symptom.CONFUSION,
    "drowsiness": Symptom.DROWSINESS,
    "more emotional": Symptom.MORE_EMOTIONAL,
    "irritability": Symptom.IRRITABILITY,
    "sadness": Symptom.SADNESS,
    "nervous": Symptom.NERVOUS_OR_ANXIOUS,
    "trouble sleeping": Symptom.TROUBLE_FALLING_ASLEEP,
}

NUMBER_WORDS: Dict[str, int] = {
    "zero": 0, "one": 1, "two": 2, "three": 3, "four": 4,
    "five": 5, "six": 6, "seven": 7, "eight": 8, "nine": 9,
}

MONTHS = [
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
]
DAYS = ["sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday"]

_RECALL_PREFIXES = ("recall ", "words ", "i remember ")
_TOGGLE_PREFIXES = ("toggle ", "tap ")
_ANSWER_PREFIXES = ("answer ", "digits ")


def clean_utterance(text: Optional[str]) -> str:
    """Lowercase, drop punctuation, hyphens to spaces, collapse whitespace."""
    cleaned = str(text or "").lower().strip()
    cleaned = cleaned.replace("-", " ")
    cleaned = re.sub(r"[.?!,;:'\"%]", "", cleaned)
    cleaned = re.sub(r"\s+", " ", cleaned)
    return cleaned.strip()


class CommandParser:
    """Map recognized speech to Command values."""

    def __init__(self, fuzzy_threshold: Optional[float] = None):
        self.fuzzy_threshold = (
            fuzzy_threshold if fuzzy_threshold is not None
            else get_settings().COMMAND_FUZZY_MATCH_THRESHOLD
        )

    def parse(self, text: Optional[str]) -> Optional[Command]:
        cleaned = clean_utterance(text)
        if not cleaned:
            return None

        command = (
            self._exact(cleaned)
            or self._calendar(cleaned)
            or self._digit_answer(cleaned)
            or self._word_command(cleaned)
            or self._symptom_command(cleaned)
            or self._rating(cleaned)
            or self._partial(cleaned)
            or self._fuzzy(cleaned)
        )
        if command is None:
            logger.debug("utterance_unmatched", utterance=cleaned)
        else:
            logger.debug("utterance_parsed", utterance=cleaned, command=command.describe())
        return command

    # ------------------------------------------------------------------ #

    @staticmethod
    def _exact(text: str) -> Optional[Command]:
        command_type = EXACT_PHRASES.get(text)
        return Command(command_type) if command_type else None

    @staticmethod
    def _calendar(text: str) -> Optional[Command]:
        word = text[len("select "):] if text.startswith("select ") else text
        if word in MONTHS:
            return Command(CommandType.SELECT_MONTH, value=word.capitalize())
        if word in DAYS:
            return Command(CommandType.SELECT_DAY, value=word.capitalize())
        return None

    @staticmethod
    def _digits_of(tokens: List[str]) -> Optional[str]:
        digits = []
        for token in tokens:
            if token.isdigit():
                digits.append(token)
            elif token in NUMBER_WORDS:
                digits.append(str(NUMBER_WORDS[token]))
            else:
                return None
        return "".join(digits)

    def _digit_answer(self, text: str) -> Optional[Command]:
        prefixed = text.startswith(_ANSWER_PREFIXES)
        body = text.split(" ", 1)[1] if prefixed else text
        digits = self._digits_of(body.split())
        if digits is None:
            return None
        if prefixed or len(digits) >= 2:
            return Command(CommandType.SUBMIT_ANSWER, value=digits)
        return None

    @staticmethod
    def _word_command(text: str) -> Optional[Command]:
        for prefix in _RECALL_PREFIXES:
            if text.startswith(prefix) and text[len(prefix):].strip():
                return Command(CommandType.RECALL_WORDS, value=text[len(prefix):].strip())
        for prefix in _TOGGLE_PREFIXES:
            if text.startswith(prefix) and text[len(prefix):].strip():
                return Command(CommandType.TOGGLE_WORD, value=text[len(prefix):].strip())
        return None

    def _symptom_command(self, text: str) -> Optional[Command]:
        if "percent" in text or "normal" in text:
            numbers = [int(n) for n in re.findall(r"\d+", text)]
            if numbers and 0 <= numbers[0] <= 100:
                return Command(CommandType.SET_PERCENT_NORMAL, value=numbers[0])

        for keyword, symptom in SYMPTOM_KEYWORDS.items():
            if keyword in text:
                rating = self._extract_rating(text.replace(keyword, " "))
                if rating is not None:
                    return Command(CommandType.SET_SYMPTOM_RATING, value=rating, target=symptom.value)

        for question in ("physical", "mental"):
            if question in text.split():
                words = text.split()
                if "yes" in words:
                    return Command(CommandType.SET_TOGGLE, value=True, target=question)
                if "no" in words:
                    return Command(CommandType.SET_TOGGLE, value=False, target=question)
        return None

    @staticmethod
    def _extract_rating(text: str) -> Optional[int]:
        for token in text.split():
            value = int(token) if token.isdigit() else NUMBER_WORDS.get(token)
            if value is not None and 0 <= value <= 6:
                return value
        return None

    def _rating(self, text: str) -> Optional[Command]:
        words = text.split()
        if len(words) == 1:
            rating = self._extract_rating(text)
        elif len(words) == 2 and words[0] in ("rate", "set", "rating"):
            rating = self._extract_rating(words[1])
        else:
            rating = None
        return Command(CommandType.RATE, value=rating) if rating is not None else None

    @staticmethod
    def _partial(text: str) -> Optional[Command]:
        padded = f" {text} "
        for phrase in _PARTIAL_ORDER:
            if f" {phrase} " in padded:
                return Command(PARTIAL_PHRASES[phrase])
        return None

    def _fuzzy(self, text: str) -> Optional[Command]:
        match = process.extractOne(
            text, list(EXACT_PHRASES), scorer=fuzz.ratio, score_cutoff=self.fuzzy_threshold
        )
        if match is None:
            return None
        phrase, score, _ = match
        logger.debug("utterance_fuzzy_matched", utterance=text, phrase=phrase, score=score)
        return Command(EXACT_PHRASES[phrase])
