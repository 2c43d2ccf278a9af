"""
Form heuristics for multi-step application forms.

Pure functions mapping the text the browser can see (labels, placeholders,
option texts, which controls are present) to decisions, so they can be
tested without a browser.
"""

import re
from enum import Enum
from typing import Optional, Sequence, Tuple

from .models import FormStep


class FieldRole(str, Enum):
    COVER_LETTER = "cover_letter"
    EMAIL = "email"
    PHONE = "phone"
    FULL_NAME = "full_name"
    FIRST_NAME = "first_name"
    LAST_NAME = "last_name"
    UNKNOWN = "unknown"


# Checked in order, first match wins
FIELD_KEYWORDS: Sequence[Tuple[FieldRole, Tuple[str, ...]]] = (
    (FieldRole.COVER_LETTER, ("cover", "additional", "why", "message", "motivation")),
    (FieldRole.EMAIL, ("email", "e-mail")),
    (FieldRole.PHONE, ("phone", "mobile", "telephone")),
    (FieldRole.FIRST_NAME, ("first name", "given name", "firstname")),
    (FieldRole.LAST_NAME, ("last name", "family name", "surname", "lastname")),
    (FieldRole.FULL_NAME, ("full name", "your name", "name")),
)

AFFIRMATIVE_WORDS = ("yes", "agree", "accept", "consent", "да")
NEGATIVE_WORDS = ("no", "not", "don", "disagree", "decline", "нет")

PLACEHOLDER_OPTIONS = ("select an option", "select", "choose", "choose an option", "please select", "--")


def _role_for(text: str) -> FieldRole:
    text = (text or "").strip().lower()
    if not text:
        return FieldRole.UNKNOWN
    for role, keywords in FIELD_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return role
    return FieldRole.UNKNOWN


def classify_field(label: Optional[str], placeholder: Optional[str] = None) -> FieldRole:
    """Map (label text, placeholder text) to a field role; label wins."""
    role = _role_for(label)
    if role is FieldRole.UNKNOWN:
        role = _role_for(placeholder)
    return role


def is_affirmative(label: Optional[str]) -> bool:
    words = re.findall(r"\w+", (label or "").lower())
    if any(word in NEGATIVE_WORDS for word in words):
        return False
    return any(word in AFFIRMATIVE_WORDS for word in words)


def pick_radio_option(labels: Sequence[str]) -> Optional[int]:
    """Index of the affirmative option, else the first; None for an empty group."""
    if not labels:
        return None
    for index, label in enumerate(labels):
        if is_affirmative(label):
            return index
    return 0


def is_placeholder_option(value: Optional[str], text: Optional[str]) -> bool:
    """Empty options and prompts like "Select an option" (by value or by text)."""
    value = (value or "").strip()
    if not value:
        return True
    return value.lower() in PLACEHOLDER_OPTIONS or (text or "").strip().lower() in PLACEHOLDER_OPTIONS


def select_is_unset(current_value: Optional[str], options: Sequence[Tuple[str, str]]) -> bool:
    """True when the current value is empty or belongs to a placeholder option."""
    if not (current_value or "").strip():
        return True
    for value, text in options:
        if value == current_value:
            return is_placeholder_option(value, text)
    return current_value.strip().lower() in PLACEHOLDER_OPTIONS


def pick_select_option(options: Sequence[Tuple[str, str]]) -> Optional[str]:
    """First (value, text) option that is not empty or a placeholder; returns its value."""
    for value, text in options:
        if not is_placeholder_option(value, text):
            return value
    return None


def classify_form_step(has_submit: bool, has_review: bool, has_continue: bool) -> FormStep:
    """Classify a form step by its visible controls: submit > review > continue."""
    if has_submit:
        return FormStep.SUBMIT
    if has_review:
        return FormStep.REVIEW
    if has_continue:
        return FormStep.CONTINUE
    return FormStep.UNRECOGNIZED
