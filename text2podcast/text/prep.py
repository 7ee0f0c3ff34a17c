"""Normalize abbreviations and symbols so the synthesizer reads them naturally."""

import re

# Applied in order; each entry is (pattern, replacement).
SUBSTITUTIONS = [
    (re.compile(r"([.!?])\s*([A-Z])"), r"\1 \2"),
    # Paragraph breaks become pauses, line breaks become spaces
    (re.compile(r"\n\n+"), ". "),
    (re.compile(r"\n"), " "),
    # Abbreviations
    (re.compile(r"\bDr\."), "Doctor"),
    (re.compile(r"\bMr\."), "Mister"),
    (re.compile(r"\bMrs\."), "Missus"),
    (re.compile(r"\bMs\."), "Miss"),
    (re.compile(r"\bProf\."), "Professor"),
    (re.compile(r"\betc\."), "etcetera"),
    (re.compile(r"\bi\.e\."), "that is"),
    (re.compile(r"\be\.g\."), "for example"),
    # Technical terms
    (re.compile(r"\bAPI\b"), "A P I"),
    (re.compile(r"\bURL\b"), "U R L"),
    (re.compile(r"\bHTML\b"), "H T M L"),
    (re.compile(r"\bCSS\b"), "C S S"),
    (re.compile(r"\bJSON\b"), "Jason"),
    (re.compile(r"\bSQL\b"), "sequel"),
    (re.compile(r"\s+"), " "),
]


def prepare_text(text: str) -> str:
    """Return speech-ready text with abbreviations expanded and whitespace collapsed."""
    for pattern, replacement in SUBSTITUTIONS:
        text = pattern.sub(replacement, text)
    return text.strip()
