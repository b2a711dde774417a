"""Transkriptions-Prompts und Domänen-Presets für Diktat.

Der System-Prompt kombiniert eine Basis-Instruktion mit dem Kontext der
gewählten Domäne (Fachbegriffe, Tonfall) und optional den Voice-Commands.
"""

from config import DEFAULT_DOMAIN

# =============================================================================
# Basis-Instruktion
# =============================================================================

BASE_INSTRUCTION = """You are a voice-to-text assistant that transcribes audio into grammatically correct, context-aware text output.

Instructions:
- Remove filler words (um, ah, like, you know)
- Must have correct grammar and punctuation
- Do NOT transcribe stutters, false starts, or repeated words
- Output ONLY the final cleaned text
- Do NOT include meta-commentary or explanations"""

# Voice-Commands für Diktat (optional an den Prompt angehängt)
VOICE_COMMANDS_INSTRUCTION = """
Interpretiere gesprochene Befehle und entferne sie aus dem Text:
- "neuer Absatz" / "new paragraph" → Absatz (doppelter Zeilenumbruch)
- "neue Zeile" / "new line" → Zeilenumbruch
- "Punkt" / "period" → Satz mit Punkt beenden
- "Komma" / "comma" → Komma einfügen
- "Fragezeichen" / "question mark" → Fragezeichen
- "Ausrufezeichen" / "exclamation mark" → Ausrufezeichen
- "Doppelpunkt" / "colon" → Doppelpunkt
- "Semikolon" / "semicolon" → Semikolon
Wende die Befehle an der gesprochenen Stelle an und entferne den Befehlstext."""

# =============================================================================
# Domänen-Presets
# =============================================================================

# Domäne → (Label, Instruktion)
DOMAINS: dict[str, tuple[str, str]] = {
    "general": (
        "General Conversation",
        "Standard grammar correction and clarity.",
    ),
    "dev": (
        "Software Engineering",
        "Focus on programming terminology, variable naming conventions where "
        "appropriate, and tech stack names.",
    ),
    "medical": (
        "Medical / Healthcare",
        "Ensure accurate spelling of medical conditions, medications, and "
        "anatomical terms.",
    ),
    "legal": (
        "Legal",
        "Maintain formal tone, ensure accurate legal terminology and citation "
        "formats if applicable.",
    ),
    "finance": (
        "Finance",
        "Focus on financial markets, acronyms (ETF, ROI, CAGR), and numerical accuracy.",
    ),
}


def normalize_domain(domain: str | None) -> str:
    """Normalisiert eine Domänen-ID (case-insensitive).

    Raises:
        ValueError: Bei unbekannter Domäne
    """
    key = (domain or DEFAULT_DOMAIN).strip().lower()
    if key not in DOMAINS:
        raise ValueError(
            f"Unbekannte Domäne: {domain}. Verfügbar: {', '.join(DOMAINS)}"
        )
    return key


def get_domain_label(domain: str) -> str:
    return DOMAINS[normalize_domain(domain)][0]


def build_system_prompt(domain: str | None = None, voice_commands: bool = False) -> str:
    """Baut den System-Prompt für die Transkription.

    Args:
        domain: Domänen-ID (general, dev, medical, legal, finance)
        voice_commands: Voice-Commands Instruktionen anhängen

    Returns:
        Basis-Instruktion + Domänen-Kontext (+ Voice-Commands)
    """
    label, instruction = DOMAINS[normalize_domain(domain)]
    prompt = f"{BASE_INSTRUCTION}\n\nDomain Context: {label}\n{instruction}"
    if voice_commands:
        prompt = prompt + "\n" + VOICE_COMMANDS_INSTRUCTION
    return prompt


__all__ = [
    "BASE_INSTRUCTION",
    "VOICE_COMMANDS_INSTRUCTION",
    "DEFAULT_DOMAIN",
    "DOMAINS",
    "normalize_domain",
    "get_domain_label",
    "build_system_prompt",
]
