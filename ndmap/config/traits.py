"""
Trait catalogue.

Eight cognitive/sensory dimensions, each scored 1-9 per profile.
Order matters: it is the radar-chart axis order and the select-box order.
"""

from typing import Dict, Tuple

TRAITS: Tuple[str, ...] = (
    "Hyperrealism",
    "Sensory Sensitivity",
    "Cognitive Empathy",
    "Systemizing",
    "Attention",
    "Flexibility",
    "Motivation",
    "Visual vs Verbal Thinking",
)

# Short labels for the radar axes
TRAIT_LABELS: Dict[str, str] = {
    "Hyperrealism": "Hyperrealism",
    "Sensory Sensitivity": "Sensory Sensitivity",
    "Cognitive Empathy": "Empathy",
    "Systemizing": "Systemizing",
    "Attention": "Attention",
    "Flexibility": "Flexibility",
    "Motivation": "Motivation",
    "Visual vs Verbal Thinking": "Visual Thinking",
}

TRAIT_DEFS: Dict[str, str] = {
    "Hyperrealism": "Attention to fine perceptual detail; preference for precise, literal representations.",
    "Sensory Sensitivity": "Heightened responsiveness to sensory input (sound, light, texture, etc.).",
    "Cognitive Empathy": "Ability to understand and model others' thoughts and feelings (perspective-taking).",
    "Systemizing": "Drive to analyze, build, and understand rule-based systems.",
    "Attention": "Sustained focus, distractibility, and attentional switching.",
    "Flexibility": "Cognitive shifting, adaptability to change, tolerance to uncertainty.",
    "Motivation": "Task initiation, persistence, reward sensitivity.",
    "Visual vs Verbal Thinking": "Preference along a visual imagery <-> verbal/linguistic processing axis.",
}


def trait_label(trait: str) -> str:
    """Radar label for a trait (the trait name itself if unknown)."""
    return TRAIT_LABELS.get(trait, trait)


def validate_trait(trait: str) -> str:
    """Return trait unchanged, or raise ValueError if it is not in TRAITS."""
    if trait not in TRAITS:
        raise ValueError(
            f"Unknown trait: {trait!r}. "
            f"Valid: {', '.join(TRAITS)}"
        )
    return trait
