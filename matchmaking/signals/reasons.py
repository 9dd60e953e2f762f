"""Human-readable match reasons built from the strongest signals."""

from typing import List

from .schema import Signal

REASON_TEMPLATES = {
    "platforms": "Strong platform alignment ({pct}% match)",
    "markets": "Overlapping target markets ({pct}% similarity)",
    "industry": "Shared industry focus ({pct}% overlap)",
    "technologies": "Common technology stack ({pct}% overlap)",
    "capabilities_needs": "Complementary capabilities and needs ({pct}% fit)",
    "funding_stage_alignment": "Compatible funding stages ({pct}% alignment)",
    "stage_context_boost": "Compatible company stages ({pct}% synergy)",
    "size_compatibility": "Compatible company sizes ({pct}% fit)",
    "foundedYear": "Similar founding timeline ({pct}% proximity)",
    "lastFundingDate": "Similar funding timeline ({pct}% proximity)",
    "pitch": "Strong pitch similarity ({pct}% match)",
    "description": "Strong content similarity ({pct}% match)",
    "lookingFor": "Aligned goals ({pct}% match)",
    "location_proximity": "Nearby locations ({pct}% match)",
}


def generate_reasons(signals: List[Signal], top_n: int = 3) -> List[str]:
    """
    Describe the top_n highest-scoring signals.

    Ties are broken by contribution, then field name, so the output is
    stable for a given signal list.
    """
    ranked = sorted(signals, key=lambda s: (-s.score, -s.contribution, s.field))
    reasons = []
    for signal in ranked[:top_n]:
        pct = round(signal.score)
        template = REASON_TEMPLATES.get(signal.field)
        if template is None:
            label = signal.field.replace("_", " ")
            reasons.append(f"{label[:1].upper()}{label[1:]} compatibility: {pct}%")
        else:
            reasons.append(template.format(pct=pct))
    return reasons
