"""
E.N.C.L.O.S.E. Diagnostic

Classifies a diver's description of a problem into Daniel Koval's ENCLOSE
categories by trigger phrases, and scores a logged dive with the CLEAR DIVE
checklist (5 minus the number of flagged issues).
"""

from pydantic import BaseModel

from app.models.dive_log import DiveLog


ENCLOSE_CATEGORIES: dict[str, dict] = {
    "E": {
        "name": "Equalization Issues",
        "triggers": ["eq fail", "cant equalize", "couldnt equalize", "mouthfill", "air stuck", "reverse pack"],
        "questions": [
            "Did EQ fail at a specific depth?",
            "Was there tension or discomfort?",
            "Did you swallow your mouthfill or run out of air?",
            "Do you have air but can't equalize?",
        ],
        "recommendations": [
            "Review mouthfill mechanics and timing",
            "Practice 100+ daily dry EQ reps (Level 1)",
            "Check soft palate and glottis control",
            "Verify head position (neutral/slight tuck)",
        ],
    },
    "N": {
        "name": "Nitrogen Narcosis",
        "triggers": ["loopy", "tunnel vision", "slowed down", "forgot", "confusion"],
        "questions": [
            "Any confusion, tunnel vision, euphoria at depth?",
            "Did it occur consistently at the same depth?",
        ],
        "recommendations": [
            "Progress slowly in 2-3m increments",
            "Dive rested and relaxed",
            "Increase surface intervals",
            "Stop progression until symptoms disappear",
        ],
    },
    "C": {
        "name": "CO2 Tolerance / Contractions",
        "triggers": ["contractions early", "urge to breathe", "panicked", "couldnt relax"],
        "questions": [
            "When did contractions start?",
            "How intense were they?",
            "Did they disrupt focus or technique?",
        ],
        "recommendations": [
            "Dry CO2 tables (1-2x/week max)",
            "Visualization drills pre-dive",
            "Urge-to-breathe static hangs",
            "Improve streamlining and relaxation",
        ],
    },
    "L": {
        "name": "Leg Burn / Muscle Fatigue",
        "triggers": ["legs burning", "kick weak", "lost power", "bad form"],
        "questions": [
            "Were legs burning early?",
            "Was finning tense or sloppy?",
            "Was sink phase triggered on time?",
        ],
        "recommendations": [
            "Dynamic apnea sprints",
            "Anterior tibialis strengthening",
            "Use smaller training fins if form breaks",
            "Adjust sink phase timing",
        ],
    },
    "O": {
        "name": "O2 Tolerance / Recovery",
        "triggers": ["dizzy", "lmc", "blackout", "long recovery", "out of breath"],
        "questions": [
            "LMC or blackout?",
            "Visual disturbances, cyanosis, tingling?",
            "Was recovery slow or incomplete?",
        ],
        "recommendations": [
            "Step back 5-10m to rebuild confidence",
            "Dry O2 tables (1-2x/week max)",
            "Increase surface intervals and rest days",
            "Focus on complete recovery breathing",
        ],
    },
    "S": {
        "name": "Squeeze Risk",
        "triggers": ["blood", "throat tight", "sinus pain", "coughing"],
        "questions": [
            "Any throat scratch, cough, pain, or blood?",
            "Was the dive at or beyond RV?",
            "Cold conditions? Rapid descent?",
        ],
        "recommendations": [
            "Rest 1-2 weeks if blood is present",
            "Restart at half depth and progress slowly",
            "Fix head and mouthfill technique",
            "Build flexibility with NPDs and MDR warm-ups",
        ],
    },
    "E2": {
        "name": "Equipment Issues",
        "triggers": ["mask leak", "nose clip", "wetsuit tight", "fins", "something felt off"],
        "questions": [
            "Mask leaks, fogging, pressure?",
            "Wetsuit too tight or compressing chest?",
            "Fins too soft or stiff?",
            "Weight belt sliding or pulling?",
        ],
        "recommendations": [
            "Refit wetsuit and adjust thickness",
            "Use silicone belt to reduce slippage",
            "Replace or modify fins as needed",
            "Rebalance weight for 10m neutral buoyancy",
        ],
    },
}

# Order of the CLEAR DIVE checklist
CLEAR_DIVE_CATEGORIES = ("S", "E", "C", "L", "O", "N", "E2")

DEFAULT_QUESTIONS = [
    "Can you describe exactly when the issue occurred?",
    "Was this the first time experiencing this?",
    "What depth did it happen at?",
    "How did you handle it in the moment?",
]

DEFAULT_RECOMMENDATIONS = [
    "Document detailed dive log entry",
    "Consult with certified instructor",
    "Consider stepping back progression",
    "Focus on technique before depth",
]

KOVAL_QUOTE = (
    "The most important thing isn't knowing everything — it's learning how to ask "
    "the right question. E.N.C.L.O.S.E. helps you get there."
)


class EncloseMatch(BaseModel):
    category: str
    name: str
    confidence: float
    questions: list[str]
    recommendations: list[str]


class EncloseDiagnosis(BaseModel):
    primary_category: str
    primary_issue: str
    confidence: float
    all_matches: list[EncloseMatch]
    clear_dive_score: int | None
    next_steps: list[str]
    diagnostic_questions: list[str]
    recommendations: list[str]
    koval_quote: str = KOVAL_QUOTE


def _normalize(text: str) -> str:
    return text.lower().replace("'", "").replace("’", "")


def analyze_issue(description: str) -> list[EncloseMatch]:
    """Match the description against every category, best confidence first."""
    text = _normalize(description)
    matches = []

    for letter, category in ENCLOSE_CATEGORIES.items():
        hits = sum(1 for trigger in category["triggers"] if trigger in text)
        if hits:
            matches.append(
                EncloseMatch(
                    category=letter,
                    name=category["name"],
                    confidence=hits / len(category["triggers"]),
                    questions=category["questions"],
                    recommendations=category["recommendations"],
                )
            )

    # sorted() is stable, so ties keep ENCLOSE order
    return sorted(matches, key=lambda m: m.confidence, reverse=True)


def clear_dive_score(matches: list[EncloseMatch], dive: DiveLog) -> int:
    flagged = {m.category for m in matches}
    if dive.squeeze:
        flagged.add("S")
    if dive.blackout:
        flagged.add("O")
    issues = sum(1 for c in CLEAR_DIVE_CATEGORIES if c in flagged)
    return max(0, 5 - issues)


def diagnose(description: str, dive: DiveLog | None = None) -> EncloseDiagnosis:
    matches = analyze_issue(description)
    score = clear_dive_score(matches, dive) if dive is not None else None

    primary = matches[0] if matches else None
    if primary is None:
        return EncloseDiagnosis(
            primary_category="Unknown",
            primary_issue="Needs further analysis",
            confidence=0.0,
            all_matches=[],
            clear_dive_score=score,
            next_steps=["Complete diagnostic questions above"],
            diagnostic_questions=DEFAULT_QUESTIONS,
            recommendations=DEFAULT_RECOMMENDATIONS,
        )

    next_steps = [
        f"Focus on {primary.name} protocols",
        "Address root cause before progression",
        "Track improvement in next dive log",
        "Consider stepping back depth progression"
        if score is not None and score < 3
        else "Monitor for pattern repetition",
    ]

    return EncloseDiagnosis(
        primary_category=primary.category,
        primary_issue=primary.name,
        confidence=primary.confidence,
        all_matches=matches,
        clear_dive_score=score,
        next_steps=next_steps,
        diagnostic_questions=primary.questions,
        recommendations=primary.recommendations,
    )
