# app/domain/services/eligibility.py
"""
Points-based visa eligibility estimate.

    age 18-45 (inclusive)                       +2
    education mentions bachelor/master/phd      +2
    work experience >= 2 years                  +2
    language test band >= 6                     +2
    living outside the home country             +1

Thresholds:  >= 7 High chance | >= 4 Possible | otherwise Low chance
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from app.domain.models.session import Number, PersonalDetails

HIGH_CHANCE = "High chance"
POSSIBLE = "Possible"
LOW_CHANCE = "Low chance"

MAX_SCORE = 9
DEGREE_KEYWORDS = ("bachelor", "master", "phd")


@dataclass(frozen=True)
class EligibilityResult:
    result: str
    score: int

    def to_dict(self) -> dict:
        return {"result": self.result, "score": self.score}


def evaluate_eligibility(
    personal: PersonalDetails,
    language_score: Optional[Number] = None,
    home_country: str = "India",
) -> EligibilityResult:
    score = 0

    if personal.age is not None and 18 <= personal.age <= 45:
        score += 2

    if personal.education:
        education = personal.education.lower()
        if any(k in education for k in DEGREE_KEYWORDS):
            score += 2

    if personal.experience is not None and personal.experience >= 2:
        score += 2

    if language_score is not None and language_score >= 6:
        score += 2

    if personal.country and personal.country.strip().lower() != home_country.strip().lower():
        score += 1

    if score >= 7:
        return EligibilityResult(HIGH_CHANCE, score)
    if score >= 4:
        return EligibilityResult(POSSIBLE, score)
    return EligibilityResult(LOW_CHANCE, score)
