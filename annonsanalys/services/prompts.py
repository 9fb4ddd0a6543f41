# annonsanalys/services/prompts.py
from __future__ import annotations

from string import ascii_uppercase
from typing import Sequence

from ..errors import InvalidInput

# bump when the wording or the JSON shape below changes; stored with each analysis
PROMPT_VERSION = "3"

MIN_ADS = 2
MAX_ADS = len(ascii_uppercase)

SHAPE = """
{
  "ads": [
    {
      "id": "A",
      "title": "Job title in ad A",
      "company": "Employer name if it can be read from the ad",
      "summary": "Short summary of what the role is about.",
      "score": 0
    }
  ],
  "comparison": {
    "recommendationAdId": "A" | "B" | "C" | null,
    "recommendationLabel": "Role + employer that looks like the best fit, e.g. 'Security specialist at Acme'",
    "reason": "Short motivation why that role stands out for a typical candidate."
  },
  "sections": [
    {
      "id": "role",
      "title": "Role and responsibilities",
      "description": "Short comparison of what you actually do in the roles.",
      "perAd": [
        {"adId": "A", "highlights": ["concrete point about the duties in ad A", "another point"]},
        {"adId": "B", "highlights": ["concrete point about the duties in ad B"]}
      ],
      "key_differences": ["how the roles differ", "if they are alike, say so"]
    }
  ],
  "applicationAdvice": {
    "overallTips": ["tips that apply whichever role the candidate applies for"],
    "perAd": [
      {
        "adId": "A",
        "themes": ["themes to bring up in the CV and cover letter for this role"],
        "keywords": ["words and phrases from the ad worth reusing, for human readers and ATS"],
        "atsTips": ["concrete advice on phrasing so an ATS recognises the match"]
      }
    ]
  },
  "deepAnalysisPerAd": [
    {
      "adId": "A",
      "strengths": ["what is especially positive about this role"],
      "risks": ["possible drawbacks or pitfalls"],
      "cultureAndFit": ["what the ad reveals about culture, ways of working and leadership"],
      "development": ["how the role supports long-term goals and career growth"]
    }
  ],
  "questions": [
    {
      "id": "q1",
      "text": "Reflective question that helps the candidate choose between the roles.",
      "options": [
        {"id": "q1_a", "label": "answer that clearly points towards one kind of role", "adId": "A"},
        {"id": "q1_b", "label": "answer that points towards another role", "adId": "B"}
      ]
    }
  ]
}
""".strip()

RULES = """
- "ads" must contain exactly one entry per ad, in the order given. "id" is "A", "B", "C" and so on.
- "summary" is 2-4 sentences that really help the candidate understand the role.
- "score" is an overall 0-100 judgement; higher means more attractive, clearer and more relevant for a typical candidate with the right background.
- Create 2-4 entries in "sections" (for example "role", "requirements", "conditions", "culture"), each with "perAd" content for every ad and "key_differences".
- Create both "applicationAdvice" and "deepAnalysisPerAd" with one "perAd"/entry per ad.
- Create 5-7 questions in "questions". Every answer option is linked to exactly ONE ad through "adId".
- Every "adId" must be one of the ad ids above. Do not invent ads.
""".strip()


def ad_letter(index: int) -> str:
    return ascii_uppercase[index]


def format_ads(ads: Sequence[str]) -> str:
    return "\n\n".join(f"[ANNONS {ad_letter(i)}]\n{text}" for i, text in enumerate(ads))


def build_comparison_prompt(ads: Sequence[str], language: str = "Swedish") -> str:
    """
    Build the instruction for comparing job ads.

    ``ads`` must hold at least two non-empty, already trimmed texts; they
    are labelled A, B, C... in the given order.
    """
    if ads is None or len(ads) < MIN_ADS:
        raise InvalidInput("At least two ads are required for an analysis.")
    if len(ads) > MAX_ADS:
        raise InvalidInput(f"At most {MAX_ADS} ads can be compared at once.")

    return f"""
You are a senior recruiter and career coach. You receive several job ads and must produce a structured analysis.

IMPORTANT: Reply ONLY with one JSON object that follows the structure below.
No explanations and no text outside the JSON. Write every text value in {language}.

STRUCTURE (exactly like this, adapted to the content; one entry per ad wherever an entry is tied to an ad):

{SHAPE}

RULES:
{RULES}

Here are the ads:

{format_ads(ads)}
""".strip()
