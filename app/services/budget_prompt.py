# app/services/budget_prompt.py

import re
from app.schemas.budget import SuggestionRequest

MAX_FIELD_LENGTH = 500
_UNSAFE_CHARS = re.compile(r"[<>\"'`]")


def sanitize_input(value) -> str:
    """Strips characters that could break out of the prompt template and caps the length."""
    if not isinstance(value, str):
        return ""
    return _UNSAFE_CHARS.sub("", value).strip()[:MAX_FIELD_LENGTH]


def build_budget_prompt(request: SuggestionRequest) -> str:
    """
    Builds the budgeting prompt sent to Gemini.
    Only the plan fields are embedded; the user id never reaches the provider.
    """
    budget_range = sanitize_input(request.budget_range) or "not specified"
    preferences = sanitize_input(request.preferences) or "none"

    return f"""You are a travel and event budget planner for a group planning app.
Estimate a realistic budget in Japanese yen for the plan below.

--- Plan ---
Plan type: {sanitize_input(request.planType)}
Participants: {sanitize_input(request.participants)}
Duration: {sanitize_input(request.duration)}
Location: {sanitize_input(request.location)}
Desired budget: {budget_range}
Preferences: {preferences}

--- Answer format ---
Total: X yen to Y yen (whole group)
Per person: about Z yen
Breakdown:
- Accommodation: ...
- Transport: ...
- Food and drink: ...
- Activities: ...
- Other: ...
Notes: at most two short tips for saving money.

--- Self-check before answering ---
1. The breakdown items add up to a value inside the total range.
2. The per person amount equals the total divided by the number of participants.
3. Items that do not apply to this plan are written as 0 yen, not omitted.
4. If a desired budget is given, say whether the estimate fits it.

Answer in the format above only."""
