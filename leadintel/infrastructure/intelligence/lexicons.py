"""Curated word lists and compiled patterns for conversation analysis.

All patterns are compiled once at import and shared read-only. Phrases are
matched case-insensitively on word boundaries; within an alternation longer
phrases come first so "free trial" wins over "trial".
"""

import re
from typing import Dict, FrozenSet, Iterable, Pattern, Tuple

POSITIVE_WORDS = (
    "great", "excellent", "perfect", "love", "amazing", "fantastic",
    "wonderful", "impressed", "satisfied", "happy", "good", "awesome",
    "helpful", "valuable", "excited", "pleased",
)

NEGATIVE_WORDS = (
    "terrible", "awful", "hate", "disappointed", "frustrated", "angry",
    "concern", "concerns", "concerned", "worried", "worry", "problem",
    "issue", "bad", "poor", "horrible", "annoyed", "unhappy", "useless",
)

# Ordered by precedence: the first group with a match is the primary intent.
INTENT_GROUPS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("purchase", (
        "buy", "purchase", "order", "get started", "sign up", "proceed",
        "move forward", "ready to buy",
    )),
    ("demo", (
        "demo", "demonstration", "show me", "see it", "trial", "free trial",
        "pilot", "walkthrough",
    )),
    ("pricing", (
        "cost", "costs", "price", "pricing", "expensive", "affordable", "quote",
        "how much",
    )),
    ("evaluate", (
        "compare", "evaluate", "evaluating", "assess", "review", "considering",
    )),
    ("information", (
        "tell me", "explain", "how does", "what is", "can you",
        "help me understand", "more information", "learn more",
    )),
    ("objection", (
        "however", "not sure", "concern", "concerned", "worried", "hesitant",
        "not interested", "too expensive",
    )),
)

STRONG_URGENCY = ("urgent", "urgently", "asap", "immediately", "right away", "deadline", "critical")
WEAK_URGENCY = ("soon", "quickly", "this week", "this month", "shortly")

BUYING_SIGNAL_PHRASES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("budget_mentioned", (
        "budget", "budgets", "allocated", "funding", "approved budget",
        "price range", "spend",
    )),
    ("timeline_discussed", (
        "when", "timeline", "deadline", "launch", "go live", "next quarter",
        "this quarter", "next month", "implement", "need it by",
    )),
    ("decision_maker_involved", (
        "boss", "manager", "ceo", "cfo", "cto", "director", "vp",
        "decision maker", "approval", "sign off", "board", "procurement",
    )),
    ("competitor_comparison", (
        "competitor", "competitors", "competition", "vs", "versus",
        "compared to", "compare to", "comparing", "alternative",
        "alternatives", "other options", "other vendors", "switching from",
    )),
    ("pain_point_expressed", (
        "problem", "problems", "issue", "issues", "challenge", "challenges",
        "difficulty", "struggle", "struggling", "pain", "frustrating",
        "broken", "inefficient", "bottleneck",
    )),
)

CURRENCY_PATTERN = r"\$\s?\d(?:[\d,]*\d)?(?:\.\d+)?(?:\s?(?:k|m|million|thousand)\b)?"

STOPWORDS: FrozenSet[str] = frozenset("""
a about above after again against all also am an and any are as at be because
been before being below between both but by can could did do does doing down
during each few for from further had has have having he her here hers herself
him himself his how i if in into is it its itself just let me more most my
myself no nor not now of off on once only or other our ours ourselves out over
own same she should so some such than that the their theirs them themselves
then there these they this those through to too under until up very was we
were what when where which while who whom why will with would you your yours
yourself yourselves hi hello hey thanks thank please yes okay ok really maybe
perhaps think know want need like get got going looking well one two much many
still even sure see say said tell us let's i'm we're it's that's don't can't
we'll i'd you're
""".split())

CORPORATE_SUFFIXES = (
    "Inc", "Corp", "Corporation", "LLC", "Ltd", "Company", "Group",
    "Solutions", "Systems", "Technologies",
)


def compile_phrases(phrases: Iterable[str], extra: str = "") -> Pattern[str]:
    """One case-insensitive alternation matching any phrase as whole words."""
    ordered = sorted(set(phrases), key=lambda p: (-len(p), p))
    body = "|".join(re.escape(p).replace(r"\ ", r"\s+") for p in ordered)
    if extra:
        body = f"{extra}|{body}"
    return re.compile(rf"(?<!\w)(?:{body})(?!\w)", re.IGNORECASE)


POSITIVE_PATTERN = compile_phrases(POSITIVE_WORDS)
NEGATIVE_PATTERN = compile_phrases(NEGATIVE_WORDS)
INTENT_PATTERNS: Tuple[Tuple[str, Pattern[str]], ...] = tuple(
    (name, compile_phrases(phrases)) for name, phrases in INTENT_GROUPS
)
STRONG_URGENCY_PATTERN = compile_phrases(STRONG_URGENCY)
WEAK_URGENCY_PATTERN = compile_phrases(WEAK_URGENCY)
BUYING_SIGNAL_PATTERNS: Dict[str, Pattern[str]] = {
    name: compile_phrases(phrases, extra=CURRENCY_PATTERN if name == "budget_mentioned" else "")
    for name, phrases in BUYING_SIGNAL_PHRASES
}
CURRENCY_RE = re.compile(CURRENCY_PATTERN, re.IGNORECASE)
WORD_RE = re.compile(r"[a-z0-9']+")
CAPITALIZED_RUN_RE = re.compile(r"\b[A-Z][A-Za-z&'-]*(?:[ \t]+[A-Z][A-Za-z&'-]*)+")
