"""
Keyword heuristic that decides whether an answer renders as a table or as a sentence.

Misclassifications are expected; only the phrase lists and their precedence
(simple before complex) are relied upon.
"""

# Phrasings that imply a single scalar answer
SIMPLE_PHRASES = (
    "how many",
    "how much",
    "what is the total",
    "what's the total",
    "total number",
    "count of",
    "number of",
    "what is the average",
    "what's the average",
    "average ",
    "which country generates the most",
    "which app has the most",
    "which app generates the most",
)

# Phrasings that imply a multi-row answer
COMPLEX_PHRASES = (
    "list all",
    "list ",
    "show all",
    "compare",
    "comparison",
    "top ",
    "breakdown",
    "break down",
    "by country",
    "by platform",
    "by app",
    "by date",
    "per country",
    "per app",
    "each ",
    "trend",
    "over time",
    "rank",
)

def should_show_table(question: str, has_result_rows: bool) -> bool:
    q = (question or "").lower()
    if any(p in q for p in SIMPLE_PHRASES):
        return False
    if any(p in q for p in COMPLEX_PHRASES):
        return True
    return bool(has_result_rows)
