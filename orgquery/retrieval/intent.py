"""Keyword intent classifier for retrieval questions.

Rules are checked in order and the first match wins; medical entities come
before the generic ticket and order rules.
"""

from orgquery.types import QueryIntent


def _any(text: str, *needles: str) -> bool:
    return any(n in text for n in needles)


def classify_intent(question: str) -> QueryIntent:
    """Map a natural-language question to a :class:`QueryIntent`."""
    q = question.lower()

    if _any(q, "doctor", "physician"):
        return QueryIntent.DOCTORS
    if "patient" in q:
        return QueryIntent.PATIENTS
    if _any(q, "appointment", "schedule", "slot"):
        return QueryIntent.APPOINTMENTS
    if _any(q, "medication", "medicine", "drug"):
        return QueryIntent.MEDICATIONS
    if _any(q, "lab result", "test result", "lab test"):
        return QueryIntent.LAB_RESULTS
    if "medical record" in q or ("record" in q and "medical" in q):
        return QueryIntent.MEDICAL_RECORDS
    if _any(q, "ticket", "support case", "support request"):
        return QueryIntent.TICKETS
    if _any(q, "order", "purchase", "invoice"):
        return QueryIntent.ORDERS
    return QueryIntent.SEARCH
