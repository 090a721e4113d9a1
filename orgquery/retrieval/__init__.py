from orgquery.retrieval.intent import classify_intent
from orgquery.retrieval.matcher import CatalogTableMatcher, LexicalTableMatcher, score_table
from orgquery.retrieval.interpreter import KnowledgeInterpreter
from orgquery.retrieval.orchestrator import RetrievalOrchestrator, merge_results

__all__ = [
    "classify_intent",
    "CatalogTableMatcher",
    "LexicalTableMatcher",
    "score_table",
    "KnowledgeInterpreter",
    "RetrievalOrchestrator",
    "merge_results",
]
