"""
Free-text relevance search over job postings.

A RelevanceScorer narrows a job query to records matching at least one
query term (OR semantics) and exposes a per-record score column where
higher means more relevant. Implementations must keep scoring monotonic:
an additional matching term never lowers a record's score, rarer terms
never score below common ones, and title/company hits weigh at least as
much as skills/description hits.
"""
import re
from dataclasses import dataclass
from typing import Protocol

from sqlalchemy import Float, column, literal_column, select, table
from sqlalchemy.orm import Query

MAX_TERMS = 32

_TERM_RE = re.compile(r"\w+", re.UNICODE)


def parse_terms(q: str | None) -> list[str]:
    """Split a free-text query into distinct lowercase terms. Blank input yields none."""
    if not q or not q.strip():
        return []
    terms: dict[str, None] = {}
    for term in _TERM_RE.findall(q.lower()):
        terms.setdefault(term, None)
    return list(terms)[:MAX_TERMS]


class RelevanceScorer(Protocol):
    def apply(self, query: Query, terms: list[str]) -> tuple[Query, object]:
        """Restrict query to matching records; return it with the score column."""
        ...


@dataclass(frozen=True)
class FieldWeights:
    title: float = 4.0
    company: float = 4.0
    description: float = 1.0
    skills: float = 2.0


jobs_fts = table("jobs_fts", column("rowid"))


class Fts5Scorer:
    """SQLite FTS5 scorer ranking with bm25; score is the negated bm25 value."""

    def __init__(self, weights: FieldWeights | None = None):
        self.weights = weights or FieldWeights()

    @staticmethod
    def match_expression(terms: list[str]) -> str:
        # Quoted terms keep FTS5 query syntax out of user input
        return " OR ".join('"' + t.replace('"', '""') + '"' for t in terms)

    def _bm25(self) -> str:
        w = self.weights
        # Argument order follows the jobs_fts column order
        return f"bm25(jobs_fts, {w.title}, {w.company}, {w.description}, {w.skills})"

    def apply(self, query: Query, terms: list[str]):
        matches = (
            select(
                jobs_fts.c.rowid.label("job_rowid"),
                literal_column(f"-{self._bm25()}", type_=Float).label("score"),
            )
            .where(literal_column("jobs_fts").op("MATCH")(self.match_expression(terms)))
            .subquery("fts")
        )
        query = query.join(matches, matches.c.job_rowid == literal_column("jobs.rowid"))
        return query.add_columns(matches.c.score), matches.c.score


default_scorer = Fts5Scorer()


def get_scorer() -> RelevanceScorer:
    return default_scorer
