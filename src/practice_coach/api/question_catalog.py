# Question Catalog
"""
Read access to the interview question bank: filtered listing and random draws.
"""

import logging
import math
import random
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .records import Question, QuestionSortField, QuestionType, SortOrder
from .store import InterviewStore

logger = logging.getLogger(__name__)


@dataclass
class QuestionFilters:
    """Optional filters applied to active catalog questions."""
    type: Optional[QuestionType] = None
    difficulty: Optional[str] = None
    company_id: Optional[int] = None
    category: Optional[str] = None

    def matches(self, question: Question) -> bool:
        if not question.is_active:
            return False
        if self.type is not None and question.type != self.type:
            return False
        if self.difficulty is not None and question.difficulty != self.difficulty:
            return False
        if self.company_id is not None and question.company_id != self.company_id:
            return False
        if self.category is not None and question.category != self.category:
            return False
        return True


@dataclass
class QuestionPage:
    """One page of catalog questions."""
    questions: List[Question]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


_SORT_KEYS: Dict[QuestionSortField, Callable[[Question], object]] = {
    QuestionSortField.ID: lambda q: q.id,
    QuestionSortField.CREATED_AT: lambda q: q.created_at,
    QuestionSortField.TYPE: lambda q: q.type.value,
    QuestionSortField.CATEGORY: lambda q: q.category,
    QuestionSortField.DIFFICULTY: lambda q: q.difficulty,
}


class QuestionCatalog:
    """Filtering, sorting and sampling over the store's questions."""

    def __init__(self, store: InterviewStore, rng: Optional[random.Random] = None):
        self._store = store
        self._rng = rng or random.Random()

    def list_questions(
        self,
        filters: Optional[QuestionFilters] = None,
        sort_by: QuestionSortField = QuestionSortField.CREATED_AT,
        sort_order: SortOrder = SortOrder.DESC,
        page: int = 1,
        limit: int = 10,
    ) -> QuestionPage:
        filters = filters or QuestionFilters()
        matching = [q for q in self._store.list_questions() if filters.matches(q)]
        matching.sort(key=_SORT_KEYS[sort_by], reverse=sort_order == SortOrder.DESC)

        offset = (page - 1) * limit
        return QuestionPage(
            questions=matching[offset:offset + limit],
            page=page,
            limit=limit,
            total=len(matching),
        )

    def random_questions(
        self,
        filters: Optional[QuestionFilters] = None,
        count: int = 5,
    ) -> List[Question]:
        """Draw up to ``count`` distinct active questions at random."""
        filters = filters or QuestionFilters()
        matching = sorted(
            (q for q in self._store.list_questions() if filters.matches(q)),
            key=lambda q: q.id,
        )
        drawn = self._rng.sample(matching, min(count, len(matching)))
        logger.debug(f"Drew {len(drawn)} of {len(matching)} matching questions")
        return drawn
