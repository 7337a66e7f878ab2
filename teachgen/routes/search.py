from fastapi import APIRouter
from pydantic import BaseModel
from typing import List, Optional

from teachgen.services.generation_service import service

router = APIRouter(prefix="/api", tags=["search"])


class SearchIn(BaseModel):
    query: Optional[str] = None
    grade: Optional[str] = None
    subject: Optional[str] = None


class StandardOut(BaseModel):
    grade: str
    subject: str
    code: str
    standard: str
    similarity: float


class SearchOut(BaseModel):
    results: List[StandardOut]


@router.post("/semantic-search", response_model=SearchOut, summary="Find related standards",
             description="Embeds the query and returns up to 10 standards of the same grade and subject "
                         "with cosine similarity of at least 0.25, best first.")
def semantic_search(data: SearchIn):
    ranked = service.search(data.query, data.grade, data.subject)
    return {"results": [r.to_dict() for r in ranked]}
