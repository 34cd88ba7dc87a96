"""
Knowledge Base - per-organization articles searchable by embedding similarity.

Articles are embedded on write when an embedding client is configured and
stored unindexed otherwise. Search only ranks indexed articles of the
caller's organization.
"""

import logging
from typing import Dict, List, Optional

import numpy as np
from sqlalchemy.orm import Session

from ai_service import AIServiceError
from database.models import KnowledgeArticle
from services.access_control import ADMIN_ROLES, READ_ROLES, require_role, resolve_access
from validators import raise_if_invalid, sanitize_string, validate_article_request, validate_string_length

logger = logging.getLogger(__name__)

NO_RESULTS_TEXT = "No relevant articles found in the knowledge base."

# Tool schema for Anthropic's tool use
SEARCH_TOOL_SCHEMA = {
    "name": "search_knowledge_base",
    "description": "Search the organization's knowledge base for relevant articles to answer a user's question. Check the knowledge base first when the user asks how to do something.",
    "input_schema": {
        "type": "object",
        "properties": {
            "query": {
                "type": "string",
                "description": "What to look for, e.g. 'ceramic coating pricing' or 'upsell interior detail'"
            }
        },
        "required": ["query"]
    }
}


def batch_cosine_similarity(query_vec: np.ndarray, vectors: np.ndarray) -> np.ndarray:
    """
    Cosine similarity between a query and each row of a matrix

    Raises:
        ValueError: If dimensions don't match
    """
    if vectors.ndim != 2 or query_vec.shape[0] != vectors.shape[1]:
        raise ValueError(f"Dimension mismatch: query {query_vec.shape} vs vectors {vectors.shape}")

    query_norm = np.linalg.norm(query_vec)
    if query_norm == 0:
        return np.zeros(vectors.shape[0])

    norms = np.linalg.norm(vectors, axis=1)
    # Avoid division by zero
    norms = np.where(norms == 0, 1, norms)
    return (vectors @ query_vec) / (norms * query_norm)


def rank_articles(query_embedding: List[float], articles: List[KnowledgeArticle], top_k: int = 3) -> List[Dict]:
    """Top-k articles by similarity, highest first, as {title, text, score}"""
    candidates = [a for a in articles if a.embedding and len(a.embedding) == len(query_embedding)]
    if not candidates:
        return []

    query_vec = np.asarray(query_embedding, dtype=float)
    matrix = np.asarray([a.embedding for a in candidates], dtype=float)
    scores = batch_cosine_similarity(query_vec, matrix)

    order = np.argsort(-scores, kind='stable')[:top_k]
    return [
        {'title': candidates[i].title, 'text': candidates[i].text, 'score': float(scores[i])}
        for i in order
    ]


def format_search_results(results: List[Dict]) -> str:
    """Tool result text for the advisory agent"""
    if not results:
        return NO_RESULTS_TEXT
    return "Found relevant articles:\n" + '\n'.join(
        f"Article: {r['title']}\nContent: {r['text']}\n---" for r in results
    )


class KnowledgeBaseService:
    """Permission-gated knowledge base operations."""

    def __init__(self, session: Session, identity: Optional[str], ai_service=None, top_k: int = 3):
        self.session = session
        self.identity = identity
        self.ai_service = ai_service
        self.top_k = top_k

    def _embeddings_available(self) -> bool:
        return self.ai_service is not None and self.ai_service.is_available('embeddings')

    def add_article(self, org_id: str, title: str, text: str) -> Dict:
        """Add an article (admin only) and index it when embeddings are available."""
        access = resolve_access(self.session, self.identity, org_id)
        require_role(access, ADMIN_ROLES, "add to the knowledge base")
        raise_if_invalid(validate_article_request({'title': title, 'text': text}))

        article = KnowledgeArticle(
            org_id=org_id,
            title=sanitize_string(title),
            text=text.strip(),
        )

        if self._embeddings_available():
            try:
                article.embedding = self.ai_service.embed([f"{article.title}\n\n{article.text}"])[0]
            except AIServiceError as e:
                logger.warning(f"Storing article unindexed, embedding failed: {e}")
        else:
            logger.info("Embeddings not configured; storing article unindexed")

        self.session.add(article)
        self.session.flush()
        logger.info(f"Added knowledge base article {article.id} to organization {org_id}")
        return article.to_dict()

    def list_articles(self, org_id: str) -> List[Dict]:
        """Articles of the organization, newest first."""
        access = resolve_access(self.session, self.identity, org_id)
        require_role(access, READ_ROLES, "view the knowledge base")
        articles = self.session.query(KnowledgeArticle).filter(
            KnowledgeArticle.org_id == org_id
        ).order_by(KnowledgeArticle.created_at.desc()).all()
        return [a.to_dict() for a in articles]

    def search(self, org_id: str, query: str) -> List[Dict]:
        """
        Top matches for a query within one organization

        Args:
            org_id: Organization ID
            query: Free-text query

        Returns:
            Up to top_k dicts with title, text and score; empty when nothing is indexed
        """
        access = resolve_access(self.session, self.identity, org_id)
        require_role(access, READ_ROLES, "search the knowledge base")
        raise_if_invalid(validate_string_length(query, min_length=1, max_length=1000), 'query')
        return self.search_unchecked(org_id, query)

    def search_unchecked(self, org_id: str, query: str) -> List[Dict]:
        """Search without access checks; the caller has already resolved access."""
        articles = [
            a for a in self.session.query(KnowledgeArticle).filter(KnowledgeArticle.org_id == org_id).all()
            if a.embedding
        ]
        if not articles or not self._embeddings_available():
            return []

        query_embedding = self.ai_service.embed([query])[0]
        return rank_articles(query_embedding, articles, self.top_k)
