"""Knowledge-base search tool and the search-service seam it consumes."""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from agents.tools.base import ToolBase
from agents.tools.exceptions import ToolConfigurationError, ToolExecutionError
from utils.logger import get_logger

logger = get_logger(__name__)

SEARCH_TYPES = ("semantic", "hybrid", "keyword")


@runtime_checkable
class KnowledgeBaseSearch(Protocol):
    def search(
        self,
        query: str,
        organization_id: str,
        project_id: str,
        api_key_id: str,
        options: Dict[str, Any],
    ) -> Dict[str, Any]: ...


@dataclass
class Document:
    id: str
    content: str
    organization_id: str
    project_id: str
    metadata: Dict[str, Any] = field(default_factory=dict)


class InMemoryKnowledgeBase:
    """Keyword-overlap search over documents held in memory, scoped by organization and project."""

    def __init__(self, documents: List[Document] | None = None):
        self.documents: List[Document] = list(documents or [])

    def add(self, document: Document) -> None:
        self.documents.append(document)

    def search(
        self,
        query: str,
        organization_id: str,
        project_id: str,
        api_key_id: str,
        options: Dict[str, Any],
    ) -> Dict[str, Any]:
        terms = set(query.lower().split())
        limit = int(options.get("limit", 10))
        threshold = 0.0 if options.get("search_type") == "keyword" else float(options.get("threshold", 0.0))
        scored = []
        for doc in self._scoped(organization_id, project_id):
            words = set(doc.content.lower().split())
            similarity = len(terms & words) / len(terms) if terms else 0.0
            if similarity > 0 and similarity >= threshold:
                scored.append((similarity, doc))
        scored.sort(key=lambda pair: pair[0], reverse=True)

        include_metadata = options.get("include_metadata", True)
        results = [
            {
                "id": doc.id,
                "content": doc.content,
                "similarity": round(similarity, 4),
                "metadata": doc.metadata if include_metadata else None,
            }
            for similarity, doc in scored[:limit]
        ]
        return {
            "query": query,
            "results": results,
            "total_results": len(scored),
            "search_method": options.get("search_type", "semantic"),
        }

    def stats(self, organization_id: str, project_id: str) -> Dict[str, Any]:
        return {"total_documents": len(self._scoped(organization_id, project_id))}

    def _scoped(self, organization_id: str, project_id: str) -> List[Document]:
        return [
            d for d in self.documents
            if d.organization_id == organization_id and d.project_id == project_id
        ]


class RagSearchTool(ToolBase):
    name = "rag_search"
    description = "Search the organization's knowledge base for relevant documents"
    required_parameters = ("query",)

    def __init__(self, service: Optional[KnowledgeBaseSearch] = None):
        super().__init__()
        self.service = service or InMemoryKnowledgeBase()

    def validate(self, parameters: Dict[str, Any]) -> None:
        super().validate(parameters)
        search_type = parameters.get("search_type", "semantic")
        if search_type not in SEARCH_TYPES:
            raise ToolConfigurationError(
                f"Unsupported search_type '{search_type}'. Allowed: {', '.join(SEARCH_TYPES)}", tool_id=self.id
            )

    def execute(self, parameters: Dict[str, Any], config: Dict[str, Any]) -> Dict[str, Any]:
        start = time.perf_counter()
        query = str(parameters["query"])
        organization_id = parameters.get("organization_id") or config.get("organization_id")
        project_id = parameters.get("project_id") or config.get("project_id")
        if not organization_id or not project_id:
            raise ToolConfigurationError(
                "Organization and project context required for RAG search (via parameter or agent config)",
                tool_id=self.id,
            )
        api_key_id = config.get("_agent_api_key_id")
        if not api_key_id:
            raise ToolConfigurationError("Agent API key not configured for RAG search", tool_id=self.id)

        search_type = parameters.get("search_type", "semantic")
        options: Dict[str, Any] = {
            "search_type": search_type,
            "limit": parameters.get("limit", 10),
            "threshold": parameters.get("threshold", 0.7),
            "filters": {
                "brands": parameters.get("brands") or [],
                "models": parameters.get("models") or [],
                "themes": parameters.get("themes") or [],
                "sentiment": parameters.get("sentiment"),
            },
            "include_metadata": parameters.get("include_metadata", True),
        }
        if search_type == "hybrid":
            options["semantic_weight"] = config.get("semantic_weight") or 0.7
            options["keyword_weight"] = config.get("keyword_weight") or 0.3

        try:
            results = dict(self.service.search(query, organization_id, project_id, api_key_id, options))
            if config.get("include_stats") and hasattr(self.service, "stats"):
                results["knowledge_base_stats"] = self.service.stats(organization_id, project_id)
        except Exception as exc:
            logger.error("rag_search_failed", query=query, search_type=search_type, error=str(exc), exc_info=True)
            raise ToolExecutionError(f"Knowledge base search failed: {exc}", tool_id=self.id) from exc

        results["execution_time_ms"] = int((time.perf_counter() - start) * 1000)
        logger.info(
            "rag_search_completed",
            search_type=search_type,
            results=len(results.get("results") or []),
            total=results.get("total_results", 0),
        )
        return results
