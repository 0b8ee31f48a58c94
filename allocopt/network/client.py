"""Minimal GraphQL-over-HTTP client."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from requests import Session

from ..errors import GraphQLRequestError
from ..services.http import graphql_request

__all__ = ["GraphQLClient", "GraphQLRequestError"]


class GraphQLClient:
    """POST GraphQL documents to one endpoint and return their ``data`` object."""

    def __init__(
        self,
        url: str,
        *,
        session: Session | None = None,
        timeout: Any | None = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if not url.startswith(("http://", "https://")):
            raise ValueError(f"GraphQL endpoint must be an http(s) URL, got {url!r}")
        self.url = url
        self._session = session
        self._timeout = timeout
        self.logger = logger or logging.getLogger("allocopt.graphql")

    def __repr__(self) -> str:
        return f"GraphQLClient({self.url!r})"

    def execute(self, document: str, variables: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        return graphql_request(
            self.url,
            document,
            variables,
            session=self._session,
            timeout=self._timeout,
            logger=self.logger,
        )

    def query(self, document: str, variables: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        return self.execute(document, variables)

    def mutate(self, document: str, variables: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        self.logger.debug("Sending mutation to %s", self.url)
        return self.execute(document, variables)
