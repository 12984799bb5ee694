"""Content fetcher for guidegate.

Reads the production article index and guide files from the content
repository through the GitHub contents API, falling back to a local checkout
of the content repository when the remote is unavailable.
"""

import base64
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import requests

from config import ContentLayout, ContentSettings
from indexer.article_schema import ArticleIndex

logger = logging.getLogger(__name__)

JSON_MEDIA_TYPE = "application/vnd.github.v3+json"
RAW_MEDIA_TYPE = "application/vnd.github.v3.raw"


class ArticleNotFound(Exception):
    """Raised when a guide file is available neither remotely nor locally."""
    pass


class ContentFetcher:
    """Fetches published content, remote first, then the local checkout."""

    def __init__(self, repo_url: Optional[str] = None, token: Optional[str] = None,
                 local_root: Union[str, Path] = "content", timeout: float = 10.0):
        self.repo_url = repo_url.rstrip("/") if repo_url else None
        self.token = token
        self.layout = ContentLayout(root=Path(local_root))
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Optional[ContentSettings] = None) -> 'ContentFetcher':
        settings = settings or ContentSettings.from_env()
        return cls(
            repo_url=settings.repo_url,
            token=settings.github_token,
            local_root=settings.content_root,
            timeout=settings.fetch_timeout
        )

    def _headers(self, accept: str) -> Dict[str, str]:
        headers = {'Accept': accept}
        if self.token:
            headers['Authorization'] = f"token {self.token}"
        return headers

    def _get(self, path: str, accept: str) -> requests.Response:
        response = requests.get(
            f"{self.repo_url}/contents/{path}",
            headers=self._headers(accept),
            timeout=self.timeout
        )
        response.raise_for_status()
        return response

    def fetch_article_index(self) -> ArticleIndex:
        """Fetch the production index.

        Falls back to the local index file, then to an empty index.
        """
        if self.repo_url:
            try:
                response = self._get(self.layout.production_index_file, JSON_MEDIA_TYPE)
                payload = response.json()
                content = base64.b64decode(payload['content']).decode('utf-8')
                return ArticleIndex.from_dict(json.loads(content))
            except (requests.RequestException, ValueError, KeyError, TypeError, AttributeError) as e:
                logger.error(f"Error fetching article index: {e}")

        try:
            with open(self.layout.production_index, 'r', encoding='utf-8') as f:
                return ArticleIndex.from_dict(json.load(f))
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.error(f"Fallback to local article index failed: {e}")
            return ArticleIndex.empty()

    def fetch_article_content(self, filename: str) -> str:
        """Fetch the raw MDX source of a guide.

        Raises:
            ArticleNotFound: the guide is available neither remotely nor locally.
        """
        if not filename or Path(filename).name != filename:
            raise ArticleNotFound(f"Article not found: {filename}")

        if self.repo_url:
            try:
                path = f"{self.layout.production_guides_dir}/{filename}"
                return self._get(path, RAW_MEDIA_TYPE).text
            except requests.RequestException as e:
                logger.error(f"Error fetching article content for {filename}: {e}")

        try:
            return (self.layout.production_guides / filename).read_text(encoding='utf-8')
        except OSError as e:
            logger.error(f"Fallback to local file failed for {filename}: {e}")
            raise ArticleNotFound(f"Article not found: {filename}") from e

    def list_article_files(self) -> List[Dict[str, Any]]:
        """List the published ``.mdx`` guide files; empty on failure."""
        if not self.repo_url:
            guides = self.layout.production_guides
            if not guides.is_dir():
                return []
            return [
                {'name': path.name, 'path': f"{self.layout.production_guides_dir}/{path.name}"}
                for path in sorted(guides.glob("*.mdx"))
            ]

        try:
            files = self._get(self.layout.production_guides_dir, JSON_MEDIA_TYPE).json()
            return [f for f in files if str(f.get('name', '')).endswith('.mdx')]
        except (requests.RequestException, ValueError, AttributeError, TypeError) as e:
            logger.error(f"Error fetching article files: {e}")
            return []
