"""Runtime settings and content repository layout for guidegate."""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field


class ContentLayout(BaseModel):
    """Locations of the staging and production areas in a content repository."""
    root: Path = Field(description="Content repository root")

    staging_guides_dir: str = Field(default="staging/guides", description="Staged articles")
    staging_index_file: str = Field(default="staging/config/article-index-update.json",
                                    description="Staged index update")
    production_guides_dir: str = Field(default="guides", description="Production guide store")
    production_index_file: str = Field(default="config/article-index.json",
                                       description="Production article index")
    categories_file: str = Field(default="config/categories.json",
                                 description="Category configuration")

    @property
    def staging_guides(self) -> Path:
        return self.root / self.staging_guides_dir

    @property
    def staging_index(self) -> Path:
        return self.root / self.staging_index_file

    @property
    def production_guides(self) -> Path:
        return self.root / self.production_guides_dir

    @property
    def production_index(self) -> Path:
        return self.root / self.production_index_file

    @property
    def categories(self) -> Path:
        return self.root / self.categories_file


class ContentSettings(BaseModel):
    """Settings shared by the CLIs and the content fetcher."""
    content_root: Path = Field(default=Path("content"), description="Content repository root")
    schema_path: Optional[str] = Field(default=None, description="Content schema document")

    # Remote content repository (GitHub contents API)
    repo_url: Optional[str] = Field(default=None, description="Content repository API URL")
    github_token: Optional[str] = Field(default=None, description="API token")
    fetch_timeout: float = Field(default=10.0, description="HTTP timeout in seconds")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_json: bool = Field(default=False, description="Emit JSON log lines")

    @classmethod
    def from_env(cls) -> 'ContentSettings':
        """Create settings from environment variables."""
        return cls(
            content_root=Path(os.getenv('GUIDEGATE_CONTENT_ROOT', 'content')),
            schema_path=os.getenv('GUIDEGATE_SCHEMA_PATH') or None,
            repo_url=os.getenv('CONTENT_REPO_URL') or None,
            github_token=os.getenv('GITHUB_TOKEN') or None,
            fetch_timeout=float(os.getenv('GUIDEGATE_FETCH_TIMEOUT', '10')),
            log_level=os.getenv('GUIDEGATE_LOG_LEVEL', 'INFO'),
            log_json=os.getenv('GUIDEGATE_LOG_JSON', 'false').lower() in ('1', 'true', 'yes')
        )

    def layout(self) -> ContentLayout:
        """Layout of the configured content repository."""
        return ContentLayout(root=self.content_root)
