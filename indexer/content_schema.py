"""Declarative schema for article frontmatter, index records and body advisories."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


DEFAULT_CATEGORIES = [
    "databases",
    "mobile",
    "programming-languages",
    "system-devops",
    "web-frontend",
]

DEFAULT_DIFFICULTIES = ["beginner", "intermediate", "advanced"]


class Bounds(BaseModel):
    """Inclusive bounds; ``soft_max`` only produces warnings."""
    min: Optional[int] = None
    max: Optional[int] = None
    soft_max: Optional[int] = None


class ContentRules(BaseModel):
    """Advisory checks applied to article bodies."""
    min_length: int = 100
    recognized_languages: List[str] = Field(default_factory=lambda: [
        "bash", "c", "cpp", "csharp", "css", "diff", "dockerfile", "go",
        "graphql", "html", "ini", "java", "javascript", "json", "jsx",
        "kotlin", "makefile", "markdown", "mermaid", "nginx", "php",
        "plaintext", "powershell", "python", "ruby", "rust", "scala", "scss",
        "sql", "swift", "text", "toml", "tsx", "typescript", "xml", "yaml",
    ])
    language_aliases: Dict[str, str] = Field(default_factory=lambda: {
        "js": "javascript",
        "ts": "typescript",
        "py": "python",
        "sh": "bash",
        "shell": "bash",
        "zsh": "bash",
        "yml": "yaml",
        "rb": "ruby",
        "golang": "go",
        "c++": "cpp",
        "cs": "csharp",
        "kt": "kotlin",
        "md": "markdown",
        "txt": "text",
    })
    mermaid_keywords: List[str] = Field(default_factory=lambda: [
        "flowchart", "graph", "sequenceDiagram", "classDiagram",
        "stateDiagram", "erDiagram", "gantt", "pie", "journey",
    ])
    image_placeholder_tag: str = "IMAGE"


class ContentSchema(BaseModel):
    """Field requirements and bounds for articles and the article index."""
    version: str = "1.0"
    frontmatter_required: List[str] = Field(default_factory=lambda: [
        "title", "slug", "description", "category", "subcategory",
        "difficulty", "readTime", "lastUpdated", "tags",
    ])
    record_required: List[str] = Field(default_factory=lambda: [
        "id", "slug", "filename", "title", "description", "category",
        "subcategory", "difficulty", "readTime", "lastUpdated", "tags",
    ])
    index_required: List[str] = Field(default_factory=lambda: [
        "lastUpdated", "totalArticles", "categories", "technologies", "articles",
    ])
    categories: List[str] = Field(default_factory=lambda: list(DEFAULT_CATEGORIES))
    difficulties: List[str] = Field(default_factory=lambda: list(DEFAULT_DIFFICULTIES))
    title: Bounds = Field(default_factory=lambda: Bounds(min=5, soft_max=70))
    description: Bounds = Field(default_factory=lambda: Bounds(min=20, max=200))
    read_time: Bounds = Field(default_factory=lambda: Bounds(min=1, max=60))
    content: ContentRules = Field(default_factory=ContentRules)
