"""Static skill catalog and the read-only graph built from it."""

from typing import Dict, Iterable, Optional, Tuple

from pydantic import BaseModel, ConfigDict, field_validator


CATALOG_VERSION = "2024.1"

CATEGORIES = ("language", "framework", "library", "tool", "concept", "platform")

# Names the language-match scorer and the search client treat as languages.
LANGUAGES = frozenset([
    "javascript", "typescript", "python", "java", "c++", "c#", "go", "rust",
    "php", "ruby", "swift", "kotlin", "scala", "clojure", "haskell", "elixir",
    "dart", "r", "matlab", "perl", "lua", "shell", "powershell", "html", "css",
    "scss", "sass", "less", "vue", "react", "angular", "svelte",
])


def is_language(value):
    return value.lower() in LANGUAGES


class SkillNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    aliases: Tuple[str, ...] = ()
    category: str
    related: Tuple[str, ...] = ()
    expanded: Tuple[str, ...] = ()

    @field_validator("name")
    @classmethod
    def _lowercase_name(cls, value):
        return value.strip().lower()

    @field_validator("category")
    @classmethod
    def _known_category(cls, value):
        if value not in CATEGORIES:
            raise ValueError(f"unknown skill category: {value}")
        return value


SKILL_CATALOG = [
    # Frontend languages
    {
        "name": "javascript",
        "aliases": ["js", "ecmascript"],
        "category": "language",
        "related": ["typescript", "nodejs", "react", "vue", "angular"],
        "expanded": ["javascript", "js", "ecmascript", "frontend", "web", "browser"],
    },
    {
        "name": "typescript",
        "aliases": ["ts"],
        "category": "language",
        "related": ["javascript", "react", "angular", "nodejs"],
        "expanded": ["typescript", "ts", "javascript", "js", "frontend", "web", "typed"],
    },
    {
        "name": "html",
        "aliases": ["html5"],
        "category": "language",
        "related": ["css", "javascript", "web"],
        "expanded": ["html", "html5", "markup", "web", "frontend", "semantic"],
    },
    {
        "name": "css",
        "aliases": ["css3"],
        "category": "language",
        "related": ["html", "javascript", "scss", "sass"],
        "expanded": ["css", "css3", "styling", "web", "frontend", "design"],
    },
    # Frontend frameworks
    {
        "name": "react",
        "aliases": ["reactjs"],
        "category": "framework",
        "related": ["javascript", "typescript", "jsx", "redux"],
        "expanded": [
            "react", "reactjs", "javascript", "js", "frontend", "web", "ui",
            "component", "jsx", "hooks",
        ],
    },
    {
        "name": "vue",
        "aliases": ["vuejs"],
        "category": "framework",
        "related": ["javascript", "typescript", "nuxt"],
        "expanded": ["vue", "vuejs", "javascript", "js", "frontend", "web", "ui", "component"],
    },
    {
        "name": "angular",
        "aliases": ["angularjs"],
        "category": "framework",
        "related": ["typescript", "javascript", "rxjs"],
        "expanded": [
            "angular", "angularjs", "typescript", "ts", "javascript", "js",
            "frontend", "web", "ui", "component",
        ],
    },
    {
        "name": "svelte",
        "aliases": [],
        "category": "framework",
        "related": ["javascript", "typescript"],
        "expanded": ["svelte", "javascript", "js", "frontend", "web", "ui", "component"],
    },
    # Backend languages
    {
        "name": "python",
        "aliases": ["py"],
        "category": "language",
        "related": ["django", "flask", "fastapi", "pandas", "numpy"],
        "expanded": ["python", "py", "backend", "server", "scripting", "data-science"],
    },
    {
        "name": "java",
        "aliases": [],
        "category": "language",
        "related": ["spring", "maven", "gradle"],
        "expanded": ["java", "backend", "server", "enterprise", "jvm"],
    },
    {
        "name": "go",
        "aliases": ["golang"],
        "category": "language",
        "related": ["gin", "echo", "fiber"],
        "expanded": ["go", "golang", "backend", "server", "microservice", "concurrent"],
    },
    {
        "name": "rust",
        "aliases": [],
        "category": "language",
        "related": ["actix", "tokio", "serde"],
        "expanded": ["rust", "backend", "server", "systems", "performance", "memory-safe"],
    },
    {
        "name": "php",
        "aliases": [],
        "category": "language",
        "related": ["laravel", "symfony", "composer"],
        "expanded": ["php", "backend", "server", "web"],
    },
    {
        "name": "ruby",
        "aliases": [],
        "category": "language",
        "related": ["rails", "sinatra", "bundler"],
        "expanded": ["ruby", "backend", "server", "web", "rails"],
    },
    # Backend frameworks and runtimes
    {
        "name": "nodejs",
        "aliases": ["node"],
        "category": "platform",
        "related": ["javascript", "express", "koa", "nestjs"],
        "expanded": ["nodejs", "node", "javascript", "js", "backend", "server", "npm"],
    },
    {
        "name": "django",
        "aliases": [],
        "category": "framework",
        "related": ["python", "djangorestframework"],
        "expanded": ["django", "python", "py", "backend", "server", "web", "mvc", "orm"],
    },
    {
        "name": "flask",
        "aliases": [],
        "category": "framework",
        "related": ["python", "sqlalchemy"],
        "expanded": ["flask", "python", "py", "backend", "server", "web", "microframework"],
    },
    {
        "name": "express",
        "aliases": ["expressjs"],
        "category": "framework",
        "related": ["nodejs", "javascript"],
        "expanded": [
            "express", "expressjs", "nodejs", "node", "javascript", "js",
            "backend", "server", "web",
        ],
    },
    {
        "name": "spring",
        "aliases": ["springboot"],
        "category": "framework",
        "related": ["java", "maven"],
        "expanded": [
            "spring", "springboot", "java", "backend", "server", "enterprise",
            "dependency-injection",
        ],
    },
    # Databases
    {
        "name": "postgresql",
        "aliases": ["postgres"],
        "category": "tool",
        "related": ["sql", "database"],
        "expanded": ["postgresql", "postgres", "sql", "database", "db", "relational"],
    },
    {
        "name": "mysql",
        "aliases": [],
        "category": "tool",
        "related": ["sql", "database"],
        "expanded": ["mysql", "sql", "database", "db", "relational"],
    },
    {
        "name": "mongodb",
        "aliases": ["mongo"],
        "category": "tool",
        "related": ["nosql", "database"],
        "expanded": ["mongodb", "mongo", "nosql", "database", "db", "document"],
    },
    {
        "name": "redis",
        "aliases": [],
        "category": "tool",
        "related": ["cache", "database"],
        "expanded": ["redis", "cache", "database", "db", "key-value", "in-memory"],
    },
    # DevOps and tooling
    {
        "name": "docker",
        "aliases": [],
        "category": "tool",
        "related": ["kubernetes", "containerization"],
        "expanded": ["docker", "container", "containerization", "devops", "deployment"],
    },
    {
        "name": "kubernetes",
        "aliases": ["k8s"],
        "category": "tool",
        "related": ["docker", "containerization"],
        "expanded": ["kubernetes", "k8s", "container", "orchestration", "devops", "deployment"],
    },
    {
        "name": "aws",
        "aliases": ["amazon web services"],
        "category": "platform",
        "related": ["cloud", "devops"],
        "expanded": ["aws", "amazon web services", "cloud", "devops", "infrastructure"],
    },
    {
        "name": "git",
        "aliases": [],
        "category": "tool",
        "related": ["github", "gitlab"],
        "expanded": ["git", "version-control", "vcs", "scm"],
    },
    # Data science and AI
    {
        "name": "machine learning",
        "aliases": ["ml"],
        "category": "concept",
        "related": ["python", "tensorflow", "pytorch", "scikit-learn"],
        "expanded": [
            "machine learning", "ml", "ai", "artificial intelligence",
            "data-science", "python", "py",
        ],
    },
    {
        "name": "tensorflow",
        "aliases": ["tf"],
        "category": "library",
        "related": ["python", "machine learning"],
        "expanded": [
            "tensorflow", "tf", "python", "py", "machine learning", "ml",
            "deep learning", "neural network",
        ],
    },
    {
        "name": "pytorch",
        "aliases": [],
        "category": "library",
        "related": ["python", "machine learning"],
        "expanded": [
            "pytorch", "python", "py", "machine learning", "ml", "deep learning",
            "neural network",
        ],
    },
    {
        "name": "pandas",
        "aliases": [],
        "category": "library",
        "related": ["python", "data science"],
        "expanded": ["pandas", "python", "py", "data-science", "data-analysis", "dataframe"],
    },
    # Mobile
    {
        "name": "react native",
        "aliases": ["reactnative"],
        "category": "framework",
        "related": ["react", "javascript", "mobile"],
        "expanded": [
            "react native", "reactnative", "react", "javascript", "js", "mobile",
            "ios", "android", "cross-platform",
        ],
    },
    {
        "name": "flutter",
        "aliases": [],
        "category": "framework",
        "related": ["dart", "mobile"],
        "expanded": ["flutter", "dart", "mobile", "ios", "android", "cross-platform", "ui"],
    },
    {
        "name": "swift",
        "aliases": [],
        "category": "language",
        "related": ["ios", "mobile"],
        "expanded": ["swift", "ios", "mobile", "apple", "objective-c"],
    },
    {
        "name": "kotlin",
        "aliases": [],
        "category": "language",
        "related": ["android", "mobile"],
        "expanded": ["kotlin", "android", "mobile", "jvm", "java"],
    },
]


class SkillGraph:
    """Immutable lookup over a catalog of :class:`SkillNode` records.

    Built once and shared by reference; nothing mutates it afterwards, so it
    can be read from any number of threads.
    """

    def __init__(self, nodes: Iterable[SkillNode], version: str = CATALOG_VERSION):
        by_name: Dict[str, SkillNode] = {}
        by_alias: Dict[str, SkillNode] = {}
        for node in nodes:
            by_name[node.name] = node
        # Catalog order decides which node owns an alias claimed twice.
        for node in by_name.values():
            for alias in node.aliases:
                by_alias.setdefault(alias.lower(), node)
        self._by_name = by_name
        self._by_alias = by_alias
        self.version = version

    @classmethod
    def from_catalog(cls, records, version=CATALOG_VERSION):
        return cls((SkillNode.model_validate(record) for record in records), version=version)

    def get(self, name) -> Optional[SkillNode]:
        return self._by_name.get(name)

    def find_alias(self, alias) -> Optional[SkillNode]:
        return self._by_alias.get(alias)

    def __contains__(self, name):
        return name in self._by_name

    def __len__(self):
        return len(self._by_name)

    def __iter__(self):
        return iter(self._by_name.values())

    def stats(self):
        categories = {}
        for node in self._by_name.values():
            categories[node.category] = categories.get(node.category, 0) + 1
        return {
            "version": self.version,
            "total_skills": len(self._by_name),
            "categories": categories,
        }


DEFAULT_GRAPH = SkillGraph.from_catalog(SKILL_CATALOG)
