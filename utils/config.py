from __future__ import annotations
import dataclasses


@dataclasses.dataclass
class LLM:
    model: str
    embedding_model: str = "text-embedding-3-small"
    summary_model: str = "gpt-4o-mini"
    timeout_seconds: float = 60.0


@dataclasses.dataclass
class Agent:
    max_tool_calls: int = 5
    history_max_tokens: int = 4000


@dataclasses.dataclass
class Tools:
    http_timeout_seconds: float = 30.0
    faq_threshold: float = 0.3
    summarization_min_size: int = 2000


@dataclasses.dataclass
class LoggingConsole:
    enabled: bool = True
    renderer: str = "pretty"
    level: str = "INFO"


@dataclasses.dataclass
class LoggingRotation:
    enabled: bool = True
    max_bytes: int = 10_000_000
    backup_count: int = 5


@dataclasses.dataclass
class LoggingFile:
    enabled: bool = False
    level: str = "DEBUG"
    path: str = "logs/app.log"
    rotation: LoggingRotation = dataclasses.field(default_factory=LoggingRotation)


@dataclasses.dataclass
class Logging:
    level: str = "INFO"
    console: LoggingConsole = dataclasses.field(default_factory=LoggingConsole)
    file: LoggingFile = dataclasses.field(default_factory=LoggingFile)
    libraries: dict[str, str] = dataclasses.field(default_factory=dict)


@dataclasses.dataclass
class Config:
    llm: LLM
    agent: Agent = dataclasses.field(default_factory=Agent)
    tools: Tools = dataclasses.field(default_factory=Tools)
    logging: Logging = dataclasses.field(default_factory=Logging)
