"""Keyword heuristics that tag and describe a session from its prompts.

Everything here is a pure function of the message text and the rule tables
below. Tables are evaluated top to bottom and their order is significant:
it decides which tags survive truncation and which description tier wins.
"""

import re
from collections.abc import Sequence

GENERAL_TOPIC = "general"
MAX_TOPICS = 5
MAX_DESCRIPTION_LENGTH = 80


def _rule(pattern: str, tag: str) -> tuple[re.Pattern, str]:
    return re.compile(rf"\b({pattern})\b", re.IGNORECASE), tag


TOPIC_RULES: tuple[tuple[re.Pattern, str], ...] = (
    _rule(r"fix|bug|error|issue|problem", "bug-fix"),
    _rule(r"test|testing|spec|jest|playwright", "testing"),
    _rule(r"refactor|cleanup|clean up", "refactoring"),
    _rule(r"feature|implement|add|create|build", "feature"),
    _rule(r"review|code review", "review"),
    _rule(r"deploy|deployment|ci|cd|pipeline", "deployment"),
    _rule(r"database|db|migration|schema", "database"),
    _rule(r"api|endpoint|rest|graphql", "api"),
    _rule(r"ui|frontend|component|react|css", "frontend"),
    _rule(r"backend|server|service", "backend"),
    _rule(r"doc|documentation|readme", "documentation"),
    _rule(r"config|configuration|setup|init", "configuration"),
    _rule(r"security|auth|authentication|authorization", "security"),
    _rule(r"performance|optimize|optimization|speed", "performance"),
    _rule(r"debug|debugging|investigate", "debugging"),
)

ACTION_RULES: tuple[tuple[re.Pattern, str], ...] = (
    _rule(r"fix|fixed|fixing|bug|error|issue|problem|broken|not working|doesn't work", "Bug fixes"),
    _rule(r"add|added|adding|implement|implemented|new feature|create|build", "Feature development"),
    _rule(r"update|updated|updating|change|changed|modify|modified|improve", "Updates"),
    _rule(r"refactor|refactored|cleanup|clean up|reorganize|restructure", "Refactoring"),
    _rule(r"test|tests|testing|e2e|playwright|jest|spec", "Testing"),
    _rule(r"deploy|deployed|deployment|ci|cd|pipeline|release", "Deployment"),
    _rule(r"debug|debugging|investigate|troubleshoot|figure out", "Debugging"),
    _rule(r"config|configure|setup|set up|setting|install", "Configuration"),
    _rule(r"review|reviewed|pr |pull request|code review", "Code review"),
    _rule(r"document|documentation|readme|docs", "Documentation"),
)

AREA_RULES: tuple[tuple[re.Pattern, str], ...] = (
    _rule(r"auth|authentication|login|logout|sign in|sign out|session|jwt|token", "authentication"),
    _rule(r"database|db|schema|migration|query|sql|postgres|table", "database"),
    _rule(r"api|endpoint|route|controller|rest|graphql", "API"),
    _rule(r"ui|component|page|form|modal|button|layout|style|css", "UI"),
    _rule(r"notification|notifications|email|alert|toast|bell", "notifications"),
    _rule(r"dashboard|report|chart|analytics|metrics", "dashboard"),
    _rule(r"user|users|account|profile|settings|preferences", "user management"),
    _rule(r"payment|billing|subscription|invoice|stripe|plaid", "payments"),
    _rule(r"import|export|sync|integration|webhook", "data sync"),
    _rule(r"transaction|transactions|account|accounts|balance", "transactions"),
    _rule(r"tax|taxes|deduction|income|expense", "tax features"),
    _rule(r"property|properties|real estate|rental", "property management"),
    _rule(r"file|files|upload|download|attachment", "file handling"),
    _rule(r"search|filter|sort|pagination", "search/filter"),
    _rule(r"navigation|routing|menu|sidebar|header", "navigation"),
    _rule(r"validation|validate|error handling|error message", "validation"),
)

# Acknowledgements that say nothing about the work being done.
LOW_CONTENT_MESSAGES = frozenset({
    "yes", "no", "ok", "y", "n", "1", "2", "3", "4", "5", "all", "done", "good", "great",
    "thanks", "perfect", "continue", "go ahead", "sounds good", "looks good",
    "/init", "commit", "push", "moved it", "that works",
})

_LEADING_FILLER = re.compile(
    r"^(please|can you|could you|help me|i need to|i want to|let's|we need to|ok,?|so,?)\s+",
    re.IGNORECASE,
)
_WHITESPACE = re.compile(r"\s+")


def match_rules(text: str, rules: Sequence[tuple[re.Pattern, str]]) -> list[str]:
    """Tags of every rule matching text, deduplicated, in table order."""
    found: list[str] = []
    for pattern, tag in rules:
        if tag not in found and pattern.search(text):
            found.append(tag)
    return found


def extract_topics(messages: Sequence[str]) -> str:
    """Comma-joined topic tags for a session, or 'general'."""
    text = " ".join(messages).lower()
    topics = match_rules(text, TOPIC_RULES)[:MAX_TOPICS]
    return ", ".join(topics) or GENERAL_TOPIC


def meaningful_messages(messages: Sequence[str]) -> list[str]:
    """Drop empty, very short, and acknowledgement-only messages."""
    kept = []
    for message in messages:
        if not message or len(message) < 3:
            continue
        lower = message.lower().strip()
        if lower in LOW_CONTENT_MESSAGES or len(lower) < 10:
            continue
        kept.append(message)
    return kept


def _has_topics(topics: str | None) -> bool:
    return bool(topics) and topics != GENERAL_TOPIC


def _first_message_summary(message: str) -> str:
    summary = _LEADING_FILLER.sub("", message, count=1)
    summary = _WHITESPACE.sub(" ", summary).strip()
    summary = summary[:1].upper() + summary[1:]
    if len(summary) > MAX_DESCRIPTION_LENGTH:
        summary = summary[:MAX_DESCRIPTION_LENGTH - 3] + "..."
    return summary


def create_description(messages: Sequence[str], topics: str | None = None) -> str:
    """Short human description of what a session worked on.

    Tiers are tried in order and the first one that applies wins:
    action + area, action only, area only, topics, then a cleaned-up
    copy of the first meaningful message.
    """
    meaningful = meaningful_messages(messages)
    if not meaningful:
        return f"Development: {topics}" if _has_topics(topics) else "Development work"

    text = " ".join(meaningful).lower()
    actions = match_rules(text, ACTION_RULES)
    areas = match_rules(text, AREA_RULES)

    if actions and areas:
        return f"{' & '.join(actions[:2])}: {', '.join(areas[:3])}"
    if actions:
        description = ", ".join(actions[:3])
        if _has_topics(topics):
            description += f" ({topics})"
        return description
    if areas:
        return f"Development: {', '.join(areas[:3])}"
    if _has_topics(topics):
        return f"Development: {topics}"
    return _first_message_summary(meaningful[0])
