"""Vocabulary tables shared by the classifier, matcher and risk assessor."""

from __future__ import annotations

import re

# Verb weights for free-text classification.
WRITE_VERBS: dict[str, float] = {
    "add": 0.7,
    "approve": 0.7,
    "burn": 0.9,
    "confirm": 0.6,
    "create": 0.8,
    "delete": 0.9,
    "deposit": 0.8,
    "execute": 0.7,
    "mint": 0.9,
    "pay": 0.8,
    "register": 0.7,
    "reject": 0.7,
    "remove": 0.8,
    "send": 0.9,
    "set": 0.7,
    "stake": 0.8,
    "submit": 0.7,
    "transfer": 0.9,
    "update": 0.8,
    "vote": 0.8,
    "withdraw": 0.8,
}

READ_VERBS: dict[str, float] = {
    "balance": 0.9,
    "check": 0.8,
    "display": 0.7,
    "examine": 0.7,
    "fetch": 0.8,
    "find": 0.8,
    "get": 0.8,
    "info": 0.8,
    "list": 0.8,
    "lookup": 0.7,
    "query": 0.8,
    "read": 0.9,
    "search": 0.7,
    "show": 0.8,
    "status": 0.8,
    "view": 0.8,
}

# Phrase shapes used when no single verb decides.
WRITE_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"\d+(?:\.\d+)?\s+tokens?\s+to\s+\w+",
        r"set\s+\w+\s+to\s+\w+",
    )
)
READ_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"what\s+is\s+my\s+\w+",
        r"balance\s+of\s+\w+",
        r"info\s+about\s+\w+",
        r"status\s+of\s+\w+",
        r"how\s+(?:many|much)\b",
    )
)

# Handler action tables, read checked first.
READ_ACTIONS: tuple[str, ...] = (
    "info", "balance", "get", "view", "check", "query", "list", "show",
    "ping", "pong", "status", "version", "details", "fetch", "read", "find",
)
WRITE_ACTIONS: tuple[str, ...] = (
    "transfer", "send", "mint", "burn", "create", "update", "delete", "set",
    "add", "subtract", "multiply", "divide", "calculate", "remove", "approve",
    "vote", "stake", "unstake", "deposit", "withdraw", "swap", "execute",
    "register", "propose",
)

# Legacy documentation has no write flag; these action words imply one.
LEGACY_WRITE_KEYWORDS: tuple[str, ...] = (
    "send", "transfer", "create", "update", "delete", "set", "add", "remove",
    "mint", "burn", "stake", "withdraw", "deposit", "register", "vote",
)

ACTION_SYNONYMS: dict[str, tuple[str, ...]] = {
    "add": ("plus", "sum", "total", "combine", "calculate", "+", "addition"),
    "balance": ("check", "get", "show", "view", "funds", "holdings"),
    "burn": ("destroy", "remove", "delete"),
    "divide": ("divided", "split", "÷", "/", "division"),
    "info": ("details", "information", "about", "describe"),
    "mint": ("create", "generate", "issue"),
    "multiply": ("times", "product", "×", "*", "multiplication"),
    "subtract": ("minus", "difference", "take away", "-", "subtraction"),
    "transfer": ("send", "give", "pay", "move"),
    "vote": ("ballot", "support", "oppose"),
}

IRREVERSIBLE_VERBS: tuple[str, ...] = ("delete", "burn", "destroy", "remove", "revoke")
ADMIN_ACTIONS: tuple[str, ...] = (
    "transfer_ownership", "set_admin", "grant_permission", "revoke_permission",
    "transferownership", "setadmin", "grantpermission", "revokepermission",
)
VALUE_TRANSFER_VERBS: tuple[str, ...] = ("transfer", "send", "withdraw", "mint")
HIGH_RISK_ACTIONS: tuple[str, ...] = ("delete", "burn", "remove")

AMOUNT_KEYS: tuple[str, ...] = ("amount", "quantity", "value")
RECIPIENT_KEYS: tuple[str, ...] = ("target", "recipient", "to", "address", "account")
ADMIN_PARAM_KEYS: tuple[str, ...] = ("owner", "admin", "permission", "access", "role")
PERMANENT_FLAGS: tuple[str, ...] = ("permanent", "irreversible", "final")

WORD_RE = re.compile(r"[a-z0-9_]+")


def words_of(text: str) -> list[str]:
    return WORD_RE.findall((text or "").lower())


def action_implies_write(action: str) -> bool:
    """Derive a write flag from an action name (read words win)."""
    lowered = (action or "").lower()
    if any(word in lowered for word in READ_ACTIONS):
        return False
    return any(word in lowered for word in WRITE_ACTIONS)


def legacy_action_implies_write(action: str) -> bool:
    lowered = (action or "").lower()
    return any(word in lowered for word in LEGACY_WRITE_KEYWORDS)
