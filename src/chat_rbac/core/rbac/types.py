"""RBAC type definitions used across the stack."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class PermissionType(str, enum.Enum):
    """Closed catalog of permission kinds."""

    # Server management
    ADMINISTRATOR = "ADMINISTRATOR"
    MANAGE_SERVER = "MANAGE_SERVER"
    MANAGE_ROLES = "MANAGE_ROLES"
    MANAGE_CHANNELS = "MANAGE_CHANNELS"
    VIEW_AUDIT_LOG = "VIEW_AUDIT_LOG"
    VIEW_GUILD_INSIGHTS = "VIEW_GUILD_INSIGHTS"
    MANAGE_WEBHOOKS = "MANAGE_WEBHOOKS"
    MANAGE_EMOJIS = "MANAGE_EMOJIS"
    MANAGE_GUILD = "MANAGE_GUILD"

    # Member management
    KICK_MEMBERS = "KICK_MEMBERS"
    BAN_MEMBERS = "BAN_MEMBERS"
    TIMEOUT_MEMBERS = "TIMEOUT_MEMBERS"
    MANAGE_NICKNAMES = "MANAGE_NICKNAMES"
    CHANGE_NICKNAME = "CHANGE_NICKNAME"

    # Text
    VIEW_CHANNELS = "VIEW_CHANNELS"
    SEND_MESSAGES = "SEND_MESSAGES"
    SEND_TTS_MESSAGES = "SEND_TTS_MESSAGES"
    MANAGE_MESSAGES = "MANAGE_MESSAGES"
    EMBED_LINKS = "EMBED_LINKS"
    ATTACH_FILES = "ATTACH_FILES"
    READ_MESSAGE_HISTORY = "READ_MESSAGE_HISTORY"
    MENTION_EVERYONE = "MENTION_EVERYONE"
    USE_EXTERNAL_EMOJIS = "USE_EXTERNAL_EMOJIS"
    ADD_REACTIONS = "ADD_REACTIONS"

    # Voice
    CONNECT = "CONNECT"
    SPEAK = "SPEAK"
    MUTE_MEMBERS = "MUTE_MEMBERS"
    DEAFEN_MEMBERS = "DEAFEN_MEMBERS"
    MOVE_MEMBERS = "MOVE_MEMBERS"
    USE_VAD = "USE_VAD"
    PRIORITY_SPEAKER = "PRIORITY_SPEAKER"

    # Stage
    REQUEST_TO_SPEAK = "REQUEST_TO_SPEAK"
    MANAGE_STAGE = "MANAGE_STAGE"

    # Advanced
    CREATE_INSTANT_INVITE = "CREATE_INSTANT_INVITE"
    USE_SLASH_COMMANDS = "USE_SLASH_COMMANDS"
    USE_APPLICATION_COMMANDS = "USE_APPLICATION_COMMANDS"
    SEND_MESSAGES_IN_THREADS = "SEND_MESSAGES_IN_THREADS"
    CREATE_PUBLIC_THREADS = "CREATE_PUBLIC_THREADS"
    CREATE_PRIVATE_THREADS = "CREATE_PRIVATE_THREADS"
    MANAGE_THREADS = "MANAGE_THREADS"
    USE_EXTERNAL_STICKERS = "USE_EXTERNAL_STICKERS"
    SEND_VOICE_MESSAGES = "SEND_VOICE_MESSAGES"


class PermissionScope(str, enum.Enum):
    """Breadth a grant or override applies to."""

    SERVER = "SERVER"
    CHANNEL = "CHANNEL"
    CATEGORY = "CATEGORY"


class GrantType(str, enum.Enum):
    ALLOW = "ALLOW"
    DENY = "DENY"


class LegacyRole(str, enum.Enum):
    """Pre-role-system member role kept for older servers."""

    ADMIN = "ADMIN"
    MODERATOR = "MODERATOR"
    GUEST = "GUEST"


class DecisionReason(str, enum.Enum):
    """Why a resolution produced its outcome."""

    OWNER = "OWNER"
    USER_OVERRIDE = "USER_OVERRIDE"
    ADMINISTRATOR = "ADMINISTRATOR"
    ROLE = "ROLE"
    LEGACY = "LEGACY"
    DENIED = "DENIED"


class ModerationAction(str, enum.Enum):
    """Administrative actions one member may perform on another."""

    KICK = "KICK"
    BAN = "BAN"
    TIMEOUT = "TIMEOUT"
    MANAGE_ROLES = "MANAGE_ROLES"
    ASSIGN_ROLE = "ASSIGN_ROLE"
    REVOKE_ROLE = "REVOKE_ROLE"
    MANAGE_NICKNAMES = "MANAGE_NICKNAMES"
    MUTE = "MUTE"
    DEAFEN = "DEAFEN"
    MOVE = "MOVE"


class PermissionGroup(str, enum.Enum):
    """UI grouping for catalog listings."""

    SERVER_MANAGEMENT = "SERVER_MANAGEMENT"
    MEMBER_MANAGEMENT = "MEMBER_MANAGEMENT"
    TEXT = "TEXT"
    VOICE = "VOICE"
    STAGE = "STAGE"
    ADVANCED = "ADVANCED"


@dataclass(frozen=True)
class PermissionDef:
    """Static permission definition."""

    key: PermissionType
    group: PermissionGroup
    label: str
    description: str
