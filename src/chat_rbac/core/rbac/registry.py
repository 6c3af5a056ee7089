"""Canonical permission catalog.

The catalog is shared verbatim with any UI listing available permissions.
Adding, removing or renaming an entry affects every collaborator, so bump
``CATALOG_VERSION`` whenever the set of keys changes.
"""

from __future__ import annotations

from collections.abc import Mapping

from chat_rbac.core.rbac.types import PermissionDef, PermissionGroup, PermissionType

CATALOG_VERSION = "1"


def _permission(
    key: PermissionType,
    group: PermissionGroup,
    description: str,
    *,
    label: str | None = None,
) -> PermissionDef:
    if label is None:
        label = key.value.replace("_", " ").title()
    return PermissionDef(key=key, group=group, label=label, description=description)


_P = PermissionType
_G = PermissionGroup

PERMISSIONS: tuple[PermissionDef, ...] = (
    # Server management --------------------------------------------------
    _permission(
        _P.ADMINISTRATOR,
        _G.SERVER_MANAGEMENT,
        "Grants all permissions, including the ability to manage all aspects of the server.",
    ),
    _permission(_P.MANAGE_SERVER, _G.SERVER_MANAGEMENT, "Manage server settings."),
    _permission(_P.MANAGE_ROLES, _G.SERVER_MANAGEMENT, "Create, edit, and delete roles."),
    _permission(
        _P.MANAGE_CHANNELS,
        _G.SERVER_MANAGEMENT,
        "Create, edit, and delete channels and categories.",
    ),
    _permission(_P.VIEW_AUDIT_LOG, _G.SERVER_MANAGEMENT, "View the server audit log."),
    _permission(
        _P.VIEW_GUILD_INSIGHTS,
        _G.SERVER_MANAGEMENT,
        "Access server insights.",
        label="View Server Insights",
    ),
    _permission(_P.MANAGE_WEBHOOKS, _G.SERVER_MANAGEMENT, "Create and manage webhooks."),
    _permission(
        _P.MANAGE_EMOJIS,
        _G.SERVER_MANAGEMENT,
        "Manage custom emojis and stickers.",
    ),
    _permission(
        _P.MANAGE_GUILD,
        _G.SERVER_MANAGEMENT,
        "Manage general server settings.",
        label="Manage Server General",
    ),
    # Member management --------------------------------------------------
    _permission(_P.KICK_MEMBERS, _G.MEMBER_MANAGEMENT, "Kick members from the server."),
    _permission(_P.BAN_MEMBERS, _G.MEMBER_MANAGEMENT, "Ban members from the server."),
    _permission(_P.TIMEOUT_MEMBERS, _G.MEMBER_MANAGEMENT, "Put members in timeout."),
    _permission(
        _P.MANAGE_NICKNAMES,
        _G.MEMBER_MANAGEMENT,
        "Change other members' nicknames.",
    ),
    _permission(_P.CHANGE_NICKNAME, _G.MEMBER_MANAGEMENT, "Change own nickname."),
    # Text ---------------------------------------------------------------
    _permission(_P.VIEW_CHANNELS, _G.TEXT, "View channels."),
    _permission(_P.SEND_MESSAGES, _G.TEXT, "Send messages in text channels."),
    _permission(
        _P.SEND_TTS_MESSAGES,
        _G.TEXT,
        "Send text-to-speech messages.",
        label="Send TTS Messages",
    ),
    _permission(
        _P.MANAGE_MESSAGES,
        _G.TEXT,
        "Delete and edit messages from other members.",
    ),
    _permission(_P.EMBED_LINKS, _G.TEXT, "Links embed automatically."),
    _permission(_P.ATTACH_FILES, _G.TEXT, "Upload images and files."),
    _permission(_P.READ_MESSAGE_HISTORY, _G.TEXT, "Read previous messages."),
    _permission(_P.MENTION_EVERYONE, _G.TEXT, "Mention @everyone and @here."),
    _permission(_P.USE_EXTERNAL_EMOJIS, _G.TEXT, "Use emojis from other servers."),
    _permission(_P.ADD_REACTIONS, _G.TEXT, "Add new reactions to messages."),
    # Voice --------------------------------------------------------------
    _permission(_P.CONNECT, _G.VOICE, "Connect to voice channels."),
    _permission(_P.SPEAK, _G.VOICE, "Speak in voice channels."),
    _permission(_P.MUTE_MEMBERS, _G.VOICE, "Mute members in voice channels."),
    _permission(_P.DEAFEN_MEMBERS, _G.VOICE, "Deafen members in voice channels."),
    _permission(_P.MOVE_MEMBERS, _G.VOICE, "Move members between voice channels."),
    _permission(
        _P.USE_VAD,
        _G.VOICE,
        "Use voice activity detection.",
        label="Use Voice Activity",
    ),
    _permission(_P.PRIORITY_SPEAKER, _G.VOICE, "Priority speaker in voice channels."),
    # Stage --------------------------------------------------------------
    _permission(_P.REQUEST_TO_SPEAK, _G.STAGE, "Request to speak in stage channels."),
    _permission(
        _P.MANAGE_STAGE,
        _G.STAGE,
        "Approve or deny speaker requests and move people to and from the stage.",
    ),
    # Advanced -----------------------------------------------------------
    _permission(_P.CREATE_INSTANT_INVITE, _G.ADVANCED, "Create instant invites."),
    _permission(_P.USE_SLASH_COMMANDS, _G.ADVANCED, "Use slash commands."),
    _permission(_P.USE_APPLICATION_COMMANDS, _G.ADVANCED, "Use application commands."),
    _permission(_P.SEND_MESSAGES_IN_THREADS, _G.ADVANCED, "Send messages in threads."),
    _permission(_P.CREATE_PUBLIC_THREADS, _G.ADVANCED, "Create public threads."),
    _permission(_P.CREATE_PRIVATE_THREADS, _G.ADVANCED, "Create private threads."),
    _permission(_P.MANAGE_THREADS, _G.ADVANCED, "Manage threads."),
    _permission(_P.USE_EXTERNAL_STICKERS, _G.ADVANCED, "Use stickers from other servers."),
    _permission(_P.SEND_VOICE_MESSAGES, _G.ADVANCED, "Send voice messages."),
)

PERMISSION_REGISTRY: Mapping[PermissionType, PermissionDef] = {
    definition.key: definition for definition in PERMISSIONS
}

PERMISSION_GROUPS: Mapping[PermissionGroup, tuple[PermissionType, ...]] = {
    group: tuple(definition.key for definition in PERMISSIONS if definition.group == group)
    for group in PermissionGroup
}

ALL_PERMISSIONS: frozenset[PermissionType] = frozenset(PERMISSION_REGISTRY)


__all__ = [
    "ALL_PERMISSIONS",
    "CATALOG_VERSION",
    "PERMISSIONS",
    "PERMISSION_GROUPS",
    "PERMISSION_REGISTRY",
]
