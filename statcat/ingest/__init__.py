"""statcat gather pipeline.

This package downloads the message history of a guild's channels into the
local archive database. Runs are resumable: channels that are already
complete are skipped and re-inserted messages are ignored.

Usage:
    statcat gather <GUILD_ID>
"""
