"""statcat word statistics.

Weekly word-occurrence counts over the archive, rendered as a line chart.

Usage:
    statcat word <GUILD_ID> <WORD>
"""
