"""statcat: a discord statistics experience.

Archive the message history of a guild into a local database and chart how
often a word is used over time.
"""

__version__ = "0.1.0"
