"""
Lark Base Snapshot

Copy a Lark/Feishu Base into a new, static Base: links, lookups, formulas,
user references and attachments become fixed text/number values.
"""

__version__ = "0.1.0"
