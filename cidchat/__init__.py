"""
cidchat — chat with an OpenAI-compatible node, archive the result by CID.
"""

__version__ = "0.3.0"
