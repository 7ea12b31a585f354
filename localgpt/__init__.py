"""Local GPT assistant core: prompt templating and linked-document retrieval."""

__version__ = "0.1.0"
