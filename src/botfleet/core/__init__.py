"""Console command core: tokenizing, dispatching, searching and reply routing."""

from botfleet.core.dispatcher import USAGES, CommandDispatcher
from botfleet.core.resolver import resolve_reply_target
from botfleet.core.search import DirectorySearch, SearchPattern
from botfleet.core.tokenizer import Token, tokenize

__all__ = [
    "USAGES",
    "CommandDispatcher",
    "DirectorySearch",
    "SearchPattern",
    "Token",
    "resolve_reply_target",
    "tokenize",
]
