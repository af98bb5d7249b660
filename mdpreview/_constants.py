"""Common literal values used across mdpreview.

These constants keep class names and defaults centralized so the renderer,
highlighter, templates, and tests share the same values without drifting.
Intended for internal use within the mdpreview package.

Examples
--------
>>> from mdpreview import _constants
>>> _constants.SEARCH_CURRENT_CLASS
'search-text-current'
>>> sorted(_constants.PLAIN_TEXT_LANGUAGES)
['text', 'txt']
"""

SEARCH_CLASS = "search-text"
SEARCH_CURRENT_CLASS = "search-text-current"
CODE_BLOCK_CLASS = "codehilite"
CODE_CLASS = "hljs"
ARTICLE_CLASS = "markdown-body"
ROOT_TAG = "root"
DEFAULT_PYGMENTS_STYLE = "monokai"
PLAIN_TEXT_LANGUAGES = frozenset({"txt", "text"})
IDLE_FALLBACK_DELAY = 0.1
HEADING_LEVELS = (1, 2, 3, 4, 5, 6)
