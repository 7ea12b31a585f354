"""Template marker syntax.

User templates depend on these strings byte for byte.
"""

SELECTION_KEYWORD = "{{=SELECTION=}}"
CONTEXT_KEYWORD = "{{=CONTEXT=}}"
CONTEXT_CONDITION_START = "{{=CONTEXT_START=}}"
CONTEXT_CONDITION_END = "{{=CONTEXT_END=}}"
CURRENT_TIME_KEYWORD = "{{=CURRENT_TIME=}}"
SHOW_MODEL_INFO_KEYWORD = "{{=SHOW_MODEL_INFO=}}"
SHOW_PERFORMANCE_KEYWORD = "{{=SHOW_PERFORMANCE=}}"
ALL_TAGS_KEYWORD = "{{=ALL_TAGS=}}"
CURRENT_TAGS_KEYWORD = "{{=CURRENT_TAGS=}}"

CONTEXT_LABEL = "Context:\n"
