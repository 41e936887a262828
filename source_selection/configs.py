# Default selection pipeline. Stage order matters: each step reads the list
# the previous one wrote (ranked -> candidates -> enriched -> selected).
DEFAULT_SELECTION_PIPELINE = {
    "name": "Source_Selection",
    "debug": False,
    "show_summary": False,
    "steps": [
        {"type": "filter_sort", "settings": {}},
        {"type": "size_policy", "settings": {}},
        {"type": "deduplicate", "settings": {}},
        {"type": "enrich", "settings": {}},
        {"type": "token_budget", "settings": {}},
        {"type": "quality_metrics", "settings": {}},
    ],
}
