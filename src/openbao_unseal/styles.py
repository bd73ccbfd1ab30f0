"""Styling for the kube context selection prompt."""

from questionary import Style

PROMPT_STYLE = Style(
    [
        ("qmark", "fg:#5fafff bold"),  # Blue question mark
        ("question", "bold"),
        ("answer", "fg:#87d787 bold"),  # Green submitted answer
        ("pointer", "fg:#87d787 bold"),
        ("highlighted", "fg:#1c1c1c bg:#87d787 bold"),  # Dark text on green background
        ("instruction", "fg:#6c6c6c italic"),
        ("text", ""),
    ]
)

# Icon prefixes for prompts
POINTER = "❯ "
QMARK = "? "
