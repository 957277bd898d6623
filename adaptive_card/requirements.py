"""
requirements.py

Required fields for each element and action type.
Used by the structural validator; a missing field yields a 'missing-field' issue.

Types whose required fields carry a dedicated issue code (Media.sources,
Input.ChoiceSet.choices, Action.ShowCard.card, ...) are checked by the
validator's type-specific rules instead and are not listed here.
"""

# Mapping from type discriminator to required keys.
REQUIRED_FIELDS = {
    # Elements
    "TextBlock": ["text"],
    "RichTextBlock": ["inlines"],
    "TextRun": ["text"],
    "Image": ["url"],
    "ImageSet": ["images"],
    "Container": ["items"],
    "FactSet": ["facts"],
    "ActionSet": ["actions"],
    "TableRow": ["cells"],

    # Actions
    "Action.Submit": [],
    "Action.OpenUrl": [],   # url has its own code (missing-url)
    "Action.Execute": [],   # verb is advisory (missing-verb)
}
