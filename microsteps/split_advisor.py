from __future__ import annotations


SplitPair = tuple[str, str]

# Ordered: the first keyword found in the step text wins.
SPLIT_TABLE: tuple[tuple[str, SplitPair], ...] = (
    ("open wardrobe", ("Lay out socks + underwear", "Add shirt + pants")),
    ("put on outfit", ("Underwear + socks", "Shirt + pants")),
    ("bathroom", ("Brush teeth", "Face splash")),
    ("pack essentials", ("Phone/wallet/keys on table", "Add badge + water")),
    ("shoes", ("Shoes on", "Grab bag & lock door")),
)

DEFAULT_SPLIT: SplitPair = ("Prepare for 30s", "Finish the remainder")


def split_suggestion(text: str) -> SplitPair:
    lowered = (text or "").lower()
    for keyword, pair in SPLIT_TABLE:
        if keyword in lowered:
            return pair
    return DEFAULT_SPLIT
