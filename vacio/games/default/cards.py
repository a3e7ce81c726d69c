"""
Standard 52-card source.

Ids are rank + suit letter ("AS", "10H", "KD"); values run A=1 to K=13.
Image files follow the asset naming "<value>-<suit>.png".
"""

from ...engine_core.state import Card, Suit

RANKS = ["A", "2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K"]

SUIT_LETTERS = {
    Suit.SPADES: "S",
    Suit.HEARTS: "H",
    Suit.CLUBS: "C",
    Suit.DIAMONDS: "D",
}

# Asset names on disk
SUIT_IMAGES = {
    Suit.SPADES: "espadas",
    Suit.HEARTS: "corazones",
    Suit.CLUBS: "treboles",
    Suit.DIAMONDS: "diamantes",
}


def standard_deck() -> list[Card]:
    """Fresh list of the 52 standard cards."""
    cards = []
    for suit, letter in SUIT_LETTERS.items():
        for value, rank in enumerate(RANKS, start=1):
            cards.append(Card(
                id=f"{rank}{letter}",
                suit=suit,
                rank=rank,
                value=value,
                image_file=f"{value}-{SUIT_IMAGES[suit]}.png",
            ))
    return cards
