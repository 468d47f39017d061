"""Random 3D-printing search terms for the "surprise me" button.

Each call picks one of four shapes:
  10% seasonal term for the current month
  20% compound (theme + object), e.g. "octopus planter"
  30% modifier + base term, e.g. "stackable gridfinity"
  40% plain base term, drawn from weighted categories
"""

import random
from datetime import date
from typing import Dict, List, Optional, Tuple

# (name, weight, terms); a category's weight multiplies how often its terms are drawn
CATEGORIES: List[Tuple[str, int, List[str]]] = [
    ("Everyday Functional", 30, [
        "phone stand", "cable organizer", "headphone holder", "wall hook", "key holder",
        "coaster", "bookend", "bag clip", "door stop", "cable clip", "soap dish",
        "toothbrush holder", "toilet paper holder", "towel hook", "shelf bracket",
        "drawer organizer", "desk organizer", "pen holder", "pencil cup", "monitor stand",
        "laptop stand", "tablet stand", "charging station", "cord management", "cup holder",
        "bottle opener", "spice rack", "napkin holder", "planter", "plant pot",
        "succulent planter", "hanging planter", "flower pot", "seed tray",
    ]),
    ("Storage & Organization", 20, [
        "gridfinity", "storage box", "storage bin", "organizer tray", "parts bin",
        "tool holder", "screwdriver holder", "wrench holder", "bit holder", "drill bit organizer",
        "sd card holder", "battery holder", "cable box", "remote holder", "game cartridge holder",
        "lego storage", "filament spool holder", "tool wall mount", "pegboard hook", "workshop organizer",
    ]),
    ("Art & Sculpture", 15, [
        "low poly", "voronoi", "lithophane", "bust", "sculpture", "vase", "spiral vase",
        "geometric art", "abstract sculpture", "wireframe", "faceted", "parametric art",
        "mandala", "fractal", "impossible object", "optical illusion", "infinity cube",
        "wave pattern", "lattice", "gyroid",
    ]),
    ("Toys & Games", 15, [
        "articulated dragon", "flexi rex", "flexi animal", "fidget toy", "fidget spinner",
        "puzzle", "interlocking puzzle", "brain teaser", "chess set", "chess piece",
        "dice", "dice tower", "board game insert", "card holder", "token", "game piece",
        "marble run", "spinning top", "yo-yo", "kaleidoscope",
    ]),
    ("Tech & Electronics", 10, [
        "raspberry pi case", "raspberry pi 5 case", "arduino enclosure", "esp32 case",
        "electronics enclosure", "pcb mount", "fan duct", "cable management", "server rack",
        "network switch mount", "camera mount", "gopro mount", "webcam mount", "ring light mount",
        "microphone stand", "keyboard case", "mouse shell", "pc case mod", "nvme enclosure",
    ]),
    ("Hobby & Maker", 5, [
        "cosplay", "helmet", "mask", "armor", "prop", "wand", "lightsaber",
        "dnd miniature", "rpg terrain", "dungeon tile", "warhammer terrain", "miniature base",
        "tabletop scenery", "model train", "rc car part", "drone frame", "quadcopter",
    ]),
    ("3D Printing Tools", 5, [
        "print in place", "support free", "voron part", "prusa upgrade", "ender 3 upgrade",
        "bed leveling tool", "filament guide", "nozzle cleaner", "calibration cube",
        "test print", "benchy", "xyz cube", "overhang test", "stringing test",
    ]),
]

STYLE_MODIFIERS = [
    "minimalist", "geometric", "art deco", "steampunk", "sci-fi", "gothic", "organic",
    "modular", "parametric", "cyberpunk", "retro", "futuristic", "industrial", "nordic",
    "japanese", "brutalist", "bauhaus", "victorian", "biomechanical", "abstract",
]

FUNCTIONAL_MODIFIERS = [
    "articulated", "foldable", "stackable", "magnetic", "snap-fit", "wall-mounted",
    "hanging", "desktop", "compact", "modular", "adjustable", "collapsible",
    "interlocking", "hollow", "lattice", "textured", "ribbed", "perforated",
]

COMPOUND_THEMES = [
    "dragon", "skull", "octopus", "cat", "wolf", "fox", "bear", "owl", "raven", "phoenix",
    "robot", "alien", "astronaut", "knight", "samurai", "viking", "wizard", "pirate",
    "mushroom", "cactus", "crystal", "gear", "anchor", "compass", "moon", "saturn",
]

COMPOUND_OBJECTS = [
    "planter", "bookend", "pen holder", "lamp", "coaster", "wall art", "keychain",
    "figurine", "bust", "vase", "candle holder", "phone stand", "cable holder",
    "storage box", "dice tower", "miniature", "wall hook", "night light",
]

SEASONAL_TERMS: Dict[int, List[str]] = {}
for _months, _terms in [
    ((1, 2), ["valentine heart", "love token", "cupid arrow", "winter decoration", "snowflake ornament"]),
    ((3, 4), ["easter egg", "spring planter", "bunny figurine", "flower decoration", "butterfly"]),
    ((5, 6), ["graduation cap", "father's day gift", "summer decoration", "beach themed", "sunflower"]),
    ((7, 8), ["summer vase", "beach coaster", "tropical planter", "bbq tool holder", "camping gear"]),
    ((9, 10), ["halloween skull", "pumpkin", "ghost decoration", "bat ornament", "spider web",
               "witch hat", "jack o lantern"]),
    ((11,), ["thanksgiving decoration", "autumn leaf", "cornucopia", "harvest decoration"]),
    ((12,), ["christmas ornament", "snowflake", "advent calendar", "santa", "christmas tree",
             "star ornament", "gift box"]),
]:
    for _month in _months:
        SEASONAL_TERMS[_month] = _terms

SEASONAL_CUTOFF = 0.10
COMPOUND_CUTOFF = 0.30
MODIFIED_CUTOFF = 0.60


def _build_weighted_pool() -> List[str]:
    pool: List[str] = []
    for _name, weight, terms in CATEGORIES:
        pool.extend(terms * weight)
    return pool


WEIGHTED_POOL = _build_weighted_pool()


class RandomTermGenerator:
    """Draws search terms; pass a seeded ``random.Random`` and a fixed ``today`` for repeatable output."""

    def __init__(self, rng: Optional[random.Random] = None, today: Optional[date] = None):
        self.rng = rng or random.Random()
        self.today = today

    def next_term(self) -> str:
        roll = self.rng.random()
        if roll < SEASONAL_CUTOFF:
            return self.seasonal_term()
        if roll < COMPOUND_CUTOFF:
            return self.compound_term()
        if roll < MODIFIED_CUTOFF:
            return self.modified_term()
        return self.base_term()

    def base_term(self) -> str:
        return self.rng.choice(WEIGHTED_POOL)

    def modified_term(self) -> str:
        base = self.base_term()
        modifiers = STYLE_MODIFIERS if self.rng.random() < 0.5 else FUNCTIONAL_MODIFIERS
        return f"{self.rng.choice(modifiers)} {base}"

    def compound_term(self) -> str:
        return f"{self.rng.choice(COMPOUND_THEMES)} {self.rng.choice(COMPOUND_OBJECTS)}"

    def seasonal_term(self) -> str:
        month = (self.today or date.today()).month
        terms = SEASONAL_TERMS.get(month)
        if not terms:
            return self.base_term()
        return self.rng.choice(terms)


_generator = RandomTermGenerator()


def get_random_term() -> str:
    return _generator.next_term()
