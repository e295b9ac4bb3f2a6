"""Random, human-readable schedule identifiers."""

from __future__ import annotations

import random
from typing import Callable

from schedule_app.services.errors import ScheduleError

ADJECTIVES = (
    "amber", "brave", "calm", "clever", "cosy", "crisp", "eager", "fancy",
    "gentle", "golden", "happy", "jolly", "keen", "lucky", "merry", "misty",
    "noble", "proud", "quick", "quiet", "rapid", "shiny", "silent", "sunny",
    "swift", "tidy", "vivid", "warm", "wild", "witty",
)
NOUNS = (
    "badger", "beacon", "brook", "canyon", "cedar", "comet", "falcon", "fern",
    "harbor", "heron", "island", "lantern", "maple", "meadow", "otter", "panda",
    "pebble", "pine", "planet", "raven", "river", "robin", "sparrow", "summit",
    "tiger", "tulip", "valley", "walrus", "willow", "zebra",
)

MAX_ATTEMPTS = 20


def random_slug(rng: random.Random | None = None) -> str:
    rng = rng or random.SystemRandom()
    return f"{rng.choice(ADJECTIVES)}-{rng.choice(NOUNS)}-{rng.randint(1000, 9999)}"


def generate_schedule_id(exists: Callable[[str], bool], rng: random.Random | None = None) -> str:
    """Return a slug ``exists`` reports as unused."""

    for _ in range(MAX_ATTEMPTS):
        slug = random_slug(rng)
        if not exists(slug):
            return slug
    raise ScheduleError("schedule_id_exhausted")
